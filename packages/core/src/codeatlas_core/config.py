import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "provider": "openai",
    "openai_model": None,  # None = provider default (gpt-4-turbo-preview)
    "anthropic_model": None,  # None = provider default (claude-3-opus-20240229)
    "timeout": None,  # seconds; None = SDK transport default
    "store": "noop",
    "store_path": ".codeatlas.db",
    "log_level": "INFO",
}

# Environment variables that override the config file (but not CLI flags).
_ENV_OVERRIDES = {
    "AI_PROVIDER": "provider",
    "OPENAI_MODEL": "openai_model",
    "ANTHROPIC_MODEL": "anthropic_model",
    "LOG_LEVEL": "log_level",
}


def load_config(config_path: str = ".codeatlas.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .codeatlas.yml in the current directory
      3. Environment variables (AI_PROVIDER, OPENAI_MODEL, ANTHROPIC_MODEL, LOG_LEVEL)
      4. CLI argument overrides

    Credentials are only ever read from the environment, never from the file.
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    for env_var, key in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            config[key] = value

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

    return config
