from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from codeatlas_core.providers.base import BaseReviewer, Completion


class OpenAIReviewer(BaseReviewer):
    PROVIDER = "openai"
    DISPLAY_NAME = "OpenAI"
    DEFAULT_MODEL = "gpt-4-turbo-preview"
    TEMPERATURE = 0.2
    MAX_TOKENS = 4000
    # JSON mode guarantees a bare object, so no extraction is needed.
    LENIENT_JSON = False

    def __init__(self, api_key: str, model: str | None = None, timeout: float | None = None):
        if _OpenAI is None:
            raise ImportError("The 'openai' package is required for this provider. Install it with: pip install openai")
        super().__init__(model)
        client_kwargs: dict = {"api_key": api_key, "max_retries": 0}
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        self.client = _OpenAI(**client_kwargs)

    def _call_api(self, system_prompt: str, user_prompt: str) -> Completion:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            response_format={"type": "json_object"},
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        content = response.choices[0].message.content if response.choices else None
        usage = response.usage
        return Completion(text=content, tokens_used=usage.total_tokens if usage else None)
