from __future__ import annotations

from codeatlas_core.providers.base import BaseReviewer, Completion


class AnthropicReviewer(BaseReviewer):
    PROVIDER = "anthropic"
    DISPLAY_NAME = "Anthropic"
    DEFAULT_MODEL = "claude-3-opus-20240229"
    TEMPERATURE = 0.2
    MAX_TOKENS = 4096
    # Claude has no JSON mode and often wraps the object in a ```json fence.
    LENIENT_JSON = True

    def __init__(self, api_key: str, model: str | None = None, timeout: float | None = None):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. Install it with: pip install anthropic"
            )
        super().__init__(model)
        client_kwargs: dict = {"api_key": api_key, "max_retries": 0}
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        self.client = Anthropic(**client_kwargs)

    def _call_api(self, system_prompt: str, user_prompt: str) -> Completion:
        # __init__ already validated the anthropic package is installed.
        from anthropic.types import TextBlock

        response = self.client.messages.create(
            model=self.model,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        usage = response.usage
        tokens = usage.input_tokens + usage.output_tokens if usage else None
        return Completion(text="".join(text_blocks).strip(), tokens_used=tokens)
