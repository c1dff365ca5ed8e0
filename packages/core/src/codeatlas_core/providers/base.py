"""Base reviewer implementing the Template Method pattern.

All providers share the same review algorithm:
    review() → build_prompt()
             → _call_api()   ← only this differs per provider
             → _parse() → validate_review_result()
             → provider metadata attached

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the completion text and usage

Everything else (prompt construction, JSON extraction and parsing, result
validation, error tagging) lives here so it is defined once and inherited
consistently by every provider.

There is deliberately no retry loop: one review is one upstream call. Any
failure is raised as a ProviderError and the engine decides what to do.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from codeatlas_core.errors import ProviderError
from codeatlas_core.models import ReviewRequest, ReviewResult
from codeatlas_core.prompts import build_prompt
from codeatlas_core.utils.json_extract import extract_json_object
from codeatlas_core.validation import validate_review_result

logger = logging.getLogger(__name__)

_MAX_TOKENS = 4096


@dataclass(frozen=True)
class Completion:
    """The parts of a provider response envelope the reviewer cares about."""

    text: str | None
    tokens_used: int | None = None


class BaseReviewer(ABC):
    PROVIDER: str = ""
    DISPLAY_NAME: str = ""
    DEFAULT_MODEL: str = ""
    TEMPERATURE: float = 0.2
    MAX_TOKENS: int = _MAX_TOKENS
    # When True, the completion may be fenced or wrapped in prose and the
    # JSON object is located before parsing.
    LENIENT_JSON: bool = False

    def __init__(self, model: str | None = None):
        self.model = model or self.DEFAULT_MODEL

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def review(self, request: ReviewRequest) -> ReviewResult:
        """Review one pull request with a single provider call.

        Raises ProviderError for every failure mode: transport errors, an
        empty completion, malformed JSON and schema violations.
        """
        prompt = build_prompt(request)
        try:
            completion = self._call_api(prompt.combined_system_prompt(), prompt.user_prompt)
            if not completion.text or not completion.text.strip():
                raise ValueError(f"Empty response from {self.DISPLAY_NAME}")
            result = self._parse(completion.text)
        except Exception as e:
            logger.error(
                "%s API error for %s: %s",
                self.DISPLAY_NAME,
                request.repository,
                e,
            )
            raise ProviderError(self.DISPLAY_NAME, str(e) or e.__class__.__name__) from e

        result.metadata = {
            "provider": self.PROVIDER,
            "model": self.model,
            "tokensUsed": completion.tokens_used,
        }
        return result

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> Completion:
        """Make a single API call and return the completion.

        This is the only method subclasses must implement. It should raise
        on transport failure; review() tags the error with the provider name.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _parse(self, raw: str) -> ReviewResult:
        """Parse and validate the model's raw completion text.

        json.JSONDecodeError and ReviewValidationError propagate; a completion
        that doesn't parse is a failed review, not an empty one.
        """
        text = extract_json_object(raw) if self.LENIENT_JSON else raw.strip()
        payload = json.loads(text)
        return validate_review_result(payload)
