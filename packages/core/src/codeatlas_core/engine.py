"""Review engine: the single entry point for AI pull-request reviews.

review_pull_request() has exactly two outcomes for a valid request: a
validated, metadata-enriched result, or a fallback result with
``metadata["fallback"] is True``. Provider and validation failures never
escape as exceptions. Only a malformed request (a caller bug) raises.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Union

from codeatlas_core.errors import ConfigurationError
from codeatlas_core.models import ReviewFeedback, ReviewRequest, ReviewResult
from codeatlas_core.providers.anthropic import AnthropicReviewer
from codeatlas_core.providers.base import BaseReviewer
from codeatlas_core.providers.openai import OpenAIReviewer
from codeatlas_core.validation import validate_review_input, validate_review_result

logger = logging.getLogger(__name__)

_UNABLE_TO_ANALYZE = "Unable to analyze due to processing error"


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


_REVIEWERS = {
    Provider.OPENAI: (OpenAIReviewer, "openai_api_key", "openai_model", "OPENAI_API_KEY"),
    Provider.ANTHROPIC: (AnthropicReviewer, "anthropic_api_key", "anthropic_model", "ANTHROPIC_API_KEY"),
}


@dataclass(frozen=True)
class ReviewSucceeded:
    result: ReviewResult


@dataclass(frozen=True)
class ReviewDegraded:
    error: str


ReviewOutcome = Union[ReviewSucceeded, ReviewDegraded]


def _resolve_provider(name: Provider | str | None) -> Provider:
    try:
        return Provider(name)
    except ValueError:
        raise ConfigurationError(f"Unsupported AI provider: {name!r}. Choose 'openai' or 'anthropic'.")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ReviewEngine:
    """Drives one review end to end against a provider fixed at construction.

    Holds only immutable configuration, so a single instance can serve
    concurrent callers without locking.
    """

    def __init__(self, reviewer: BaseReviewer, provider: Provider | str):
        self._reviewer = reviewer
        self._provider = _resolve_provider(provider)
        logger.info("AI engine initialized with provider %s", self._provider.value)

    @property
    def provider(self) -> str:
        return self._provider.value

    def review_pull_request(self, request: ReviewRequest) -> ReviewResult:
        """Review a pull request and always return a well-formed result.

        Raises ReviewInputError for an invalid request, before any network
        call. Every other failure yields a fallback result instead.
        """
        validate_review_input(request)

        logger.info(
            "Starting AI review of %s: %r (%d file change(s))",
            request.repository,
            request.title,
            len(request.file_changes or []),
        )

        outcome = self._attempt(request)
        if isinstance(outcome, ReviewDegraded):
            return self._fallback(request, outcome.error)

        result = outcome.result
        logger.info(
            "AI review of %s completed: %d finding(s), score %s, %dms via %s",
            request.repository,
            len(result.findings),
            result.overall_score,
            result.metadata["processingTime"],
            self.provider,
        )
        return result

    def _attempt(self, request: ReviewRequest) -> ReviewOutcome:
        start = time.monotonic()
        try:
            raw = self._reviewer.review(request)
            # Re-validate independently of the adapter's own checks.
            candidate = raw.to_dict() if isinstance(raw, ReviewResult) else raw
            validated = validate_review_result(candidate)
        except Exception as e:
            logger.error("AI review of %s failed: %s", request.repository, e, exc_info=True)
            return ReviewDegraded(error=str(e) or e.__class__.__name__)

        processing_time = int((time.monotonic() - start) * 1000)
        return ReviewSucceeded(self._enrich(validated, request, processing_time))

    def _enrich(self, result: ReviewResult, request: ReviewRequest, processing_time: int) -> ReviewResult:
        # Adapter keys survive; engine keys win on collision.
        result.metadata = {
            **result.metadata,
            "provider": self.provider,
            "processingTime": processing_time,
            "repository": request.repository,
            "prTitle": request.title,
            "timestamp": _now_iso(),
        }
        return result

    def _fallback(self, request: ReviewRequest, error: str) -> ReviewResult:
        return ReviewResult(
            summary=f"Review failed due to: {error}",
            overall_score=0,
            feedback=ReviewFeedback(
                readability=_UNABLE_TO_ANALYZE,
                security=_UNABLE_TO_ANALYZE,
                performance=_UNABLE_TO_ANALYZE,
                maintainability=_UNABLE_TO_ANALYZE,
                score=0,
            ),
            findings=[],
            metadata={
                "error": error,
                "fallback": True,
                "repository": request.repository,
                "timestamp": _now_iso(),
            },
        )


def build_engine(config: dict) -> ReviewEngine:
    """Construct the engine for the configured provider.

    Raises ConfigurationError for an unknown provider or a missing
    credential. Callers should treat this as a startup failure.
    """
    provider = _resolve_provider(config.get("provider"))

    reviewer_cls, key_name, model_name, env_var = _REVIEWERS[provider]
    api_key = config.get(key_name)
    if not api_key:
        raise ConfigurationError(f"{env_var} is required for the {provider.value} provider")

    try:
        reviewer = reviewer_cls(api_key=api_key, model=config.get(model_name), timeout=config.get("timeout"))
    except ImportError as e:
        raise ConfigurationError(str(e)) from e

    return ReviewEngine(reviewer, provider)
