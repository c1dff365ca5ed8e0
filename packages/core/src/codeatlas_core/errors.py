"""Exception hierarchy for the review core.

Two families matter to callers of ReviewEngine.review_pull_request:

  - ConfigurationError / ReviewInputError propagate. They signal a startup
    or caller defect and must never be masked.
  - ProviderError / ReviewValidationError are absorbed by the engine and
    turned into a fallback ReviewResult.
"""

from __future__ import annotations


class CodeAtlasError(Exception):
    """Base class for every error raised by codeatlas_core."""


class ConfigurationError(CodeAtlasError):
    """Raised when the engine cannot be built from the given configuration."""


class ReviewInputError(CodeAtlasError, ValueError):
    """Raised when a ReviewRequest is missing required fields or is malformed."""


class ProviderError(CodeAtlasError):
    """A provider call failed: transport, empty completion, bad JSON or bad structure.

    Tagged with the provider name so logs and fallback results say which
    upstream misbehaved.
    """

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.reason = message
        super().__init__(f"{provider} review failed: {message}")


class ReviewValidationError(CodeAtlasError, ValueError):
    """A candidate review result does not conform to the result schema."""


class InvalidResultError(ReviewValidationError):
    pass


class MissingSummaryError(ReviewValidationError):
    pass


class ScoreOutOfRangeError(ReviewValidationError):
    pass


class InvalidFindingsError(ReviewValidationError):
    pass


class InvalidFindingError(ReviewValidationError):
    """A single finding failed validation. Carries its index and field name."""

    def __init__(self, index: int, field: str, message: str):
        self.index = index
        self.field = field
        super().__init__(f"Finding {index}: {field} {message}")
