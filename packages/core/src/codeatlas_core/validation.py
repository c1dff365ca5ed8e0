"""Validation for review inputs and provider output.

Provider adapters are treated as untrusted: their output is checked here
before anything downstream sees it, and the engine re-checks whatever an
adapter hands back.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from codeatlas_core.errors import (
    InvalidFindingError,
    InvalidFindingsError,
    InvalidResultError,
    MissingSummaryError,
    ReviewInputError,
    ReviewValidationError,
    ScoreOutOfRangeError,
)
from codeatlas_core.models import FileChange, ReviewRequest, ReviewResult

# Optional sub-objects a provider may send malformed; they are dropped rather than failing the review.
_OPTIONAL_OBJECTS = ("feedback", "metadata")


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_review_input(request: ReviewRequest) -> None:
    """Raise ReviewInputError if the request cannot be reviewed."""
    if not request.repository or not request.title or not request.author:
        raise ReviewInputError("Repository, title, and author are required")
    if request.file_changes is None:
        return
    if not isinstance(request.file_changes, (list, tuple)):
        raise ReviewInputError("File changes must be an array")

    for index, change in enumerate(request.file_changes):
        if not isinstance(change, FileChange):
            raise ReviewInputError(f"File change {index} must be a FileChange, got {type(change).__name__}")
        if not isinstance(change.path, str) or not change.path:
            raise ReviewInputError(f"File change {index}: path must be a non-empty string")
        for name in ("additions", "deletions"):
            if not _is_count(getattr(change, name)):
                raise ReviewInputError(f"File change {index}: {name} must be a non-negative integer")


def _to_review_error(error: dict[str, Any]) -> ReviewValidationError:
    loc = error["loc"]
    message = "is required" if error["type"] == "missing" else f"is invalid ({error['msg']})"
    field = loc[0] if loc else None

    if field == "summary":
        return MissingSummaryError("Review summary is required")
    if field == "overallScore":
        return ScoreOutOfRangeError("Overall score must be a number between 0 and 100")
    if field == "findings":
        if len(loc) == 1:
            return InvalidFindingsError("Findings must be an array")
        if len(loc) == 2:
            return InvalidFindingError(loc[1], "finding", "must be an object")
        return InvalidFindingError(loc[1], str(loc[2]), message)
    return InvalidResultError(f"Invalid review result format: {'.'.join(map(str, loc))} {message}")


def validate_review_result(candidate: Any) -> ReviewResult:
    """Check a wire-format candidate against the result schema.

    Checks run in field order (summary, overallScore, findings, then each
    finding) and the first failure raises its named error. The candidate is
    never mutated; a new ReviewResult is returned only when every check
    passes.
    """
    if not isinstance(candidate, Mapping):
        raise InvalidResultError("Invalid review result format")

    data = {k: v for k, v in candidate.items() if k not in _OPTIONAL_OBJECTS or isinstance(v, Mapping)}
    try:
        return ReviewResult.model_validate(data)
    except ValidationError as e:
        raise _to_review_error(e.errors()[0]) from e
