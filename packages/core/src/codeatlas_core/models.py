"""Review request and result types.

The wire form (what providers return and what API consumers see) uses
camelCase keys; the models use snake_case. Result types are pydantic models
with camelCase aliases, so the schema a provider must satisfy lives on the
types themselves. Requests are built by trusted callers and stay plain
dataclasses.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Literal, get_args

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel

from codeatlas_core.errors import ReviewInputError

Category = Literal["readability", "bug", "security", "performance", "maintainability"]
Severity = Literal["low", "medium", "high", "critical"]

CATEGORIES = get_args(Category)
SEVERITIES = get_args(Severity)


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


NonBlankStr = Annotated[StrictStr, AfterValidator(_not_blank)]
# bool is rejected by strict mode, so True never passes as a score of 1.
Score = Annotated[float, Field(strict=True, ge=0, le=100, allow_inf_nan=False)]


def _count(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ReviewInputError(f"{key} must be a non-negative integer, got {value!r}")
    return value


@dataclass(frozen=True)
class FileChange:
    path: str
    additions: int = 0
    deletions: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FileChange:
        return cls(
            path=data.get("path", ""),
            additions=_count(data, "additions"),
            deletions=_count(data, "deletions"),
        )


@dataclass(frozen=True)
class ReviewRequest:
    """Everything the engine needs to review one pull request.

    Built by the caller per review attempt and never persisted by the core.
    """

    repository: str
    title: str
    author: str
    base_branch: str = ""
    head_branch: str = ""
    diff_summary: str = ""
    file_changes: list[FileChange] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReviewRequest:
        """Build a request from a wire-format dict (camelCase or snake_case keys).

        A scalar or mapping under ``fileChanges`` is passed through as-is so
        that input validation can reject it rather than silently dropping it.
        """

        def pick(camel: str, snake: str, default: Any = "") -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        raw_changes = pick("fileChanges", "file_changes", None)
        if isinstance(raw_changes, (list, tuple)):
            file_changes: Any = []
            for index, change in enumerate(raw_changes):
                if isinstance(change, FileChange):
                    file_changes.append(change)
                elif isinstance(change, Mapping):
                    try:
                        file_changes.append(FileChange.from_dict(change))
                    except ReviewInputError as e:
                        raise ReviewInputError(f"File change {index}: {e}") from e
                else:
                    raise ReviewInputError(f"File change {index} must be an object")
        else:
            file_changes = raw_changes

        return cls(
            repository=data.get("repository", ""),
            title=data.get("title", ""),
            author=data.get("author", ""),
            base_branch=pick("baseBranch", "base_branch"),
            head_branch=pick("headBranch", "head_branch"),
            diff_summary=pick("diffSummary", "diff_summary"),
            file_changes=file_changes,
        )


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Finding(WireModel):
    """One reviewer-flagged issue."""

    model_config = ConfigDict(frozen=True)

    category: Category
    severity: Severity
    title: NonBlankStr
    description: NonBlankStr
    file_path: str | None = None
    line_start: int | None = None
    line_end: int | None = None
    suggestion: str | None = None
    code_snippet: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Finding:
        return cls.model_validate(data)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ReviewFeedback(WireModel):
    """Narrative per-dimension feedback. Always present on fallback results."""

    model_config = ConfigDict(frozen=True)

    readability: str = ""
    security: str = ""
    performance: str = ""
    maintainability: str = ""
    score: float = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReviewFeedback:
        return cls.model_validate(data)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ReviewResult(WireModel):
    # Field order is the order checks run in; the first failure is reported.
    summary: NonBlankStr
    overall_score: Score
    findings: list[Finding]
    feedback: ReviewFeedback | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReviewResult:
        return cls.model_validate(data)

    @property
    def is_fallback(self) -> bool:
        return self.metadata.get("fallback") is True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "summary": self.summary,
            "overallScore": self.overall_score,
            "findings": [f.to_dict() for f in self.findings],
            "metadata": dict(self.metadata),
        }
        if self.feedback is not None:
            data["feedback"] = self.feedback.to_dict()
        return data
