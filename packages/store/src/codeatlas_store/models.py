"""Review history data models.

Decoupled from codeatlas_core so the store layer can be used independently
and codeatlas_core has no knowledge of persistence concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class FindingRecord:
    """A single review finding persisted to the store."""

    category: str
    severity: str
    title: str
    description: str
    file_path: str | None = None
    line_start: int | None = None
    line_end: int | None = None
    suggestion: str | None = None


@dataclass
class ReviewRecord:
    """A completed (or failed) PR review persisted to the store.

    Created by the CLI layer after the engine returns a ReviewResult.
    A fallback result is stored with status "failed" and its error message.
    """

    repository: str
    pr_number: int
    pr_title: str
    author: str
    head_sha: str
    provider: str
    status: str  # "completed" | "failed"
    summary: str
    overall_score: float
    reviewed_at: str  # ISO-8601 UTC timestamp
    fallback: bool = False
    error: str | None = None
    findings: list[FindingRecord] = field(default_factory=list)
