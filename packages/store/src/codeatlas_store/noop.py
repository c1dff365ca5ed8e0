"""No-op store: the default when no store is configured."""

from __future__ import annotations

from typing import TYPE_CHECKING

from codeatlas_store.base import BaseStore

if TYPE_CHECKING:
    from codeatlas_store.models import ReviewRecord


class NoOpStore(BaseStore):
    """Silently discards all records. Zero configuration required.

    Using a NoOpStore rather than None lets the CLI always call store.save()
    without conditional checks.
    """

    def save(self, record: ReviewRecord) -> None:
        pass

    def list_reviews(self, repository: str, pr_number: int | None = None) -> list[ReviewRecord]:
        return []
