"""Abstract store interface.

Any storage backend (SQLite, Postgres, S3) implements this interface. The
CLI depends on BaseStore, not on a concrete backend, so backends are
swappable without touching CLI code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codeatlas_store.models import ReviewRecord


class BaseStore(ABC):
    """Pluggable persistence layer for review history."""

    @abstractmethod
    def save(self, record: ReviewRecord) -> None:
        """Persist a review record."""

    @abstractmethod
    def list_reviews(self, repository: str, pr_number: int | None = None) -> list[ReviewRecord]:
        """Return reviews for a repository, oldest first, optionally filtered by PR number.

        Returns an empty list if no reviews exist.
        """

    def close(self) -> None:
        """Release any resources held by the store.

        Default is a no-op so callers can always call close() safely.
        """
