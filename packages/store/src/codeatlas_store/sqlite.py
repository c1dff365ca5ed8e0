"""SQLiteStore: local file-based review history.

Schema:
  reviews : one row per review, findings serialized as a JSON array in
             provider order (no sub-table, so read paths need no JOINs).
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict

from codeatlas_store.base import BaseStore
from codeatlas_store.models import FindingRecord, ReviewRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS reviews (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    repository      TEXT NOT NULL,
    pr_number       INTEGER NOT NULL,
    pr_title        TEXT,
    author          TEXT,
    head_sha        TEXT,
    provider        TEXT,
    status          TEXT,
    summary         TEXT,
    overall_score   REAL DEFAULT 0,
    reviewed_at     TEXT,
    fallback        INTEGER DEFAULT 0,
    error           TEXT,
    findings_json   TEXT DEFAULT '[]'
);
CREATE INDEX IF NOT EXISTS idx_reviews_repo ON reviews (repository);
CREATE INDEX IF NOT EXISTS idx_reviews_pr   ON reviews (repository, pr_number);
"""


class SQLiteStore(BaseStore):
    """Stores review history in a local SQLite database file.

    The path defaults to `.codeatlas.db` in the current working directory.
    Configure via .codeatlas.yml: `store_path: /path/to/codeatlas.db`.
    """

    def __init__(self, db_path: str = ".codeatlas.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def save(self, record: ReviewRecord) -> None:
        findings_json = json.dumps([asdict(f) for f in record.findings])
        self._conn.execute(
            """
            INSERT INTO reviews
              (repository, pr_number, pr_title, author, head_sha, provider, status,
               summary, overall_score, reviewed_at, fallback, error, findings_json)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.repository,
                record.pr_number,
                record.pr_title,
                record.author,
                record.head_sha,
                record.provider,
                record.status,
                record.summary,
                record.overall_score,
                record.reviewed_at,
                int(record.fallback),
                record.error,
                findings_json,
            ),
        )
        self._conn.commit()
        logger.debug("Saved %s review of %s#%d", record.status, record.repository, record.pr_number)

    def list_reviews(self, repository: str, pr_number: int | None = None) -> list[ReviewRecord]:
        if pr_number is not None:
            rows = self._conn.execute(
                "SELECT * FROM reviews WHERE repository=? AND pr_number=? ORDER BY reviewed_at, id",
                (repository, pr_number),
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT * FROM reviews WHERE repository=? ORDER BY reviewed_at, id",
                (repository,),
            ).fetchall()

        return [self._row_to_record(r) for r in rows]

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ReviewRecord:
        findings = [
            FindingRecord(
                category=f.get("category", ""),
                severity=f.get("severity", "low"),
                title=f.get("title", ""),
                description=f.get("description", ""),
                file_path=f.get("file_path"),
                line_start=f.get("line_start"),
                line_end=f.get("line_end"),
                suggestion=f.get("suggestion"),
            )
            for f in json.loads(row["findings_json"] or "[]")
        ]
        return ReviewRecord(
            repository=row["repository"],
            pr_number=row["pr_number"],
            pr_title=row["pr_title"] or "",
            author=row["author"] or "",
            head_sha=row["head_sha"] or "",
            provider=row["provider"] or "",
            status=row["status"] or "",
            summary=row["summary"] or "",
            overall_score=row["overall_score"] or 0,
            reviewed_at=row["reviewed_at"] or "",
            fallback=bool(row["fallback"]),
            error=row["error"],
            findings=findings,
        )
