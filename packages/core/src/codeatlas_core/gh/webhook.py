"""GitHub pull_request webhook handling.

Signature verification and real diff fetching are out of scope: payloads
are trusted as given and the diff is a placeholder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from codeatlas_core.models import ReviewRequest

logger = logging.getLogger(__name__)

REVIEWABLE_ACTIONS = ("opened", "synchronize", "reopened")


@dataclass(frozen=True)
class PullRequestEvent:
    repository: str  # owner/name
    number: int
    title: str
    author: str
    base_branch: str
    head_branch: str
    head_sha: str
    action: str


def parse_pull_request_event(payload: dict) -> PullRequestEvent | None:
    """Parse a pull_request webhook payload.

    Returns None for actions that don't warrant a review (closed, labeled,
    ...). Raises ValueError when a reviewable payload is missing fields.
    """
    action = payload.get("action")
    if action not in REVIEWABLE_ACTIONS:
        logger.info("Ignoring webhook action %r", action)
        return None

    try:
        repo = payload["repository"]
        pr = payload["pull_request"]
        return PullRequestEvent(
            repository=f"{repo['owner']['login']}/{repo['name']}",
            number=int(pr["number"]),
            title=pr["title"],
            author=pr["user"]["login"],
            base_branch=pr["base"]["ref"],
            head_branch=pr["head"]["ref"],
            head_sha=pr["head"]["sha"],
            action=action,
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed pull_request payload: missing {e}") from e


def placeholder_diff(repository: str, number: int) -> str:
    return f"Diff for {repository}#{number}"


def request_from_event(event: PullRequestEvent) -> ReviewRequest:
    return ReviewRequest(
        repository=event.repository,
        title=event.title,
        author=event.author,
        base_branch=event.base_branch,
        head_branch=event.head_branch,
        diff_summary=placeholder_diff(event.repository, event.number),
    )
