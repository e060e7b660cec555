"""Resolve which pull request an event is about."""

from __future__ import annotations

import logging

from prpulse_core.gh.pull_request import list_recent_pull_requests

logger = logging.getLogger(__name__)


def resolve_pull_request_number(repo, explicit_number: int | None, merge_commit_sha: str | None = None) -> int:
    """Return the canonical pull request number, or 0 when there is none.

    An explicit positive number is trusted as is. Otherwise the merge commit
    sha is looked up among the last 100 pull requests; a push that did not come
    from a pull request resolves to 0 and the caller should skip quietly.
    """
    if explicit_number and explicit_number > 0:
        return explicit_number
    if not merge_commit_sha:
        return 0

    for ref in list_recent_pull_requests(repo):
        if ref.merge_commit_sha and ref.merge_commit_sha == merge_commit_sha:
            logger.info("Hit! #%d, sha: %s", ref.number, merge_commit_sha)
            return ref.number

    logger.info("No pull request was merged as %s", merge_commit_sha)
    return 0
