"""Map a trigger (event, action) pair to the change-log narrative it produces."""

from __future__ import annotations

from enum import Enum


class Narrative(str, Enum):
    CLOSED = "closed"
    REVIEW_REQUESTED = "review_requested"
    SUBMITTED = "submitted"
    DEPLOY_COMPLETE = "deploy_complete"


_SUPPORTED: dict[tuple[str, str], Narrative] = {
    ("pull_request", "closed"): Narrative.CLOSED,
    ("pull_request", "review_requested"): Narrative.REVIEW_REQUESTED,
    ("pull_request", "review_request_removed"): Narrative.REVIEW_REQUESTED,
    ("pull_request_review", "submitted"): Narrative.SUBMITTED,
}


def classify(event_type: str, action: str) -> Narrative | None:
    """Return the narrative for a webhook trigger, or None if prpulse ignores it.

    Returning None is not an error: most webhook deliveries (labels, edits,
    synchronize, ...) are simply irrelevant to the status message.
    """
    return _SUPPORTED.get((event_type, action))


def supported_triggers() -> list[tuple[str, str]]:
    return list(_SUPPORTED)
