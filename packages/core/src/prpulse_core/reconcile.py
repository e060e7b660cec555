"""Reviewer reconciliation.

Merges the open review requests and the full review history of a pull request
into one verdict per reviewer:

    requests  ─┐
               ├─► login → ReviewerState ─► approvals / change_requesteds / pendings
    reviews   ─┘   (newest review wins)

Every requested reviewer starts out PENDING. Reviews are then walked from
newest to oldest and the first verdict reached for a login decides it; older
reviews by the same person are ignored. Plain comments are not verdicts, so a
comment-only reviewer is in none of the three lists and a comment never hides
an earlier approval or an open request.

GitHub's request list is a snapshot without timestamps. A reviewer who was
re-requested after approving therefore still shows as approved: the request
cannot be ordered against the review. This is a gap in the upstream data and
is left as is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from prpulse_core.models import Review, ReviewRequest


class ReviewerState(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"


_VERDICTS = {
    "APPROVED": ReviewerState.APPROVED,
    "CHANGES_REQUESTED": ReviewerState.CHANGES_REQUESTED,
}


@dataclass
class ReconciledReviewState:
    approvals: list[str] = field(default_factory=list)
    change_requesteds: list[str] = field(default_factory=list)
    pendings: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.approvals or self.change_requesteds or self.pendings)


def newest_first(reviews: list[Review]) -> list[Review]:
    """Return reviews ordered newest → oldest.

    Later list position counts as newer, which also breaks timestamp ties.
    If any review lacks a timestamp the list order alone is used.
    """
    ordered = list(reversed(reviews))
    if all(r.updated_at is not None for r in ordered):
        # sort() is stable, so equal timestamps keep their reversed list order.
        ordered.sort(key=lambda r: r.updated_at, reverse=True)
    return ordered


def reconcile(requests: list[ReviewRequest], reviews: list[Review]) -> ReconciledReviewState:
    states: dict[str, ReviewerState] = {}
    for request in requests:
        states[request.requested_reviewer.login] = ReviewerState.PENDING

    decided: set[str] = set()
    for review in newest_first(reviews):
        login = review.author.login
        if login in decided:
            continue
        verdict = _VERDICTS.get(review.state)
        if verdict is None:
            continue
        decided.add(login)
        states[login] = verdict

    result = ReconciledReviewState()
    for login, state in states.items():
        if state is ReviewerState.APPROVED:
            result.approvals.append(login)
        elif state is ReviewerState.CHANGES_REQUESTED:
            result.change_requesteds.append(login)
        else:
            result.pendings.append(login)
    return result
