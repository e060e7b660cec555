"""Categorical status labels for the status message."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from prpulse_core.models import Mergeable, PullRequestRecord, PullRequestState
from prpulse_core.reconcile import ReconciledReviewState


class ReviewLabel(str, Enum):
    APPROVED = "approved"
    NO_REVIEW = "no-review"
    CHANGES_REQUESTED = "changes-requested"
    REVIEW_REQUESTED = "review-requested"


class MergeLabel(str, Enum):
    NO_CONFLICTS = "no-conflicts"
    MUST_RESOLVE = "must-resolve"
    MERGE_COMPLETE = "merge-complete"
    CLOSED_WITHOUT_MERGE = "closed-without-merge"


@dataclass(frozen=True)
class StatusSummary:
    review_label: ReviewLabel | None  # None once the pull request is no longer open
    merge_label: MergeLabel

    @property
    def everybody_approved(self) -> bool:
        return self.review_label is ReviewLabel.APPROVED

    @property
    def conflict_free(self) -> bool:
        return self.merge_label is MergeLabel.NO_CONFLICTS


def review_label(reconciled: ReconciledReviewState) -> ReviewLabel:
    if reconciled.approvals and not reconciled.change_requesteds and not reconciled.pendings:
        return ReviewLabel.APPROVED
    if reconciled.is_empty():
        return ReviewLabel.NO_REVIEW
    if reconciled.change_requesteds:
        return ReviewLabel.CHANGES_REQUESTED
    return ReviewLabel.REVIEW_REQUESTED


def merge_label(pull_request: PullRequestRecord) -> MergeLabel:
    if pull_request.state is PullRequestState.OPEN:
        if pull_request.mergeable is Mergeable.MERGEABLE:
            return MergeLabel.NO_CONFLICTS
        return MergeLabel.MUST_RESOLVE
    return MergeLabel.MERGE_COMPLETE if pull_request.merged else MergeLabel.CLOSED_WITHOUT_MERGE


def summarize(pull_request: PullRequestRecord, reconciled: ReconciledReviewState) -> StatusSummary:
    label = review_label(reconciled) if pull_request.state is PullRequestState.OPEN else None
    return StatusSummary(review_label=label, merge_label=merge_label(pull_request))


def pluralize(word: str, items) -> str:
    """``pluralize("approval", ["a", "b"])`` → ``"approvals"``."""
    return f"{word}s" if len(items) > 1 else word
