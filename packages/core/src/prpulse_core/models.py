"""Pull request snapshot models.

Everything here is built once per invocation from GitHub's current view of the
pull request and never persisted. The GitHub adapter in ``prpulse_core.gh``
maps PyGithub objects onto these types so the reconciliation and rendering
code never touches the SDK directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class PullRequestState(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    MERGED = "MERGED"


class Mergeable(str, Enum):
    MERGEABLE = "MERGEABLE"
    CONFLICTING = "CONFLICTING"
    UNKNOWN = "UNKNOWN"


class ReviewerKind(str, Enum):
    USER = "USER"
    TEAM = "TEAM"


@dataclass(frozen=True)
class Actor:
    """A GitHub user (or team) as shown in the status message."""

    login: str
    url: str = ""


@dataclass(frozen=True)
class ReviewRequest:
    """A review request that is still open at fetch time."""

    requested_reviewer: Actor
    kind: ReviewerKind = ReviewerKind.USER


@dataclass(frozen=True)
class Review:
    """One submitted review. ``state`` is GitHub's uppercase review state."""

    author: Actor
    state: str  # "APPROVED" | "CHANGES_REQUESTED" | "COMMENTED" | "DISMISSED" | ...
    updated_at: datetime | None = None
    body: str | None = None


@dataclass(frozen=True)
class MergeCommit:
    sha: str
    headline: str = ""
    body: str = ""


@dataclass(frozen=True)
class Repository:
    owner: Actor
    name: str
    url: str

    @property
    def full_name(self) -> str:
        return f"{self.owner.login}/{self.name}"


@dataclass(frozen=True)
class PullRequestRecord:
    """Authoritative snapshot of a pull request.

    ``reviews`` keeps GitHub's order (oldest first). ``review_requests`` only
    lists reviewers who are still awaited; removed requests leave no trace.
    """

    repository: Repository
    number: int
    title: str
    url: str
    state: PullRequestState
    author: Actor
    base_ref_name: str
    head_ref_name: str
    body: str | None = None
    merged: bool = False
    mergeable: Mergeable = Mergeable.UNKNOWN
    commit_count: int = 0
    changed_files: int = 0
    merge_commit: MergeCommit | None = None
    review_requests: list[ReviewRequest] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)


@dataclass(frozen=True)
class PullRequestRef:
    """Lightweight list entry used to map a merge commit back to its pull request."""

    number: int
    merge_commit_sha: str | None = None


@dataclass
class InboundEvent:
    """Normalized trigger event handed to the notification pipeline.

    ``pull_request_number`` is 0 when the trigger only knows a commit sha
    (e.g. a push of a merge commit); the identity resolver fills it in.
    """

    event_type: str  # "pull_request" | "pull_request_review" | "push"
    action: str
    pull_request_number: int = 0
    review_request: ReviewRequest | None = None
    review: Review | None = None
    sha: str | None = None
    sender: Actor | None = None
