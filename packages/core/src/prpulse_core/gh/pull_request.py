from __future__ import annotations

import logging

from github import Auth, Github, GithubException, UnknownObjectException

from prpulse_core.errors import PullRequestNotFoundError, UpstreamError
from prpulse_core.models import (
    Actor,
    MergeCommit,
    Mergeable,
    PullRequestRecord,
    PullRequestRef,
    PullRequestState,
    Repository,
    Review,
    ReviewerKind,
    ReviewRequest,
)

logger = logging.getLogger(__name__)

RECENT_PULL_REQUEST_LIMIT = 100
_GHOST = Actor(login="ghost", url="https://github.com/ghost")


def get_repo(repo_name: str, token: str):
    try:
        return Github(auth=Auth.Token(token)).get_repo(repo_name)
    except GithubException as e:
        raise UpstreamError("GitHub", f"get_repo({repo_name})", _describe(e)) from e


def _describe(e: GithubException) -> str:
    message = e.data.get("message") if isinstance(e.data, dict) else None
    return f"{e.status} {message or e}"


def _actor(user) -> Actor:
    if user is None:
        return _GHOST
    return Actor(login=user.login, url=user.html_url or "")


def _repository(repo) -> Repository:
    return Repository(owner=_actor(repo.owner), name=repo.name, url=repo.html_url)


def _state(pr) -> PullRequestState:
    if pr.merged:
        return PullRequestState.MERGED
    return PullRequestState.OPEN if pr.state == "open" else PullRequestState.CLOSED


def _mergeable(pr) -> Mergeable:
    # REST reports None while GitHub is still computing the test merge.
    if pr.mergeable is None:
        return Mergeable.UNKNOWN
    return Mergeable.MERGEABLE if pr.mergeable else Mergeable.CONFLICTING


def _review_requests(pr) -> list[ReviewRequest]:
    users, teams = pr.get_review_requests()
    requests = [ReviewRequest(requested_reviewer=_actor(u), kind=ReviewerKind.USER) for u in users]
    requests.extend(
        ReviewRequest(requested_reviewer=Actor(login=t.name, url=t.html_url or ""), kind=ReviewerKind.TEAM)
        for t in teams
    )
    return requests


def _reviews(pr) -> list[Review]:
    return [
        Review(author=_actor(r.user), state=r.state, updated_at=r.submitted_at, body=r.body or None)
        for r in pr.get_reviews()
    ]


def _merge_commit(repo, pr) -> MergeCommit | None:
    if not pr.merged or not pr.merge_commit_sha:
        return None
    message = repo.get_commit(pr.merge_commit_sha).commit.message or ""
    headline, _, body = message.partition("\n")
    return MergeCommit(sha=pr.merge_commit_sha, headline=headline.strip(), body=body.strip())


def fetch_pull_request(repo, pr_number: int) -> PullRequestRecord:
    """Fetch the current state of a pull request, including requests and reviews.

    Raises PullRequestNotFoundError on 404 and UpstreamError for any other
    GitHub failure.
    """
    try:
        pr = repo.get_pull(pr_number)
        return PullRequestRecord(
            repository=_repository(repo),
            number=pr.number,
            title=pr.title or "",
            url=pr.html_url,
            state=_state(pr),
            author=_actor(pr.user),
            base_ref_name=pr.base.ref,
            head_ref_name=pr.head.ref,
            body=pr.body,
            merged=bool(pr.merged),
            mergeable=_mergeable(pr),
            commit_count=pr.commits,
            changed_files=pr.changed_files,
            merge_commit=_merge_commit(repo, pr),
            review_requests=_review_requests(pr),
            reviews=_reviews(pr),
        )
    except UnknownObjectException as e:
        raise PullRequestNotFoundError(repo.full_name, number=pr_number) from e
    except GithubException as e:
        raise UpstreamError("GitHub", f"fetch PR #{pr_number}", _describe(e)) from e


def list_recent_pull_requests(repo, limit: int = RECENT_PULL_REQUEST_LIMIT) -> list[PullRequestRef]:
    """Return the ``limit`` most recently created pull requests, most-recent-last.

    Only merged pull requests get a merge commit sha: REST also reports the
    test-merge sha of open pull requests, which must not be matched.
    """
    try:
        pulls = repo.get_pulls(state="all", sort="created", direction="desc")
        refs = [
            PullRequestRef(
                number=pr.number,
                merge_commit_sha=pr.merge_commit_sha if pr.merged_at is not None else None,
            )
            for pr in pulls[:limit]
        ]
    except GithubException as e:
        raise UpstreamError("GitHub", "list pull requests", _describe(e)) from e
    refs.reverse()
    return refs
