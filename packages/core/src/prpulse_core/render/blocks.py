"""Slack Block Kit rendering of the pull request status message.

The message is built from plain dicts, top to bottom:

    context   [OPEN] @author wants to merge 3 commits (2 file changes) into main from feature
    header    <title>
    section   #42 (link)
    section   body, or the empty-body warning
    section   review status + one context per non-empty reviewer list   (open PRs only)
    section   merge / conflict status
    context   https://github.com / owner / repo / pull / 42
    divider

The breadcrumb's ``block_id`` is the thread marker: user-written text (title,
body) can never set a block id, so the lookup compares ids, not message text.
"""

from __future__ import annotations

from prpulse_core.models import PullRequestRecord, PullRequestState
from prpulse_core.reconcile import ReconciledReviewState, reconcile
from prpulse_core.summary import MergeLabel, ReviewLabel, StatusSummary, pluralize, summarize

GITHUB_URL = "https://github.com/"
_HEADER_MAX = 150
# Slack rejects a section whose text exceeds this many characters.
SECTION_MAX = 3000

REVIEW_TEXT = {
    ReviewLabel.APPROVED: "Changes approved",
    ReviewLabel.NO_REVIEW: "No requested reviewer",
    ReviewLabel.CHANGES_REQUESTED: "Changes requested",
    ReviewLabel.REVIEW_REQUESTED: "Review requested",
}

MERGE_TEXT = {
    MergeLabel.NO_CONFLICTS: "This branch has no conflicts with the base branch",
    MergeLabel.MUST_RESOLVE: "This branch has conflicts that must be resolved",
    MergeLabel.MERGE_COMPLETE: "The merge is complete",
    MergeLabel.CLOSED_WITHOUT_MERGE: "This pull request has been closed without merge.",
}

_GREEN = ":large_green_circle:"
_RED = ":red_circle:"


def escape(text: str) -> str:
    """Escape the three characters Slack treats as control sequences in mrkdwn."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def link(url: str, label: str) -> str:
    return f"<{url}|{escape(label)}>"


def user_link(login: str, accounts: dict[str, str]) -> str:
    member = accounts.get(login)
    return f"<@{member}>" if member else f"_{escape(login)}_"


def mrkdwn(text: str) -> dict:
    return {"type": "mrkdwn", "text": text}


def context(*texts: str) -> dict:
    return {"type": "context", "elements": [mrkdwn(t) for t in texts]}


def section(text: str) -> dict:
    return {"type": "section", "text": mrkdwn(text)}


def truncate_escaped(text: str, limit: int) -> str:
    """Escape ``text`` and cut it to at most ``limit`` characters, ending in "…".

    The cut never splits an ``&amp;``-style entity.
    """
    escaped = escape(text)
    if len(escaped) <= limit:
        return escaped
    cut = escaped[: limit - 1]
    amp = cut.rfind("&")
    if amp != -1 and ";" not in cut[amp:]:
        cut = cut[:amp]
    return cut + "…"


def description(text: str | None) -> dict | None:
    if not text:
        return None
    return section(f"```{truncate_escaped(text, SECTION_MAX - 6)}```")


def commits_block(pr: PullRequestRecord, accounts: dict[str, str]) -> dict:
    tree = f"{pr.repository.url}/tree"
    verb = "merged" if pr.merged else "wants to merge"
    commit_unit = "commit" if pr.commit_count < 2 else "commits"
    change_unit = "change" if pr.changed_files < 2 else "changes"
    base = link(f"{tree}/{pr.base_ref_name}", pr.base_ref_name)
    # The head branch is usually deleted after merging, so it is no longer linked.
    head = f"_{escape(pr.head_ref_name)}_" if pr.merged else link(f"{tree}/{pr.head_ref_name}", pr.head_ref_name)
    return context(
        f"[*{pr.state.value}*] {user_link(pr.author.login, accounts)} {verb} "
        f"{pr.commit_count} {commit_unit} ({pr.changed_files} file {change_unit}) into {base} from {head}"
    )


def contents_blocks(pr: PullRequestRecord, empty_body_warning: str) -> list[dict]:
    title = pr.title if len(pr.title) <= _HEADER_MAX else pr.title[: _HEADER_MAX - 1] + "…"
    body = (pr.body or "").strip()
    return [
        {"type": "header", "text": {"type": "plain_text", "text": title or f"#{pr.number}", "emoji": True}},
        section(f"*{link(pr.url, f'#{pr.number}')}*"),
        description(body) or section(f"`{truncate_escaped(empty_body_warning, SECTION_MAX - 2)}`"),
    ]


def status_section(test: bool, text: str) -> dict:
    return section(f"{_GREEN if test else _RED} *{text}*")


def reviewers_block(logins: list[str], text: str, accounts: dict[str, str]) -> dict | None:
    if not logins:
        return None
    mentions = " ".join(user_link(login, accounts) for login in logins)
    return context(f"&gt; {len(logins)} {text}", mentions)


def approvals_blocks(
    summary: StatusSummary, reconciled: ReconciledReviewState, accounts: dict[str, str]
) -> list[dict]:
    if summary.review_label is None:
        return []
    blocks = [
        status_section(summary.everybody_approved, REVIEW_TEXT[summary.review_label]),
        reviewers_block(reconciled.approvals, pluralize("approval", reconciled.approvals), accounts),
        reviewers_block(
            reconciled.change_requesteds,
            f"{pluralize('reviewer', reconciled.change_requesteds)} requested changes",
            accounts,
        ),
        reviewers_block(reconciled.pendings, f"pending {pluralize('reviewer', reconciled.pendings)}", accounts),
    ]
    return [b for b in blocks if b is not None]


def conflicts_block(pr: PullRequestRecord, summary: StatusSummary) -> dict:
    text = MERGE_TEXT[summary.merge_label]
    if pr.state is PullRequestState.OPEN:
        return status_section(summary.conflict_free, text)
    return section(f"*{text}*")


def repository_block(pr: PullRequestRecord) -> dict:
    repo = pr.repository
    crumbs = [
        link(GITHUB_URL, "https://github.com"),
        link(repo.owner.url, repo.owner.login),
        link(repo.url, repo.name),
        link(f"{repo.url}/pulls", "pull"),
        link(pr.url, str(pr.number)),
    ]
    return {**context(" / ".join(crumbs)), "block_id": thread_marker(pr)}


def render_pull_request(
    pr: PullRequestRecord,
    accounts: dict[str, str],
    empty_body_warning: str = "No description provided.",
) -> list[dict]:
    """Render the full status message for a pull request."""
    reconciled = reconcile(pr.review_requests, pr.reviews)
    summary = summarize(pr, reconciled)
    return [
        commits_block(pr, accounts),
        *contents_blocks(pr, empty_body_warning),
        *approvals_blocks(summary, reconciled, accounts),
        conflicts_block(pr, summary),
        repository_block(pr),
        {"type": "divider"},
    ]


def fallback_text(pr: PullRequestRecord) -> str:
    """Plain-text notification line shown by Slack clients that cannot render blocks."""
    return f"{pr.repository.full_name}#{pr.number} {pr.title} {pr.url}"


def thread_marker(pr: PullRequestRecord) -> str:
    """Block id of the breadcrumb, unique per repository and pull request."""
    return f"prpulse:{pr.repository.full_name}#{pr.number}"
