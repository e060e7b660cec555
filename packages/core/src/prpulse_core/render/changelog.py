"""Thread replies describing what just happened to a pull request.

Each function returns a Block Kit block list, or None when the event has
nothing worth posting (e.g. an empty comment-only review).
"""

from __future__ import annotations

from prpulse_core.dispatch import Narrative
from prpulse_core.models import Actor, InboundEvent, PullRequestRecord
from prpulse_core.render.blocks import SECTION_MAX, context, description, section, truncate_escaped, user_link


def closed_log(pr: PullRequestRecord) -> list[dict]:
    """Reply for a closed pull request, posted whether or not it was merged."""
    outcome = "and the merge is complete" if pr.merged else "without merge"
    return [context(f"*This pull request has been closed {outcome}*")]


def review_requested_log(event: InboundEvent, accounts: dict[str, str]) -> list[dict] | None:
    if event.review_request is None:
        return None
    reviewer = user_link(event.review_request.requested_reviewer.login, accounts)
    verb = "Awaiting" if event.action == "review_requested" else "Removed"
    return [context(f"*{verb} requested review from {reviewer}*")]


def submitted_log(event: InboundEvent, pr: PullRequestRecord, accounts: dict[str, str]) -> list[dict] | None:
    review = event.review
    if review is None:
        return None
    reviewer = user_link(review.author.login, accounts)
    body = (review.body or "").strip()

    if review.state == "APPROVED":
        author = user_link(pr.author.login, accounts)
        headline = f"*{reviewer} approved {author}'s changes.*"
    elif review.state == "CHANGES_REQUESTED":
        headline = f"*{reviewer} requested changes.*"
    elif body:
        headline = f"*{reviewer} commented.*"
    else:
        return None

    blocks = [context(headline)]
    if body:
        blocks.append(description(body))
    return blocks


def deploy_complete_log(pr: PullRequestRecord, sender: Actor | None, sha: str, accounts: dict[str, str]) -> list[dict]:
    who = user_link(sender.login, accounts) if sender else user_link(pr.author.login, accounts)
    blocks = [context(f"*The workflow launched by {who}'s merge commit is complete.*", f"&gt; sha: {sha}")]
    headline = pr.merge_commit.headline.strip() if pr.merge_commit else ""
    if headline:
        blocks.append(section(f"*{truncate_escaped(headline, SECTION_MAX - 2)}*"))
    return blocks


def render_change_log(
    narrative: Narrative, event: InboundEvent, pr: PullRequestRecord, accounts: dict[str, str]
) -> list[dict] | None:
    if narrative is Narrative.CLOSED:
        return closed_log(pr)
    if narrative is Narrative.REVIEW_REQUESTED:
        return review_requested_log(event, accounts)
    if narrative is Narrative.SUBMITTED:
        return submitted_log(event, pr, accounts)
    if narrative is Narrative.DEPLOY_COMPLETE:
        return deploy_complete_log(pr, event.sender, event.sha or "", accounts)
    return None
