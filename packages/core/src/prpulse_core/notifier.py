"""Core notification pipeline.

    InboundEvent
      → classify()                       unsupported → log, return None
      → resolve_pull_request_number()    0 → log, return None
      → fetch_pull_request()
      → render_pull_request()
      → notifier.find_thread()           None → post, else update in place
      → render_change_log()              → notifier.append_thread_reply()

Every network call is made in sequence and any failure propagates: nothing is
retried and no change log is appended after a failed post or update.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from prpulse_core.dispatch import Narrative, classify
from prpulse_core.gh.pull_request import fetch_pull_request
from prpulse_core.identity import resolve_pull_request_number
from prpulse_core.models import InboundEvent, PullRequestRecord
from prpulse_core.reconcile import ReconciledReviewState, reconcile
from prpulse_core.render.blocks import fallback_text, render_pull_request, thread_marker
from prpulse_core.render.changelog import render_change_log
from prpulse_core.summary import StatusSummary, summarize

if TYPE_CHECKING:
    from prpulse_chat.base import BaseNotifier

logger = logging.getLogger(__name__)


@dataclass
class NotificationSummary:
    """Result of one pipeline run — what the CLI prints once the run is over."""

    pr_number: int
    narrative: Narrative
    ts: str
    created: bool  # True when a new status message was posted, False when updated
    status: StatusSummary
    reviewers: ReconciledReviewState
    change_log_posted: bool = False
    notified_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def publish_status(
    pr: PullRequestRecord,
    notifier: BaseNotifier,
    accounts: dict[str, str],
    empty_body_warning: str,
) -> tuple[str, bool]:
    """Post or update the status message for ``pr``. Returns (ts, created)."""
    blocks = render_pull_request(pr, accounts, empty_body_warning)
    text = fallback_text(pr)

    thread = notifier.find_thread(pr.number, thread_marker(pr))
    if thread is None:
        return notifier.post(blocks, text), True
    return notifier.update(thread.ts, blocks, text), False


def notify_pull_request(
    event: InboundEvent,
    narrative: Narrative,
    repo,
    notifier: BaseNotifier,
    config: dict,
    accounts: dict[str, str],
) -> NotificationSummary | None:
    """Refresh the status message for the pull request ``event`` refers to and
    append the change log for ``narrative``.

    Returns None when the event resolves to no pull request.
    """
    number = resolve_pull_request_number(repo, event.pull_request_number, event.sha)
    if not number:
        logger.info("No pull request to notify about (number=%s, sha=%s)", event.pull_request_number, event.sha)
        return None

    pr = fetch_pull_request(repo, number)
    ts, created = publish_status(pr, notifier, accounts, config.get("empty_body_warning", ""))

    change_log_posted = False
    log_blocks = render_change_log(narrative, event, pr, accounts)
    if log_blocks:
        notifier.append_thread_reply(ts, log_blocks, f"{pr.repository.full_name}#{pr.number}: {narrative.value}")
        change_log_posted = True

    reviewers = reconcile(pr.review_requests, pr.reviews)
    return NotificationSummary(
        pr_number=pr.number,
        narrative=narrative,
        ts=ts,
        created=created,
        status=summarize(pr, reviewers),
        reviewers=reviewers,
        change_log_posted=change_log_posted,
    )


def run_notification(
    event: InboundEvent,
    repo,
    notifier: BaseNotifier,
    config: dict,
    accounts: dict[str, str],
) -> NotificationSummary | None:
    """Handle one webhook delivery.

    Returns None when the trigger is ignored or names no pull request; these
    are expected outcomes, not errors.
    """
    narrative = classify(event.event_type, event.action)
    if narrative is None:
        logger.info('Unsupported trigger action: %s > "%s"', event.event_type, event.action)
        return None
    return notify_pull_request(event, narrative, repo, notifier, config, accounts)


def run_deploy_notification(
    sha: str,
    repo,
    notifier: BaseNotifier,
    config: dict,
    accounts: dict[str, str],
    sender=None,
) -> NotificationSummary | None:
    """Report that the workflow run for a merge commit finished.

    The merge commit is mapped back to its pull request; a direct push to the
    branch resolves to nothing and is skipped.
    """
    event = InboundEvent(event_type="push", action="", sha=sha, sender=sender)
    return notify_pull_request(event, Narrative.DEPLOY_COMPLETE, repo, notifier, config, accounts)
