"""Tests for the notification pipeline."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from prpulse_chat.models import ThreadHandle
from prpulse_core.dispatch import Narrative
from prpulse_core.errors import PullRequestNotFoundError, UpstreamError
from prpulse_core.models import (
    Actor,
    InboundEvent,
    Mergeable,
    PullRequestRecord,
    PullRequestState,
    Repository,
    Review,
    ReviewRequest,
)
from prpulse_core.notifier import run_deploy_notification, run_notification
from prpulse_core.summary import MergeLabel, ReviewLabel

CONFIG = {"empty_body_warning": "No description provided."}
T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _make_pr(number=42, merged=False):
    return PullRequestRecord(
        repository=Repository(owner=Actor("owner"), name="repo", url="https://github.com/owner/repo"),
        number=number,
        title="Fix auth bug",
        url=f"https://github.com/owner/repo/pull/{number}",
        state=PullRequestState.MERGED if merged else PullRequestState.OPEN,
        author=Actor("author"),
        base_ref_name="main",
        head_ref_name="fix-auth",
        merged=merged,
        mergeable=Mergeable.MERGEABLE,
        review_requests=[ReviewRequest(Actor("alice"))],
        reviews=[Review(Actor("bob"), "APPROVED", T0)],
    )


def _make_notifier(thread=None):
    notifier = MagicMock()
    notifier.find_thread.return_value = thread
    notifier.post.return_value = "111.000"
    notifier.update.side_effect = lambda ts, blocks, text: ts
    return notifier


def _patch_fetch(mocker, pr=None):
    return mocker.patch("prpulse_core.notifier.fetch_pull_request", return_value=pr or _make_pr())


def _submitted(state="APPROVED", body="LGTM"):
    return InboundEvent(
        "pull_request_review", "submitted", 42, review=Review(Actor("bob"), state, T0, body=body)
    )


class TestRunNotification:
    def test_posts_new_message_when_no_thread(self, mocker):
        _patch_fetch(mocker)
        notifier = _make_notifier(thread=None)

        summary = run_notification(_submitted(), MagicMock(), notifier, CONFIG, {})

        notifier.find_thread.assert_called_once_with(42, "prpulse:owner/repo#42")
        notifier.post.assert_called_once()
        notifier.update.assert_not_called()
        assert summary.created is True
        assert summary.ts == "111.000"

    def test_updates_existing_thread(self, mocker):
        _patch_fetch(mocker)
        notifier = _make_notifier(thread=ThreadHandle(ts="999.000", pr_number=42))

        summary = run_notification(_submitted(), MagicMock(), notifier, CONFIG, {})

        notifier.post.assert_not_called()
        assert notifier.update.call_args.args[0] == "999.000"
        assert summary.created is False
        assert summary.ts == "999.000"

    def test_change_log_replies_in_thread(self, mocker):
        _patch_fetch(mocker)
        notifier = _make_notifier(thread=ThreadHandle(ts="999.000", pr_number=42))

        summary = run_notification(_submitted(), MagicMock(), notifier, CONFIG, {})

        notifier.append_thread_reply.assert_called_once()
        assert notifier.append_thread_reply.call_args.args[0] == "999.000"
        assert summary.change_log_posted is True
        assert summary.narrative is Narrative.SUBMITTED

    def test_no_change_log_for_empty_comment(self, mocker):
        _patch_fetch(mocker)
        notifier = _make_notifier()

        summary = run_notification(_submitted(state="COMMENTED", body=""), MagicMock(), notifier, CONFIG, {})

        notifier.append_thread_reply.assert_not_called()
        assert summary.change_log_posted is False

    def test_summary_carries_reconciled_state(self, mocker):
        _patch_fetch(mocker)

        summary = run_notification(_submitted(), MagicMock(), _make_notifier(), CONFIG, {})

        assert summary.reviewers.approvals == ["bob"]
        assert summary.reviewers.pendings == ["alice"]
        assert summary.status.review_label is ReviewLabel.REVIEW_REQUESTED
        assert summary.status.merge_label is MergeLabel.NO_CONFLICTS

    def test_unsupported_action_is_skipped(self, mocker):
        mock_fetch = _patch_fetch(mocker)
        notifier = _make_notifier()

        result = run_notification(InboundEvent("pull_request", "labeled", 42), MagicMock(), notifier, CONFIG, {})

        assert result is None
        mock_fetch.assert_not_called()
        notifier.find_thread.assert_not_called()

    def test_not_found_propagates_without_posting(self, mocker):
        mocker.patch(
            "prpulse_core.notifier.fetch_pull_request",
            side_effect=PullRequestNotFoundError("owner/repo", number=42),
        )
        notifier = _make_notifier()

        with pytest.raises(PullRequestNotFoundError):
            run_notification(_submitted(), MagicMock(), notifier, CONFIG, {})
        notifier.post.assert_not_called()

    def test_failed_update_aborts_before_change_log(self, mocker):
        _patch_fetch(mocker)
        notifier = _make_notifier(thread=ThreadHandle(ts="999.000", pr_number=42))
        notifier.update.side_effect = UpstreamError("Slack", "chat.update", "message_not_found")

        with pytest.raises(UpstreamError):
            run_notification(_submitted(), MagicMock(), notifier, CONFIG, {})
        notifier.append_thread_reply.assert_not_called()

    def test_accounts_used_for_mentions(self, mocker):
        _patch_fetch(mocker)
        notifier = _make_notifier()

        run_notification(_submitted(), MagicMock(), notifier, CONFIG, {"bob": "UBOB"})

        blocks = notifier.append_thread_reply.call_args.args[1]
        assert "<@UBOB>" in str(blocks)


class TestRunDeployNotification:
    def test_resolves_sha_and_appends_deploy_log(self, mocker):
        mocker.patch("prpulse_core.notifier.resolve_pull_request_number", return_value=42)
        mock_fetch = _patch_fetch(mocker, _make_pr(merged=True))
        notifier = _make_notifier(thread=ThreadHandle(ts="999.000", pr_number=42))

        summary = run_deploy_notification("abc123", MagicMock(), notifier, CONFIG, {}, sender=Actor("alice"))

        mock_fetch.assert_called_once()
        assert summary.narrative is Narrative.DEPLOY_COMPLETE
        blocks = notifier.append_thread_reply.call_args.args[1]
        assert "abc123" in str(blocks)

    def test_direct_push_is_skipped(self, mocker):
        mocker.patch("prpulse_core.notifier.resolve_pull_request_number", return_value=0)
        mock_fetch = _patch_fetch(mocker)
        notifier = _make_notifier()

        assert run_deploy_notification("abc123", MagicMock(), notifier, CONFIG, {}) is None
        mock_fetch.assert_not_called()
        notifier.post.assert_not_called()
