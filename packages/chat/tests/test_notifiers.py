"""Tests for prpulse-chat notifier implementations."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
import requests

from prpulse_chat.console import DRY_RUN_TS, ConsoleNotifier
from prpulse_chat.models import ThreadHandle
from prpulse_chat.slack import SlackNotifier
from prpulse_core.errors import UpstreamError
from prpulse_core.models import Actor, PullRequestRecord, PullRequestState, Repository
from prpulse_core.render.blocks import fallback_text, render_pull_request, thread_marker

MARKER = "prpulse:owner/repo#42"
BLOCKS = [{"type": "divider"}]


def _response(data: dict):
    response = MagicMock()
    response.json.return_value = data
    response.raise_for_status.return_value = None
    return response


def _message(ts, text="", blocks=None, bot_id="B1"):
    message = {"ts": ts, "text": text, "blocks": blocks or []}
    if bot_id is not None:
        message["bot_id"] = bot_id
    return message


def _status(ts, marker=MARKER, bot_id="B1"):
    """A status message whose breadcrumb block carries ``marker`` as block id."""
    return _message(ts, blocks=[{"type": "context", "block_id": marker, "elements": []}], bot_id=bot_id)


def _pr(number, title="Change", body=None):
    repo = Repository(owner=Actor("owner"), name="repo", url="https://github.com/owner/repo")
    return PullRequestRecord(
        repository=repo,
        number=number,
        title=title,
        url=f"https://github.com/owner/repo/pull/{number}",
        state=PullRequestState.OPEN,
        author=Actor("author"),
        base_ref_name="main",
        head_ref_name=f"branch-{number}",
        body=body,
    )


def _posted(ts, pr):
    """The history entry Slack returns for a status message prpulse posted for ``pr``."""
    return _message(ts, fallback_text(pr), render_pull_request(pr, {}))


def _make_slack(history_pages=None, bot_id="B1", history_limit=200):
    """Return a SlackNotifier wired to a mocked requests.Session.

    ``history_pages`` is a list of conversations.history responses returned in order.
    """
    session = MagicMock()
    session.headers = {}
    session.post.return_value = _response({"ok": True, "ts": "111.000", "bot_id": bot_id})
    session.get.side_effect = [_response(page) for page in (history_pages or [])]
    notifier = SlackNotifier(token="xoxb-test", channel="C123", history_limit=history_limit, session=session)
    return notifier, session


# ---------------------------------------------------------------------------
# SlackNotifier.find_thread
# ---------------------------------------------------------------------------


class TestFindThread:
    def test_returns_none_when_no_match(self):
        page = {"ok": True, "messages": [_status("3.0", "prpulse:owner/repo#7")], "has_more": False}
        notifier, _ = _make_slack([page])
        assert notifier.find_thread(42, MARKER) is None

    def test_finds_block_id(self):
        page = {"ok": True, "messages": [_status("3.0")], "has_more": False}
        notifier, _ = _make_slack([page])
        assert notifier.find_thread(42, MARKER) == ThreadHandle(ts="3.0", pr_number=42)

    def test_finds_rendered_status_message(self):
        pr = _pr(42)
        page = {"ok": True, "messages": [_posted("3.0", pr)], "has_more": False}
        notifier, _ = _make_slack([page])
        assert notifier.find_thread(42, thread_marker(pr)).ts == "3.0"

    def test_marker_in_text_is_not_a_match(self):
        page = {"ok": True, "messages": [_message("3.0", f"owner/repo#42 Fix {MARKER}")], "has_more": False}
        notifier, _ = _make_slack([page])
        assert notifier.find_thread(42, MARKER) is None

    def test_other_pull_request_linking_target_is_not_a_match(self):
        target = _pr(4)
        url = target.url
        follow_up = _pr(50, title=f"Follow-up to {url}", body=f"Follow-up to {url}")
        page = {
            "ok": True,
            "messages": [_posted("50.0", follow_up), _posted("4.0", target)],
            "has_more": False,
        }
        notifier, _ = _make_slack([page])

        assert notifier.find_thread(4, thread_marker(target)).ts == "4.0"

    def test_returns_most_recent_match(self):
        page = {"ok": True, "messages": [_status("5.0"), _status("2.0")], "has_more": False}
        notifier, _ = _make_slack([page])
        assert notifier.find_thread(42, MARKER).ts == "5.0"

    def test_does_not_match_longer_number(self):
        page = {"ok": True, "messages": [_status("3.0", f"{MARKER}1")], "has_more": False}
        notifier, _ = _make_slack([page])
        assert notifier.find_thread(42, MARKER) is None

    def test_ignores_messages_from_people(self):
        page = {"ok": True, "messages": [_status("3.0", bot_id=None)], "has_more": False}
        notifier, _ = _make_slack([page])
        assert notifier.find_thread(42, MARKER) is None

    def test_ignores_other_bots(self):
        page = {"ok": True, "messages": [_status("3.0", bot_id="B999")], "has_more": False}
        notifier, _ = _make_slack([page])
        assert notifier.find_thread(42, MARKER) is None

    def test_follows_pagination(self):
        first = {
            "ok": True,
            "messages": [_message("9.0", "unrelated")],
            "has_more": True,
            "response_metadata": {"next_cursor": "next"},
        }
        second = {"ok": True, "messages": [_status("4.0")], "has_more": False}
        notifier, session = _make_slack([first, second])

        assert notifier.find_thread(42, MARKER).ts == "4.0"
        assert session.get.call_args_list[1].kwargs["params"]["cursor"] == "next"

    def test_stops_at_history_limit(self):
        first = {
            "ok": True,
            "messages": [_message(f"{i}.0", "unrelated") for i in range(2)],
            "has_more": True,
            "response_metadata": {"next_cursor": "next"},
        }
        notifier, session = _make_slack([first], history_limit=2)

        assert notifier.find_thread(42, MARKER) is None
        assert session.get.call_count == 1
        assert session.get.call_args.kwargs["params"]["limit"] == 2

    def test_is_idempotent(self):
        page = {"ok": True, "messages": [_status("3.0")], "has_more": False}
        notifier, session = _make_slack([page, page])

        first = notifier.find_thread(42, MARKER)
        second = notifier.find_thread(42, MARKER)

        assert first == second
        # auth.test is the only POST; nothing was posted or updated.
        assert session.post.call_count == 1
        assert session.post.call_args.args[0].endswith("/auth.test")

    def test_history_error_raises_upstream_error(self):
        notifier, _ = _make_slack([{"ok": False, "error": "channel_not_found"}])
        with pytest.raises(UpstreamError) as exc:
            notifier.find_thread(42, MARKER)
        assert "channel_not_found" in str(exc.value)


# ---------------------------------------------------------------------------
# SlackNotifier post / update / reply
# ---------------------------------------------------------------------------


class TestSlackWrites:
    def test_post_sends_blocks_to_channel(self):
        notifier, session = _make_slack()

        ts = notifier.post(BLOCKS, "fallback")

        assert ts == "111.000"
        url = session.post.call_args.args[0]
        body = session.post.call_args.kwargs["json"]
        assert url == "https://slack.com/api/chat.postMessage"
        assert body["channel"] == "C123"
        assert body["blocks"] == BLOCKS
        assert body["text"] == "fallback"
        assert "thread_ts" not in body

    def test_update_targets_ts(self):
        notifier, session = _make_slack()

        notifier.update("999.000", BLOCKS, "fallback")

        assert session.post.call_args.args[0].endswith("/chat.update")
        assert session.post.call_args.kwargs["json"]["ts"] == "999.000"

    def test_reply_uses_thread_ts(self):
        notifier, session = _make_slack()

        notifier.append_thread_reply("999.000", BLOCKS, "log")

        body = session.post.call_args.kwargs["json"]
        assert body["thread_ts"] == "999.000"

    def test_authorization_header_set(self):
        _, session = _make_slack()
        assert session.headers["Authorization"] == "Bearer xoxb-test"

    def test_slack_error_raises_upstream_error(self):
        notifier, session = _make_slack()
        session.post.return_value = _response({"ok": False, "error": "not_in_channel"})

        with pytest.raises(UpstreamError) as exc:
            notifier.post(BLOCKS, "fallback")
        assert exc.value.operation == "chat.postMessage"
        assert exc.value.detail == "not_in_channel"

    def test_network_error_raises_upstream_error(self):
        notifier, session = _make_slack()
        session.post.side_effect = requests.ConnectionError("connection reset")

        with pytest.raises(UpstreamError):
            notifier.post(BLOCKS, "fallback")

    def test_http_error_raises_upstream_error(self):
        notifier, session = _make_slack()
        response = _response({})
        response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
        session.post.return_value = response

        with pytest.raises(UpstreamError):
            notifier.update("1.0", BLOCKS, "fallback")

    def test_close_closes_session(self):
        notifier, session = _make_slack()
        notifier.close()
        session.close.assert_called_once()


# ---------------------------------------------------------------------------
# ConsoleNotifier
# ---------------------------------------------------------------------------


class TestConsoleNotifier:
    def test_never_finds_thread(self):
        assert ConsoleNotifier(console=MagicMock()).find_thread(42, MARKER) is None

    def test_post_prints_and_returns_dry_run_ts(self):
        console = MagicMock()
        notifier = ConsoleNotifier(console=console)

        assert notifier.post(BLOCKS, "fallback") == DRY_RUN_TS
        console.print_json.assert_called_once_with(json.dumps(BLOCKS))

    def test_update_returns_same_ts(self):
        assert ConsoleNotifier(console=MagicMock()).update("5.0", BLOCKS, "x") == "5.0"

    def test_reply_prints(self):
        console = MagicMock()
        ConsoleNotifier(console=console).append_thread_reply("5.0", BLOCKS, "[log]")
        assert console.print.called

    def test_close_is_safe(self):
        ConsoleNotifier(console=MagicMock()).close()
