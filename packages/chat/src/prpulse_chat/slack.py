"""SlackNotifier — status messages through the Slack Web API.

Uses four Web API methods with a bot token:
  auth.test              — learn our own bot_id, so only our messages are considered
  conversations.history  — find the existing status message for a pull request
  chat.postMessage       — first status message, and thread replies (thread_ts)
  chat.update            — rewrite the status message in place

Thread lookup has no compare-and-swap: two invocations racing on the same pull
request may both miss the thread and both post. Redelivery of the webhook
tolerates this; it is not worked around here.
"""

from __future__ import annotations

import logging

import requests

from prpulse_chat.base import BaseNotifier
from prpulse_chat.models import ThreadHandle
from prpulse_core.errors import UpstreamError

logger = logging.getLogger(__name__)

API_URL = "https://slack.com/api"
_PAGE_SIZE = 200


def _carries_marker(message: dict, marker: str) -> bool:
    """True when one of the message's blocks has ``marker`` as its block id.

    Only block ids are compared: titles and bodies are written by users and may
    link to any other pull request.
    """
    return any(block.get("block_id") == marker for block in message.get("blocks") or [])


class SlackNotifier(BaseNotifier):
    """Posts to a single channel with a bot token.

    ``history_limit`` bounds how many channel messages find_thread() scans;
    a pull request whose status message has scrolled further back gets a
    fresh one.
    """

    def __init__(
        self,
        token: str,
        channel: str,
        history_limit: int = 200,
        timeout: float = 10,
        session: requests.Session | None = None,
    ):
        self._channel = channel
        self._history_limit = history_limit
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {token}"})
        self._bot_id: str | None = None

    # ------------------------------------------------------------------ #
    # BaseNotifier                                                         #
    # ------------------------------------------------------------------ #

    def find_thread(self, pr_number: int, marker: str) -> ThreadHandle | None:
        bot_id = self._own_bot_id()
        scanned = 0
        cursor = None

        while scanned < self._history_limit:
            params = {"channel": self._channel, "limit": min(_PAGE_SIZE, self._history_limit - scanned)}
            if cursor:
                params["cursor"] = cursor
            data = self._call("conversations.history", params=params)

            # conversations.history returns newest first, so the first hit is the most recent.
            for message in data.get("messages", []):
                scanned += 1
                if message.get("bot_id") is None or (bot_id and message["bot_id"] != bot_id):
                    continue
                if _carries_marker(message, marker):
                    logger.info("Found thread %s for PR #%d", message["ts"], pr_number)
                    return ThreadHandle(ts=message["ts"], pr_number=pr_number)

            cursor = (data.get("response_metadata") or {}).get("next_cursor")
            if not data.get("has_more") or not cursor:
                break

        logger.info("No thread found for PR #%d in the last %d message(s)", pr_number, scanned)
        return None

    def post(self, blocks: list[dict], text: str) -> str:
        data = self._call(
            "chat.postMessage",
            {"channel": self._channel, "blocks": blocks, "text": text, "unfurl_links": False},
        )
        logger.info("Posted status message %s", data["ts"])
        return data["ts"]

    def update(self, ts: str, blocks: list[dict], text: str) -> str:
        data = self._call("chat.update", {"channel": self._channel, "ts": ts, "blocks": blocks, "text": text})
        logger.info("Updated status message %s", data["ts"])
        return data["ts"]

    def append_thread_reply(self, ts: str, blocks: list[dict], text: str) -> None:
        self._call(
            "chat.postMessage",
            {"channel": self._channel, "thread_ts": ts, "blocks": blocks, "text": text, "unfurl_links": False},
        )
        logger.info("Appended change log to thread %s", ts)

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------ #
    # Web API plumbing                                                     #
    # ------------------------------------------------------------------ #

    def _own_bot_id(self) -> str | None:
        if self._bot_id is None:
            self._bot_id = self._call("auth.test").get("bot_id")
        return self._bot_id

    def _call(self, method: str, payload: dict | None = None, params: dict | None = None) -> dict:
        """Invoke one Web API method; raise UpstreamError on HTTP or Slack-level failure."""
        url = f"{API_URL}/{method}"
        try:
            if params is not None:
                response = self._session.get(url, params=params, timeout=self._timeout)
            else:
                response = self._session.post(url, json=payload or {}, timeout=self._timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise UpstreamError("Slack", method, str(e)) from e
        except ValueError as e:
            raise UpstreamError("Slack", method, f"invalid JSON response: {e}") from e

        if not data.get("ok"):
            raise UpstreamError("Slack", method, data.get("error", "unknown_error"))
        return data
