"""Abstract notifier interface.

The notification pipeline depends on BaseNotifier, not on Slack, so the
dry-run console backend and the Slack backend are interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prpulse_chat.models import ThreadHandle


class BaseNotifier(ABC):
    """Posts and maintains one status message per pull request in one channel.

    Implementations raise ``prpulse_core.errors.UpstreamError`` when the chat
    service rejects a call; there are no internal retries.
    """

    @abstractmethod
    def find_thread(self, pr_number: int, marker: str) -> ThreadHandle | None:
        """Return the most recent bot message with a block whose id is ``marker``, or None.

        Must be read-only: two calls with no post in between return the same result.
        """

    @abstractmethod
    def post(self, blocks: list[dict], text: str) -> str:
        """Post a new status message and return its ts."""

    @abstractmethod
    def update(self, ts: str, blocks: list[dict], text: str) -> str:
        """Replace the content of an existing message and return its ts."""

    @abstractmethod
    def append_thread_reply(self, ts: str, blocks: list[dict], text: str) -> None:
        """Reply in the thread rooted at ``ts``."""

    def close(self) -> None:
        """Release any resources held by the notifier (HTTP sessions).

        Default is a no-op so callers can always call close() safely.
        """
