"""Console notifier — dry run that prints the Slack payloads instead of sending them."""

from __future__ import annotations

import json

from rich.console import Console
from rich.markup import escape

from prpulse_chat.base import BaseNotifier
from prpulse_chat.models import ThreadHandle

DRY_RUN_TS = "dry-run"


class ConsoleNotifier(BaseNotifier):
    """Prints every message to the terminal; never finds an existing thread.

    Used with ``--dry-run`` or ``notifier: console`` to preview what would be
    posted without a Slack token.
    """

    def __init__(self, console: Console | None = None):
        self._console = console or Console()

    def find_thread(self, pr_number: int, marker: str) -> ThreadHandle | None:
        return None

    def post(self, blocks: list[dict], text: str) -> str:
        self._print("post", text, blocks)
        return DRY_RUN_TS

    def update(self, ts: str, blocks: list[dict], text: str) -> str:
        self._print(f"update {ts}", text, blocks)
        return ts

    def append_thread_reply(self, ts: str, blocks: list[dict], text: str) -> None:
        self._print(f"reply in thread {ts}", text, blocks)

    def _print(self, action: str, text: str, blocks: list[dict]) -> None:
        self._console.print(f"\n[bold]Dry run — would {action}:[/bold] {escape(text)}")
        self._console.print_json(json.dumps(blocks))
