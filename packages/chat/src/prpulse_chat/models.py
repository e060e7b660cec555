"""Chat-side data models.

Decoupled from prpulse_core so a notifier backend can be used on its own and
the core pipeline has no knowledge of any chat API.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ThreadHandle:
    """The chat message that carries a pull request's status.

    ``ts`` is Slack's message timestamp id. It is created by the first post for
    a pull request and reused for every later update and thread reply.
    """

    ts: str
    pr_number: int
