"""Credential resolution.

GitHub token, first hit wins:
  1. GITHUB_TOKEN (set by GitHub Actions, or exported by hand)
  2. `gh auth token`, for a local GitHub CLI session

The Slack bot token only comes from the environment (SLACK_TOKEN, or
SLACK_BOT_TOKEN as most Slack tooling names it).
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_COMMAND_TIMEOUT = 5


def command_output(*args: str) -> str | None:
    """Run a short local command and return its stripped stdout.

    None when the tool is missing, times out, fails or prints nothing.
    """
    try:
        result = subprocess.run(list(args), capture_output=True, text=True, timeout=_COMMAND_TIMEOUT)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("`%s` unavailable.", " ".join(args))
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def resolve_github_token() -> str | None:
    """Return a GitHub token, or None when neither source has one."""
    if os.environ.get("GITHUB_TOKEN"):
        return os.environ["GITHUB_TOKEN"]
    token = command_output("gh", "auth", "token")
    if token:
        logger.debug("Resolved GitHub token via gh CLI session.")
    return token


def resolve_slack_token() -> str | None:
    return os.environ.get("SLACK_TOKEN") or os.environ.get("SLACK_BOT_TOKEN") or None
