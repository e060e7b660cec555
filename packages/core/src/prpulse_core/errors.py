"""Exception hierarchy shared by every prpulse package.

Only two kinds abort an invocation: ``UpstreamError`` (GitHub or Slack call
failed) and ``ConfigMissingError`` (raised before any event is processed).
``PullRequestNotFoundError`` and ``UnsupportedEventError`` mean "nothing to
notify about" and are turned into a log line and a zero exit code by the CLI.
"""

from __future__ import annotations


class PrPulseError(Exception):
    """Base class for all prpulse errors."""


class PullRequestNotFoundError(PrPulseError):
    """The pull request number or merge-commit sha could not be resolved."""

    def __init__(self, repo: str, number: int | None = None, sha: str | None = None):
        self.repo = repo
        self.number = number
        self.sha = sha
        if number:
            message = f"PR #{number} not found in {repo}."
        elif sha:
            message = f"No pull request in {repo} was merged as {sha[:7]}."
        else:
            message = f"No pull request to notify about in {repo}."
        super().__init__(message)


class UnsupportedEventError(PrPulseError):
    """The trigger event is not one prpulse reacts to."""

    def __init__(self, event_name: str, action: str = ""):
        self.event_name = event_name
        self.action = action
        label = f'{event_name} > "{action}"' if action else f'"{event_name}"'
        super().__init__(f"Unsupported trigger event: {label}")


class UpstreamError(PrPulseError):
    """A GitHub or Slack API call failed."""

    def __init__(self, service: str, operation: str, detail: str):
        self.service = service
        self.operation = operation
        self.detail = detail
        super().__init__(f"{service} {operation} failed: {detail}")


class ConfigMissingError(PrPulseError):
    """A required credential, channel or account map is not configured."""
