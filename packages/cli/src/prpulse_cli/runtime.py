"""Setup and reporting shared by the commands that talk to Slack."""

from __future__ import annotations

import click
from rich.console import Console

from prpulse_core.errors import ConfigMissingError, UpstreamError
from prpulse_core.notifier import NotificationSummary

console = Console()


def prepare(config: dict, repo: str, dry_run: bool):
    """Validate configuration and build (repo object, notifier, accounts).

    All configuration problems surface here, before any event is processed.
    """
    from prpulse_cli.cli import _build_notifier
    from prpulse_core.config import load_accounts
    from prpulse_core.gh.pull_request import get_repo

    token = config.get("github_token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )

    try:
        accounts = load_accounts(config["slack_accounts"])
        notifier = _build_notifier(config, dry_run=dry_run)
    except ConfigMissingError as e:
        raise click.UsageError(str(e)) from e

    try:
        repo_obj = get_repo(repo, token=token)
    except UpstreamError as e:
        notifier.close()
        raise click.ClickException(str(e)) from e
    return repo_obj, notifier, accounts


def print_summary(summary: NotificationSummary | None) -> None:
    if summary is None:
        console.print("[yellow]Nothing to notify.[/yellow]")
        return

    verb = "Posted" if summary.created else "Updated"
    console.print(f"[green]{verb} status message for PR #{summary.pr_number} (ts {summary.ts}).[/green]")
    status = summary.status
    labels = [status.merge_label.value] if status.review_label is None else [
        status.review_label.value,
        status.merge_label.value,
    ]
    console.print(f"  Status: {', '.join(labels)}")
    if summary.change_log_posted:
        console.print(f"  Change log: {summary.narrative.value}")
