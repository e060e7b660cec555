"""notify command — handle one GitHub Actions webhook delivery."""

from __future__ import annotations

import click
from rich.console import Console

from prpulse_cli.runtime import prepare, print_summary
from prpulse_core.errors import PullRequestNotFoundError, UnsupportedEventError, UpstreamError
from prpulse_core.gh.events import load_event
from prpulse_core.notifier import run_notification

console = Console()


@click.command("notify")
@click.option(
    "--repo",
    envvar="GITHUB_REPOSITORY",
    required=True,
    help="GitHub repository in owner/name format. Defaults to $GITHUB_REPOSITORY.",
)
@click.option(
    "--event-name",
    envvar="GITHUB_EVENT_NAME",
    required=True,
    help="Trigger event name. Defaults to $GITHUB_EVENT_NAME.",
)
@click.option(
    "--event-path",
    envvar="GITHUB_EVENT_PATH",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Webhook payload JSON file. Defaults to $GITHUB_EVENT_PATH.",
)
@click.option("--dry-run", is_flag=True, help="Print the Slack messages instead of sending them.")
@click.pass_context
def notify_cmd(ctx, repo: str, event_name: str, event_path: str, dry_run: bool):
    """Post or update the pull request's Slack status message.

    Reacts to pull_request (closed, review_requested, review_request_removed)
    and pull_request_review (submitted). Any other trigger is ignored.

    \b
    Required environment variables:
      GITHUB_TOKEN    GitHub token (or use gh CLI)
      SLACK_TOKEN     Slack bot token (not needed with --dry-run)
    """
    config = ctx.obj["config"]
    repo_obj, notifier, accounts = prepare(config, repo, dry_run)

    try:
        event = load_event(event_name, event_path)
        summary = run_notification(event, repo_obj, notifier, config, accounts)
    except (UnsupportedEventError, PullRequestNotFoundError) as e:
        console.print(f"[yellow]{e}[/yellow]")
        return
    except UpstreamError as e:
        raise click.ClickException(str(e)) from e
    finally:
        notifier.close()

    print_summary(summary)
