"""deployed command — report a finished workflow in the merged pull request's thread."""

from __future__ import annotations

import click
from rich.console import Console

from prpulse_cli.runtime import prepare, print_summary
from prpulse_core.errors import PullRequestNotFoundError, UpstreamError
from prpulse_core.models import Actor
from prpulse_core.notifier import run_deploy_notification

console = Console()


@click.command("deployed")
@click.option(
    "--repo",
    envvar="GITHUB_REPOSITORY",
    required=True,
    help="GitHub repository in owner/name format. Defaults to $GITHUB_REPOSITORY.",
)
@click.option("--sha", envvar="GITHUB_SHA", required=True, help="Merge commit sha. Defaults to $GITHUB_SHA.")
@click.option(
    "--sender",
    envvar="GITHUB_ACTOR",
    default=None,
    help="Login of whoever triggered the workflow. Defaults to $GITHUB_ACTOR.",
)
@click.option("--dry-run", is_flag=True, help="Print the Slack messages instead of sending them.")
@click.pass_context
def deployed_cmd(ctx, repo: str, sha: str, sender: str | None, dry_run: bool):
    """Append a deploy-complete note to the thread of the PR merged as SHA.

    Run this as the last step of the workflow triggered by the push of a merge
    commit. Pushes that did not come from a pull request are skipped.
    """
    config = ctx.obj["config"]
    repo_obj, notifier, accounts = prepare(config, repo, dry_run)

    try:
        summary = run_deploy_notification(
            sha,
            repo_obj,
            notifier,
            config,
            accounts,
            sender=Actor(login=sender) if sender else None,
        )
    except PullRequestNotFoundError as e:
        console.print(f"[yellow]{e}[/yellow]")
        return
    except UpstreamError as e:
        raise click.ClickException(str(e)) from e
    finally:
        notifier.close()

    if summary is None:
        console.print(f"[yellow]No pull request was merged as {sha[:7]}; nothing to report.[/yellow]")
        return
    print_summary(summary)
