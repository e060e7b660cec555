"""status command — show a pull request's reconciled review state."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prpulse_core.errors import PullRequestNotFoundError, UpstreamError
from prpulse_core.gh.pull_request import fetch_pull_request, get_repo
from prpulse_core.reconcile import reconcile
from prpulse_core.render.blocks import MERGE_TEXT, REVIEW_TEXT
from prpulse_core.summary import summarize

console = Console()

_STATE_STYLE = {
    "approved": "green",
    "changes requested": "red",
    "pending": "yellow",
}


@click.command("status")
@click.option("--repo", required=True, help="GitHub repository (owner/name).")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.pass_context
def status_cmd(ctx, repo: str, pr_number: int):
    """Show who approved, who requested changes and who is still pending.

    Reads GitHub only; nothing is posted to Slack.
    """
    config = ctx.obj["config"]
    token = config.get("github_token")
    if not token:
        raise click.UsageError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")

    try:
        pr = fetch_pull_request(get_repo(repo, token=token), pr_number)
    except PullRequestNotFoundError as e:
        raise click.ClickException(str(e)) from e
    except UpstreamError as e:
        raise click.ClickException(str(e)) from e

    reviewers = reconcile(pr.review_requests, pr.reviews)
    summary = summarize(pr, reviewers)

    console.print(f"\n[bold]#{pr.number}[/bold] {pr.title}  [dim]({pr.state.value})[/dim]")
    if summary.review_label is not None:
        console.print(f"  Review: {REVIEW_TEXT[summary.review_label]}")
    console.print(f"  Merge:  {MERGE_TEXT[summary.merge_label]}")

    rows = (
        [(login, "approved") for login in reviewers.approvals]
        + [(login, "changes requested") for login in reviewers.change_requesteds]
        + [(login, "pending") for login in reviewers.pendings]
    )
    if not rows:
        console.print("[yellow]No reviewers of record.[/yellow]")
        return

    table = Table(title=f"Reviewers — {repo}#{pr.number}", show_header=True, header_style="bold cyan")
    table.add_column("Reviewer", style="bold")
    table.add_column("State")
    for login, state in rows:
        style = _STATE_STYLE[state]
        table.add_row(login, f"[{style}]{state}[/{style}]")
    console.print(table)
