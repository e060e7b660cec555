"""init command — setup wizard for a repository.

Writes .prpulse.yml, a starter Slack account map and a GitHub Actions workflow
wired to the triggers prpulse reacts to, so the status messages start
flowing after the next push.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path

import click
import yaml
from rich.console import Console

from prpulse_cli.auth import command_output

logger = logging.getLogger(__name__)
console = Console()

CONFIG_PATH = Path(".prpulse.yml")

_WORKFLOW_TEMPLATE = """\
name: PR Pulse

on:
  pull_request:
    types: [closed, review_requested, review_request_removed]
  pull_request_review:
    types: [submitted]
  push:
    branches: [{branch}]

jobs:
  notify:
    runs-on: ubuntu-latest
    permissions:
      contents: read
      pull-requests: read

    steps:
      - uses: actions/checkout@v4

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install prpulse
        run: pip install "prpulse=={version}"

      - name: Update Slack status message
        if: github.event_name != 'push'
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          SLACK_TOKEN: ${{{{ secrets.SLACK_TOKEN }}}}
        run: prpulse notify

      - name: Report merge commit workflow
        if: github.event_name == 'push'
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          SLACK_TOKEN: ${{{{ secrets.SLACK_TOKEN }}}}
        run: prpulse deployed
"""


@click.command("init")
@click.option("--repo", default=None, help="GitHub repository (owner/name). Auto-detected from git remote.")
def init_cmd(repo: str | None):
    """Set up prpulse for a repository.

    Creates .prpulse.yml, a Slack account map and, optionally, a GitHub
    Actions workflow.
    """
    console.print("\n[bold cyan]prpulse init[/bold cyan] — repository setup wizard\n")

    if repo is None:
        repo = _detect_repo()
        if repo:
            console.print(f"[dim]Detected repository: {repo}[/dim]")
        else:
            repo = click.prompt("GitHub repository (owner/name)")

    channel = click.prompt("Slack channel id (e.g. C0123456789)")
    accounts_path = click.prompt("Slack account map path", default=".github/slack_accounts.json")

    config: dict = {"slack_channel": channel}
    if accounts_path != ".github/slack_accounts.json":
        config["slack_accounts"] = accounts_path

    _write_config(config)
    console.print("[green]Created .prpulse.yml[/green]")

    if _write_accounts(accounts_path):
        console.print(f"[green]Created {accounts_path}[/green] — add one \"github-login\": \"SLACK_MEMBER_ID\" per person.")
    else:
        console.print(f"[dim]{accounts_path} already exists — left untouched.[/dim]")

    setup_ci = click.confirm("\nGenerate .github/workflows/prpulse.yml for GitHub Actions?", default=True)
    if setup_ci:
        branch = click.prompt("Branch whose merge commits trigger deploy notes", default="main")
        _write_workflow(branch)
        console.print("[green]Created .github/workflows/prpulse.yml[/green]")
        console.print(
            "\n[yellow]Remember to add [bold]SLACK_TOKEN[/bold] to your "
            "GitHub repository secrets (Settings → Secrets → Actions).[/yellow]"
        )

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Preview a pull request with: [bold]prpulse status --repo {repo} --pr <number>[/bold]".format(repo=repo))


# https://github.com/owner/repo(.git) and git@github.com:owner/repo(.git)
_GITHUB_REMOTE = re.compile(r"github\.com[/:](?P<slug>[^/\s]+/[^/\s]+?)(?:\.git)?/?$")


def _detect_repo() -> str | None:
    """owner/name of the repository, from $GITHUB_REPOSITORY or the origin remote."""
    if os.environ.get("GITHUB_REPOSITORY"):
        return os.environ["GITHUB_REPOSITORY"]
    remote = command_output("git", "remote", "get-url", "origin")
    match = _GITHUB_REMOTE.search(remote or "")
    return match.group("slug") if match else None


def _write_config(config: dict, path: Path = CONFIG_PATH) -> None:
    """Merge ``config`` into the YAML config file; keys already there survive."""
    current = yaml.safe_load(path.read_text()) if path.exists() else None
    path.write_text(yaml.safe_dump({**(current or {}), **config}, sort_keys=False))


def _write_accounts(accounts_path: str) -> bool:
    """Create an empty account map. Returns False if the file already exists."""
    path = Path(accounts_path)
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({}, indent=2) + "\n")
    return True


def _get_version() -> str:
    """Read the current prpulse version from the installed package metadata."""
    try:
        from importlib.metadata import version

        return version("prpulse")
    except Exception:
        logger.debug("prpulse is not installed; pinning the workflow to the default version.")
        return "0.1.0"


def _write_workflow(branch: str) -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    (workflow_dir / "prpulse.yml").write_text(_WORKFLOW_TEMPLATE.format(branch=branch, version=_get_version()))
