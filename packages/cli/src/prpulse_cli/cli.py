"""CLI entry point for prpulse.

Commands:
  notify    — handle a GitHub Actions pull_request / pull_request_review event
  deployed  — report a finished workflow for a merge commit in the PR's thread
  status    — print a pull request's reconciled review state (no Slack)
  init      — setup wizard writing .prpulse.yml and a GitHub Actions workflow
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prpulse_cli.commands.deployed import deployed_cmd
from prpulse_cli.commands.init import init_cmd
from prpulse_cli.commands.notify import notify_cmd
from prpulse_cli.commands.status import status_cmd

console = Console()


def _build_notifier(config: dict, dry_run: bool = False):
    """Instantiate the configured notifier.

    Notifier selection:
      --dry-run or notifier: console → ConsoleNotifier (prints the payloads)
      notifier: slack (default)      → SlackNotifier  (requires slack_token and slack_channel)

    Missing Slack settings raise ConfigMissingError rather than falling back to
    the console: a notify job that silently posts nothing is worse than a red one.
    """
    from prpulse_chat.console import ConsoleNotifier
    from prpulse_core.config import require

    if dry_run or config.get("notifier") == "console":
        return ConsoleNotifier(console)

    require(config, "slack_token", "slack_channel")

    from prpulse_chat.slack import SlackNotifier

    return SlackNotifier(
        token=config["slack_token"],
        channel=config["slack_channel"],
        history_limit=config.get("history_limit", 200),
        timeout=config.get("request_timeout", 10),
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    # PyGithub and urllib3 are chatty at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("github").setLevel(logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prpulse"),
    prog_name="prpulse",
)
@click.option(
    "--config",
    "config_path",
    default=".prpulse.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRPULSE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Keep one Slack status message per GitHub pull request up to date."""
    from prpulse_core.config import load_config
    from prpulse_cli.auth import resolve_github_token, resolve_slack_token

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve tokens early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token
    slack_token = resolve_slack_token()
    if slack_token:
        config["slack_token"] = slack_token

    ctx.obj["config"] = config


main.add_command(notify_cmd)
main.add_command(deployed_cmd)
main.add_command(status_cmd)
main.add_command(init_cmd)
