import json
import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from prpulse_core.errors import ConfigMissingError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict = {
    "slack_channel": None,
    "slack_accounts": ".github/slack_accounts.json",  # JSON object: GitHub login -> Slack member id
    "notifier": "slack",  # "slack" posts to the channel, "console" only prints (dry run)
    "history_limit": 200,  # how many channel messages to scan when looking for a PR's thread
    "request_timeout": 10,
    "empty_body_warning": "No description provided.",
}


def load_config(config_path: str = ".prpulse.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prpulse.yml in the current directory
      3. SLACK_CHANNEL environment variable
      4. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if os.environ.get("SLACK_CHANNEL"):
        config["slack_channel"] = os.environ["SLACK_CHANNEL"]

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["slack_token"] = os.environ.get("SLACK_TOKEN")

    return config


def load_accounts(path: str) -> dict[str, str]:
    """Load the GitHub login → Slack member id mapping.

    The file must hold a single JSON object. Logins missing from it are
    rendered as plain text instead of a mention.
    """
    p = Path(path)
    if not p.exists():
        raise ConfigMissingError(f"Slack account map not found: {path}")
    try:
        accounts = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigMissingError(f"Slack account map {path} is not valid JSON: {e}") from e
    if not isinstance(accounts, dict):
        raise ConfigMissingError(f"Slack account map {path} must be a JSON object of login: member id.")

    logger.debug("Slack accounts loaded from %s", path)
    for login, member in accounts.items():
        logger.debug("    - %s: %s", login, member)
    logger.debug("    - (total %d accounts)", len(accounts))
    return {str(login): str(member) for login, member in accounts.items()}


def require(config: dict, *keys: str) -> None:
    """Raise ConfigMissingError naming every key in ``keys`` that is unset."""
    missing = [k for k in keys if not config.get(k)]
    if missing:
        raise ConfigMissingError(f"Missing required configuration: {', '.join(missing)}")
