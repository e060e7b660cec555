"""GitHub Actions event payload → InboundEvent.

The runner exposes the trigger through ``GITHUB_EVENT_NAME`` and the webhook
payload as a JSON file at ``GITHUB_EVENT_PATH``. Only the fields the pipeline
needs are kept.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from prpulse_core.errors import UnsupportedEventError
from prpulse_core.models import Actor, InboundEvent, Review, ReviewerKind, ReviewRequest


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    # fromisoformat() only accepts a trailing "Z" from Python 3.11 on.
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _user(data: dict | None) -> Actor | None:
    if not data:
        return None
    return Actor(login=data.get("login", ""), url=data.get("html_url", ""))


def _review_request(payload: dict) -> ReviewRequest | None:
    # Absent when the action is not a review (un)request.
    if payload.get("requested_reviewer"):
        return ReviewRequest(requested_reviewer=_user(payload["requested_reviewer"]), kind=ReviewerKind.USER)
    team = payload.get("requested_team")
    if team:
        return ReviewRequest(
            requested_reviewer=Actor(login=team.get("name", ""), url=team.get("html_url", "")),
            kind=ReviewerKind.TEAM,
        )
    return None


def _review(data: dict) -> Review:
    return Review(
        author=_user(data.get("user")) or Actor(login="ghost"),
        body=data.get("body"),
        # Webhook states are lowercase; GraphQL and the REST list endpoint use uppercase.
        state=(data.get("state") or "").upper(),
        updated_at=_parse_timestamp(data.get("submitted_at")),
    )


def parse_event(event_name: str, payload: dict) -> InboundEvent:
    action = payload.get("action") or ""
    sender = _user(payload.get("sender"))

    if event_name == "pull_request":
        return InboundEvent(
            event_type=event_name,
            action=action,
            pull_request_number=payload["pull_request"]["number"],
            review_request=_review_request(payload),
            sender=sender,
        )
    if event_name == "pull_request_review":
        return InboundEvent(
            event_type=event_name,
            action=action,
            pull_request_number=payload["pull_request"]["number"],
            review=_review(payload["review"]),
            sender=sender,
        )
    if event_name == "push":
        return InboundEvent(event_type=event_name, action=action, sha=payload.get("after"), sender=sender)

    raise UnsupportedEventError(event_name, action)


def load_event(event_name: str, event_path: str) -> InboundEvent:
    payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    return parse_event(event_name, payload)
