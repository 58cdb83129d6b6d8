"""Serialize a notification into the Slack incoming-webhook JSON payload."""

from __future__ import annotations

import json
from typing import Any

from pushnote.models import Attachment, NotificationPayload


def clean_text(value: str | bytes) -> str:
    """Return *value* as valid Unicode, replacing anything undecodable with U+FFFD.

    Lone surrogates (e.g. from ``surrogateescape``-decoded paths) count as
    undecodable too, since they cannot be written out as UTF-8.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value.encode("utf-8", errors="surrogatepass").decode("utf-8", errors="replace")


def _attachment_block(attachment: Attachment) -> dict[str, Any]:
    return {
        "fallback": "",
        "color": "good",
        "fields": [
            {
                "title": clean_text(attachment.title),
                "value": clean_text(attachment.value),
                "short": attachment.short,
            }
        ],
    }


def payload_to_dict(payload: NotificationPayload) -> dict[str, Any]:
    data: dict[str, Any] = {"text": clean_text(payload.header)}
    if payload.attachments:
        data["attachments"] = [_attachment_block(a) for a in payload.attachments]
    for key, value in payload.overrides.items():
        if value:
            data[key] = clean_text(value)
    return data


def encode_payload(payload: NotificationPayload) -> str:
    return json.dumps(payload_to_dict(payload), ensure_ascii=False)
