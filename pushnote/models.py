"""Value objects passed between the hook's pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RefUpdateEvent:
    """One ``<old-id> <new-id> <ref-name>`` line of hook input."""

    old_id: str
    new_id: str
    ref_name: str

    @classmethod
    def from_line(cls, line: str) -> RefUpdateEvent | None:
        parts = line.split()
        if len(parts) != 3:
            return None
        return cls(*parts)


@dataclass(frozen=True)
class CommitRecord:
    author: str
    body: str
    rev: str = ""
    short_rev: str = ""


@dataclass(frozen=True)
class Attachment:
    title: str
    value: str
    short: bool = False


@dataclass
class NotificationPayload:
    header: str
    attachments: list[Attachment] = field(default_factory=list)
    overrides: dict[str, str] = field(default_factory=dict)
