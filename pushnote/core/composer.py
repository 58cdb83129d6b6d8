"""Build the notification header and per-commit attachments."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace

from pushnote.core.classifier import ChangeType, ClassifiedEvent, ReferenceKind
from pushnote.models import Attachment, CommitRecord, NotificationPayload


@dataclass(frozen=True)
class ComposeOptions:
    repo_name: str
    show_only_last_commit: bool = False


@dataclass(frozen=True)
class LinkTemplates:
    """Changeset/compare URL patterns bound to one repository.

    Patterns understand ``%repo_path%``, ``%repo_prefix%``, ``%rev_hash%``,
    ``%old_rev_hash%`` and ``%new_rev_hash%``.
    """

    changeset_pattern: str
    repo_path: str
    repo_prefix: str
    compare_pattern: str = ""

    def expand(self, pattern: str, **revs: str) -> str:
        values = {"repo_path": self.repo_path, "repo_prefix": self.repo_prefix, **revs}
        for name, value in values.items():
            pattern = pattern.replace(f"%{name}%", value)
        return pattern

    def changeset_url(self, rev: str) -> str:
        return self.expand(self.changeset_pattern, rev_hash=rev)

    def compare_url(self, old_rev: str, new_rev: str) -> str | None:
        if not self.compare_pattern:
            return None
        return self.expand(self.compare_pattern, old_rev_hash=old_rev, new_rev_hash=new_rev)


@dataclass(frozen=True)
class Header:
    """Header text kept in parts so the commit-count phrase can carry a link.

    The singular ``A new commit`` lead is linked as well as ``N new commits``,
    so a one-commit push still points at its compare view.
    """

    text: str
    lead: str = ""
    link: str | None = None
    suffix: str = ""

    def render(self) -> str:
        lead = f"<{self.link}|{self.lead}>" if self.link and self.lead else self.lead
        return f"{lead}{self.text}{self.suffix}"


def links_apply(classified: ClassifiedEvent) -> bool:
    """Changeset links are only built for branches that still exist."""
    return (
        classified.reference_kind is ReferenceKind.BRANCH
        and classified.change_type is not ChangeType.DELETE
    )


def build_header(
    classified: ClassifiedEvent,
    commit_count: int,
    options: ComposeOptions,
    compare_url: str | None = None,
) -> Header:
    kind = classified.reference_kind.noun
    name = classified.short_name
    repo = options.repo_name
    noun = "commit"

    if classified.change_type is ChangeType.CREATE:
        header = Header(text=f"New {kind} *{name}* has been created in {repo}")
    elif classified.change_type is ChangeType.DELETE:
        header = Header(text=f"{kind[:1].upper()}{kind[1:]} *{name}* has been deleted from {repo}")
    elif commit_count > 1:
        header = Header(
            lead=f"{commit_count} new commits",
            text=f" *pushed* to *{name}* in {repo}",
            link=compare_url,
        )
        noun = "one"
    else:
        header = Header(
            lead="A new commit",
            text=f" has been *pushed* to *{name}* in {repo}",
            link=compare_url,
        )

    if options.show_only_last_commit and classified.change_type is not ChangeType.DELETE:
        header = replace(header, suffix=f", showing last {noun}:")
    return header


def compose_header(
    classified: ClassifiedEvent,
    commit_count: int,
    options: ComposeOptions,
    compare_url: str | None = None,
) -> str:
    return build_header(classified, commit_count, options, compare_url).render()


def format_commit_line(record: CommitRecord, changeset_url: str | None = None) -> str:
    message = record.body.rstrip()
    if changeset_url:
        short = record.short_rev or record.rev[:7]
        return f"<{changeset_url}|{short}> {message}"
    return message


def build_attachments(
    records: Sequence[CommitRecord],
    options: ComposeOptions,
    templates: LinkTemplates | None = None,
) -> list[Attachment]:
    if options.show_only_last_commit:
        records = records[:1]
    attachments = []
    for record in records:
        url = templates.changeset_url(record.rev) if templates and record.rev else None
        attachments.append(Attachment(title=record.author, value=format_commit_line(record, url)))
    return attachments


def compose_notification(
    classified: ClassifiedEvent,
    records: Sequence[CommitRecord],
    commit_count: int,
    options: ComposeOptions,
    templates: LinkTemplates | None = None,
    overrides: dict[str, str] | None = None,
) -> NotificationPayload:
    """Assemble the full notification for one classified ref update."""
    if not links_apply(classified):
        templates = None

    compare_url = None
    if templates is not None and classified.change_type is ChangeType.UPDATE:
        compare_url = templates.compare_url(classified.old_id, classified.new_id)

    return NotificationPayload(
        header=compose_header(classified, commit_count, options, compare_url),
        attachments=build_attachments(records, options, templates),
        overrides=dict(overrides or {}),
    )
