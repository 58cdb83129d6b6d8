"""Turns hook input into notifications, one ref update at a time."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from pushnote.config import Settings
from pushnote.core.classifier import ChangeType, ClassifiedEvent, Ignore, classify, is_null_id
from pushnote.core.composer import ComposeOptions, LinkTemplates, compose_notification
from pushnote.core.encoder import encode_payload
from pushnote.core.records import log_format, parse_commit_log
from pushnote.git.repository import GitCommandError, GitRepository
from pushnote.models import CommitRecord, NotificationPayload, RefUpdateEvent
from pushnote.transports.base import Transport
from pushnote.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class RepoContext:
    """Where the hook is running: display name and path for URL templates."""

    name: str
    repo_path: str | None = None

    @classmethod
    def detect(
        cls,
        cwd: Path,
        settings: Settings,
        env: Mapping[str, str] | None = None,
    ) -> RepoContext:
        env = os.environ if env is None else env
        return cls(
            name=settings.repo_nice_name or _repo_name(cwd, env),
            repo_path=_repo_path(cwd, settings.repos_root),
        )


def _repo_name(cwd: Path, env: Mapping[str, str]) -> str:
    # gitolite exports the repository name
    if env.get("GL_REPO"):
        return env["GL_REPO"]
    name = cwd.name
    if name == ".git":
        name = cwd.parent.name
    return name.removesuffix(".git")


def _repo_path(cwd: Path, repos_root: str) -> str | None:
    if not repos_root:
        return None
    path = cwd.parent if cwd.name == "objects" else cwd
    try:
        relative = path.relative_to(Path(repos_root))
    except ValueError:
        log.warning("repo_outside_repos_root", path=str(path), repos_root=repos_root)
        return None
    return "" if relative == Path(".") else relative.as_posix()


class PushNotifier:
    """Classifies ref updates and sends one notification per interesting update."""

    def __init__(
        self,
        settings: Settings,
        repo: GitRepository,
        transport: Transport,
        context: RepoContext,
    ) -> None:
        self._settings = settings
        self._repo = repo
        self._transport = transport
        self._options = ComposeOptions(
            repo_name=context.name,
            show_only_last_commit=settings.show_only_last_commit,
        )
        self._templates: LinkTemplates | None = None
        if settings.changeset_url_pattern and context.repo_path is not None:
            self._templates = LinkTemplates(
                changeset_pattern=settings.changeset_url_pattern,
                compare_pattern=settings.compare_url_pattern,
                repo_path=context.repo_path,
                repo_prefix=context.name,
            )

    def run(self, lines: Iterable[str]) -> int:
        """Process ``<old> <new> <ref>`` lines until exhausted; returns notifications sent."""
        sent = 0
        for line in lines:
            if not line.strip():
                continue
            event = RefUpdateEvent.from_line(line)
            if event is None:
                log.warning("malformed_input_line", line=line.strip())
                continue
            if self.notify(event):
                sent += 1
        return sent

    def notify(self, event: RefUpdateEvent) -> bool:
        payload = self.build(event)
        if payload is None:
            return False
        log.info(
            "notification_sending",
            ref=event.ref_name,
            transport=self._transport.name,
            attachments=len(payload.attachments),
        )
        return self._transport.send(encode_payload(payload))

    def build(self, event: RefUpdateEvent) -> NotificationPayload | None:
        """Classify *event* and compose its notification, or None if it is ignored."""
        event = RefUpdateEvent(
            old_id=self._resolve(event.old_id),
            new_id=self._resolve(event.new_id),
            ref_name=event.ref_name,
        )
        result = classify(event, self._repo, self._settings.branch_regexp)
        if isinstance(result, Ignore):
            log.info("ref_update_ignored", ref=result.ref_name, reason=result.reason)
            return None

        log.debug(
            "ref_update_classified",
            ref=result.ref_name,
            change=result.change_type.value,
            kind=result.reference_kind.value,
        )

        records: list[CommitRecord] = []
        if result.change_type is not ChangeType.DELETE:
            records = self._read_commits(result)

        return compose_notification(
            result,
            records,
            self._commit_count(result, records),
            self._options,
            templates=self._templates,
            overrides=self._settings.overrides(),
        )

    def _resolve(self, rev: str) -> str:
        if is_null_id(rev):
            return rev
        return self._repo.resolve(rev)

    def _read_commits(self, classified: ClassifiedEvent) -> list[CommitRecord]:
        # New refs list what is reachable from them but not from HEAD
        start = classified.old_id if classified.change_type is ChangeType.UPDATE else "HEAD"
        rev_range = f"{start}..{classified.new_id}"
        max_count = 1 if self._settings.show_only_last_commit else None
        try:
            stream = self._repo.read_log(
                rev_range,
                log_format(full_body=self._settings.show_full_commit),
                max_count=max_count,
            )
        except GitCommandError as e:
            log.warning("commit_log_unavailable", range=rev_range, error=str(e))
            return []
        return parse_commit_log(stream)

    def _commit_count(self, classified: ClassifiedEvent, records: list[CommitRecord]) -> int:
        if classified.change_type is not ChangeType.UPDATE:
            return len(records)
        try:
            return self._repo.count_commits(classified.old_id, classified.new_id)
        except GitCommandError as e:
            log.warning("commit_count_unavailable", ref=classified.ref_name, error=str(e))
            return len(records)
