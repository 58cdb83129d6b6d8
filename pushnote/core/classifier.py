"""Classify a ref update into what kind of change happened to what kind of ref."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from pushnote.models import RefUpdateEvent


class ChangeType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ReferenceKind(str, Enum):
    BRANCH = "branch"
    TRACKING_BRANCH = "tracking branch"
    TAG = "tag"
    ANNOTATED_TAG = "annotated tag"
    UNKNOWN = "reference"

    @property
    def noun(self) -> str:
        return self.value


class ObjectStore(Protocol):
    def object_type(self, rev: str) -> str | None:
        """Return ``commit``, ``tag``, ... or None when *rev* does not exist."""
        ...


@dataclass(frozen=True)
class ClassifiedEvent:
    change_type: ChangeType
    reference_kind: ReferenceKind
    short_name: str
    relevant_id: str
    old_id: str
    new_id: str
    ref_name: str


@dataclass(frozen=True)
class Ignore:
    """A ref update that produces no notification."""

    reason: str
    ref_name: str


# (ref prefix, object type) -> kind; anything missing is UNKNOWN
_KIND_TABLE: dict[tuple[str, str], ReferenceKind] = {
    ("refs/tags/", "commit"): ReferenceKind.TAG,
    ("refs/tags/", "tag"): ReferenceKind.ANNOTATED_TAG,
    ("refs/heads/", "commit"): ReferenceKind.BRANCH,
    ("refs/remotes/", "commit"): ReferenceKind.TRACKING_BRANCH,
}

_PREFIXES = ("refs/tags/", "refs/heads/", "refs/remotes/")

_IGNORED_KINDS = {
    ReferenceKind.TRACKING_BRANCH: "tracking branch push",
    ReferenceKind.UNKNOWN: "unrecognized update",
}


def is_null_id(object_id: str) -> bool:
    """True for git's all-zero id used for the missing side of a create/delete."""
    return bool(object_id) and object_id.strip("0") == ""


def change_type_of(old_id: str, new_id: str) -> ChangeType:
    if is_null_id(old_id):
        return ChangeType.CREATE
    if is_null_id(new_id):
        return ChangeType.DELETE
    return ChangeType.UPDATE


def split_ref_name(ref_name: str) -> tuple[str, str]:
    """Split ``refs/heads/main`` into (``refs/heads/``, ``main``)."""
    for prefix in _PREFIXES:
        if ref_name.startswith(prefix):
            return prefix, ref_name[len(prefix):]
    return "", ref_name


def classify(
    event: RefUpdateEvent,
    objects: ObjectStore,
    branch_filter: re.Pattern[str] | None = None,
) -> ClassifiedEvent | Ignore:
    if is_null_id(event.old_id) and is_null_id(event.new_id):
        return Ignore("null update", event.ref_name)

    change_type = change_type_of(event.old_id, event.new_id)
    rev = event.old_id if change_type is ChangeType.DELETE else event.new_id

    object_type = objects.object_type(rev)
    if object_type is None:
        return Ignore(f"object lookup failed: {rev}", event.ref_name)

    prefix, short_name = split_ref_name(event.ref_name)
    kind = _KIND_TABLE.get((prefix, object_type), ReferenceKind.UNKNOWN)
    if kind in _IGNORED_KINDS:
        return Ignore(_IGNORED_KINDS[kind], event.ref_name)

    if branch_filter is not None and not branch_filter.search(short_name):
        return Ignore("filtered by branch pattern", event.ref_name)

    return ClassifiedEvent(
        change_type=change_type,
        reference_kind=kind,
        short_name=short_name,
        relevant_id=rev,
        old_id=event.old_id,
        new_id=event.new_id,
        ref_name=event.ref_name,
    )
