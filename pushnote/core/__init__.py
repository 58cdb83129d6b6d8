"""Classification and formatting pipeline for ref updates."""

from pushnote.core.classifier import (
    ChangeType,
    ClassifiedEvent,
    Ignore,
    ReferenceKind,
    classify,
)
from pushnote.core.composer import ComposeOptions, LinkTemplates, compose_notification
from pushnote.core.encoder import clean_text, encode_payload
from pushnote.core.records import log_format, parse_commit_log

__all__ = [
    "ChangeType",
    "ClassifiedEvent",
    "ComposeOptions",
    "Ignore",
    "LinkTemplates",
    "ReferenceKind",
    "classify",
    "clean_text",
    "compose_notification",
    "encode_payload",
    "log_format",
    "parse_commit_log",
]
