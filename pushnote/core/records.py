"""Split separator-framed ``git log`` output into commit records.

Commit messages may contain any character, so fields are framed by a long
boundary string instead of a single delimiter. A message that contains the
boundary verbatim will be mis-split; the boundary is chosen to make that
vanishingly unlikely, not impossible.
"""

from __future__ import annotations

from collections.abc import Iterator

from pushnote.models import CommitRecord

# Must not contain "%", which git's pretty-format language would interpret.
RECORD_SEPARATOR = "~-~8c7e1f3a0b9d4e62-pushnote-a5f0c2e9b7d31648~-~"

# author, full hash, abbreviated hash, message
COMMIT_FIELD_COUNT = 4


def log_format(full_body: bool = False, separator: str = RECORD_SEPARATOR) -> str:
    """Pretty format producing one framed record per commit."""
    message = "%s%n%n%b" if full_body else "%s"
    return separator.join(["%aN", "%H", "%h", message, ""])


def parse_next(stream: str, separator: str, field_count: int) -> tuple[list[str], str]:
    """Consume one record of *field_count* separator-terminated fields.

    Newlines following the record are dropped from the returned remainder.
    A record cut short by the end of the stream fills its missing fields
    with empty strings.
    """
    fields: list[str] = []
    remaining = stream
    for _ in range(field_count):
        head, found, remaining = remaining.partition(separator)
        fields.append(head)
        if not found:
            break
    fields.extend("" for _ in range(field_count - len(fields)))
    return fields, remaining.lstrip("\r\n")


def iter_records(stream: str, separator: str, field_count: int) -> Iterator[list[str]]:
    stream = stream.lstrip("\r\n")
    while stream:
        fields, stream = parse_next(stream, separator, field_count)
        yield fields


def parse_commit_log(stream: str, separator: str = RECORD_SEPARATOR) -> list[CommitRecord]:
    """Parse output of ``git log --format=<log_format()>``, keeping log order."""
    return [
        CommitRecord(author=author, body=body, rev=rev, short_rev=short_rev)
        for author, rev, short_rev, body in iter_records(stream, separator, COMMIT_FIELD_COUNT)
    ]
