"""Transport that prints payloads instead of sending them (``--dry-run``)."""

from __future__ import annotations

import sys
from typing import TextIO

from pushnote.transports.base import Transport


class StdoutTransport(Transport):
    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def name(self) -> str:
        return "stdout"

    def send(self, payload: str) -> bool:
        stream = self._stream or sys.stdout
        stream.write(payload + "\n")
        stream.flush()
        return True
