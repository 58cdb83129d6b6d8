"""Abstract transport base class."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Transport(ABC):
    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def send(self, payload: str) -> bool:
        """Deliver one encoded payload. Returns False on failure, never raises."""
        ...

    def close(self) -> None:
        pass

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
