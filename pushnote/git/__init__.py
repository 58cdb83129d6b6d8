"""Thin adapter over the ``git`` command line."""

from pushnote.git.repository import GitCommandError, GitRepository

__all__ = ["GitCommandError", "GitRepository"]
