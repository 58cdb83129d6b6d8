"""Object lookups, log reads and config reads against the hook's repository."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path

from pushnote.utils.logging import get_logger

log = get_logger(__name__)


class GitCommandError(Exception):
    def __init__(self, args: list[str], returncode: int, stderr: str = "") -> None:
        self.command = args
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"git {' '.join(args)} exited with {returncode}{detail}")


class GitRepository:
    """Runs ``git`` inside one repository (the hook's working directory)."""

    def __init__(self, path: str | Path | None = None, git: str = "git") -> None:
        self.path = Path(path) if path is not None else None
        self._git = git

    def _run(self, *args: str) -> str:
        cmd = [self._git, *args]
        try:
            proc = subprocess.run(cmd, cwd=self.path, capture_output=True)
        except FileNotFoundError as e:
            raise GitCommandError(list(args), 127, str(e)) from e

        # Commit messages are not guaranteed to be UTF-8
        stdout = proc.stdout.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace")
            raise GitCommandError(list(args), proc.returncode, stderr)
        return stdout

    def resolve(self, rev: str) -> str:
        """Full object id for *rev*, or *rev* unchanged if git cannot resolve it."""
        try:
            return self._run("rev-parse", "--verify", "--quiet", rev).strip() or rev
        except GitCommandError:
            return rev

    def object_type(self, rev: str) -> str | None:
        try:
            return self._run("cat-file", "-t", rev).strip() or None
        except GitCommandError as e:
            log.debug("object_type_lookup_failed", rev=rev, error=str(e))
            return None

    def count_commits(self, old_rev: str, new_rev: str) -> int:
        out = self._run("rev-list", "--count", f"{old_rev}..{new_rev}")
        return int(out.strip() or 0)

    def read_log(self, rev_range: str, fmt: str, max_count: int | None = None) -> str:
        args = ["log", f"--pretty=format:{fmt}"]
        if max_count is not None:
            args.append(f"--max-count={max_count}")
        args.extend([rev_range, "--"])
        return self._run(*args)

    def config_section(self, section: str) -> dict[str, str]:
        """All ``<section>.*`` entries; the last value wins for multi-valued keys."""
        try:
            out = self._run("config", "-z", "--get-regexp", f"^{re.escape(section)}\\.")
        except GitCommandError as e:
            # Exit status 1 means no matching keys
            if e.returncode == 1:
                return {}
            raise
        values: dict[str, str] = {}
        for entry in out.split("\0"):
            if not entry:
                continue
            key, sep, value = entry.partition("\n")
            # A key written without "= value" in the config file is boolean true
            values[key] = value if sep else "true"
        return values
