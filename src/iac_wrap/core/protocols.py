"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols, never on concrete
implementations, so the dispatcher can be exercised with fakes and
without spawning ``git`` or ``terraform``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Protocol

from iac_wrap.core.models import CommandResult


class ProcessRunner(Protocol):
    """Contract for running an external command to completion."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        """Run *command* inside *cwd* and wait for it.

        When *capture* is false the child inherits the terminal and
        :attr:`CommandResult.output` is empty.  A non-zero exit status is
        reported through the result, not raised.

        Raises
        ------
        ToolNotFoundError
            When the executable cannot be found.
        """
        ...  # pragma: no cover


class WorkspaceFiles(Protocol):
    """Contract for the filesystem side effects of workspace preparation."""

    def is_dir(self, path: Path) -> bool:
        ...  # pragma: no cover

    def exists(self, path: Path) -> bool:
        ...  # pragma: no cover

    def remove_tree(self, path: Path) -> None:
        """Delete *path* recursively; an absent path is not an error."""
        ...  # pragma: no cover

    def remove_file(self, path: Path) -> None:
        """Delete a single file; an absent file is not an error."""
        ...  # pragma: no cover

    def copy_overrides(
        self,
        source: Path,
        target: Path,
        suffixes: Iterable[str],
    ) -> list[Path]:
        """Copy files of *source* ending in one of *suffixes* into *target*.

        Individual copy failures are ignored.  Returns the copied
        destinations.
        """
        ...  # pragma: no cover

    def substitute_placeholder(self, root: Path, token: str, value: str) -> int:
        """Replace *token* with *value* in every text file below *root*.

        Returns the number of files rewritten.
        """
        ...  # pragma: no cover

    def copy_examples(self, source: Path, target: Path, suffix: str) -> list[Path]:
        """Copy ``*<suffix>`` files into *target* with the suffix removed.

        Existing destination files are left untouched.
        """
        ...  # pragma: no cover

    def ensure_lines(self, path: Path, lines: Iterable[str]) -> None:
        """Append every missing line of *lines* to the text file *path*."""
        ...  # pragma: no cover

    def write_if_absent(self, path: Path, content: str) -> bool:
        ...  # pragma: no cover

    def write_settings(self, path: Path, values: Mapping[str, str]) -> None:
        """Persist *values* as ``KEY=value`` lines in the settings file."""
        ...  # pragma: no cover
