"""Local filesystem implementation of :class:`~iac_wrap.core.protocols.WorkspaceFiles`.

All disk side effects of workspace preparation live here: purging the
working directory, copying override and example files, placeholder
substitution, and writing scaffold files.

Best-effort operations (removing an absent path, copying an override
file that vanished or cannot be read) are silently skipped.  Every other
``OSError`` is re-raised as :class:`~iac_wrap.exceptions.WorkspaceError`
naming the path.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

from iac_wrap.exceptions import WorkspaceError
from iac_wrap.infra.settings_file import save_settings


# Directories never descended into during substitution.
_SKIP_DIRS: frozenset[str] = frozenset({".git", ".terraform"})


class LocalWorkspace:
    """Concrete :class:`WorkspaceFiles` backed by :mod:`pathlib` and :mod:`shutil`.

    This class satisfies the :class:`~iac_wrap.core.protocols.WorkspaceFiles`
    protocol structurally; no explicit inheritance required.
    """

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def exists(self, path: Path) -> bool:
        return path.exists()

    def remove_tree(self, path: Path) -> None:
        shutil.rmtree(path, ignore_errors=True)

    def remove_file(self, path: Path) -> None:
        path.unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Overrides and substitution
    # ------------------------------------------------------------------

    def copy_overrides(
        self,
        source: Path,
        target: Path,
        suffixes: Iterable[str],
    ) -> list[Path]:
        suffixes = tuple(suffixes)
        copied: list[Path] = []
        for candidate in sorted(source.iterdir()):
            if not candidate.is_file() or not candidate.name.endswith(suffixes):
                continue
            destination = target / candidate.name
            try:
                shutil.copyfile(candidate, destination)
            except OSError:
                continue
            copied.append(destination)
        return copied

    def substitute_placeholder(self, root: Path, token: str, value: str) -> int:
        rewritten = 0
        for path in _walk_files(root):
            try:
                raw = path.read_bytes()
            except OSError as exc:
                raise WorkspaceError(f"Could not read {path}: {exc}") from exc
            if b"\x00" in raw:
                continue
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError:
                continue
            if token not in text:
                continue
            try:
                path.write_text(text.replace(token, value), encoding="utf-8")
            except OSError as exc:
                raise WorkspaceError(f"Could not write {path}: {exc}") from exc
            rewritten += 1
        return rewritten

    # ------------------------------------------------------------------
    # Scaffold
    # ------------------------------------------------------------------

    def copy_examples(self, source: Path, target: Path, suffix: str) -> list[Path]:
        copied: list[Path] = []
        for example in sorted(source.glob(f"*{suffix}")):
            if not example.is_file():
                continue
            destination = target / example.name.removesuffix(suffix)
            if destination.exists():
                continue
            try:
                shutil.copyfile(example, destination)
            except OSError as exc:
                raise WorkspaceError(f"Could not write {destination}: {exc}") from exc
            copied.append(destination)
        return copied

    def ensure_lines(self, path: Path, lines: Iterable[str]) -> None:
        try:
            existing = path.read_text(encoding="utf-8") if path.exists() else ""
            present = set(existing.splitlines())
            missing = [line for line in lines if line not in present]
            if not missing:
                return
            with path.open("a", encoding="utf-8") as handle:
                if existing and not existing.endswith("\n"):
                    handle.write("\n")
                handle.write("".join(f"{line}\n" for line in missing))
        except (OSError, UnicodeDecodeError) as exc:
            raise WorkspaceError(f"Could not update {path}: {exc}") from exc

    def write_if_absent(self, path: Path, content: str) -> bool:
        if path.exists():
            return False
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise WorkspaceError(f"Could not write {path}: {exc}") from exc
        return True

    def write_settings(self, path: Path, values: Mapping[str, str]) -> None:
        save_settings(path, values)


def _walk_files(root: Path) -> Iterator[Path]:
    for entry in sorted(root.iterdir()):
        if entry.is_symlink():
            continue
        if entry.is_dir():
            if entry.name not in _SKIP_DIRS:
                yield from _walk_files(entry)
        elif entry.is_file():
            yield entry
