"""Local settings file I/O backed by python-dotenv.

The settings file holds ``KEY=value`` lines for the same keys as the
environment variables (``CONFIGURATION``, ``GIT_REVISION``, ``LIB_URL``,
``ENVIRONMENT``, ``DEBUG``, ``TMP_DIR``).  It is optional: a missing
file simply contributes nothing to parameter resolution.  Values are
read literally; ``${VAR}`` references are not expanded.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from dotenv import dotenv_values, set_key

from iac_wrap.exceptions import WorkspaceError


def load_settings(path: Path) -> dict[str, str | None]:
    """Return the key/value pairs in *path*, or ``{}`` when it is absent."""
    if not path.is_file():
        return {}
    try:
        return dict(dotenv_values(path, interpolate=False))
    except (OSError, UnicodeDecodeError) as exc:
        raise WorkspaceError(f"Could not read {path}: {exc}") from exc


def save_settings(path: Path, values: Mapping[str, str]) -> None:
    """Write *values* into *path*, keeping unrelated keys already there."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch(exist_ok=True)
        for key, value in values.items():
            set_key(path, key, value, quote_mode="auto")
    except OSError as exc:
        raise WorkspaceError(f"Could not write {path}: {exc}") from exc
