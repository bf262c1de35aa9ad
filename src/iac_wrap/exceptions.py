"""Custom exception hierarchy for iac-wrap.

All exceptions that cross layer boundaries must inherit from
:class:`IacWrapError`.  Raw ``OSError`` / ``subprocess`` failures must
NEVER propagate beyond the infrastructure layer: they must be caught
and re-raised as a typed subclass defined here.

Hierarchy
---------
IacWrapError
├── UsageError
│   └── MissingParameterError
├── WorkspaceError
├── CommandFailedError
└── ToolNotFoundError
"""

from __future__ import annotations

from collections.abc import Sequence


class IacWrapError(Exception):
    """Base exception for all iac-wrap errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Command line ----------------------------------------------------------

class UsageError(IacWrapError):
    """Raised for an unknown action, an unknown flag or a malformed flag.

    The CLI boundary prints the usage text after the message and exits 1.
    """


class MissingParameterError(UsageError):
    """Raised when a parameter the selected action needs was not resolved."""


# --- Working directory -----------------------------------------------------

class WorkspaceError(IacWrapError):
    """Raised when the working directory is not in the state an action needs."""


# --- Delegated tools -------------------------------------------------------

class CommandFailedError(IacWrapError):
    """Raised when ``git`` or ``terraform`` exits with a non-zero status.

    The delegated exit code is kept so the CLI can exit with it unchanged.
    """

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        *,
        hint: str | None = None,
    ) -> None:
        self.command: tuple[str, ...] = tuple(command)
        self.returncode: int = returncode
        super().__init__(
            f"'{' '.join(self.command)}' exited with status {returncode}",
            hint=hint,
        )


class ToolNotFoundError(IacWrapError):
    """Raised when a delegated executable cannot be located on PATH."""
