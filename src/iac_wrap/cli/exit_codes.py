"""Exit-code constants used by the CLI layer.

Centralised here so that every exit path uses a well-known, tested
value rather than magic integers scattered across the codebase.  A
failing ``git`` or ``terraform`` command does not use any of these:
its own exit status is passed through unchanged.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Clean exit: action completed without error."""

GENERAL_ERROR: int = 1
"""Usage error, missing parameter, or another known IacWrapError."""

UNEXPECTED_ERROR: int = 2
"""An unhandled exception escaped all known error boundaries."""

COMMAND_NOT_FOUND: int = 127
"""A delegated executable is not installed.  Same value as the shell uses."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""
