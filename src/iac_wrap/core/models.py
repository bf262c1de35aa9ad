"""Domain models for iac-wrap.

All models are **frozen** dataclasses: immutable value objects built
once per invocation.  They carry zero I/O and no dependencies on
external packages.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


PLAN_FILE_NAME: str = "plan.tfplan"
"""Name of the saved plan inside the configuration subtree."""


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class Action(str, Enum):
    """The closed set of actions understood by the wrapper."""

    BOOTSTRAP = "bootstrap"
    INIT = "init"
    PLAN = "plan"
    APPLY = "apply"
    SHOW = "show"
    DESTROY = "destroy"
    CLEAN = "clean"

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Invocation parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class InvocationParameters:
    """Fully resolved parameter set for one run of the wrapper."""

    action: Action
    """The action being dispatched."""

    configuration: str | None
    """Name of the configuration directory inside the library."""

    revision: str
    """Git reference the library is hard-reset to."""

    lib_url: str
    """Clone URL of the shared configuration library."""

    environment: str | None
    """Value substituted for the placeholder token."""

    tmp_dir: Path
    """Working directory holding the cloned library."""

    project_dir: Path
    """Directory holding local overrides and scaffold files."""

    options: tuple[str, ...] = ()
    """Tokens forwarded verbatim to the delegated tool."""

    debug: bool = False
    """Echo every external command before it runs."""

    @property
    def configuration_dir(self) -> Path | None:
        """``<tmp_dir>/configurations/<configuration>``, or ``None``."""
        if not self.configuration:
            return None
        return self.tmp_dir / "configurations" / self.configuration


# ---------------------------------------------------------------------------
# Subprocess result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a single external command."""

    command: tuple[str, ...]
    returncode: int
    output: str = ""
    """Captured stdout; empty when output was streamed to the terminal."""

    @property
    def ok(self) -> bool:
        return self.returncode == 0
