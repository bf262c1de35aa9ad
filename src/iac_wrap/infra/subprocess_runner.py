"""``subprocess`` backed implementation of :class:`~iac_wrap.core.protocols.ProcessRunner`.

This module is the **only** place in the codebase that spawns child
processes.  A missing executable is re-raised as
:class:`~iac_wrap.exceptions.ToolNotFoundError`; a non-zero exit status
is returned to the caller, which decides whether it is fatal.
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from iac_wrap.core.models import CommandResult
from iac_wrap.exceptions import IacWrapError
from iac_wrap.infra.tool_detector import missing_tool_error


class SubprocessRunner:
    """Concrete :class:`ProcessRunner` backed by :func:`subprocess.run`.

    Parameters
    ----------
    trace:
        Optional callable invoked with the command and working directory
        before every run.  Used for ``DEBUG`` tracing by the CLI layer.

    This class satisfies the :class:`~iac_wrap.core.protocols.ProcessRunner`
    protocol structurally; no explicit inheritance required.
    """

    def __init__(
        self,
        trace: Callable[[Sequence[str], Path | None], None] | None = None,
    ) -> None:
        self._trace = trace

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        """Run *command* to completion.

        Raises
        ------
        ToolNotFoundError
            When the executable does not exist.
        IacWrapError
            When the process cannot be started for another OS reason.
        """
        argv = tuple(command)
        if self._trace is not None:
            self._trace(argv, cwd)

        try:
            completed = subprocess.run(
                argv,
                cwd=cwd,
                check=False,
                text=True,
                stdout=subprocess.PIPE if capture else None,
                stderr=subprocess.PIPE if capture else None,
            )
        except FileNotFoundError as exc:
            if cwd is not None and not Path(cwd).is_dir():
                raise IacWrapError(f"Directory {cwd} does not exist.") from exc
            raise missing_tool_error(argv[0]) from exc
        except OSError as exc:
            raise IacWrapError(f"Could not run '{argv[0]}': {exc}") from exc

        return CommandResult(
            command=argv,
            returncode=completed.returncode,
            output=completed.stdout or "",
        )
