"""Action dispatcher: sequences workspace preparation and Terraform calls.

Each action maps to one handler through an explicit table; chaining
between actions (``apply`` → ``plan`` → ``init``) is written out as
sequential calls.  Every delegated command is checked, so the first
failure aborts the action with the tool's own exit code.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from iac_wrap.core.models import PLAN_FILE_NAME, Action, CommandResult, InvocationParameters
from iac_wrap.core.protocols import ProcessRunner, WorkspaceFiles
from iac_wrap.core.workspace_service import WorkspaceService, check
from iac_wrap.exceptions import WorkspaceError


TERRAFORM: str = "terraform"

# Options that set input variables; not accepted together with a saved plan.
VARIABLE_FLAGS: frozenset[str] = frozenset({"var", "var-file"})


def split_variable_options(
    options: Sequence[str],
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Split *options* into (variable options, everything else).

    Both ``-var=a=b`` and ``-var a=b`` forms are recognised; the value
    token of the second form travels with its flag.
    """
    variables: list[str] = []
    rest: list[str] = []
    tokens = iter(options)
    for token in tokens:
        flag, has_value, _ = token.partition("=")
        if not flag.startswith("-") or flag.lstrip("-") not in VARIABLE_FLAGS:
            rest.append(token)
            continue
        variables.append(token)
        if not has_value:
            value = next(tokens, None)
            if value is not None:
                variables.append(value)
    return tuple(variables), tuple(rest)


class ActionDispatcher:
    """Run one :class:`Action` against a prepared working directory.

    Parameters
    ----------
    params:
        The resolved invocation parameters.
    runner:
        Any object satisfying the :class:`ProcessRunner` protocol.
    files:
        Any object satisfying the :class:`WorkspaceFiles` protocol.
    """

    def __init__(
        self,
        params: InvocationParameters,
        runner: ProcessRunner,
        files: WorkspaceFiles,
    ) -> None:
        self._params = params
        self._runner = runner
        self._files = files
        self._workspace = WorkspaceService(runner, files)
        self._handlers: dict[Action, Callable[[], None]] = {
            Action.CLEAN: self.clean,
            Action.BOOTSTRAP: self.bootstrap,
            Action.INIT: self.init,
            Action.PLAN: self.plan,
            Action.APPLY: self.apply,
            Action.SHOW: self.show,
            Action.DESTROY: self.destroy,
        }

    def dispatch(self) -> None:
        """Run the handler registered for ``params.action``."""
        self._handlers[self._params.action]()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def clean(self) -> None:
        self._workspace.clean(self._params)

    def bootstrap(self) -> None:
        """Scaffold a new local configuration directory and initialize it."""
        params = self._params
        self._workspace.scaffold(params)
        self._workspace.sync(params)
        self._workspace.copy_examples(params)
        self._workspace.apply_overrides(params)
        self._terraform("init")

    def init(self) -> None:
        self._workspace.prepare(self._params)
        self._terraform("init", *self._params.options)

    def plan(self) -> None:
        self._workspace.prepare(self._params)
        self._terraform("init")
        self._plan()

    def apply(self) -> None:
        """Prepare, plan when no saved plan exists, then apply the plan.

        The saved plan is removed whether or not the apply succeeds, so a
        failed apply is followed by a fresh plan on the next run.
        Variable options only reach the plan step; terraform refuses them
        alongside a saved plan.
        """
        config_dir = self._workspace.prepare(self._params)
        self._terraform("init")

        plan_file = config_dir / PLAN_FILE_NAME
        if not self._files.exists(plan_file):
            self._plan()

        _, apply_options = split_variable_options(self._params.options)
        try:
            self._terraform("apply", *apply_options, PLAN_FILE_NAME)
        finally:
            self._files.remove_file(plan_file)

    def show(self) -> None:
        self._terraform("show", *self._params.options, cwd=self._require_workspace())

    def destroy(self) -> None:
        self._terraform("destroy", *self._params.options, cwd=self._require_workspace())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _plan(self) -> None:
        self._terraform("plan", f"-out={PLAN_FILE_NAME}", *self._params.options)

    def _require_workspace(self) -> Path:
        config_dir = self._params.configuration_dir
        if config_dir is None:
            raise WorkspaceError(
                "No configuration selected.",
                hint="Pass -c/--configuration or set CONFIGURATION.",
            )
        if not self._files.is_dir(config_dir):
            raise WorkspaceError(
                f"Working directory {config_dir} does not exist.",
                hint="Run 'init' first.",
            )
        return config_dir

    def _terraform(self, *args: str, cwd: Path | None = None) -> CommandResult:
        if cwd is None:
            cwd = self._params.configuration_dir
        command: Sequence[str] = (TERRAFORM, *args)
        return check(self._runner.run(command, cwd=cwd))
