"""Core workspace service: materializes the working directory.

This service drives ``git`` through an injected
:class:`~iac_wrap.core.protocols.ProcessRunner` and touches the disk
only through an injected :class:`~iac_wrap.core.protocols.WorkspaceFiles`.
It is responsible for:

* Cloning the library when the requested configuration is missing.
* Fetching and hard-resetting to the pinned revision on every run.
* Discarding stale overrides, copying local override files and
  substituting the placeholder token.
* Writing the bootstrap scaffold.

Guarantees
----------
* Idempotent: repeated calls converge to the pinned revision.
* No retries: the first failing ``git`` command raises
  :class:`~iac_wrap.exceptions.CommandFailedError`.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from iac_wrap.core.models import CommandResult, InvocationParameters
from iac_wrap.core.parameters import (
    CONFIGURATION_KEY,
    ENVIRONMENT_KEY,
    LIB_URL_KEY,
    REVISION_KEY,
    environment_from_remote_url,
)
from iac_wrap.core.protocols import ProcessRunner, WorkspaceFiles
from iac_wrap.exceptions import CommandFailedError, ToolNotFoundError, WorkspaceError


GIT: str = "git"

PLACEHOLDER_TOKEN: str = "__ENVIRONMENT__"
OVERRIDE_SUFFIXES: tuple[str, ...] = (".tf", ".tfvars", ".tfvars.json")
EXAMPLE_SUFFIX: str = ".example"

SETTINGS_FILE_NAME: str = "settings.env"
CREDENTIALS_FILE_NAME: str = ".envrc"
IGNORE_FILE_NAME: str = ".gitignore"
IGNORE_ENTRIES: tuple[str, ...] = (".tmp/", CREDENTIALS_FILE_NAME, "*.tfplan")

CREDENTIALS_TEMPLATE: str = """\
# Credentials for the provisioning tool.  Fill in the values (or point
# them at your secrets store) and load with `direnv allow` or
# `source .envrc`.  This file is listed in .gitignore.
export AWS_ACCESS_KEY_ID=
export AWS_SECRET_ACCESS_KEY=
export AWS_SESSION_TOKEN=
export AWS_DEFAULT_REGION=
"""


def check(result: CommandResult) -> CommandResult:
    """Raise :class:`CommandFailedError` unless *result* succeeded."""
    if not result.ok:
        raise CommandFailedError(result.command, result.returncode)
    return result


def origin_environment(runner: ProcessRunner, cwd: Path) -> str | None:
    """Environment name derived from the caller's ``origin`` remote.

    Returns ``None`` when *cwd* is not a git checkout, has no ``origin``
    remote, or ``git`` is unavailable.
    """
    try:
        result = runner.run(
            [GIT, "config", "--get", "remote.origin.url"], cwd=cwd, capture=True,
        )
    except ToolNotFoundError:
        return None
    if not result.ok:
        return None
    return environment_from_remote_url(result.output)


class WorkspaceService:
    """Stateless service that prepares the working directory.

    Parameters
    ----------
    runner:
        Any object satisfying the :class:`ProcessRunner` protocol.
    files:
        Any object satisfying the :class:`WorkspaceFiles` protocol.
    """

    def __init__(self, runner: ProcessRunner, files: WorkspaceFiles) -> None:
        self._runner: ProcessRunner = runner
        self._files: WorkspaceFiles = files

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def prepare(self, params: InvocationParameters) -> Path:
        """Sync the library and apply local overrides.

        Returns the prepared configuration directory.
        """
        config_dir = self.sync(params)
        self.apply_overrides(params)
        return config_dir

    def sync(self, params: InvocationParameters) -> Path:
        """Clone if needed, then fetch and hard-reset to the revision.

        Raises
        ------
        CommandFailedError
            When any ``git`` command fails.
        WorkspaceError
            When the configuration does not exist at the revision.
        """
        config_dir = self._configuration_dir(params)

        if not self._files.is_dir(config_dir):
            self._files.remove_tree(params.tmp_dir)
            self._git("clone", params.lib_url, str(params.tmp_dir))

        self._git("fetch", "--tags", "--prune", "origin", cwd=params.tmp_dir)
        self._git("reset", "--hard", params.revision, cwd=params.tmp_dir)

        if not self._files.is_dir(config_dir):
            raise WorkspaceError(
                f"Configuration '{params.configuration}' does not exist in "
                f"{params.lib_url} at {params.revision}.",
                hint="Check -c/--configuration and -r/--revision.",
            )
        return config_dir

    def apply_overrides(self, params: InvocationParameters) -> list[Path]:
        """Copy local override files and substitute the placeholder.

        Overrides copied by an earlier run are discarded first, so a file
        deleted locally does not linger in the working directory.
        """
        config_dir = self._configuration_dir(params)
        self._discard_overrides(params.tmp_dir, config_dir)
        copied = self._files.copy_overrides(
            params.project_dir, config_dir, OVERRIDE_SUFFIXES,
        )
        if params.environment:
            self._files.substitute_placeholder(
                config_dir, PLACEHOLDER_TOKEN, params.environment,
            )
        return copied

    def scaffold(self, params: InvocationParameters) -> None:
        """Write the local files a new configuration directory needs."""
        project = params.project_dir
        self._files.ensure_lines(project / IGNORE_FILE_NAME, IGNORE_ENTRIES)
        self._files.write_if_absent(
            project / CREDENTIALS_FILE_NAME, CREDENTIALS_TEMPLATE,
        )
        self._files.write_settings(
            project / SETTINGS_FILE_NAME, settings_values(params),
        )

    def copy_examples(self, params: InvocationParameters) -> list[Path]:
        """Materialize the configuration's ``*.example`` files locally."""
        return self._files.copy_examples(
            self._configuration_dir(params), params.project_dir, EXAMPLE_SUFFIX,
        )

    def clean(self, params: InvocationParameters) -> None:
        """Remove the working directory; absence is not an error."""
        self._files.remove_tree(params.tmp_dir)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _configuration_dir(params: InvocationParameters) -> Path:
        config_dir = params.configuration_dir
        if config_dir is None:
            raise WorkspaceError("No configuration selected.")
        return config_dir

    def _discard_overrides(self, repo: Path, config_dir: Path) -> None:
        # Untracked top-level files only; library files, .terraform/ and
        # saved plans are left alone.
        relative = config_dir.relative_to(repo).as_posix()
        pathspecs = [f":(glob){relative}/*{suffix}" for suffix in OVERRIDE_SUFFIXES]
        self._git("clean", "-f", "-x", "-q", "--", *pathspecs, cwd=repo)

    def _git(self, *args: str, cwd: Path | None = None) -> CommandResult:
        command: Sequence[str] = (GIT, *args)
        return check(self._runner.run(command, cwd=cwd))


def settings_values(params: InvocationParameters) -> dict[str, str]:
    """The settings-file entries captured by ``bootstrap``."""
    values = {
        CONFIGURATION_KEY: params.configuration or "",
        REVISION_KEY: params.revision,
        LIB_URL_KEY: params.lib_url,
    }
    if params.environment:
        values[ENVIRONMENT_KEY] = params.environment
    return values
