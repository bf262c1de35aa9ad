"""Shared pytest fixtures and configuration for the iac-wrap test suite.

Guidelines
----------
* No network access and no real ``git`` / ``terraform`` in any test.
* Child processes are replaced by :class:`FakeRunner` at the
  :class:`~iac_wrap.core.protocols.ProcessRunner` boundary.
* Filesystem effects go to ``tmp_path`` only.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest

from iac_wrap.core.models import Action, CommandResult, InvocationParameters


LIBRARY_URL = "https://git.example.com/infra/library.git"

DEFAULT_LIBRARY: dict[str, dict[str, str]] = {
    "network": {
        "main.tf": 'resource "null_resource" "zone" {\n  name = "__ENVIRONMENT__"\n}\n',
        "variables.tf": 'variable "domain" {\n  default = "api.__ENVIRONMENT__"\n}\n',
        "terraform.tfvars.example": 'region = "eu-west-1"\n',
    },
    "storage": {
        "main.tf": "# storage for __ENVIRONMENT__\n",
    },
}


class FakeRunner:
    """In-memory :class:`ProcessRunner` that simulates git and terraform.

    * ``git clone`` writes the *library* tree into the destination.
    * ``git reset --hard REF`` records REF in :attr:`revision`.
    * ``git clean -- PATHSPEC...`` deletes matching files that are not
      part of the *library*.
    * ``terraform plan -out=FILE`` creates FILE in the working directory.
    * ``terraform apply`` records whether the saved plan existed.

    Exit codes can be forced per ``(tool, subcommand)`` through *fail*.
    """

    def __init__(
        self,
        library: Mapping[str, Mapping[str, str]] | None = None,
        *,
        remote_url: str | None = None,
        fail: Mapping[tuple[str, str], int] | None = None,
    ) -> None:
        self.library = DEFAULT_LIBRARY if library is None else library
        self.remote_url = remote_url
        self.fail = dict(fail or {})
        self.calls: list[tuple[tuple[str, ...], Path | None]] = []
        self.revision: str | None = None
        self.plan_present_at_apply: bool | None = None

    # -- ProcessRunner --------------------------------------------------

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        argv = tuple(command)
        self.calls.append((argv, cwd))

        key = (argv[0], argv[1]) if len(argv) > 1 else (argv[0], "")
        if key in self.fail:
            return CommandResult(command=argv, returncode=self.fail[key])

        handler = getattr(self, f"_{argv[0]}", None)
        if handler is None:
            return CommandResult(command=argv, returncode=0)
        return handler(argv, cwd)

    # -- simulations ----------------------------------------------------

    def _git(self, argv: tuple[str, ...], cwd: Path | None) -> CommandResult:
        sub = argv[1]
        if sub == "config":
            if self.remote_url is None:
                return CommandResult(command=argv, returncode=1)
            return CommandResult(
                command=argv, returncode=0, output=self.remote_url + "\n",
            )
        if sub == "clone":
            destination = Path(argv[3])
            (destination / ".git").mkdir(parents=True)
            for name, files in self.library.items():
                config_dir = destination / "configurations" / name
                config_dir.mkdir(parents=True)
                for filename, content in files.items():
                    (config_dir / filename).write_text(content, encoding="utf-8")
        elif sub == "reset":
            self.revision = argv[-1]
        elif sub == "clean" and cwd is not None:
            self._clean(cwd, argv[argv.index("--") + 1:])
        return CommandResult(command=argv, returncode=0)

    def _clean(self, repo: Path, pathspecs: Sequence[str]) -> None:
        for spec in pathspecs:
            for path in repo.glob(spec.removeprefix(":(glob)")):
                tracked = self.library.get(path.parent.name, {})
                if path.is_file() and path.name not in tracked:
                    path.unlink()

    def _terraform(self, argv: tuple[str, ...], cwd: Path | None) -> CommandResult:
        sub = argv[1]
        if sub == "plan" and cwd is not None:
            for token in argv:
                if token.startswith("-out="):
                    (cwd / token.removeprefix("-out=")).write_text("plan", encoding="utf-8")
        elif sub == "apply" and cwd is not None:
            self.plan_present_at_apply = (cwd / "plan.tfplan").exists()
        return CommandResult(command=argv, returncode=0)

    # -- assertions helpers ---------------------------------------------

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [argv for argv, _ in self.calls]

    def subcommands(self, tool: str) -> list[str]:
        return [argv[1] for argv in self.commands if argv[0] == tool and len(argv) > 1]

    def find(self, tool: str, sub: str) -> tuple[tuple[str, ...], Path | None]:
        for argv, cwd in self.calls:
            if argv[0] == tool and len(argv) > 1 and argv[1] == sub:
                return argv, cwd
        raise AssertionError(f"{tool} {sub} was not run; calls: {self.commands}")


@pytest.fixture()
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def project_dir(tmp_path: Path) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    return project


def make_params(project_dir: Path, **overrides: Any) -> InvocationParameters:
    """Factory with sensible defaults for concise tests."""
    defaults: dict[str, Any] = {
        "action": Action.INIT,
        "configuration": "network",
        "revision": "origin/main",
        "lib_url": LIBRARY_URL,
        "environment": "staging.example.com",
        "tmp_dir": project_dir / ".tmp",
        "project_dir": project_dir,
        "options": (),
        "debug": False,
    }
    defaults.update(overrides)
    return InvocationParameters(**defaults)
