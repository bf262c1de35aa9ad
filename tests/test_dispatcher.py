"""Tests for action dispatch (core/dispatcher.py).

Every action is run against :class:`FakeRunner` and a real
:class:`LocalWorkspace` on ``tmp_path``.

Coverage:
* Command sequence for every action.
* Pass-through options forwarded unaltered.
* ``apply`` planning first when no saved plan exists.
* Fail-fast propagation of delegated exit codes.
* ``show`` / ``destroy`` without re-preparing the workspace.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeRunner, make_params
from iac_wrap.core.dispatcher import ActionDispatcher, split_variable_options
from iac_wrap.core.models import Action
from iac_wrap.exceptions import CommandFailedError, WorkspaceError
from iac_wrap.infra.local_workspace import LocalWorkspace


def _dispatch(runner: FakeRunner, project_dir: Path, **overrides: object) -> None:
    params = make_params(project_dir, **overrides)
    ActionDispatcher(params, runner, LocalWorkspace()).dispatch()


def _terraform_calls(runner: FakeRunner) -> list[tuple[str, ...]]:
    return [argv for argv in runner.commands if argv[0] == "terraform"]


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

class TestInit:
    def test_prepares_then_runs_terraform_init(
        self, runner: FakeRunner, project_dir: Path,
    ) -> None:
        _dispatch(runner, project_dir, action=Action.INIT)

        assert runner.subcommands("git") == ["clone", "fetch", "reset", "clean"]
        argv, cwd = runner.find("terraform", "init")
        assert argv == ("terraform", "init")
        assert cwd == project_dir / ".tmp" / "configurations" / "network"

    def test_forwards_options_to_init(
        self, runner: FakeRunner, project_dir: Path,
    ) -> None:
        _dispatch(runner, project_dir, action=Action.INIT, options=("-upgrade",))
        assert runner.find("terraform", "init")[0] == ("terraform", "init", "-upgrade")

    def test_init_twice_does_not_reclone(
        self, runner: FakeRunner, project_dir: Path,
    ) -> None:
        _dispatch(runner, project_dir, action=Action.INIT)
        _dispatch(runner, project_dir, action=Action.INIT, revision="v3.0.0")

        assert runner.subcommands("git") == [
            "clone", "fetch", "reset", "clean", "fetch", "reset", "clean",
        ]
        assert runner.revision == "v3.0.0"

    def test_clean_then_init_reclones(
        self, runner: FakeRunner, project_dir: Path,
    ) -> None:
        _dispatch(runner, project_dir, action=Action.INIT)
        _dispatch(runner, project_dir, action=Action.CLEAN)
        assert not (project_dir / ".tmp").exists()

        _dispatch(runner, project_dir, action=Action.INIT, revision="v1.2.3")
        assert runner.subcommands("git").count("clone") == 2
        assert (project_dir / ".tmp" / "configurations" / "network").is_dir()
        assert runner.revision == "v1.2.3"


# ---------------------------------------------------------------------------
# plan
# ---------------------------------------------------------------------------

class TestPlan:
    def test_runs_init_then_plan(self, runner: FakeRunner, project_dir: Path) -> None:
        _dispatch(runner, project_dir, action=Action.PLAN)
        assert _terraform_calls(runner) == [
            ("terraform", "init"),
            ("terraform", "plan", "-out=plan.tfplan"),
        ]

    def test_forwards_passthrough_options_exactly(
        self, runner: FakeRunner, project_dir: Path,
    ) -> None:
        _dispatch(
            runner, project_dir, action=Action.PLAN, options=("-var", "foo=bar"),
        )
        argv, _ = runner.find("terraform", "plan")
        assert argv[2:] == ("-out=plan.tfplan", "-var", "foo=bar")
        # init does not receive plan options
        assert runner.find("terraform", "init")[0] == ("terraform", "init")

    def test_writes_plan_artifact(self, runner: FakeRunner, project_dir: Path) -> None:
        _dispatch(runner, project_dir, action=Action.PLAN)
        assert (project_dir / ".tmp" / "configurations" / "network" / "plan.tfplan").exists()

    def test_substitution_done_before_terraform(
        self, runner: FakeRunner, project_dir: Path,
    ) -> None:
        _dispatch(runner, project_dir, action=Action.PLAN, environment="dev.example.com")
        main_tf = project_dir / ".tmp" / "configurations" / "network" / "main.tf"
        assert "dev.example.com" in main_tf.read_text()

    def test_plan_failure_propagates(self, project_dir: Path) -> None:
        runner = FakeRunner(fail={("terraform", "plan"): 1})
        with pytest.raises(CommandFailedError) as exc_info:
            _dispatch(runner, project_dir, action=Action.PLAN)
        assert exc_info.value.returncode == 1

    def test_init_failure_stops_before_plan(self, project_dir: Path) -> None:
        runner = FakeRunner(fail={("terraform", "init"): 7})
        with pytest.raises(CommandFailedError) as exc_info:
            _dispatch(runner, project_dir, action=Action.PLAN)
        assert exc_info.value.returncode == 7
        assert runner.subcommands("terraform") == ["init"]

    def test_git_failure_stops_before_terraform(self, project_dir: Path) -> None:
        runner = FakeRunner(fail={("git", "fetch"): 128})
        with pytest.raises(CommandFailedError) as exc_info:
            _dispatch(runner, project_dir, action=Action.PLAN)
        assert exc_info.value.returncode == 128
        assert runner.subcommands("terraform") == []


# ---------------------------------------------------------------------------
# apply
# ---------------------------------------------------------------------------

class TestApply:
    def test_plans_first_when_no_saved_plan(
        self, runner: FakeRunner, project_dir: Path,
    ) -> None:
        _dispatch(runner, project_dir, action=Action.APPLY)

        assert runner.subcommands("terraform") == ["init", "plan", "apply"]
        assert runner.plan_present_at_apply is True
        assert runner.find("terraform", "apply")[0] == (
            "terraform", "apply", "plan.tfplan",
        )

    def test_uses_existing_plan(self, runner: FakeRunner, project_dir: Path) -> None:
        _dispatch(runner, project_dir, action=Action.PLAN)
        _dispatch(runner, project_dir, action=Action.APPLY)

        assert runner.subcommands("terraform") == ["init", "plan", "init", "apply"]
        assert runner.plan_present_at_apply is True

    def test_plan_consumed_after_apply(
        self, runner: FakeRunner, project_dir: Path,
    ) -> None:
        _dispatch(runner, project_dir, action=Action.APPLY)
        assert not (project_dir / ".tmp" / "configurations" / "network" / "plan.tfplan").exists()

    def test_forwards_options(self, runner: FakeRunner, project_dir: Path) -> None:
        _dispatch(
            runner, project_dir, action=Action.APPLY, options=("-lock-timeout=60s",),
        )
        assert runner.find("terraform", "plan")[0] == (
            "terraform", "plan", "-out=plan.tfplan", "-lock-timeout=60s",
        )
        assert runner.find("terraform", "apply")[0] == (
            "terraform", "apply", "-lock-timeout=60s", "plan.tfplan",
        )

    def test_apply_failure_discards_plan(self, project_dir: Path) -> None:
        runner = FakeRunner(fail={("terraform", "apply"): 1})
        with pytest.raises(CommandFailedError):
            _dispatch(runner, project_dir, action=Action.APPLY)
        assert not (project_dir / ".tmp" / "configurations" / "network" / "plan.tfplan").exists()

    def test_retry_after_failed_apply_plans_again(self, project_dir: Path) -> None:
        with pytest.raises(CommandFailedError):
            _dispatch(
                FakeRunner(fail={("terraform", "apply"): 1}),
                project_dir,
                action=Action.APPLY,
            )

        retry = FakeRunner()
        _dispatch(retry, project_dir, action=Action.APPLY)
        assert retry.subcommands("terraform") == ["init", "plan", "apply"]

    @pytest.mark.parametrize(
        "options",
        [
            ("-var", "foo=bar"),
            ("-var=foo=bar",),
            ("-var-file", "prod.tfvars"),
            ("--var-file=prod.tfvars",),
        ],
    )
    def test_variables_only_reach_plan(
        self, runner: FakeRunner, project_dir: Path, options: tuple[str, ...],
    ) -> None:
        _dispatch(runner, project_dir, action=Action.APPLY, options=options)

        assert runner.find("terraform", "plan")[0][-len(options):] == options
        assert runner.find("terraform", "apply")[0] == (
            "terraform", "apply", "plan.tfplan",
        )

    def test_mixed_options_split(self, runner: FakeRunner, project_dir: Path) -> None:
        _dispatch(
            runner,
            project_dir,
            action=Action.APPLY,
            options=("-var", "a=1", "-parallelism=2", "-var-file=x.tfvars"),
        )
        assert runner.find("terraform", "apply")[0] == (
            "terraform", "apply", "-parallelism=2", "plan.tfplan",
        )


class TestSplitVariableOptions:
    def test_separates_flag_and_value(self) -> None:
        assert split_variable_options(["-var", "a=1", "-no-color"]) == (
            ("-var", "a=1"),
            ("-no-color",),
        )

    def test_trailing_flag_without_value(self) -> None:
        assert split_variable_options(["-lock=false", "-var"]) == (
            ("-var",),
            ("-lock=false",),
        )

    def test_values_are_not_mistaken_for_flags(self) -> None:
        assert split_variable_options(["var=1", "-variable"]) == (
            (),
            ("var=1", "-variable"),
        )


# ---------------------------------------------------------------------------
# show / destroy
# ---------------------------------------------------------------------------

class TestShowAndDestroy:
    @pytest.mark.parametrize("action", [Action.SHOW, Action.DESTROY])
    def test_runs_without_reprepare(
        self, runner: FakeRunner, project_dir: Path, action: Action,
    ) -> None:
        _dispatch(runner, project_dir, action=Action.INIT)
        runner.calls.clear()

        _dispatch(runner, project_dir, action=action, options=("-no-color",))

        assert runner.commands == [("terraform", action.value, "-no-color")]
        assert runner.calls[0][1] == project_dir / ".tmp" / "configurations" / "network"

    @pytest.mark.parametrize("action", [Action.SHOW, Action.DESTROY])
    def test_requires_prepared_workspace(
        self, runner: FakeRunner, project_dir: Path, action: Action,
    ) -> None:
        with pytest.raises(WorkspaceError, match="Run 'init' first|does not exist"):
            _dispatch(runner, project_dir, action=action)
        assert runner.commands == []

    def test_show_without_configuration(
        self, runner: FakeRunner, project_dir: Path,
    ) -> None:
        with pytest.raises(WorkspaceError, match="No configuration"):
            _dispatch(runner, project_dir, action=Action.SHOW, configuration=None)

    def test_destroy_failure_propagates(self, project_dir: Path) -> None:
        runner = FakeRunner(fail={("terraform", "destroy"): 5})
        _dispatch(runner, project_dir, action=Action.INIT)
        with pytest.raises(CommandFailedError) as exc_info:
            _dispatch(runner, project_dir, action=Action.DESTROY)
        assert exc_info.value.returncode == 5


# ---------------------------------------------------------------------------
# clean / bootstrap
# ---------------------------------------------------------------------------

class TestCleanAndBootstrap:
    def test_clean_without_workspace_succeeds(
        self, runner: FakeRunner, project_dir: Path,
    ) -> None:
        _dispatch(runner, project_dir, action=Action.CLEAN, configuration=None)
        assert runner.commands == []

    def test_bootstrap_sequence(self, runner: FakeRunner, project_dir: Path) -> None:
        _dispatch(runner, project_dir, action=Action.BOOTSTRAP)

        assert runner.subcommands("git") == ["clone", "fetch", "reset", "clean"]
        assert runner.subcommands("terraform") == ["init"]
        for name in (".gitignore", ".envrc", "settings.env", "terraform.tfvars"):
            assert (project_dir / name).exists(), name

    def test_bootstrap_copies_example_overrides_into_configuration(
        self, runner: FakeRunner, project_dir: Path,
    ) -> None:
        _dispatch(runner, project_dir, action=Action.BOOTSTRAP)
        config_dir = project_dir / ".tmp" / "configurations" / "network"
        assert (config_dir / "terraform.tfvars").read_text() == 'region = "eu-west-1"\n'
