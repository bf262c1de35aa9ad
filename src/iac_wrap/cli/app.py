"""CLI application entry point and action routing for iac-wrap.

This module is the **sole error boundary** for the entire application.
It catches :class:`~iac_wrap.exceptions.IacWrapError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here: resolution and sequencing are
  delegated to the core layer, side effects to the infrastructure layer.
* Everything after the first ``--`` is forwarded to Terraform verbatim.
* This module is the only place that translates between the domain world
  and the OS process exit code.  A failing delegated command's exit code
  is passed through unchanged.
"""

from __future__ import annotations

import argparse
import os
import shlex
import sys
from collections.abc import Mapping, Sequence
from functools import partial
from pathlib import Path
from typing import NoReturn

from iac_wrap.cli import exit_codes
from iac_wrap.cli.console import (
    console,
    escape,
    print_command,
    print_error,
    print_parameters,
)
from iac_wrap.core.dispatcher import ActionDispatcher
from iac_wrap.core.models import Action, InvocationParameters
from iac_wrap.core.parameters import (
    DEBUG_KEY,
    is_truthy,
    lookup,
    parse_action,
    resolve_parameters,
    validate_parameters,
)
from iac_wrap.core.protocols import ProcessRunner, WorkspaceFiles
from iac_wrap.core.workspace_service import SETTINGS_FILE_NAME, origin_environment
from iac_wrap.exceptions import (
    CommandFailedError,
    IacWrapError,
    ToolNotFoundError,
    UsageError,
)
from iac_wrap.infra.local_workspace import LocalWorkspace
from iac_wrap.infra.settings_file import load_settings
from iac_wrap.infra.subprocess_runner import SubprocessRunner
from iac_wrap.version import __version__


PASSTHROUGH_SEPARATOR: str = "--"

_EPILOG = f"""\
actions:
  bootstrap   scaffold a new configuration directory and initialize it
  init        fetch the library at the revision and run 'terraform init'
  plan        init, then 'terraform plan' into a saved plan
  apply       init, plan if no saved plan exists, then 'terraform apply'
  show        run 'terraform show' in the prepared configuration
  destroy     run 'terraform destroy' in the prepared configuration
  clean       remove the working directory

environment variables:
  CONFIGURATION, GIT_REVISION, LIB_URL, ENVIRONMENT, DEBUG, TMP_DIR
  (also read from ./{SETTINGS_FILE_NAME}; flags take precedence)

Arguments after '--' are passed to terraform unchanged.
"""


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

class _ArgumentParser(argparse.ArgumentParser):
    """Parser that reports errors as :class:`UsageError` instead of exiting 2."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message[:1].upper() + message[1:] + ".")


def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser."""
    parser = _ArgumentParser(
        prog="iac-wrap",
        description=(
            "Fetch a shared Terraform configuration library at a pinned "
            "revision and run terraform against it."
        ),
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "action",
        nargs="?",
        default=None,
        metavar="ACTION",
        help=", ".join(a.value for a in Action),
    )
    parser.add_argument(
        "-c", "--configuration", metavar="NAME",
        help="configuration directory inside the library",
    )
    parser.add_argument(
        "-r", "--revision", metavar="REF",
        help="git revision to check out (default: origin/main)",
    )
    parser.add_argument(
        "-l", "--lib-url", metavar="URL",
        help="clone URL of the configuration library",
    )
    parser.add_argument(
        "-e", "--environment", metavar="NAME",
        help="value substituted for the environment placeholder",
    )
    return parser


def split_passthrough(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split *argv* at the first ``--`` into (wrapper args, forwarded args)."""
    tokens = list(argv)
    if PASSTHROUGH_SEPARATOR not in tokens:
        return tokens, []
    index = tokens.index(PASSTHROUGH_SEPARATOR)
    return tokens[:index], tokens[index + 1:]


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _print_parameters(params: InvocationParameters) -> None:
    rows = {
        "action": params.action.value,
        "configuration": params.configuration or "-",
        "revision": params.revision,
        "lib_url": params.lib_url,
        "environment": params.environment or "-",
        "tmp_dir": str(params.tmp_dir),
        "options": shlex.join(params.options) or "-",
    }
    print_parameters(rows)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(
    argv: Sequence[str] | None = None,
    *,
    runner: ProcessRunner | None = None,
    files: WorkspaceFiles | None = None,
    environ: Mapping[str, str] | None = None,
    project_dir: Path | None = None,
) -> int:
    """Run the iac-wrap CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.
    runner, files:
        Process runner and filesystem adapter.  Default to the real
        :class:`SubprocessRunner` and :class:`LocalWorkspace`; tests
        inject fakes.
    environ:
        Environment mapping used for resolution (default ``os.environ``).
    project_dir:
        Directory holding overrides and the settings file (default: the
        current working directory).

    Returns
    -------
    int
        OS process exit code.

    Raises
    ------
    IacWrapError
        Typed failures are left to the :func:`run` error boundary.
    """
    wrapper_args, options = split_passthrough(
        sys.argv[1:] if argv is None else argv
    )
    args = _build_parser().parse_args(wrapper_args)
    action = parse_action(args.action)

    if environ is None:
        environ = os.environ
    if project_dir is None:
        project_dir = Path.cwd()
    settings = load_settings(project_dir / SETTINGS_FILE_NAME)

    if runner is None:
        debug = is_truthy(lookup(DEBUG_KEY, None, environ, settings))
        runner = SubprocessRunner(trace=print_command if debug else None)
    if files is None:
        files = LocalWorkspace()

    params = resolve_parameters(
        action,
        flags={
            "configuration": args.configuration,
            "revision": args.revision,
            "lib_url": args.lib_url,
            "environment": args.environment,
        },
        environ=environ,
        settings=settings,
        options=options,
        project_dir=project_dir,
        default_environment=partial(origin_environment, runner, project_dir),
    )
    validate_parameters(params)

    if params.debug:
        _print_parameters(params)
    console.print(f"\n[bold]{action.value}[/bold]  {escape(_describe(params))}\n")

    ActionDispatcher(params, runner, files).dispatch()

    console.print(f"\n[bold green]{action.value.capitalize()} complete.[/bold green]")
    return exit_codes.SUCCESS


def _describe(params: InvocationParameters) -> str:
    if params.action is Action.CLEAN:
        return str(params.tmp_dir)
    parts = [
        f"configuration={params.configuration or '-'}",
        f"revision={params.revision}",
        f"environment={params.environment or '-'}",
    ]
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

def run(argv: Sequence[str] | None = None, **kwargs: object) -> int:
    """Call :func:`main` and translate every outcome into an exit code.

    Keyword arguments are forwarded to :func:`main`.
    """
    try:
        return main(argv, **kwargs)  # type: ignore[arg-type]
    except UsageError as exc:
        print_error(exc)
        _build_parser().print_help(sys.stderr)
        return exit_codes.GENERAL_ERROR
    except CommandFailedError as exc:
        print_error(exc)
        return exc.returncode
    except ToolNotFoundError as exc:
        print_error(exc)
        return exit_codes.COMMAND_NOT_FOUND
    except IacWrapError as exc:
        print_error(exc)
        return exit_codes.GENERAL_ERROR
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        return exit_codes.KEYBOARD_INTERRUPT
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape(str(exc))}"
        )
        return exit_codes.UNEXPECTED_ERROR


def cli() -> None:
    """Top-level entry point invoked by the console script.

    This function wraps :func:`run` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    sys.exit(run())
