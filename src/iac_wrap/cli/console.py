"""CLI console helpers with optional Rich support.

Everything the wrapper says goes to stderr so the delegated tool owns
stdout.  Rich is imported lazily: ``--help``, ``--version`` and error
reporting keep working when it is not installed, falling back to plain
``print`` with the markup left in place.
"""

from __future__ import annotations

import shlex
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from iac_wrap.exceptions import IacWrapError


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``IacWrapError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise IacWrapError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console() -> Any:
	"""Create a Rich console bound to stderr, without auto-highlighting paths."""
	console_class = _load_rich_console_class()
	return console_class(stderr=True, highlight=False)


def escape(text: str) -> str:
	"""Escape Rich markup in *text*; identity when Rich is missing."""
	try:
		from rich.markup import escape as rich_escape
	except ModuleNotFoundError:
		return text
	return rich_escape(text)


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def print(self, *objects: object) -> None:
		try:
			rich_console = get_rich_console()
		except IacWrapError:
			print(*objects, file=sys.stderr)
			return
		rich_console.print(*objects)


console = _ConsoleProxy()


def print_error(exc: IacWrapError) -> None:
	"""Render *exc* and its hint, if any."""
	console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
	if exc.hint:
		console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")


def print_command(command: Sequence[str], cwd: Path | None) -> None:
	"""Echo a child-process command line, shell-quoted, before it runs."""
	line = f"+ {shlex.join(command)}"
	if cwd is not None:
		line += f"  (in {cwd})"
	console.print(f"[dim]{escape(line)}[/dim]")


def print_parameters(rows: Mapping[str, str]) -> None:
	console.print("[dim]Resolved parameters:[/dim]")
	for key, value in rows.items():
		console.print(f"[dim]  {key:<14} {escape(value)}[/dim]")
