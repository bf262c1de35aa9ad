"""Infrastructure: install guidance for the delegated executables.

When ``git`` or ``terraform`` cannot be started, the subprocess adapter
raises the :class:`ToolNotFoundError` built here, carrying the install
commands for the current platform as its hint.

Rules
-----
* No automatic installation.
* No ``print()``: callers handle user-facing output.
"""

from __future__ import annotations

import platform

from iac_wrap.exceptions import ToolNotFoundError


def missing_tool_error(name: str) -> ToolNotFoundError:
    """Build the error raised when *name* is not installed."""
    commands = install_commands(name)
    hint_lines: list[str] = []
    if commands:
        hint_lines.append(f"Install {name} using one of:")
        hint_lines.extend(f"  {cmd}" for cmd in commands)
    return ToolNotFoundError(
        f"{name} is not installed or not on PATH.",
        hint="\n".join(hint_lines) if hint_lines else None,
    )


# ---------------------------------------------------------------------------
# Platform-specific install guidance
# ---------------------------------------------------------------------------

_DOWNLOAD_PAGES: dict[str, str] = {
    "git": "https://git-scm.com/downloads",
    "terraform": "https://developer.hashicorp.com/terraform/install",
}


def install_commands(name: str) -> tuple[str, ...]:
    """Return install commands for *name* appropriate for the current OS."""
    system = platform.system().lower()
    if name == "git":
        if system == "windows":
            return ("winget install Git.Git", "choco install git")
        if system == "linux":
            return (
                "sudo apt install git",
                "sudo dnf install git",
                "sudo pacman -S git",
            )
        if system == "darwin":
            return ("brew install git",)
    elif name == "terraform":
        if system == "windows":
            return ("winget install Hashicorp.Terraform", "choco install terraform")
        if system == "linux":
            return (
                "sudo apt install terraform  # after adding the HashiCorp apt repository",
                "sudo dnf install terraform  # after adding the HashiCorp dnf repository",
            )
        if system == "darwin":
            return ("brew install hashicorp/tap/terraform",)

    page = _DOWNLOAD_PAGES.get(name)
    if page is None:
        return ()
    return (f"Please install {name} from {page}",)
