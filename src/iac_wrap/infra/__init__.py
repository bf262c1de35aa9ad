"""Infrastructure layer: external system integration.

This layer wraps all interaction with the operating system: child
processes, the local filesystem and the settings file.  Every raw
``OSError`` that is not deliberately ignored must be re-raised as an
:class:`~iac_wrap.exceptions.IacWrapError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from iac_wrap.infra.local_workspace import LocalWorkspace
from iac_wrap.infra.settings_file import load_settings, save_settings
from iac_wrap.infra.subprocess_runner import SubprocessRunner
from iac_wrap.infra.tool_detector import install_commands, missing_tool_error

__all__: list[str] = [
    "LocalWorkspace",
    "SubprocessRunner",
    "install_commands",
    "load_settings",
    "missing_tool_error",
    "save_settings",
]
