"""Core / service layer: parameter resolution and action orchestration.

Rules
-----
* No ``print()`` calls.
* No direct subprocess or filesystem access; everything goes through
  the protocols in :mod:`iac_wrap.core.protocols`.
* No imports from ``cli`` or ``infra``.
"""

from iac_wrap.core.dispatcher import ActionDispatcher
from iac_wrap.core.models import Action, CommandResult, InvocationParameters
from iac_wrap.core.parameters import resolve_parameters, validate_parameters
from iac_wrap.core.protocols import ProcessRunner, WorkspaceFiles
from iac_wrap.core.workspace_service import WorkspaceService

__all__: list[str] = [
    "Action",
    "ActionDispatcher",
    "CommandResult",
    "InvocationParameters",
    "ProcessRunner",
    "WorkspaceFiles",
    "WorkspaceService",
    "resolve_parameters",
    "validate_parameters",
]
