"""Parameter resolution: turns flags and ambient settings into one value.

Every field is looked up in a fixed order:

1. explicit command-line flag,
2. environment variable,
3. the local settings file,
4. a built-in default.

Empty strings are treated as unset at every layer, mirroring the
``${VAR:-default}`` idiom of shell wrappers.  The environment default is
computed lazily because it requires a ``git`` lookup.

Guarantees
----------
* Pure: no I/O beyond the injected *default_environment* callable.
* Only :class:`~iac_wrap.exceptions.IacWrapError` subclasses escape.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from iac_wrap.core.models import Action, InvocationParameters
from iac_wrap.exceptions import MissingParameterError, UsageError


DEFAULT_REVISION: str = "origin/main"
DEFAULT_LIB_URL: str = "https://github.com/infrastructure/terraform-library.git"
DEFAULT_TMP_DIR: str = ".tmp"

# Environment variable / settings-file key for each resolvable field.
CONFIGURATION_KEY: str = "CONFIGURATION"
REVISION_KEY: str = "GIT_REVISION"
LIB_URL_KEY: str = "LIB_URL"
ENVIRONMENT_KEY: str = "ENVIRONMENT"
TMP_DIR_KEY: str = "TMP_DIR"
DEBUG_KEY: str = "DEBUG"

REQUIRES_CONFIGURATION: frozenset[Action] = frozenset(
    {Action.INIT, Action.PLAN, Action.APPLY, Action.DESTROY, Action.BOOTSTRAP}
)
REQUIRES_ENVIRONMENT: frozenset[Action] = frozenset(
    {Action.INIT, Action.PLAN, Action.APPLY, Action.BOOTSTRAP}
)

_FALSY: frozenset[str] = frozenset({"0", "false", "no", "off"})


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------

def parse_action(value: str | None) -> Action:
    """Return the :class:`Action` named by *value*.

    Raises
    ------
    UsageError
        When *value* is missing or not one of the supported actions.
    """
    if not value:
        raise UsageError("No action given.")
    try:
        return Action(value)
    except ValueError:
        choices = ", ".join(a.value for a in Action)
        raise UsageError(
            f"Unknown action '{value}'.",
            hint=f"Choose one of: {choices}.",
        ) from None


def is_truthy(value: str | None) -> bool:
    """Interpret a ``DEBUG``-style switch."""
    if value is None:
        return False
    normalized = value.strip().lower()
    return bool(normalized) and normalized not in _FALSY


def environment_from_remote_url(url: str | None) -> str | None:
    """Derive the environment name from a git remote URL.

    ``git@github.com:team/staging.example.com.git`` → ``staging.example.com``
    """
    if not url:
        return None
    trimmed = url.strip().rstrip("/")
    name = trimmed.rsplit("/", 1)[-1].rsplit(":", 1)[-1]
    name = name.removesuffix(".git")
    return name or None


def _first_set(*candidates: str | None) -> str | None:
    for candidate in candidates:
        if candidate:
            return candidate
    return None


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def lookup(
    key: str,
    flag: str | None,
    environ: Mapping[str, str],
    settings: Mapping[str, str | None],
) -> str | None:
    """Return the highest-precedence non-empty value for *key*."""
    return _first_set(flag, environ.get(key), settings.get(key))


def resolve_parameters(
    action: Action,
    *,
    flags: Mapping[str, str | None],
    environ: Mapping[str, str],
    settings: Mapping[str, str | None],
    options: Sequence[str],
    project_dir: Path,
    default_environment: Callable[[], str | None],
) -> InvocationParameters:
    """Build the :class:`InvocationParameters` for *action*.

    Parameters
    ----------
    flags:
        Values parsed from the command line, keyed by field name
        (``configuration``, ``revision``, ``lib_url``, ``environment``).
    environ:
        Process environment.
    settings:
        Values loaded from the local settings file (may be empty).
    options:
        Tokens following ``--``, forwarded unchanged.
    project_dir:
        Directory the wrapper runs in.
    default_environment:
        Called only when no layer provides an environment name.
    """
    configuration = lookup(
        CONFIGURATION_KEY, flags.get("configuration"), environ, settings,
    )
    revision = lookup(REVISION_KEY, flags.get("revision"), environ, settings)
    lib_url = lookup(LIB_URL_KEY, flags.get("lib_url"), environ, settings)
    environment = lookup(
        ENVIRONMENT_KEY, flags.get("environment"), environ, settings,
    )
    if environment is None:
        environment = default_environment()

    tmp_dir = Path(lookup(TMP_DIR_KEY, None, environ, settings) or DEFAULT_TMP_DIR)
    if not tmp_dir.is_absolute():
        tmp_dir = project_dir / tmp_dir

    return InvocationParameters(
        action=action,
        configuration=configuration,
        revision=revision or DEFAULT_REVISION,
        lib_url=lib_url or DEFAULT_LIB_URL,
        environment=environment,
        tmp_dir=tmp_dir,
        project_dir=project_dir,
        options=tuple(options),
        debug=is_truthy(lookup(DEBUG_KEY, None, environ, settings)),
    )


def validate_parameters(params: InvocationParameters) -> None:
    """Check the fields the selected action cannot run without.

    Raises
    ------
    MissingParameterError
        With a diagnostic naming the first missing field.
    """
    if params.action in REQUIRES_CONFIGURATION and not params.configuration:
        raise MissingParameterError(
            "Missing configuration name.",
            hint=f"Pass -c/--configuration or set {CONFIGURATION_KEY}.",
        )
    if params.action in REQUIRES_ENVIRONMENT and not params.environment:
        raise MissingParameterError(
            "Missing environment name.",
            hint=(
                f"Pass -e/--environment, set {ENVIRONMENT_KEY}, or run from "
                "a git checkout with an 'origin' remote."
            ),
        )
