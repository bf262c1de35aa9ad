"""Allow ``python -m iac_wrap`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m iac_wrap`` behaves identically to the ``iac-wrap``
console script.
"""

from __future__ import annotations

from iac_wrap.cli.app import cli

if __name__ == "__main__":
    cli()
