"""iac-wrap: fetch, pin and run a shared Terraform configuration library.

Built as a thin layered wrapper around ``git`` and ``terraform``.
"""

from iac_wrap.version import __version__

__all__: list[str] = ["__version__"]
