"""Built-in workflow definitions.

`register_builtin_flows()` registers every flow with the PhaseRegistry
catalog. The registry calls it lazily on first lookup.
"""

from . import glocal, intake, localization

__all__ = ["register_builtin_flows"]


def register_builtin_flows() -> None:
    intake.register()
    localization.register()
    glocal.register()
