"""Public API for registration bot core startup."""

from packages.regbot_core.startup import CoreStartupResult, run_core_startup

__all__ = [
    "CoreStartupResult",
    "run_core_startup",
]
