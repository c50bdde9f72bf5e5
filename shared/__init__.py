"""Record relay shared utilities package."""

from shared.config import BaseServiceSettings
from shared.errors import add_error_handlers
from shared.lifecycle import LifecycleCoordinator, LifecycleState
from shared.logging import setup_logging

__all__ = [
    "BaseServiceSettings",
    "LifecycleCoordinator",
    "LifecycleState",
    "add_error_handlers",
    "setup_logging",
]
