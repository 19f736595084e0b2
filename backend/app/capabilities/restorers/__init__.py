from app.capabilities.restorers.interfaces import (
    EntityRestorer,
    RestoreOutcome,
    RestorerPlugin,
    RestoreStatus,
)
from app.capabilities.restorers.registry import (
    RestorerRegistry,
    get_restorer_registry,
    reset_restorer_registry,
)

__all__ = [
    "EntityRestorer",
    "RestoreOutcome",
    "RestorerPlugin",
    "RestoreStatus",
    "RestorerRegistry",
    "get_restorer_registry",
    "reset_restorer_registry",
]
