from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.capabilities.restorers.registry import RestorerRegistry
    from app.services.event_bus import EventBus


@dataclass
class AppContainer:
    """Process-wide collaborators built once in the app lifespan."""

    event_bus: EventBus
    restorer_registry: RestorerRegistry


_container: AppContainer | None = None


def set_container(container: AppContainer | None) -> None:
    global _container
    _container = container


def get_container() -> AppContainer | None:
    return _container
