from __future__ import annotations

import logging

from app.capabilities.restorers.interfaces import EntityRestorer, RestorerPlugin
from app.capabilities.restorers.loader import load_builtin_restorer_plugins
from app.core.container import get_container

logger = logging.getLogger(__name__)


class RestorerRegistry:
    """Entity-type keyed restorers. New entity types register without touching the engine."""

    def __init__(self):
        self._plugins: dict[str, RestorerPlugin] = {}

    def register(self, plugin: RestorerPlugin) -> None:
        for key in (plugin.entity_type, *plugin.aliases):
            if key in self._plugins and self._plugins[key] is not plugin:
                logger.info("Replacing restorer for entity type %s", key)
            self._plugins[key] = plugin

    def register_builtin_plugins(self) -> None:
        for plugin in load_builtin_restorer_plugins():
            self.register(plugin)

    def has(self, entity_type: str) -> bool:
        return entity_type in self._plugins

    def create(self, entity_type: str, repo) -> EntityRestorer | None:
        plugin = self._plugins.get(entity_type)
        if plugin is None:
            return None
        return plugin.factory(repo)

    def list_entity_types(self) -> list[str]:
        return sorted({p.entity_type for p in self._plugins.values()})


_restorer_registry: RestorerRegistry | None = None


def get_restorer_registry() -> RestorerRegistry:
    container = get_container()
    if container is not None and container.restorer_registry is not None:
        return container.restorer_registry
    global _restorer_registry
    if _restorer_registry is None:
        _restorer_registry = RestorerRegistry()
        _restorer_registry.register_builtin_plugins()
    return _restorer_registry


def reset_restorer_registry() -> None:
    global _restorer_registry
    _restorer_registry = None
    container = get_container()
    if container is None:
        return
    container.restorer_registry = RestorerRegistry()
    container.restorer_registry.register_builtin_plugins()
