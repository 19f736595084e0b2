from __future__ import annotations

import importlib
import pkgutil

from app.capabilities.restorers.interfaces import RestorerPlugin


def load_builtin_restorer_plugins() -> list[RestorerPlugin]:
    """Discover RESTORER_PLUGIN exports from app.capabilities.restorers.plugins."""
    import app.capabilities.restorers.plugins as plugins_pkg

    out: list[RestorerPlugin] = []
    for modinfo in pkgutil.iter_modules(plugins_pkg.__path__):
        if modinfo.name.startswith("_"):
            continue
        module = importlib.import_module(f"{plugins_pkg.__name__}.{modinfo.name}")
        plugin = getattr(module, "RESTORER_PLUGIN", None)
        if isinstance(plugin, RestorerPlugin):
            out.append(plugin)
    out.sort(key=lambda p: p.entity_type)
    return out
