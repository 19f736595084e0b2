from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Protocol

RestoreStatus = Literal["ok", "conflict", "not_found"]


@dataclass
class RestoreOutcome:
    status: RestoreStatus
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class EntityRestorer(Protocol):
    """Reapplies a recorded snapshot to one live entity of a single entity type."""

    entity_type: str

    def snapshot(self, entity_id: str) -> dict[str, Any] | None: ...

    def check(
        self, current: dict[str, Any] | None, expected_state: dict[str, Any] | None
    ) -> RestoreOutcome: ...

    def project(
        self, current: dict[str, Any] | None, before_state: dict[str, Any] | None
    ) -> dict[str, Any] | None: ...

    def restore(
        self,
        entity_id: str,
        before_state: dict[str, Any] | None,
        *,
        expected_state: dict[str, Any] | None,
    ) -> RestoreOutcome: ...


@dataclass
class RestorerPlugin:
    """Single-file restorer contract (export as RESTORER_PLUGIN)."""

    entity_type: str
    description: str
    factory: Callable[[Any], EntityRestorer]
    aliases: tuple[str, ...] = ()
