from __future__ import annotations

import re
from typing import Any, ClassVar

from app.capabilities.restorers.interfaces import RestoreOutcome
from app.db.repositories.workspace_repo import WorkspaceRepository

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def normalize_state_keys(state: dict[str, Any] | None) -> dict[str, Any] | None:
    """Accept ``camelCase`` snapshots written by other producers of the ledger."""
    if state is None:
        return None
    return {_CAMEL_BOUNDARY.sub("_", key).lower(): value for key, value in state.items()}


def values_equal(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is b
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(values_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    return a == b


class SnapshotRestorer:
    """Shared drift detection and apply logic over a row-backed entity.

    Subclasses declare ``entity_type`` and ``fields`` and implement the row
    hooks. A ``None`` snapshot means "the entity does not exist".
    """

    entity_type: ClassVar[str] = ""
    fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, repo: WorkspaceRepository):
        self.repo = repo

    # Row hooks

    def _load(self, entity_id: str) -> Any | None:
        raise NotImplementedError

    def _create(self, entity_id: str, state: dict[str, Any]) -> None:
        raise NotImplementedError

    def _update(self, row: Any, state: dict[str, Any]) -> None:
        for key, value in state.items():
            setattr(row, key, value)
        self.repo.flush()

    def _remove(self, row: Any) -> None:
        self.repo.delete(row)

    def _removed_state(self, current: dict[str, Any]) -> dict[str, Any] | None:
        return None

    # Snapshot model

    def _filter(self, state: dict[str, Any] | None) -> dict[str, Any]:
        normalized = normalize_state_keys(state) or {}
        return {k: v for k, v in normalized.items() if k in self.fields}

    def snapshot(self, entity_id: str) -> dict[str, Any] | None:
        row = self._load(entity_id)
        if row is None:
            return None
        return {name: getattr(row, name) for name in self.fields}

    def check(
        self, current: dict[str, Any] | None, expected_state: dict[str, Any] | None
    ) -> RestoreOutcome:
        if expected_state is None:
            # The action removed the entity; something recreated it since.
            if current is not None:
                return RestoreOutcome("conflict", f"{self.entity_type} exists again after removal")
            return RestoreOutcome("ok")
        if current is None:
            return RestoreOutcome("not_found", f"{self.entity_type} no longer exists")
        drifted = [
            key
            for key, value in self._filter(expected_state).items()
            if not values_equal(current.get(key), value)
        ]
        if drifted:
            return RestoreOutcome(
                "conflict",
                f"{self.entity_type} changed since the action: {', '.join(sorted(drifted))}",
            )
        return RestoreOutcome("ok")

    def project(
        self, current: dict[str, Any] | None, before_state: dict[str, Any] | None
    ) -> dict[str, Any] | None:
        if before_state is None:
            return self._removed_state(current) if current is not None else None
        return {**(current or {}), **self._filter(before_state)}

    def restore(
        self,
        entity_id: str,
        before_state: dict[str, Any] | None,
        *,
        expected_state: dict[str, Any] | None,
    ) -> RestoreOutcome:
        current = self.snapshot(entity_id)
        outcome = self.check(current, expected_state)
        if not outcome.ok:
            return outcome

        row = self._load(entity_id)
        if before_state is None:
            if row is not None:
                self._remove(row)
            return outcome

        if row is None:
            # Creation may need identifying columns that drift checks ignore.
            self._create(entity_id, normalize_state_keys(before_state) or {})
        else:
            self._update(row, self._filter(before_state))
        return outcome
