from app.services.undo.aggregator import aggregate, classify, summarize
from app.services.undo.checkpoint import CheckpointResolver
from app.services.undo.executor import RollbackExecutor
from app.services.undo.scope import UndoScopeCalculator
from app.services.undo.types import (
    MESSAGES_AND_CHANGES,
    MESSAGES_ONLY,
    UndoActivity,
    UndoCheckpoint,
    UndoError,
    UndoMode,
    UndoOutcome,
    UndoPreview,
    UndoResult,
)

__all__ = [
    "MESSAGES_AND_CHANGES",
    "MESSAGES_ONLY",
    "CheckpointResolver",
    "RollbackExecutor",
    "UndoActivity",
    "UndoCheckpoint",
    "UndoError",
    "UndoMode",
    "UndoOutcome",
    "UndoPreview",
    "UndoResult",
    "UndoScopeCalculator",
    "aggregate",
    "classify",
    "summarize",
]
