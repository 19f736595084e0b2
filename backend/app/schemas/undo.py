from typing import Literal

from pydantic import BaseModel, Field


class UndoActivityOut(BaseModel):
    id: str
    actionType: str
    entityType: str
    entityId: str
    description: str | None = None
    createdAt: str
    canUndo: bool = True
    reason: str | None = None


class UndoPreviewOut(BaseModel):
    messageId: str
    conversationId: str
    pageId: str | None = None
    driveId: str | None = None
    messagesAffected: int
    activitiesAffected: list[UndoActivityOut] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ExecuteUndoRequest(BaseModel):
    mode: Literal["messages_only", "messages_and_changes"]


class UndoErrorOut(BaseModel):
    entityId: str
    entityType: str
    reason: str
    activityId: str | None = None
    message: str | None = None


class UndoResultOut(BaseModel):
    success: bool
    outcome: Literal["success", "partial", "failure"]
    mode: Literal["messages_only", "messages_and_changes"]
    messagesDeleted: int
    activitiesRolledBack: int
    errors: list[UndoErrorOut] = Field(default_factory=list)
    undoEventIds: list[str] = Field(default_factory=list)
    rolledBackActivityIds: list[str] = Field(default_factory=list)
    message: str
