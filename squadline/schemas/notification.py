"""Schemas for in-app notifications."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

NotificationFilter = Literal["all", "unread", "read", "archived"]


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    type: str
    message: str
    status: str
    team_id: int | None = None
    sender_user_id: int | None = None
    details: dict[str, Any] | None = Field(default=None, serialization_alias="metadata")
    read_at: datetime | None = None
    created_at: datetime | None = None


class NotificationList(BaseModel):
    notifications: list[NotificationOut]
    count: int
    limit: int
    offset: int


class UnreadCount(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    success: bool = True
    updated: int
