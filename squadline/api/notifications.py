"""Endpoints for the caller's in-app notifications."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from squadline.api.deps import get_current_principal, refresh_session
from squadline.core.database import get_db
from squadline.core.errors import not_found
from squadline.core.serialization import SafeRoute
from squadline.models import Notification
from squadline.schemas.auth import Principal
from squadline.schemas.notification import (
    MarkAllReadResponse,
    NotificationFilter,
    NotificationList,
    NotificationOut,
    UnreadCount,
)
from squadline.services import notifications

router = APIRouter(route_class=SafeRoute)


@router.get("", response_model=NotificationList)
def list_notifications(
    db: Annotated[Session, Depends(get_db)],
    principal: Annotated[Principal, Depends(refresh_session)],
    status: NotificationFilter = "all",
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> NotificationList:
    """Newest first. Legacy-origin accounts have no notifications."""
    items: list[Notification] = []
    if principal.origin == "user":
        items = notifications.list_for_user(db, principal.id, status, limit, offset)
    return NotificationList(
        notifications=[NotificationOut.model_validate(n) for n in items],
        count=len(items),
        limit=limit,
        offset=offset,
    )


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(
    db: Annotated[Session, Depends(get_db)],
    principal: Annotated[Principal, Depends(refresh_session)],
) -> UnreadCount:
    if principal.origin != "user":
        return UnreadCount(count=0)
    return UnreadCount(count=notifications.unread_count(db, principal.id))


@router.put("/read-all", response_model=MarkAllReadResponse)
def mark_all_read(
    db: Annotated[Session, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> MarkAllReadResponse:
    if principal.origin != "user":
        return MarkAllReadResponse(updated=0)
    return MarkAllReadResponse(updated=notifications.mark_all_read(db, principal.id))


@router.put("/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: int,
    db: Annotated[Session, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Notification:
    if principal.origin != "user":
        raise not_found("Notification")
    return notifications.mark_read(db, principal.id, notification_id)
