"""Create, list and mark in-app notifications."""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from squadline.core.errors import not_found
from squadline.models.notification import Notification

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    user_id: int,
    type_: str,
    message: str,
    *,
    team_id: int | None = None,
    sender_user_id: int | None = None,
    details: dict[str, Any] | None = None,
) -> Notification:
    """Queue a notification for user_id; the caller commits."""
    notification = Notification(
        user_id=user_id,
        type=type_,
        message=message,
        team_id=team_id,
        sender_user_id=sender_user_id,
        details=details,
        status="unread",
    )
    db.add(notification)
    logger.debug("Notification %s queued for user_id=%s", type_, user_id)
    return notification


def list_for_user(
    db: Session, user_id: int, status: str = "all", limit: int = 20, offset: int = 0
) -> list[Notification]:
    """Newest first; status "all" returns every notification."""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if status != "all":
        query = query.filter(Notification.status == status)
    return (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def unread_count(db: Session, user_id: int) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.status == "unread")
        .count()
    )


def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
    """Mark one of user_id's notifications read. Other users' notifications are reported as missing."""
    notification = db.get(Notification, notification_id)
    if notification is None or notification.user_id != user_id:
        raise not_found("Notification")
    if notification.status == "unread":
        notification.status = "read"
        notification.read_at = datetime.now(UTC)
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.status == "unread")
        .update({"status": "read", "read_at": datetime.now(UTC)}, synchronize_session=False)
    )
    db.commit()
    logger.info("Marked %s notifications read for user_id=%s", updated, user_id)
    return updated


def archive_matching(
    db: Session, user_ids: list[int], type_: str, team_id: int, sender_user_id: int
) -> int:
    """Archive open notifications of type_ about one sender and team, e.g. once a join request is answered."""
    if not user_ids:
        return 0
    return (
        db.query(Notification)
        .filter(
            Notification.user_id.in_(user_ids),
            Notification.type == type_,
            Notification.team_id == team_id,
            Notification.sender_user_id == sender_user_id,
            Notification.status != "archived",
        )
        .update({"status": "archived"}, synchronize_session=False)
    )
