import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
from database import commit_or_raise
from errors import NotFound

logger = logging.getLogger(__name__)


def emit(db: Session, user_id: str, message: str) -> Optional[models.NotificationModel]:
    """Best-effort notification insert, committed on its own.

    A failure is logged and rolled back; it never propagates to the task
    mutation that triggered it.
    """
    try:
        notification = models.NotificationModel(user_id=user_id, message=message, read=False)
        db.add(notification)
        db.commit()
        db.refresh(notification)
        # Detached with its state loaded, so later commits do not expire it
        db.expunge(notification)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Error creating notification for user %s: %s", user_id, exc)
        return None
    logger.debug("Notification %s sent to user %s", notification.id, user_id)
    return notification


def list_notifications(db: Session, user_id: str):
    return (
        db.query(models.NotificationModel)
        .filter(models.NotificationModel.user_id == user_id)
        .order_by(models.NotificationModel.created_at.desc())
        .all()
    )


def mark_read(db: Session, user_id: str, notification_id: str) -> None:
    # Ownership is part of the lookup, so someone else's id is simply "not found"
    notification = (
        db.query(models.NotificationModel)
        .filter(
            models.NotificationModel.id == notification_id,
            models.NotificationModel.user_id == user_id,
        )
        .first()
    )
    if notification is None:
        raise NotFound("Notification not found or not owned by user")
    notification.read = True
    commit_or_raise(db, "updating notification")
