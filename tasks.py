"""Task mutations and the notifications they trigger.

The requester's id and role are passed in explicitly by the HTTP layer.
Each mutation reads and writes the task in a single transaction; the
notifications it causes are committed afterwards, one at a time, so that a
failed notification never undoes the task change.
"""
import logging
from typing import List, NamedTuple

from sqlalchemy.orm import Session

import models
import notifications
import schemas
from board import comment_to_schema, task_to_schema
from database import commit_or_raise
from errors import Forbidden, NotFound
from users import ensure_user_exists

logger = logging.getLogger(__name__)

# Keys a regular user may send in a task update
USER_UPDATABLE = {"state"}


class TaskMutation(NamedTuple):
    task: schemas.TaskSchema
    notifications: List[models.NotificationModel]


def _notify(db, user_id, message, sent):
    notification = notifications.emit(db, user_id, message)
    if notification is not None:
        sent.append(notification)


def _assignee_id(value):
    # "" means nobody
    return value or None


def create_task(db: Session, requester_id: str, requester_role: str,
                data: schemas.TaskCreate) -> TaskMutation:
    if requester_role != models.ROLE_ADMIN:
        raise Forbidden("Only admins can create tasks")

    assignee_id = _assignee_id(data.assignee)
    if assignee_id is not None:
        ensure_user_exists(db, assignee_id)

    now = models.utcnow()
    task = models.TaskModel(
        title=data.title,
        description=data.description,
        state=data.state,
        priority=data.priority,
        assignee_id=assignee_id,
        created_by=requester_id,
        created_at=now,
        updated_at=now,
    )
    db.add(task)
    commit_or_raise(db, "creating task")
    db.refresh(task)
    logger.info("Task %s created by %s", task.id, requester_id)

    sent = []
    if assignee_id is not None:
        _notify(db, assignee_id, f"You have been assigned a new task: {task.title}", sent)
    return TaskMutation(task_to_schema(task), sent)


def update_task(db: Session, requester_id: str, requester_role: str, task_id: str,
                patch: schemas.TaskPatch) -> TaskMutation:
    if requester_role != models.ROLE_ADMIN and patch.provided_keys() != USER_UPDATABLE:
        # Exactly {state}; {state, title} is refused as a whole
        raise Forbidden("Regular users can only update task state")

    task = (
        db.query(models.TaskModel)
        .filter(models.TaskModel.id == task_id)
        .with_for_update()
        .first()
    )
    if task is None:
        raise NotFound("Task not found")

    old_state = task.state
    old_assignee_id = task.assignee_id
    old_title = task.title
    changes = patch.changes()
    changed_fields = sorted(changes)

    if "assignee" in changes:
        new_assignee_id = _assignee_id(changes.pop("assignee"))
        if new_assignee_id is not None:
            ensure_user_exists(db, new_assignee_id)
        task.assignee_id = new_assignee_id
    else:
        new_assignee_id = old_assignee_id

    for name, value in changes.items():
        setattr(task, name, value)
    task.updated_at = models.utcnow()

    commit_or_raise(db, "updating task")
    db.refresh(task)
    logger.info("Task %s updated by %s: %s", task.id, requester_id, changed_fields)

    sent = []
    new_state = task.state
    if "state" in changed_fields and new_state != old_state and old_assignee_id is not None:
        _notify(db, old_assignee_id, f"Your task status has been changed to: {new_state}", sent)
    if new_assignee_id is not None and new_assignee_id != old_assignee_id:
        _notify(db, new_assignee_id, f"You have been assigned to task: {old_title}", sent)

    return TaskMutation(task_to_schema(task), sent)


def delete_task(db: Session, requester_role: str, task_id: str) -> str:
    if requester_role != models.ROLE_ADMIN:
        raise Forbidden("Only admins can delete tasks")

    task = db.get(models.TaskModel, task_id)
    if task is not None:
        db.delete(task)
        commit_or_raise(db, "deleting task")
        logger.info("Task %s deleted", task_id)
    # Unknown ids are not an error
    return f"Task {task_id} deleted successfully"


def add_comment(db: Session, requester_id: str, task_id: str,
                data: schemas.CommentCreate) -> schemas.CommentSchema:
    task = db.get(models.TaskModel, task_id)
    if task is None:
        raise NotFound("Task not found")

    comment = models.CommentModel(task_id=task.id, author_id=requester_id, content=data.content)
    db.add(comment)
    commit_or_raise(db, "adding comment")
    db.refresh(comment)
    logger.info("Comment %s added to task %s by %s", comment.id, task_id, requester_id)
    return comment_to_schema(comment)
