import logging

from sqlalchemy.orm import Session, joinedload, selectinload

import models
import schemas
from errors import NotFound

logger = logging.getLogger(__name__)


def comment_to_schema(comment: models.CommentModel) -> schemas.CommentSchema:
    return schemas.CommentSchema(
        id=comment.id,
        content=comment.content,
        author=comment.author.username,
        created_at=comment.created_at,
    )


def task_to_schema(task: models.TaskModel, with_comments=True) -> schemas.TaskSchema:
    """Serialize a task with its assignee shown by username."""
    return schemas.TaskSchema(
        id=task.id,
        title=task.title,
        description=task.description or "",
        state=task.state,
        priority=task.priority,
        assignee=task.assignee.username if task.assignee is not None else None,
        comments=[comment_to_schema(c) for c in task.comments] if with_comments else [],
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _task_query(db: Session):
    return db.query(models.TaskModel).options(
        joinedload(models.TaskModel.assignee),
        selectinload(models.TaskModel.comments).joinedload(models.CommentModel.author),
    )


def get_board(db: Session) -> schemas.BoardSchema:
    columns = {}
    column_order = []
    for column in db.query(models.ColumnModel).order_by(models.ColumnModel.position).all():
        columns[column.id] = schemas.ColumnSchema(id=column.id, title=column.title, task_ids=[])
        column_order.append(column.id)

    tasks = {}
    # Newest first; a column's task ids keep this overall order
    for task in _task_query(db).order_by(models.TaskModel.created_at.desc()).all():
        tasks[task.id] = task_to_schema(task)
        column = columns.get(task.state)
        if column is not None:
            column.task_ids.append(task.id)
        else:
            logger.debug("Task %s has unknown state %r, not placed in a column", task.id, task.state)

    return schemas.BoardSchema(tasks=tasks, columns=columns, column_order=column_order)


def get_task(db: Session, task_id: str) -> schemas.TaskSchema:
    task = _task_query(db).filter(models.TaskModel.id == task_id).first()
    if task is None:
        raise NotFound("Task not found")
    return task_to_schema(task)
