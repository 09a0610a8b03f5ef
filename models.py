import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from database import Base


def utcnow():
    return datetime.now(timezone.utc)


def new_id():
    return str(uuid.uuid4())


ROLE_ADMIN = "admin"
ROLE_USER = "user"


# 1. User
class UserModel(Base):
    __tablename__ = "users"
    __table_args__ = {'extend_existing': True}

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    # admin | user, fixed at registration
    role = Column(String, nullable=False, default=ROLE_USER)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


# 2. Board column (tasks are grouped into it by state, not by foreign key)
class ColumnModel(Base):
    __tablename__ = "columns"
    __table_args__ = {'extend_existing': True}

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)

    # "order" is a reserved word in SQL
    position = Column(Integer, default=0, nullable=False)


# 3. Task
class TaskModel(Base):
    __tablename__ = "tasks"
    __table_args__ = {'extend_existing': True}

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")

    # Column key; a state with no matching column leaves the task off the board
    state = Column(String, nullable=False, index=True)
    priority = Column(Integer, nullable=False, default=0)

    assignee_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    assignee = relationship("UserModel", foreign_keys=[assignee_id])

    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    comments = relationship(
        "CommentModel",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="desc(CommentModel.created_at)",
    )


# 4. Comment (owned by exactly one task)
class CommentModel(Base):
    __tablename__ = "comments"
    __table_args__ = {'extend_existing': True}

    id = Column(String(36), primary_key=True, default=new_id)
    content = Column(Text, nullable=False)

    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    task = relationship("TaskModel", back_populates="comments")

    author_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    author = relationship("UserModel")

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


# 5. Notification (created by task mutations, only ever marked read)
class NotificationModel(Base):
    __tablename__ = "notifications"
    __table_args__ = {'extend_existing': True}

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    message = Column(String, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
