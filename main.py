import logging
from typing import List

from fastapi import FastAPI, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import board
import config
import models
import notifications
import schemas
import tasks
import users
from auth import get_identity, require_admin
from database import SessionLocal, engine, get_db
from errors import TaskFlowError, StoreError
from realtime import publish_board_update, publish_notifications, sio_app
from security import Identity

# 1. Configuration (fails fast without JWT_SECRET)
settings = config.get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# 2. Database structure
models.Base.metadata.create_all(bind=engine)

# 3. FastAPI instance
app = FastAPI(title="TaskFlow API", version="1.0.0")

# 4. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

DEFAULT_COLUMNS = [
    ("backlog", "Backlog"),
    ("pending", "Pending"),
    ("inprogress", "In progress"),
    ("review", "Review"),
    ("approved", "Approved"),
    ("done", "Done"),
]


# 5. Seed the board columns once
def init_db():
    db = SessionLocal()
    try:
        if db.query(models.ColumnModel).count() == 0:
            db.add_all([
                models.ColumnModel(id=column_id, title=title, position=position)
                for position, (column_id, title) in enumerate(DEFAULT_COLUMNS, start=1)
            ])
            db.commit()
            logger.info("Created %d board columns", len(DEFAULT_COLUMNS))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database initialization failed: %s", e)
        raise
    finally:
        db.close()


init_db()


# 6. Error handlers
@app.exception_handler(TaskFlowError)
async def taskflow_error_handler(request: Request, exc: TaskFlowError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "Invalid request body", "errors": errors})


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
    error = StoreError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


# ---------------- routes ----------------

@app.get("/")
def read_root():
    return {"message": "TaskFlow API is running"}


# auth

@app.post("/api/auth/register", response_model=schemas.MessageResponse, status_code=201)
def register(data: schemas.RegisterRequest, db: Session = Depends(get_db)):
    users.register(db, data)
    return {"message": "User registered successfully"}


@app.post("/api/auth/login", response_model=schemas.AuthResponse)
def login(data: schemas.LoginRequest, db: Session = Depends(get_db)):
    token, expires_at, user = users.authenticate(db, data.email, data.password, settings.jwt_secret)
    return schemas.AuthResponse(
        token=token, expires_at=expires_at, user=schemas.UserSchema.model_validate(user)
    )


@app.get("/api/auth/me", response_model=schemas.UserSchema)
def read_me(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return users.get_user(db, identity.user_id)


@app.get("/api/users", response_model=List[schemas.UserSchema])
def list_users(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return users.list_users(db)


# board & tasks

@app.get("/api/board", response_model=schemas.BoardSchema)
def get_board(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return board.get_board(db)


@app.post("/api/tasks", response_model=schemas.TaskSchema, status_code=201)
async def create_task(
    data: schemas.TaskCreate,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = await run_in_threadpool(tasks.create_task, db, identity.user_id, identity.role, data)
    await publish_board_update(f"Task created: {result.task.title}")
    await publish_notifications(result.notifications)
    return result.task


@app.get("/api/tasks/{task_id}", response_model=schemas.TaskSchema)
def get_task(task_id: str, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return board.get_task(db, task_id)


@app.patch("/api/tasks/{task_id}", response_model=schemas.TaskSchema)
async def update_task(
    task_id: str,
    patch: schemas.TaskPatch,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    result = await run_in_threadpool(tasks.update_task, db, identity.user_id, identity.role, task_id, patch)
    await publish_board_update(f"Task {task_id} updated")
    await publish_notifications(result.notifications)
    return result.task


@app.delete("/api/tasks/{task_id}", response_model=schemas.MessageResponse)
async def delete_task(task_id: str, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    message = await run_in_threadpool(tasks.delete_task, db, identity.role, task_id)
    await publish_board_update(f"Task {task_id} deleted")
    return {"message": message}


@app.post("/api/tasks/{task_id}/comments", response_model=schemas.CommentSchema, status_code=201)
async def add_comment(
    task_id: str,
    data: schemas.CommentCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    comment = await run_in_threadpool(tasks.add_comment, db, identity.user_id, task_id, data)
    await publish_board_update(f"New comment on task {task_id}")
    return comment


# notifications

@app.get("/api/notifications", response_model=List[schemas.NotificationSchema])
def list_notifications(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return notifications.list_notifications(db, identity.user_id)


@app.patch("/api/notifications/{notification_id}/read", response_model=schemas.MessageResponse)
def mark_notification_read(
    notification_id: str,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    notifications.mark_read(db, identity.user_id, notification_id)
    return {"message": "Notification marked as read"}


# Socket.io is mounted last
app.mount("/socket.io", sio_app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
