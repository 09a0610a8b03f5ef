import logging

import socketio
from socketio import exceptions

import config
import schemas
from errors import AuthError
from security import verify_token

logger = logging.getLogger(__name__)

# Socket.io server; every connected user sits in a room named after their id
sio = socketio.AsyncServer(async_mode='asgi', cors_allowed_origins="*")
sio_app = socketio.ASGIApp(sio)


@sio.event
async def connect(sid, environ, auth=None):
    token = auth.get("token") if isinstance(auth, dict) else None
    if not token:
        raise exceptions.ConnectionRefusedError("unauthorized")
    try:
        identity = verify_token(token, config.get_settings().jwt_secret)
    except AuthError as exc:
        logger.warning("Refused socket connection %s: %s", sid, exc.message)
        raise exceptions.ConnectionRefusedError("unauthorized") from exc
    await sio.enter_room(sid, identity.user_id)
    logger.debug("Socket %s joined room of user %s", sid, identity.user_id)


async def publish_board_update(message):
    await sio.emit("board_updated", {"message": message})


async def publish_notifications(notifications):
    for notification in notifications:
        payload = schemas.NotificationSchema.model_validate(notification).model_dump(
            by_alias=True, mode="json"
        )
        await sio.emit("notification", payload, room=notification.user_id)
