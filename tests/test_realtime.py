import asyncio
from datetime import datetime

import pytest
from socketio import exceptions

import models
import realtime
from security import issue_token


@pytest.fixture
def rooms(monkeypatch):
    joined = []

    async def fake_enter_room(sid, room, namespace=None):
        joined.append((sid, room))

    monkeypatch.setattr(realtime.sio, "enter_room", fake_enter_room)
    return joined


@pytest.fixture
def emitted(monkeypatch):
    sent = []

    async def fake_emit(event, data=None, room=None, **kwargs):
        sent.append((event, data, room))

    monkeypatch.setattr(realtime.sio, "emit", fake_emit)
    return sent


def test_connection_joins_the_users_room(rooms):
    token, _ = issue_token("user-1", "user", "test-secret")
    asyncio.run(realtime.connect("sid-1", {}, {"token": token}))
    assert rooms == [("sid-1", "user-1")]


@pytest.mark.parametrize("auth", [None, {}, {"token": "garbage"}, "token"])
def test_connection_without_valid_token_is_refused(rooms, auth):
    with pytest.raises(exceptions.ConnectionRefusedError):
        asyncio.run(realtime.connect("sid-1", {}, auth))
    assert rooms == []


def test_board_update_is_broadcast(emitted):
    asyncio.run(realtime.publish_board_update("Task created: x"))
    assert emitted == [("board_updated", {"message": "Task created: x"}, None)]


def test_notifications_go_to_their_users_room(db, member, emitted):
    notification = models.NotificationModel(
        user_id=member.id, message="hi", created_at=datetime(2026, 1, 1)
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)

    asyncio.run(realtime.publish_notifications([notification]))

    assert len(emitted) == 1
    event, payload, room = emitted[0]
    assert event == "notification"
    assert room == member.id
    assert payload["userId"] == member.id
    assert payload["message"] == "hi"
    assert payload["read"] is False
