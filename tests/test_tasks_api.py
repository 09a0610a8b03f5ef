"""Task endpoints end to end, through the bearer guard."""
from datetime import datetime

import realtime


def _create(client, admin, headers_for, **fields):
    body = {"title": "Fix login", "description": "", "state": "backlog", "priority": 2}
    body.update(fields)
    response = client.post("/api/tasks", json=body, headers=headers_for(admin))
    assert response.status_code == 201, response.text
    return response.json()


def test_create_then_fetch_shows_assignee_username(client, admin, member, headers_for):
    created = _create(client, admin, headers_for, assignee=member.id)
    assert created["assignee"] == "bob"

    response = client.get(f"/api/tasks/{created['id']}", headers=headers_for(member))

    assert response.status_code == 200
    fetched = response.json()
    assert fetched["id"] == created["id"]
    assert fetched["title"] == "Fix login"
    assert fetched["assignee"] == "bob"
    assert fetched["comments"] == []


def test_user_can_move_a_task(client, admin, member, headers_for):
    task = _create(client, admin, headers_for)

    response = client.patch(f"/api/tasks/{task['id']}", json={"state": "done"}, headers=headers_for(member))

    assert response.status_code == 200
    assert response.json()["state"] == "done"


def test_user_cannot_move_and_rename(client, admin, member, headers_for):
    task = _create(client, admin, headers_for)

    response = client.patch(
        f"/api/tasks/{task['id']}",
        json={"state": "done", "title": "Renamed"},
        headers=headers_for(member),
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Regular users can only update task state"


def test_patch_with_wrong_type_is_bad_request(client, admin, headers_for):
    task = _create(client, admin, headers_for)
    response = client.patch(f"/api/tasks/{task['id']}", json={"priority": "high"}, headers=headers_for(admin))
    assert response.status_code == 400


def test_patch_missing_task_is_404(client, admin, headers_for):
    response = client.patch("/api/tasks/missing", json={"title": "x"}, headers=headers_for(admin))
    assert response.status_code == 404


def test_state_change_lands_in_assignee_inbox(client, admin, member, headers_for):
    task = _create(client, admin, headers_for, assignee=member.id)
    client.patch(f"/api/tasks/{task['id']}", json={"state": "review"}, headers=headers_for(member))

    inbox = client.get("/api/notifications", headers=headers_for(member)).json()

    assert len(inbox) == 2
    assert all(n["userId"] == member.id for n in inbox)
    assert any("review" in n["message"] for n in inbox)


def test_delete_is_admin_only_and_idempotent(client, admin, member, headers_for):
    task = _create(client, admin, headers_for)

    assert client.delete(f"/api/tasks/{task['id']}", headers=headers_for(member)).status_code == 403

    response = client.delete(f"/api/tasks/{task['id']}", headers=headers_for(admin))
    assert response.status_code == 200
    assert response.json() == {"message": f"Task {task['id']} deleted successfully"}

    assert client.get(f"/api/tasks/{task['id']}", headers=headers_for(admin)).status_code == 404
    assert client.delete(f"/api/tasks/{task['id']}", headers=headers_for(admin)).status_code == 200


def test_comments_show_up_on_the_task(client, admin, member, headers_for):
    task = _create(client, admin, headers_for)

    response = client.post(
        f"/api/tasks/{task['id']}/comments", json={"content": "On it"}, headers=headers_for(member)
    )
    assert response.status_code == 201
    assert response.json()["author"] == "bob"

    fetched = client.get(f"/api/tasks/{task['id']}", headers=headers_for(admin)).json()
    assert [c["content"] for c in fetched["comments"]] == ["On it"]


def test_blank_comment_is_rejected(client, admin, headers_for):
    task = _create(client, admin, headers_for)
    response = client.post(f"/api/tasks/{task['id']}/comments", json={"content": "  "}, headers=headers_for(admin))
    assert response.status_code == 400


def _has_offset(timestamp):
    return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).utcoffset() is not None


def test_timestamps_carry_a_utc_offset(client, admin, headers_for):
    created = _create(client, admin, headers_for)
    fetched = client.get(f"/api/tasks/{created['id']}", headers=headers_for(admin)).json()
    on_board = client.get("/api/board", headers=headers_for(admin)).json()["tasks"][created["id"]]

    for task in (created, fetched, on_board):
        assert _has_offset(task["createdAt"])
        assert _has_offset(task["updatedAt"])


def test_blank_title_patch_is_bad_request(client, admin, headers_for):
    task = _create(client, admin, headers_for)

    response = client.patch(f"/api/tasks/{task['id']}", json={"title": ""}, headers=headers_for(admin))

    assert response.status_code == 400
    fetched = client.get(f"/api/tasks/{task['id']}", headers=headers_for(admin)).json()
    assert fetched["title"] == "Fix login"


def test_assignment_is_pushed_to_the_assignee(client, admin, member, headers_for, monkeypatch):
    sent = []

    async def fake_emit(event, data=None, room=None, **kwargs):
        sent.append((event, data, room))

    monkeypatch.setattr(realtime.sio, "emit", fake_emit)

    _create(client, admin, headers_for, assignee=member.id)

    pushed = [(data, room) for event, data, room in sent if event == "notification"]
    assert len(pushed) == 1
    payload, room = pushed[0]
    assert room == member.id
    assert payload["userId"] == member.id
    assert "Fix login" in payload["message"]
    assert _has_offset(payload["createdAt"])
    assert any(event == "board_updated" for event, _, _ in sent)
