import asyncio
import uuid

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from coursehub.core.cache import get_cache
from coursehub.core.database import get_db, get_session_factory
from coursehub.main import create_app

from .conftest import FakeCache, make_token, seed_course


@pytest.fixture
def course_setup(sync_session_factory):
    async def seed():
        async with sync_session_factory() as session:
            return await seed_course(session, students=1)

    course, tutor, (student,) = asyncio.run(seed())
    return {"course": course, "tutor": tutor, "student": student}


@pytest.fixture
def client(sync_session_factory):
    app = create_app()
    cache = FakeCache()

    async def override_get_db():
        async with sync_session_factory() as session:
            yield session

    async def override_get_cache():
        return cache

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: sync_session_factory
    app.dependency_overrides[get_cache] = override_get_cache
    with TestClient(app) as test_client:
        yield test_client


def auth(user, role="student"):
    return {"Authorization": f"Bearer {make_token(user.id, role)}"}


def chat_url(course_id, suffix=""):
    return f"/api/chat/course/{course_id}{suffix}"


def test_chat_flow_over_http(client, course_setup):
    course, tutor, student = course_setup["course"], course_setup["tutor"], course_setup["student"]

    room = client.get(chat_url(course.id), headers=auth(tutor, "tutor"))
    assert room.status_code == 200
    body = room.json()
    assert body["course"] == str(course.id)
    assert {p["id"] for p in body["participants"]} == {str(tutor.id), str(student.id)}
    assert body["messages"] == []

    sent = client.post(chat_url(course.id, "/messages"), json={"content": "hello"}, headers=auth(student))
    assert sent.status_code == 200
    assert sent.json()["content"] == "hello"
    assert sent.json()["isRead"] is False

    unread = client.get(chat_url(course.id, "/messages/unread"), headers=auth(tutor, "tutor"))
    assert unread.json() == {"unreadCount": 1}
    own = client.get(chat_url(course.id, "/messages/unread"), headers=auth(student))
    assert own.json() == {"unreadCount": 0}

    marked = client.patch(chat_url(course.id, "/messages/read"), headers=auth(tutor, "tutor"))
    assert marked.status_code == 200
    assert marked.json()["markedCount"] == 1
    again = client.patch(chat_url(course.id, "/messages/read"), headers=auth(tutor, "tutor"))
    assert again.json()["markedCount"] == 0

    unread = client.get(chat_url(course.id, "/messages/unread"), headers=auth(tutor, "tutor"))
    assert unread.json() == {"unreadCount": 0}

    room = client.get(chat_url(course.id), headers=auth(student)).json()
    assert [m["content"] for m in room["messages"]] == ["hello"]
    assert room["messages"][0]["sender"]["firstName"] == "Student0"
    assert room["messages"][0]["isRead"] is True


def test_history_is_paginated_in_send_order(client, course_setup):
    course, tutor = course_setup["course"], course_setup["tutor"]
    client.get(chat_url(course.id), headers=auth(tutor, "tutor"))
    for i in range(4):
        client.post(chat_url(course.id, "/messages"), json={"content": f"m{i}"}, headers=auth(tutor, "tutor"))

    page = client.get(chat_url(course.id, "/messages"), params={"limit": 2, "offset": 1}, headers=auth(tutor, "tutor"))
    assert page.status_code == 200
    assert [m["content"] for m in page.json()["messages"]] == ["m1", "m2"]


def test_requests_without_token_are_unauthorized(client, course_setup):
    response = client.get(chat_url(course_setup["course"].id))
    assert response.status_code == 401
    assert response.json()["type"] == "Unauthorized"

    response = client.get(chat_url(course_setup["course"].id), headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid authentication token", "type": "Unauthorized"}


def test_outsiders_cannot_read_the_chat(client, course_setup):
    outsider = type("Outsider", (), {"id": uuid.uuid4()})()
    response = client.get(chat_url(course_setup["course"].id), headers=auth(outsider))
    assert response.status_code == 403
    assert response.json()["type"] == "Unauthorized"


def test_missing_course_is_not_found(client, course_setup):
    response = client.get(chat_url(uuid.uuid4()), headers=auth(course_setup["tutor"], "tutor"))
    assert response.status_code == 404
    assert response.json()["type"] == "NotFound"


def test_message_before_room_exists_is_not_found(client, course_setup):
    course, tutor = course_setup["course"], course_setup["tutor"]
    response = client.post(chat_url(course.id, "/messages"), json={"content": "early"}, headers=auth(tutor, "tutor"))
    assert response.status_code == 404
    assert response.json()["type"] == "NotFound"


@pytest.mark.parametrize("content", ["", "    "])
def test_blank_message_is_a_validation_error(client, course_setup, content):
    course, tutor = course_setup["course"], course_setup["tutor"]
    client.get(chat_url(course.id), headers=auth(tutor, "tutor"))

    response = client.post(chat_url(course.id, "/messages"), json={"content": content}, headers=auth(tutor, "tutor"))
    assert response.status_code == 422
    assert response.json()["type"] == "ValidationError"


def test_video_progress_endpoints(client, course_setup):
    course, student = course_setup["course"], course_setup["student"]
    url = f"/api/courses/{course.id}/videos/intro/progress"

    initial = client.get(url, headers=auth(student))
    assert initial.status_code == 200
    assert initial.json()["progress"] == 0
    assert initial.json()["completed"] is False

    updated = client.post(url, json={"progress": 95}, headers=auth(student))
    assert updated.status_code == 200
    assert updated.json()["courseId"] == str(course.id)
    assert updated.json()["videoId"] == "intro"
    assert updated.json()["completed"] is True

    invalid = client.post(url, json={"progress": 150}, headers=auth(student))
    assert invalid.status_code == 422
    assert invalid.json()["type"] == "ValidationError"


def test_websocket_rejects_bad_token(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws?token=garbage"):
            pass
    assert exc_info.value.code == 1008


def test_websocket_receives_new_messages_for_joined_course(client, course_setup):
    course, tutor, student = course_setup["course"], course_setup["tutor"], course_setup["student"]
    client.get(chat_url(course.id), headers=auth(tutor, "tutor"))

    with client.websocket_connect(f"/ws?token={make_token(tutor.id, 'tutor')}") as tutor_ws, \
            client.websocket_connect(f"/ws?token={make_token(student.id)}") as student_ws:
        for ws in (tutor_ws, student_ws):
            assert ws.receive_json()["type"] == "connected"
            ws.send_json({"type": "joinCourse", "data": str(course.id)})
            assert ws.receive_json() == {"type": "joinedCourse", "data": {"courseId": str(course.id)}}

        assert client.get("/health/realtime").json()["connections"] == 2

        client.post(chat_url(course.id, "/messages"), json={"content": "lecture at 5"}, headers=auth(student))

        for ws in (tutor_ws, student_ws):
            frame = ws.receive_json()
            assert frame["type"] == "newMessage"
            assert frame["data"]["content"] == "lecture at 5"
            assert frame["data"]["sender"]["id"] == str(student.id)

        student_ws.send_json({
            "type": "video:progress:update",
            "data": {"courseId": str(course.id), "videoId": "intro", "progress": 30, "completed": False},
        })
        relayed = tutor_ws.receive_json()
        assert relayed["type"] == "video:progress:update"
        assert relayed["data"]["userId"] == str(student.id)


def test_websocket_join_refused_for_outsider(client, course_setup):
    outsider_id = uuid.uuid4()
    with client.websocket_connect(f"/ws?token={make_token(outsider_id)}") as ws:
        ws.receive_json()
        ws.send_json({"type": "joinCourse", "data": str(course_setup["course"].id)})
        assert ws.receive_json() == {
            "type": "error",
            "data": {"kind": "Unauthorized", "message": "Not a participant of this course"},
        }

        ws.send_text("{not json")
        assert ws.receive_json()["data"]["kind"] == "ValidationError"


def test_health(client):
    assert client.get("/health/").json()["status"] == "healthy"
    assert client.get("/health/realtime").json() == {"status": "healthy", "rooms": 0, "connections": 0}
