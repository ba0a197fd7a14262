"""Tests for notifications and the live unread-count feed."""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Query
from starlette.websockets import WebSocketDisconnect

from recruitcrm.api.routes import notifications as notification_routes
from recruitcrm.core.session import IDLE_TIMEOUT, sessions


@pytest.fixture
def viewer_id(client, viewer_headers):
    return client.get("/api/auth/me", headers=viewer_headers).json()["id"]


def _notify(client, headers, user_id, title="New candidate", message="Ana Lopez was added"):
    response = client.post(
        "/api/notifications",
        json={"user_id": user_id, "title": title, "message": message},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestNotifications:
    def test_create_and_list(self, client, admin_headers, viewer_headers, viewer_id):
        _notify(client, admin_headers, viewer_id, title="First")
        _notify(client, admin_headers, viewer_id, title="Second")

        response = client.get("/api/notifications", headers=viewer_headers)

        titles = [n["title"] for n in response.json()["data"]]
        assert titles == ["Second", "First"]

        # Admin sees none of the viewer's notifications
        assert client.get("/api/notifications", headers=admin_headers).json()["data"] == []

    def test_viewer_cannot_create(self, client, viewer_headers, viewer_id):
        response = client.post(
            "/api/notifications",
            json={"user_id": viewer_id, "title": "Hi"},
            headers=viewer_headers,
        )
        assert response.status_code == 403

    def test_unknown_recipient(self, client, admin_headers):
        response = client.post(
            "/api/notifications",
            json={"user_id": 999, "title": "Hi"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_unread_count_and_read_state(self, client, admin_headers, viewer_headers, viewer_id):
        first = _notify(client, admin_headers, viewer_id)
        _notify(client, admin_headers, viewer_id)

        count = client.get("/api/notifications/unread-count", headers=viewer_headers).json()
        assert count == {"count": 2, "poll_interval": 30}

        read = client.post(f"/api/notifications/{first['id']}/read", headers=viewer_headers)
        assert read.json()["is_read"] is True
        assert client.get("/api/notifications/unread-count", headers=viewer_headers).json()["count"] == 1

        unread = client.post(f"/api/notifications/{first['id']}/unread", headers=viewer_headers)
        assert unread.json()["is_read"] is False

        all_read = client.post("/api/notifications/read-all", headers=viewer_headers)
        assert all_read.json() == {"updated": 2}
        assert client.get("/api/notifications/unread-count", headers=viewer_headers).json()["count"] == 0

        only_unread = client.get("/api/notifications", params={"unread_only": True}, headers=viewer_headers)
        assert only_unread.json()["data"] == []

    def test_cannot_touch_other_users_notifications(self, client, admin_headers, viewer_id):
        notification = _notify(client, admin_headers, viewer_id)

        response = client.post(f"/api/notifications/{notification['id']}/read", headers=admin_headers)

        assert response.status_code == 404

    def test_delete(self, client, admin_headers, viewer_headers, viewer_id):
        notification = _notify(client, admin_headers, viewer_id)

        response = client.delete(f"/api/notifications/{notification['id']}", headers=viewer_headers)

        assert response.status_code == 200
        assert client.get("/api/notifications", headers=viewer_headers).json()["data"] == []


class TestNotificationFeed:
    def _token(self, headers):
        return headers["Authorization"].split(" ", 1)[1]

    def test_feed_streams_changes(self, client, admin_headers, viewer_headers, viewer_id):
        _notify(client, admin_headers, viewer_id)

        with client.websocket_connect(f"/api/notifications/ws?token={self._token(viewer_headers)}") as ws:
            assert ws.receive_json() == {"event": "SNAPSHOT", "unread_count": 1}

            created = _notify(client, admin_headers, viewer_id, title="Live")
            message = ws.receive_json()
            assert message["event"] == "INSERT"
            assert message["unread_count"] == 2
            assert message["notification"]["id"] == created["id"]
            assert message["notification"]["title"] == "Live"

            client.post(f"/api/notifications/{created['id']}/read", headers=viewer_headers)
            assert ws.receive_json() == {"event": "UPDATE", "unread_count": 1}

            client.delete(f"/api/notifications/{created['id']}", headers=viewer_headers)
            assert ws.receive_json() == {"event": "DELETE", "unread_count": 1}

    def test_feed_rejects_bad_token(self, client):
        with pytest.raises(WebSocketDisconnect) as excinfo:
            with client.websocket_connect("/api/notifications/ws?token=garbage") as ws:
                ws.receive_json()
        assert excinfo.value.code == 1008

    def test_feed_rejects_signed_out_session(self, client, viewer_headers):
        client.post("/api/auth/logout", headers=viewer_headers)

        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"/api/notifications/ws?token={self._token(viewer_headers)}") as ws:
                ws.receive_json()

    def test_feed_closes_after_logout(self, client, admin_headers, viewer_headers, viewer_id):
        with client.websocket_connect(f"/api/notifications/ws?token={self._token(viewer_headers)}") as ws:
            assert ws.receive_json() == {"event": "SNAPSHOT", "unread_count": 0}

            client.post("/api/auth/logout", headers=viewer_headers)
            _notify(client, admin_headers, viewer_id, title="After sign out")

            with pytest.raises(WebSocketDisconnect) as excinfo:
                ws.receive_json()
            assert excinfo.value.code == 1008

    def test_feed_closes_after_idle_timeout(self, client, admin_headers, viewer_headers, viewer_id):
        with client.websocket_connect(f"/api/notifications/ws?token={self._token(viewer_headers)}") as ws:
            ws.receive_json()

            for owner, timer in sessions._sessions.values():
                if owner == "viewer@example.com":
                    timer.last_activity -= IDLE_TIMEOUT
            _notify(client, admin_headers, viewer_id, title="After idle")

            with pytest.raises(WebSocketDisconnect) as excinfo:
                ws.receive_json()
            assert excinfo.value.code == 1008

    def test_feed_closes_when_user_deleted(self, client, admin_headers, viewer_headers, viewer_id, monkeypatch):
        monkeypatch.setattr(notification_routes, "SESSION_CHECK_SECONDS", 0.05)

        with client.websocket_connect(f"/api/notifications/ws?token={self._token(viewer_headers)}") as ws:
            ws.receive_json()

            response = client.delete(f"/api/users/{viewer_id}", headers=admin_headers)
            assert response.status_code == 200

            with pytest.raises(WebSocketDisconnect) as excinfo:
                ws.receive_json()
            assert excinfo.value.code == 1008


def _fail(statement):
    def _raise(*args, **kwargs):
        raise OperationalError(statement, {}, Exception("database is locked"))

    return _raise


class TestNotificationDatabaseErrors:
    def test_list_failure(self, client, viewer_headers, monkeypatch):
        monkeypatch.setattr(Query, "all", _fail("SELECT"))

        response = client.get("/api/notifications", headers=viewer_headers)

        assert response.status_code == 500
        assert response.json()["error"].startswith("Failed to fetch notifications")

    def test_mark_all_read_failure(self, client, admin_headers, viewer_headers, viewer_id, monkeypatch):
        _notify(client, admin_headers, viewer_id)
        monkeypatch.setattr(Query, "update", _fail("UPDATE"))

        response = client.post("/api/notifications/read-all", headers=viewer_headers)

        assert response.status_code == 500
        assert response.json()["error"].startswith("Failed to update notifications")

        monkeypatch.undo()
        assert client.get("/api/notifications/unread-count", headers=viewer_headers).json()["count"] == 1
