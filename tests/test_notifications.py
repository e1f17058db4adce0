import asyncio

import pytest
from fastapi import WebSocketDisconnect

from lawhelp.services.connections import ConnectionManager
from lawhelp.services.notification_service import NotificationService
from lawhelp.storage import MemoryStorage


class RecordingSocket:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    async def send_json(self, payload):
        if self.error is not None:
            raise self.error
        self.sent.append(payload)


def test_list_and_mark_read(client, storage, make_user):
    user_id, headers = make_user()

    notifications = client.get("/api/notifications", headers=headers).json()["data"]
    assert len(notifications) == 1
    assert notifications[0]["read_status"] is False

    response = client.patch(f"/api/notifications/{notifications[0]['id']}/read", headers=headers)

    assert response.status_code == 200
    assert storage.get_notification(notifications[0]["id"]).read_status is True


def test_cannot_mark_someone_elses_notification(client, make_user):
    _, amina = make_user()
    _, paul = make_user(email="paul@example.cm", name="Paul Mbarga")
    notification_id = client.get("/api/notifications", headers=amina).json()["data"][0]["id"]

    assert client.patch(f"/api/notifications/{notification_id}/read", headers=paul).status_code == 404
    assert client.patch("/api/notifications/999/read", headers=paul).status_code == 404


def test_notifications_are_newest_first(client, storage, make_user):
    user_id, headers = make_user()
    storage.create_notification(user_id=user_id, title="Second", message="...", type="info")

    titles = [n["title"] for n in client.get("/api/notifications", headers=headers).json()["data"]]

    assert titles == ["Second", "Welcome to LawHelp"]


def test_notify_pushes_to_connected_user():
    storage = MemoryStorage()
    connections = ConnectionManager()
    socket = RecordingSocket()
    connections.connect(7, socket)

    notification = asyncio.run(
        NotificationService(storage, connections).notify(7, "New Rating", "Client A rated you 5/5.")
    )

    assert socket.sent == [{"type": "notification", "notification": notification.model_dump(mode="json")}]
    assert storage.get_user_notifications(7)[0].title == "New Rating"


@pytest.mark.parametrize("error", [RuntimeError("socket closed"), WebSocketDisconnect(code=1006)])
def test_stale_connection_is_dropped(error):
    connections = ConnectionManager()
    connections.connect(3, RecordingSocket(error=error))

    delivered = asyncio.run(connections.send_to_user(3, {"type": "ping"}))

    assert delivered is False
    assert not connections.is_connected(3)
