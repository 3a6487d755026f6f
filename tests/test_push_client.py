import json

import httpx
import pytest

from spendsense.services import push_client
from spendsense.services.push_client import FCMTransport, PushNotifier


@pytest.fixture()
def captured_requests(monkeypatch):
    requests = []
    real_client = httpx.AsyncClient

    def handler(request):
        requests.append(request)
        if request.headers["Authorization"] == "Bearer expired":
            return httpx.Response(401, json={"error": "UNAUTHENTICATED"})
        return httpx.Response(200, json={"name": "projects/demo/messages/1"})

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(push_client.httpx, "AsyncClient", client_factory)
    return requests


async def test_stub_transport_sends_nothing(captured_requests):
    transport = FCMTransport(project_id="demo", access_token="stub")

    await transport.send("device", "Title", "Body", {"type": "Alert"})

    assert transport.stubbed
    assert captured_requests == []


async def test_fcm_transport_posts_v1_message(captured_requests):
    transport = FCMTransport(project_id="demo", access_token="secret", timeout=2.0)

    await transport.send("device-1", "High Spending on Food", "You spent $75.00", {"insight_id": 3})

    request = captured_requests[0]
    assert str(request.url) == "https://fcm.googleapis.com/v1/projects/demo/messages:send"
    assert request.headers["Authorization"] == "Bearer secret"
    message = json.loads(request.content)["message"]
    assert message["token"] == "device-1"
    assert message["notification"] == {"title": "High Spending on Food", "body": "You spent $75.00"}
    assert message["data"] == {"insight_id": "3"}


async def test_fcm_transport_raises_on_http_error(captured_requests):
    transport = FCMTransport(project_id="demo", access_token="expired")

    with pytest.raises(httpx.HTTPStatusError):
        await transport.send("device-1", "t", "b", {})


async def test_fcm_transport_requires_project():
    transport = FCMTransport(project_id="", access_token="secret")

    with pytest.raises(ValueError):
        await transport.send("device-1", "t", "b", {})


async def test_notifier_swallows_transport_errors(session_factory, add_user, failing_transport):
    await add_user()
    notifier = PushNotifier(session_factory, failing_transport)

    assert await notifier.notify("alice", "Title", "Body", {"type": "Alert"}) is False


async def test_notifier_adds_title_and_message_to_data(session_factory, add_user, transport):
    await add_user()
    notifier = PushNotifier(session_factory, transport)

    assert await notifier.notify("alice", "Title", "Body", {"type": "Advice", "insight_id": 7}) is True

    assert transport.sent[0]["data"] == {
        "type": "Advice",
        "insight_id": "7",
        "title": "Title",
        "message": "Body",
    }


async def test_notifier_without_user_or_token(session_factory, add_user, transport):
    await add_user("bob", device_token=None)
    notifier = PushNotifier(session_factory, transport)

    assert await notifier.notify("bob", "Title", "Body") is False
    assert await notifier.notify("nobody", "Title", "Body") is False
    assert transport.sent == []
