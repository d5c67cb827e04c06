"""
Tests for the push-queue endpoint.
"""
import json
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from ironqueue.api.main import app
from ironqueue.config import settings
from ironqueue.crypto import FernetEncrypter
from ironqueue.exceptions import HostedServiceFault
from ironqueue.message_queue import IronQueue, PushedJobMarshaler
from ironqueue.runtime import JobDispatcher


@pytest.fixture(autouse=True)
def disable_push_token(monkeypatch):
    """Disable push token validation unless a test enables it."""
    monkeypatch.setattr(settings, "iron_push_token", None)


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def dispatcher():
    return JobDispatcher()


@pytest.fixture
def encrypter():
    return FernetEncrypter(FernetEncrypter.generate_key())


@pytest.fixture
def queue(iron, dispatcher, encrypter):
    """Encrypting driver bound to the test dispatcher and set on the app."""
    queue = IronQueue(iron, "default", True, encrypter=encrypter, runtime=dispatcher)
    app.state.queue = queue
    app.state.marshaler = PushedJobMarshaler(queue)
    return queue


class TestReceiveEndpoint:
    """Tests for POST /queue/receive."""

    def test_pushed_job_is_fired_and_acknowledged(self, client, queue, dispatcher, encrypter, envelope_json):
        received = []
        dispatcher.register("foo", received.append)

        response = client.post(
            "/queue/receive",
            headers={"iron-message-id": "message-id"},
            content=encrypter.encrypt(envelope_json()),
        )

        assert response.status_code == 200
        assert response.text == "OK"
        assert received == [[1, 2, 3]]

    def test_undecryptable_body_is_rejected(self, client, queue, dispatcher):
        handler = MagicMock()
        dispatcher.register("foo", handler)

        response = client.post(
            "/queue/receive",
            headers={"iron-message-id": "message-id"},
            content=json.dumps({"foo": "bar"}),
        )

        assert response.status_code == 400
        handler.assert_not_called()

    def test_non_utf8_body_is_rejected(self, client, queue, dispatcher):
        handler = MagicMock()
        dispatcher.register("foo", handler)

        response = client.post(
            "/queue/receive",
            headers={"iron-message-id": "message-id"},
            content=b'{"job":"foo","data":"caf\xe9"}',
        )

        assert response.status_code == 400
        handler.assert_not_called()

    def test_missing_message_id_is_rejected(self, client, queue, encrypter, envelope_json):
        response = client.post("/queue/receive", content=encrypter.encrypt(envelope_json()))

        assert response.status_code == 400

    def test_failing_job_returns_server_error(self, client, queue, dispatcher, encrypter, envelope_json):
        async def explode(data):
            raise RuntimeError("handler failed")

        dispatcher.register("foo", explode)

        response = client.post(
            "/queue/receive",
            headers={"iron-message-id": "message-id"},
            content=encrypter.encrypt(envelope_json()),
        )

        assert response.status_code == 500

    def test_unknown_job_returns_server_error(self, client, queue, encrypter, envelope_json):
        response = client.post(
            "/queue/receive",
            headers={"iron-message-id": "message-id"},
            content=encrypter.encrypt(envelope_json(job="missing")),
        )

        assert response.status_code == 500

    def test_push_token_required_when_configured(self, client, queue, monkeypatch, encrypter, envelope_json):
        monkeypatch.setattr(settings, "iron_push_token", "s3cret")

        missing = client.post(
            "/queue/receive",
            headers={"iron-message-id": "message-id"},
            content=encrypter.encrypt(envelope_json()),
        )
        wrong = client.post(
            "/queue/receive?token=nope",
            headers={"iron-message-id": "message-id"},
            content=encrypter.encrypt(envelope_json()),
        )

        assert missing.status_code == 401
        assert wrong.status_code == 401

    def test_push_token_accepted(self, client, queue, dispatcher, monkeypatch, encrypter, envelope_json):
        monkeypatch.setattr(settings, "iron_push_token", "s3cret")
        dispatcher.register("foo", lambda data: None)

        response = client.post(
            "/queue/receive?token=s3cret",
            headers={"iron-message-id": "message-id"},
            content=encrypter.encrypt(envelope_json()),
        )

        assert response.status_code == 200


class TestHealthEndpoints:
    """Tests for /health and /ready."""

    def test_health_returns_200(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "ironqueue"

    def test_ready_reports_queue_size(self, client, queue, iron):
        iron.get_queue.return_value = MagicMock(size=4)

        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "queue": "default", "size": 4}

    def test_ready_returns_503_when_iron_unreachable(self, client, queue, iron):
        iron.get_queue = AsyncMock(side_effect=HostedServiceFault("Connection refused"))

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
