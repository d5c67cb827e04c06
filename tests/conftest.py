import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from ironqueue.clients.iron_mq import PostedMessage, QueueInfo


@pytest.fixture
def iron():
    """Returns a mock IronMQ client."""
    client = MagicMock()
    client.post_message = AsyncMock(return_value=PostedMessage(id="1"))
    client.reserve_message = AsyncMock(return_value=None)
    client.delete_message = AsyncMock(return_value=None)
    client.get_queue = AsyncMock(return_value=QueueInfo(name="default", size=0))
    client.close = AsyncMock()
    return client


@pytest.fixture
def crypt():
    """Returns a mock encrypter."""
    encrypter = MagicMock()
    encrypter.encrypt = MagicMock(return_value="encrypted")
    encrypter.decrypt = MagicMock(side_effect=lambda payload: payload)
    return encrypter


@pytest.fixture
def envelope_json():
    """Returns a builder for the compact JSON push('foo', [1, 2, 3]) produces."""
    def build(**overrides) -> str:
        payload = {
            "displayName": "foo",
            "job": "foo",
            "maxTries": None,
            "timeout": None,
            "data": [1, 2, 3],
            "queue": "default",
        }
        payload.update(overrides)
        return json.dumps(payload, separators=(",", ":"))
    return build
