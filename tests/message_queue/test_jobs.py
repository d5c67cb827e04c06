"""
Tests for IronJob handles.
"""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from ironqueue.exceptions import ConfigurationError, HostedServiceFault
from ironqueue.message_queue import IronJob, IronQueue, QueueMessage


@pytest.fixture
def queue(iron):
    return IronQueue(iron, "default")


@pytest.fixture
def runtime():
    runtime = MagicMock()
    runtime.fire = AsyncMock(return_value="done")
    return runtime


def pulled_message(body: str) -> QueueMessage:
    return QueueMessage(id="1", body=body, reservation_id="abc123", reserved_count=1)


class TestIronJob:
    """Test suite for IronJob."""

    async def test_fire_hands_job_to_runtime(self, queue, runtime, envelope_json):
        job = IronJob(runtime, queue, pulled_message(envelope_json()))

        assert await job.fire() == "done"
        runtime.fire.assert_awaited_once_with(job)

    async def test_fire_without_runtime_raises(self, queue, envelope_json):
        job = IronJob(None, queue, pulled_message(envelope_json()))

        with pytest.raises(ConfigurationError):
            await job.fire()

    async def test_delete_acknowledges_with_reservation(self, queue, iron, envelope_json):
        job = IronJob(None, queue, pulled_message(envelope_json(queue="emails")))

        await job.delete()

        iron.delete_message.assert_awaited_once_with("emails", "1", "abc123")
        assert job.is_deleted()

    async def test_delete_pushed_job_is_noop(self, queue, iron, envelope_json):
        """The push response is the acknowledgement."""
        job = IronJob(None, queue, QueueMessage(id="1", body=envelope_json(), pushed=True))

        await job.delete()

        iron.delete_message.assert_not_called()
        assert job.is_deleted()

    async def test_release_reposts_with_incremented_attempts(self, queue, iron, envelope_json):
        job = IronJob(None, queue, pulled_message(envelope_json()))

        await job.release(10)

        posted_queue, body, options = iron.post_message.call_args[0]
        assert posted_queue == "default"
        assert json.loads(body)["attempts"] == 2
        assert options == {"delay": 10}
        iron.delete_message.assert_awaited_once_with("default", "1", "abc123")
        assert job.is_released()

    async def test_release_encrypts_when_enabled(self, iron, crypt, envelope_json):
        queue = IronQueue(iron, "default", True, encrypter=crypt)
        job = IronJob(None, queue, pulled_message(envelope_json(attempts=2)))

        await job.release()

        assert json.loads(crypt.encrypt.call_args[0][0])["attempts"] == 3
        iron.post_message.assert_awaited_once_with("default", "encrypted", {"delay": 0})

    async def test_release_pushed_job_is_noop(self, queue, iron, envelope_json):
        job = IronJob(None, queue, QueueMessage(id="1", body=envelope_json()), pushed=True)

        await job.release()

        iron.post_message.assert_not_called()
        iron.delete_message.assert_not_called()
        assert job.is_released()

    async def test_release_propagates_expired_reservation(self, queue, iron, envelope_json):
        iron.delete_message = AsyncMock(side_effect=HostedServiceFault("Reservation has timed out", 403))
        job = IronJob(None, queue, pulled_message(envelope_json()))

        with pytest.raises(HostedServiceFault):
            await job.release()

        iron.post_message.assert_not_called()

    def test_attempts_defaults_to_one(self, queue, envelope_json):
        assert IronJob(None, queue, pulled_message(envelope_json())).attempts() == 1
        assert IronJob(None, queue, pulled_message(envelope_json(attempts=4))).attempts() == 4

    def test_accessors(self, queue, envelope_json):
        body = envelope_json(displayName="Send Invoice", job="send_invoice", maxTries=3, timeout=30)
        job = IronJob(None, queue, pulled_message(body))

        assert job.get_job_id() == "1"
        assert job.get_raw_body() == body
        assert job.get_name() == "send_invoice"
        assert job.resolve_name() == "Send Invoice"
        assert job.max_tries() == 3
        assert job.timeout() == 30
        assert job.get_queue() == "default"
        assert job.envelope().job == "send_invoice"
        assert job.payload()["data"] == [1, 2, 3]
        assert job.is_pushed() is False
        assert job.is_deleted_or_released() is False

    def test_get_queue_falls_back_to_default(self, queue):
        job = IronJob(None, queue, pulled_message('{"job":"foo"}'))

        assert job.get_queue() == "default"
