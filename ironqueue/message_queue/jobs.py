"""
Iron Job Handle

Wraps a message received from IronMQ together with the driver it came
from, so the execution runtime can fire, acknowledge or release it.
"""

import json
from typing import TYPE_CHECKING, Any, Optional

from ironqueue.exceptions import ConfigurationError
from ironqueue.message_queue.base import JobEnvelope, QueueMessage
from ironqueue.utils.observability import logger

if TYPE_CHECKING:
    from ironqueue.message_queue.iron import IronQueue


class IronJob:
    """
    Job handle for a pulled or pushed IronMQ message.

    Pulled jobs hold a reservation and must be deleted (acknowledged) or
    released before it expires. Pushed jobs have no reservation: the HTTP
    response to the push callback is the acknowledgement, so delete and
    release are no-ops.

    Attributes:
        runtime: Execution runtime that resolves and runs the handler
        iron: Driver the message came from
        message: The underlying message handle (body already unsealed)
    """

    def __init__(
        self,
        runtime,
        iron: "IronQueue",
        message: QueueMessage,
        pushed: bool = False,
    ):
        self.runtime = runtime
        self.iron = iron
        self.message = message
        self.pushed = pushed or message.pushed
        self._deleted = False
        self._released = False
        self._payload: Optional[dict] = None

    async def fire(self) -> Any:
        """
        Hand the job to the execution runtime.

        Raises:
            ConfigurationError: No runtime is bound to the driver
        """
        if self.runtime is None:
            raise ConfigurationError("No execution runtime has been set on the queue")
        return await self.runtime.fire(self)

    async def delete(self) -> None:
        """Acknowledge the job, removing it from the queue (pull mode only)."""
        self._deleted = True

        if self.pushed:
            return

        await self.iron.delete_message(
            self.get_queue(),
            self.message.id,
            self.message.reservation_id,
        )

    async def release(self, delay: int = 0) -> None:
        """
        Put the job back on the queue for another attempt (pull mode only).

        The leased message is deleted, then its body is re-posted with an
        incremented attempt count. Nothing is re-posted if the delete fails.

        Args:
            delay: Seconds before the job becomes available again
        """
        self._released = True

        if self.pushed:
            return

        payload = dict(self.payload())
        payload["attempts"] = self.attempts() + 1

        await self.delete()
        await self.iron.recreate(
            json.dumps(payload, separators=(",", ":")),
            self.get_queue(),
            delay,
        )

        logger.debug(
            f"Released job {self.message.id}",
            extra={"queue": self.get_queue(), "delay": delay, "attempts": payload["attempts"]}
        )

    def attempts(self) -> int:
        """Number of times the job has been attempted."""
        return int(self.payload().get("attempts", 1))

    def payload(self) -> dict:
        """The decoded body as a dict."""
        if self._payload is None:
            self._payload = self.iron.codec.parse(self.message.body)
        return self._payload

    def envelope(self) -> JobEnvelope:
        """The decoded body as a validated envelope."""
        return self.iron.codec.to_envelope(self.message.body)

    def get_name(self) -> Optional[str]:
        """Handler identifier named by the job."""
        return self.payload().get("job")

    def resolve_name(self) -> Optional[str]:
        """Human-readable job type."""
        payload = self.payload()
        return payload.get("displayName") or payload.get("job")

    def max_tries(self) -> Optional[int]:
        return self.payload().get("maxTries")

    def timeout(self) -> Optional[int]:
        return self.payload().get("timeout")

    def get_queue(self) -> str:
        """Queue the job belongs to."""
        return self.iron.get_queue(self.payload().get("queue"))

    def get_job_id(self) -> str:
        return self.message.id

    def get_raw_body(self) -> str:
        return self.message.body

    def is_pushed(self) -> bool:
        return self.pushed

    def is_deleted(self) -> bool:
        return self._deleted

    def is_released(self) -> bool:
        return self._released

    def is_deleted_or_released(self) -> bool:
        return self._deleted or self._released
