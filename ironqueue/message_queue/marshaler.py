"""
Pushed Job Marshaler

Turns an IronMQ push-queue callback into a job handle, fires it and
produces the acknowledgement IronMQ expects.
"""

from dataclasses import dataclass
from typing import Optional

from ironqueue.exceptions import DecryptionError, MalformedPayloadError
from ironqueue.message_queue.base import QueueMessage
from ironqueue.message_queue.iron import IronQueue
from ironqueue.message_queue.jobs import IronJob
from ironqueue.utils.observability import logger


@dataclass
class PushAcknowledgement:
    """Response to send back to IronMQ."""
    status_code: int
    content: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class PushedJobMarshaler:
    """
    Marshals push-queue deliveries.

    IronMQ does not redeliver a push message that was answered with a 2xx,
    so a body that cannot be decoded is answered with 400 and a handler
    failure propagates to the HTTP layer (500). Both leave IronMQ free to
    retry.

    Usage:
        marshaler = PushedJobMarshaler(queue)
        ack = await marshaler.marshal(request.headers.get("iron-message-id"), body)
    """

    def __init__(self, queue: IronQueue):
        self.queue = queue

    async def marshal(self, message_id: Optional[str], content: str) -> PushAcknowledgement:
        """
        Marshal a push queue request and fire the job.

        Args:
            message_id: Value of the message id header
            content: Raw request body

        Returns:
            200 "OK" once the job has fired, 400 if the delivery could not be decoded
        """
        if not message_id:
            logger.warning("Push delivery without a message id header")
            return PushAcknowledgement(status_code=400, content="Missing message id")

        try:
            message = self.marshal_pushed_job(message_id, content)
        except (DecryptionError, MalformedPayloadError) as e:
            logger.error(
                "Rejected pushed message",
                extra={"message_id": message_id, "error": str(e)}
            )
            return PushAcknowledgement(status_code=400, content=str(e))

        await self.create_pushed_job(message).fire()

        logger.info(
            "Pushed job fired",
            extra={"message_id": message_id}
        )
        return PushAcknowledgement(status_code=200, content="OK")

    def marshal_pushed_job(self, message_id: str, content: str) -> QueueMessage:
        """Decode the delivery into a pushed message handle."""
        body = self.queue.codec.unseal(content)
        return QueueMessage(id=message_id, body=body, pushed=True)

    def create_pushed_job(self, message: QueueMessage) -> IronJob:
        """Create a job handle for a pushed message."""
        return IronJob(self.queue.get_runtime(), self.queue, message, pushed=True)
