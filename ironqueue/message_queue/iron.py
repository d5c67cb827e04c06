"""
IronMQ Queue Driver

Implements the queue contract on top of the IronMQ hosted service:
push, delayed push, pop, delete and size, with optional payload encryption.
"""

from typing import Any, Optional, Union

from ironqueue.crypto import Encrypter
from ironqueue.exceptions import ConfigurationError
from ironqueue.message_queue.base import Delay, JobDescriptor, Queue, seconds_until
from ironqueue.message_queue.codec import PayloadCodec
from ironqueue.message_queue.jobs import IronJob
from ironqueue.utils.observability import log_queue_operation


class IronQueue(Queue):
    """
    IronMQ queue driver.

    Every operation is a single round trip to IronMQ. The driver does not
    retry, buffer or batch; a failure from IronMQ reaches the caller as
    HostedServiceFault.

    Usage:
        queue = IronQueue(IronMQClient(), "default", should_encrypt=True, encrypter=encrypter)

        message_id = await queue.push("send_invoice", {"invoice_id": 42})
        await queue.later(300, "send_reminder", {"invoice_id": 42})

        job = await queue.pop()
        if job:
            await job.fire()
            await job.delete()
    """

    def __init__(
        self,
        iron,
        default: str,
        should_encrypt: bool = False,
        timeout: int = 60,
        encrypter: Optional[Encrypter] = None,
        runtime=None,
    ):
        """
        Initialize IronMQ driver.

        Args:
            iron: IronMQ client (see IronMQClient)
            default: Name of the default queue
            should_encrypt: Encrypt payloads before posting them
            timeout: Seconds before a popped message's reservation expires
            encrypter: Encryption service, required when should_encrypt is set
            runtime: Execution runtime handed to popped jobs

        Raises:
            ConfigurationError: Encryption enabled without an encrypter
        """
        if should_encrypt and encrypter is None:
            raise ConfigurationError("Encryption is enabled but no encrypter was provided")

        self.iron = iron
        self.default = default
        self.should_encrypt = should_encrypt
        self.timeout = timeout
        self.runtime = runtime
        self.codec = PayloadCodec(
            should_encrypt=should_encrypt,
            encrypter=encrypter,
            queue_resolver=self.get_queue,
        )

    async def push(self, job: Union[str, JobDescriptor], data: Any = "", queue: Optional[str] = None) -> str:
        """
        Push a new job onto the queue.

        Args:
            job: Handler name or descriptor
            data: Producer-defined payload
            queue: Target queue (default queue when omitted)

        Returns:
            Message ID assigned by IronMQ
        """
        payload = self.codec.create_payload(job, queue, data).to_json()
        return await self.push_raw(payload, queue)

    async def push_raw(self, payload: str, queue: Optional[str] = None, options: Optional[dict] = None) -> str:
        """
        Push a raw payload onto the queue.

        Args:
            payload: Serialized envelope (plaintext)
            queue: Target queue (default queue when omitted)
            options: IronMQ message options, e.g. {"delay": 5}

        Returns:
            Message ID assigned by IronMQ
        """
        options = options or {}
        queue = self.get_queue(queue)
        body = self.codec.seal(payload)

        posted = await self.iron.post_message(queue, body, options)

        log_queue_operation("push", queue, message_id=posted.id, payload_bytes=len(body), **options)
        return posted.id

    async def recreate(self, payload: str, queue: str, delay: Delay) -> str:
        """
        Re-post an already-serialized payload after a delay.

        Retry plumbing for job handles releasing themselves back onto the
        queue. Application code should use push or later.

        Args:
            payload: Serialized envelope (plaintext)
            queue: Target queue
            delay: Seconds, timedelta or absolute datetime

        Returns:
            Message ID assigned by IronMQ
        """
        options = {"delay": seconds_until(delay)}
        return await self.push_raw(payload, queue, options)

    async def later(
        self,
        delay: Delay,
        job: Union[str, JobDescriptor],
        data: Any = "",
        queue: Optional[str] = None,
    ) -> str:
        """
        Push a new job onto the queue after a delay.

        Args:
            delay: Seconds, timedelta or absolute datetime (past times mean now)
            job: Handler name or descriptor
            data: Producer-defined payload
            queue: Target queue (default queue when omitted)

        Returns:
            Message ID assigned by IronMQ
        """
        delay = seconds_until(delay)
        payload = self.codec.create_payload(job, queue, data).to_json()
        return await self.push_raw(payload, queue, {"delay": delay})

    async def pop(self, queue: Optional[str] = None) -> Optional[IronJob]:
        """
        Pop the next job off the queue.

        Args:
            queue: Queue to reserve from (default queue when omitted)

        Returns:
            Job handle, or None if the queue is empty

        Raises:
            DecryptionError: Body could not be decrypted
            MalformedPayloadError: Body is not a JSON object
        """
        queue = self.get_queue(queue)

        message = await self.iron.reserve_message(queue, self.timeout)

        if message is None:
            return None

        # Messages are stored encrypted when encryption is on, so the
        # body has to be unsealed before anything can read it.
        body = self.codec.unseal(message.body)
        message = message.model_copy(update={"body": body})

        log_queue_operation("pop", queue, message_id=message.id, reserved_count=message.reserved_count)
        return IronJob(self.runtime, self, message)

    async def delete_message(self, queue: str, message_id: str, reservation_id: Optional[str]) -> None:
        """
        Delete a message from the queue.

        Errors from IronMQ (e.g. an expired reservation) propagate unchanged.

        Args:
            queue: Queue name
            message_id: IronMQ message id
            reservation_id: Reservation token returned with the message
        """
        await self.iron.delete_message(queue, message_id, reservation_id)
        log_queue_operation("delete", queue, message_id=message_id)

    async def size(self, queue: Optional[str] = None) -> int:
        """Number of messages currently on the queue."""
        info = await self.iron.get_queue(self.get_queue(queue))
        return int(info.size)

    def get_queue(self, queue: Optional[str] = None) -> str:
        """Get the queue or return the default."""
        return queue or self.default

    def get_iron(self):
        """Get the underlying IronMQ client."""
        return self.iron

    def get_encrypter(self) -> Encrypter:
        """
        Get the encrypter implementation.

        Raises:
            ConfigurationError: No encrypter has been set
        """
        return self.codec.get_encrypter()

    def set_encrypter(self, encrypter: Encrypter) -> None:
        """
        Swap the encrypter implementation.

        Raises:
            ConfigurationError: encrypter is None
        """
        if encrypter is None:
            raise ConfigurationError("Cannot unset the encrypter")
        self.codec.encrypter = encrypter

    def get_runtime(self):
        return self.runtime

    def set_runtime(self, runtime) -> None:
        """Set the execution runtime handed to jobs."""
        self.runtime = runtime
