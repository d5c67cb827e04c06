"""
Payload Codec

Builds job envelopes, encodes them for the wire, and reverses the
process on the way back, applying encryption when the driver asks for it.
"""

import json
from typing import Any, Callable, Optional, Union
from pydantic import ValidationError

from ironqueue.crypto import Encrypter
from ironqueue.exceptions import ConfigurationError, DecryptionError, MalformedPayloadError
from ironqueue.message_queue.base import JobDescriptor, JobEnvelope


class PayloadCodec:
    """
    Encodes and decodes job envelopes.

    Encryption is decided once per codec and applies to every call.
    The encrypter is looked up at call time so the owning driver can swap it.

    Usage:
        codec = PayloadCodec(should_encrypt=False, queue_resolver=lambda q: q or "default")
        body = codec.encode(codec.create_payload("foo", None, [1, 2, 3]))
        envelope = codec.decode(body)
    """

    def __init__(
        self,
        should_encrypt: bool = False,
        encrypter: Optional[Encrypter] = None,
        queue_resolver: Optional[Callable[[Optional[str]], str]] = None,
    ):
        """
        Initialize codec.

        Args:
            should_encrypt: Encrypt payloads before they leave the process
            encrypter: Encryption service (required when should_encrypt is set)
            queue_resolver: Maps an optional queue name to the queue to stamp
                            on envelopes
        """
        self.should_encrypt = should_encrypt
        self.encrypter = encrypter
        self._queue_resolver = queue_resolver or (lambda queue: queue)

    def create_payload(
        self,
        job: Union[str, JobDescriptor],
        queue: Optional[str],
        data: Any = "",
    ) -> JobEnvelope:
        """
        Build the envelope for a job.

        Args:
            job: Handler name or descriptor
            queue: Target queue; resolved to the default when omitted
            data: Producer-defined payload

        Returns:
            Envelope with queue populated
        """
        if isinstance(job, JobDescriptor):
            return JobEnvelope(
                display_name=job.display_name or job.name,
                job=job.name,
                max_tries=job.max_tries,
                timeout=job.timeout,
                data=data,
                queue=self._queue_resolver(queue),
            )

        return JobEnvelope(
            display_name=job.split("@", 1)[0],
            job=job,
            data=data,
            queue=self._queue_resolver(queue),
        )

    def encode(self, envelope: JobEnvelope) -> str:
        """Serialize an envelope and encrypt it if enabled."""
        return self.seal(envelope.to_json())

    def seal(self, payload: str) -> str:
        """Encrypt an already-serialized payload if enabled."""
        if self.should_encrypt:
            return self.get_encrypter().encrypt(payload)
        return payload

    def unseal(self, body: str) -> str:
        """
        Decrypt a message body if enabled and check it is a JSON object.

        Args:
            body: Body as received from IronMQ

        Returns:
            Plaintext JSON text

        Raises:
            DecryptionError: Decryption failed
            MalformedPayloadError: Plaintext is not a JSON object
        """
        plaintext = body
        if self.should_encrypt:
            encrypter = self.get_encrypter()
            try:
                plaintext = encrypter.decrypt(body)
            except DecryptionError:
                raise
            except Exception as e:
                raise DecryptionError(f"Unable to decrypt payload: {e}") from e

        self.parse(plaintext)
        return plaintext

    def parse(self, plaintext: str) -> dict:
        """
        Parse plaintext JSON into a dict.

        Raises:
            MalformedPayloadError: Not valid JSON, or not an object
        """
        try:
            payload = json.loads(plaintext)
        except (TypeError, ValueError) as e:
            raise MalformedPayloadError(f"Payload is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise MalformedPayloadError(
                f"Payload must be a JSON object, got {type(payload).__name__}"
            )
        return payload

    def to_envelope(self, plaintext: str) -> JobEnvelope:
        """Parse plaintext into a validated envelope."""
        try:
            return JobEnvelope.model_validate(self.parse(plaintext))
        except ValidationError as e:
            raise MalformedPayloadError(f"Payload is not a job envelope: {e}") from e

    def decode(self, body: str) -> JobEnvelope:
        """Decrypt (if enabled) and parse a body into an envelope."""
        return self.to_envelope(self.unseal(body))

    def get_encrypter(self) -> Encrypter:
        """
        Get the encrypter implementation.

        Raises:
            ConfigurationError: No encrypter has been set
        """
        if self.encrypter is None:
            raise ConfigurationError("No encrypter has been set on the queue")
        return self.encrypter
