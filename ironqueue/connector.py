"""
IronMQ Connector

Builds a configured IronQueue from settings.
"""
from typing import Optional

from ironqueue.clients.iron_mq import IronMQClient
from ironqueue.config import Settings, get_settings
from ironqueue.crypto import get_encrypter
from ironqueue.message_queue.iron import IronQueue
from ironqueue.utils.observability import logger


def connect(settings: Optional[Settings] = None, runtime=None) -> IronQueue:
    """
    Establish a queue connection.

    Args:
        settings: Settings to use (defaults to the cached settings)
        runtime: Execution runtime handed to popped and pushed jobs

    Returns:
        Configured driver

    Raises:
        ConfigurationError: Missing credentials, or encryption enabled without a key
    """
    settings = settings or get_settings()

    client = IronMQClient(
        project_id=settings.iron_project_id,
        token=settings.iron_token,
        base_url=settings.iron_base_url,
        timeout=settings.iron_request_timeout_seconds,
    )

    encrypter = get_encrypter(settings.encryption_key) if settings.iron_encrypt else None

    queue = IronQueue(
        client,
        settings.iron_queue,
        should_encrypt=settings.iron_encrypt,
        timeout=settings.iron_timeout,
        encrypter=encrypter,
        runtime=runtime,
    )

    logger.info(
        "IronMQ queue connected",
        extra={
            "host": settings.iron_host,
            "queue": settings.iron_queue,
            "encrypt": settings.iron_encrypt,
            "timeout": settings.iron_timeout,
        }
    )
    return queue
