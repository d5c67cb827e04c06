"""
IronMQ Queue Driver

Lets the application push, delay, pop and delete jobs on IronMQ with:
- A queue contract and shared job envelope model
- A payload codec with optional encryption
- The IronMQ driver and its job handles
- A marshaler for push-queue callbacks
- A background worker for pull queues
"""

from ironqueue.message_queue.base import (
    Queue,
    JobDescriptor,
    JobEnvelope,
    QueueMessage,
    seconds_until,
)
from ironqueue.message_queue.codec import PayloadCodec
from ironqueue.message_queue.iron import IronQueue
from ironqueue.message_queue.jobs import IronJob
from ironqueue.message_queue.marshaler import PushedJobMarshaler, PushAcknowledgement
from ironqueue.message_queue.worker import QueueWorker

__all__ = [
    "Queue",
    "JobDescriptor",
    "JobEnvelope",
    "QueueMessage",
    "seconds_until",
    "PayloadCodec",
    "IronQueue",
    "IronJob",
    "PushedJobMarshaler",
    "PushAcknowledgement",
    "QueueWorker",
]
