"""Hosted queue service clients."""
from ironqueue.clients.iron_mq import IronMQClient, PostedMessage, QueueInfo

__all__ = [
    "IronMQClient",
    "PostedMessage",
    "QueueInfo",
]
