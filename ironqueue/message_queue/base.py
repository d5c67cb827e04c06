"""
Base Queue Interface

Abstract queue contract plus the data model shared by drivers:
job envelopes, job descriptors and message handles.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union
from pydantic import BaseModel, Field, ConfigDict


Delay = Union[int, float, timedelta, datetime]


@dataclass
class JobDescriptor:
    """
    Describes the job to run when a plain handler name is not enough.

    Attributes:
        name: Handler identifier the runtime resolves
        display_name: Human-readable job type (defaults to name)
        max_tries: Attempts allowed before the job is given up
        timeout: Seconds the handler may run
    """
    name: str
    display_name: Optional[str] = None
    max_tries: Optional[int] = None
    timeout: Optional[int] = None


class JobEnvelope(BaseModel):
    """
    Wire payload for a single unit of work.

    Field order is the serialization order. Unset values serialize as
    null and are never dropped. Extra keys (e.g. ``attempts``) survive
    a decode/encode cycle.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    display_name: Optional[str] = Field(None, alias="displayName")
    job: Optional[str] = None
    max_tries: Optional[int] = Field(None, alias="maxTries")
    timeout: Optional[int] = None
    data: Any = ""
    queue: Optional[str] = None

    def to_json(self) -> str:
        """Compact JSON with wire field names."""
        return self.model_dump_json(by_alias=True)


class QueueMessage(BaseModel):
    """
    Reference to a message IronMQ has accepted.

    Attributes:
        id: Identifier assigned by IronMQ
        body: Message body (encoded, or plaintext once unsealed)
        reservation_id: Lease token; None for push-delivered messages
        reserved_count: How many times IronMQ has handed this message out
        pushed: True when delivered through a push callback
    """
    id: str
    body: str
    reservation_id: Optional[str] = None
    reserved_count: int = 0
    pushed: bool = False


def seconds_until(delay: Delay) -> int:
    """
    Normalize a delay to whole seconds from now.

    Negative values and absolute datetimes that already passed clamp to
    zero. Naive datetimes are treated as UTC.

    Args:
        delay: Seconds, a timedelta, or an absolute datetime

    Returns:
        Delay in seconds
    """
    if isinstance(delay, datetime):
        if delay.tzinfo is None:
            delay = delay.replace(tzinfo=timezone.utc)
        remaining = (delay - datetime.now(timezone.utc)).total_seconds()
        return max(0, math.ceil(remaining))

    if isinstance(delay, timedelta):
        return max(0, int(delay.total_seconds()))

    return max(0, int(delay))


class Queue(ABC):
    """
    Abstract queue contract.

    Implementations must provide:
    - push / push_raw / later: Put jobs on a queue
    - pop: Lease the next job
    - size: Report queue depth
    """

    @abstractmethod
    async def push(self, job: Union[str, JobDescriptor], data: Any = "", queue: Optional[str] = None) -> str:
        """
        Push a new job onto the queue.

        Returns:
            Message ID
        """
        pass

    @abstractmethod
    async def push_raw(self, payload: str, queue: Optional[str] = None, options: Optional[dict] = None) -> str:
        """
        Push an already-encoded payload onto the queue.

        Returns:
            Message ID
        """
        pass

    @abstractmethod
    async def later(
        self,
        delay: Delay,
        job: Union[str, JobDescriptor],
        data: Any = "",
        queue: Optional[str] = None,
    ) -> str:
        """
        Push a new job onto the queue after a delay.

        Returns:
            Message ID
        """
        pass

    @abstractmethod
    async def pop(self, queue: Optional[str] = None):
        """
        Pop the next job off the queue.

        Returns:
            Job handle or None if the queue is empty
        """
        pass

    @abstractmethod
    async def size(self, queue: Optional[str] = None) -> int:
        """Number of messages currently on the queue."""
        pass
