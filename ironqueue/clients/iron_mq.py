"""
IronMQ REST client.
Talks to the IronMQ v3 API over httpx.
"""
import httpx
from typing import Optional
from urllib.parse import quote
from pydantic import BaseModel
from loguru import logger

from ironqueue.config import get_settings
from ironqueue.exceptions import ConfigurationError, HostedServiceFault
from ironqueue.message_queue.base import QueueMessage


class PostedMessage(BaseModel):
    """Result of posting a message."""
    id: str


class QueueInfo(BaseModel):
    """Subset of the queue info IronMQ returns."""
    name: str
    size: int = 0


class IronMQClient:
    """
    Client for the IronMQ v3 REST API.

    This client is responsible for:
    - Posting, reserving and deleting messages
    - Reading queue info
    - Turning every API or transport error into HostedServiceFault

    It does not retry. A failed call surfaces immediately.

    Usage:
        client = IronMQClient(project_id="abc", token="secret")
        posted = await client.post_message("default", "payload", {"delay": 5})
        message = await client.reserve_message("default", 60)
        await client.delete_message("default", message.id, message.reservation_id)
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize client.

        Args:
            project_id: IronMQ project id (default from settings)
            token: OAuth token (default from settings)
            base_url: API root, e.g. "https://mq-aws-us-east-1-1.iron.io:443/3"
            timeout: Per-request timeout in seconds
            http_client: Preconfigured httpx client (used as-is)
        """
        settings = get_settings()
        self.project_id = project_id or settings.iron_project_id
        self._token = token or settings.iron_token

        if not self.project_id or not self._token:
            raise ConfigurationError("IronMQ credentials not configured - missing project id or token")

        self._base_url = base_url or settings.iron_base_url
        self._timeout = timeout or settings.iron_request_timeout_seconds
        self._client = http_client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
        )

    async def post_message(self, queue: str, body: str, options: Optional[dict] = None) -> PostedMessage:
        """
        Post a single message.

        Args:
            queue: Queue name
            body: Message body
            options: Message options; "delay" is honoured

        Returns:
            Posted message with the id IronMQ assigned
        """
        message = {"body": body}
        if options and "delay" in options:
            message["delay"] = int(options["delay"])

        data = await self._request(
            "POST",
            f"{self._queue_path(queue)}/messages",
            json={"messages": [message]},
        )

        ids = data.get("ids") or []
        if not ids:
            raise HostedServiceFault(f"IronMQ returned no message id for queue {queue}")

        return PostedMessage(id=str(ids[0]))

    async def reserve_message(self, queue: str, timeout: int) -> Optional[QueueMessage]:
        """
        Reserve the next available message.

        Args:
            queue: Queue name
            timeout: Seconds before the reservation expires

        Returns:
            Reserved message or None if the queue is empty
        """
        data = await self._request(
            "POST",
            f"{self._queue_path(queue)}/reservations",
            json={"n": 1, "timeout": timeout, "wait": 0},
        )

        messages = data.get("messages") or []
        if not messages:
            return None

        raw = messages[0]
        return QueueMessage(
            id=str(raw["id"]),
            body=raw.get("body", ""),
            reservation_id=raw.get("reservation_id"),
            reserved_count=raw.get("reserved_count", 0),
        )

    async def delete_message(self, queue: str, message_id: str, reservation_id: Optional[str]) -> None:
        """
        Delete a message.

        Raises:
            HostedServiceFault: e.g. the reservation has timed out
        """
        body = {}
        if reservation_id is not None:
            body["reservation_id"] = reservation_id

        await self._request(
            "DELETE",
            f"{self._queue_path(queue)}/messages/{quote(str(message_id), safe='')}",
            json=body,
        )

    async def get_queue(self, queue: str) -> QueueInfo:
        """
        Read queue info.

        IronMQ creates queues lazily, so a queue that does not exist yet
        is reported as empty.
        """
        try:
            data = await self._request("GET", self._queue_path(queue))
        except HostedServiceFault as e:
            if e.status_code == 404:
                return QueueInfo(name=queue, size=0)
            raise

        info = data.get("queue") or {}
        return QueueInfo(name=info.get("name", queue), size=info.get("size", 0))

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _queue_path(self, queue: str) -> str:
        return f"/projects/{self.project_id}/queues/{quote(queue, safe='')}"

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        """
        Send a request and return the decoded JSON body.

        Raises:
            HostedServiceFault: Non-2xx response or transport failure
        """
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                headers={
                    "Authorization": f"OAuth {self._token}",
                    "Content-Type": "application/json",
                },
            )
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            message = self._error_message(e.response)
            logger.error(
                f"IronMQ request failed: {method} {path}",
                extra={"status_code": e.response.status_code, "error": message}
            )
            raise HostedServiceFault(message, status_code=e.response.status_code) from e

        except httpx.HTTPError as e:
            logger.error(
                f"IronMQ transport error: {method} {path}",
                extra={"error": str(e)}
            )
            raise HostedServiceFault(f"IronMQ request failed: {e}") from e

        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract IronMQ's "msg" field, falling back to the raw text."""
        try:
            payload = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"

        if isinstance(payload, dict) and payload.get("msg"):
            return str(payload["msg"])
        return response.text
