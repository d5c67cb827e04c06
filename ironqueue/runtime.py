"""
Job Execution Runtime

Resolves the handler a job names and runs it with the job's data.
"""

import asyncio
import inspect
from typing import Any, Callable, Dict, Optional

from ironqueue.exceptions import JobNotRegisteredError
from ironqueue.utils.observability import logger


JobHandler = Callable[[Any], Any]


class JobDispatcher:
    """
    Registry of job handlers.

    Handlers receive the job's ``data`` and may be plain functions or
    coroutines. A job's ``timeout`` (seconds) bounds how long the handler
    may run.

    Usage:
        dispatcher = JobDispatcher()

        @dispatcher.handler("send_invoice")
        async def send_invoice(data):
            ...

        queue.set_runtime(dispatcher)
    """

    def __init__(self):
        self._handlers: Dict[str, JobHandler] = {}

    def register(self, name: str, handler: JobHandler) -> None:
        """Register a handler under a job name."""
        self._handlers[name] = handler

    def handler(self, name: str) -> Callable[[JobHandler], JobHandler]:
        """Decorator form of register."""
        def decorator(func: JobHandler) -> JobHandler:
            self.register(name, func)
            return func
        return decorator

    def resolve(self, name: Optional[str]) -> JobHandler:
        """
        Look up the handler for a job name.

        Raises:
            JobNotRegisteredError: Unknown or missing name
        """
        if not name or name not in self._handlers:
            raise JobNotRegisteredError(f"No handler registered for job {name!r}")
        return self._handlers[name]

    async def fire(self, job) -> Any:
        """
        Run the handler for a job handle.

        Args:
            job: IronJob to execute

        Returns:
            Whatever the handler returned

        Raises:
            JobNotRegisteredError: Unknown job name
            asyncio.TimeoutError: Handler exceeded the job's timeout
        """
        handler = self.resolve(job.get_name())
        data = job.payload().get("data")
        timeout = job.timeout()

        logger.debug(
            "Firing job",
            extra={"job": job.resolve_name(), "message_id": job.get_job_id(), "attempts": job.attempts(), "pushed": job.is_pushed()}
        )

        if inspect.iscoroutinefunction(handler):
            call = handler(data)
        else:
            call = asyncio.to_thread(handler, data)

        if timeout:
            return await asyncio.wait_for(call, timeout=timeout)
        return await call
