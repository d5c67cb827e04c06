"""
Queue Worker

Background worker that pulls jobs from IronMQ and fires them.
"""

import asyncio
from typing import Optional
from loguru import logger

from ironqueue.exceptions import IronQueueError
from ironqueue.message_queue.iron import IronQueue
from ironqueue.message_queue.jobs import IronJob


class QueueWorker:
    """
    Background worker for pull queues.

    Continuously pops jobs from the driver, fires them, and then either
    deletes them (success) or releases them for another attempt (failure).
    Jobs that have used up their maxTries are deleted instead of released.

    Attributes:
        queue: Driver to pop from
        queue_name: Queue to poll (driver default when None)
        max_concurrent: Maximum number of jobs running at once
        poll_interval: Seconds to wait when the queue is empty
    """

    def __init__(
        self,
        queue: IronQueue,
        queue_name: Optional[str] = None,
        max_concurrent: int = 10,
        poll_interval: float = 1.0,
    ):
        """
        Initialize queue worker.

        Args:
            queue: Driver to pop from
            queue_name: Queue to poll
            max_concurrent: Max concurrent jobs
            poll_interval: Seconds between polls of an empty queue
        """
        self.queue = queue
        self.queue_name = queue_name
        self.max_concurrent = max_concurrent
        self.poll_interval = poll_interval
        self._running = False
        self._tasks: set[asyncio.Task] = set()
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def start(self) -> None:
        """
        Start the worker.

        Runs until stop() is called.
        """
        if self._running:
            logger.warning("Worker already running")
            return

        self._running = True
        logger.info(
            f"Queue worker started (queue={self.queue.get_queue(self.queue_name)}, "
            f"max_concurrent={self.max_concurrent}, poll_interval={self.poll_interval}s)"
        )

        try:
            while self._running:
                await self._semaphore.acquire()
                try:
                    job = await self.queue.pop(self.queue_name)
                except IronQueueError as e:
                    self._semaphore.release()
                    logger.error(
                        "Failed to pop job",
                        extra={"queue": self.queue.get_queue(self.queue_name), "error": str(e)}
                    )
                    await asyncio.sleep(self.poll_interval)
                    continue
                except BaseException:
                    self._semaphore.release()
                    raise

                if job:
                    task = asyncio.create_task(self._process_job(job))
                    self._tasks.add(task)
                    task.add_done_callback(self._tasks.discard)
                else:
                    self._semaphore.release()
                    await asyncio.sleep(self.poll_interval)

        except Exception as e:
            logger.error(f"Worker crashed: {e}", exc_info=True)
            raise

        finally:
            logger.info("Queue worker stopped")

    async def stop(self) -> None:
        """
        Stop the worker.

        Gracefully shuts down:
        1. Stops popping new jobs
        2. Waits for in-flight jobs to complete
        3. Cancels any remaining tasks
        """
        if not self._running:
            return

        logger.info("Stopping queue worker...")
        self._running = False

        if self._tasks:
            logger.info(f"Waiting for {len(self._tasks)} jobs to complete...")
            try:
                await asyncio.wait_for(
                    asyncio.gather(*self._tasks, return_exceptions=True),
                    timeout=30.0
                )
            except asyncio.TimeoutError:
                logger.warning("Timeout waiting for jobs, cancelling remaining")
                for task in self._tasks:
                    task.cancel()

    async def _process_job(self, job: IronJob) -> None:
        """
        Fire a single job and settle it.

        Args:
            job: Job popped from the queue
        """
        try:
            logger.debug(f"Processing job {job.get_job_id()} (attempt {job.attempts()})")

            await job.fire()

            if not job.is_deleted_or_released():
                await job.delete()

            logger.info(
                f"Job {job.get_job_id()} processed successfully",
                extra={
                    "message_id": job.get_job_id(),
                    "job": job.resolve_name(),
                    "attempts": job.attempts(),
                }
            )

        except Exception as e:
            logger.error(
                f"Failed to process job {job.get_job_id()}",
                extra={
                    "message_id": job.get_job_id(),
                    "job": job.resolve_name(),
                    "attempts": job.attempts(),
                    "error": str(e),
                },
                exc_info=True
            )
            await self._settle_failed(job)

        finally:
            self._semaphore.release()

    async def _settle_failed(self, job: IronJob) -> None:
        """Release a failed job, or delete it once maxTries is used up."""
        if job.is_deleted_or_released():
            return

        max_tries = job.max_tries()
        try:
            if max_tries and job.attempts() >= max_tries:
                logger.warning(
                    f"Job {job.get_job_id()} exceeded max tries, deleting",
                    extra={"message_id": job.get_job_id(), "max_tries": max_tries}
                )
                await job.delete()
            else:
                await job.release()
        except Exception as e:
            # The reservation will expire and IronMQ will hand the message out again
            logger.error(
                f"Failed to settle job {job.get_job_id()}",
                extra={"message_id": job.get_job_id(), "error": str(e)},
                exc_info=True
            )
