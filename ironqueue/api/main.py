"""
FastAPI Application

Push-queue receiver for IronMQ.
Handles application lifecycle and router mounting.
"""
import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI
from loguru import logger

from ironqueue.config import settings
from ironqueue.connector import connect
from ironqueue.message_queue import PushedJobMarshaler, QueueWorker
from ironqueue.runtime import JobDispatcher
from ironqueue.utils.observability import configure_logging
from ironqueue.api.routes import health_router, queue_router


# Applications register their job handlers on this dispatcher
dispatcher = JobDispatcher()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle: startup and shutdown events.

    Startup:
    - Configure logging
    - Connect the IronMQ driver and bind the job dispatcher
    - Start the pull worker if WORKER_ENABLED

    Shutdown:
    - Stop the worker gracefully
    - Close the IronMQ client
    """
    configure_logging()
    logger.info("Starting ironqueue API server...")

    queue = connect(settings, runtime=dispatcher)
    marshaler = PushedJobMarshaler(queue)

    app.state.queue = queue
    app.state.marshaler = marshaler
    app.state.dispatcher = dispatcher

    worker = None
    worker_task = None
    if settings.worker_enabled:
        worker = QueueWorker(
            queue=queue,
            max_concurrent=settings.worker_max_concurrent,
            poll_interval=settings.worker_poll_interval
        )
        worker_task = asyncio.create_task(worker.start())
        app.state.worker = worker

    logger.info("API server ready to receive pushed jobs")

    yield

    logger.info("Shutting down API server...")

    if worker is not None:
        await worker.stop()

    if worker_task is not None and not worker_task.done():
        worker_task.cancel()
        try:
            await worker_task
        except asyncio.CancelledError:
            logger.info("Stopped queue worker")

    await queue.get_iron().close()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="ironqueue",
    description="IronMQ queue driver push receiver",
    version="1.0.0",
    lifespan=lifespan
)

# Mount routers
app.include_router(health_router)
app.include_router(queue_router)
