"""
Push Queue Endpoint

Receives IronMQ push-queue deliveries and fires the job they carry.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from loguru import logger

from ironqueue.api.dependencies import validate_push_token
from ironqueue.config import settings
from ironqueue.message_queue.marshaler import PushedJobMarshaler

router = APIRouter(prefix="/queue", tags=["Queue"])


@router.post("/receive", dependencies=[Depends(validate_push_token)])
async def receive_pushed_job(request: Request):
    """
    IronMQ push-queue subscriber endpoint.

    Flow:
    1. Read the message id header and raw body
    2. Decrypt/decode the body into a pushed job
    3. Fire the job through the execution runtime
    4. Answer "OK" so IronMQ marks the delivery done

    A body that cannot be decoded is answered with 400, and a job that
    raises is answered with 500, so IronMQ retries the delivery.

    Returns:
        Plain text acknowledgement
    """
    marshaler: PushedJobMarshaler = request.app.state.marshaler

    message_id = request.headers.get(settings.iron_push_message_id_header)
    try:
        content = (await request.body()).decode("utf-8")
    except UnicodeDecodeError as e:
        logger.error(
            "Rejected pushed message",
            extra={"message_id": message_id, "error": str(e)}
        )
        return PlainTextResponse("Payload is not valid UTF-8", status_code=400)

    try:
        ack = await marshaler.marshal(message_id, content)
    except Exception as e:
        logger.error(
            "Pushed job failed",
            extra={"message_id": message_id, "error": str(e)},
            exc_info=True
        )
        return PlainTextResponse("Job failed", status_code=500)

    return PlainTextResponse(ack.content, status_code=ack.status_code)
