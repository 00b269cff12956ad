import asyncio
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from starlette.requests import ClientDisconnect

from dependencies import get_webhook_handler
from errors import ReadError, WebhookError
from webhook_handler import WebhookHandler

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/github", summary="GitHub Webhook Endpoint")
async def handle_github_webhook(
        request: Request,
        x_hub_signature_256: str = Header(None),
        x_github_event: str = Header(None),
        handler: WebhookHandler = Depends(get_webhook_handler)
):
    logger.info("Webhook endpoint was called.")
    try:
        try:
            body_bytes = await request.body()
        except ClientDisconnect as e:
            logger.error(f"Error reading request body: {e}")
            raise ReadError()

        # Pull and build block for their full duration, so keep them off the event loop.
        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(
            None,
            handler.handle,
            body_bytes,
            x_hub_signature_256,
            request.headers.get("Content-Type", ""),
            x_github_event
        )
    except WebhookError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return {"message": outcome}
