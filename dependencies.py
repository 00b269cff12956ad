# dependencies.py

import hmac
import logging

from fastapi import Header, HTTPException, Request, status, Depends

from config import Settings
from webhook_handler import WebhookHandler

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_webhook_handler(request: Request) -> WebhookHandler:
    return request.app.state.webhook_handler


def get_api_key(
        api_key: str = Header(None, alias="X-API-Key"),
        settings: Settings = Depends(get_settings)
):
    if not settings.api_key:
        logger.warning("API key endpoints called but no API key is configured.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API Key")
    if not api_key or not hmac.compare_digest(api_key.encode(), settings.api_key.encode()):
        logger.warning("Invalid API Key.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API Key")
    return api_key
