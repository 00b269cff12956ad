# deploy.py is a FastAPI router that handles manual update requests.

import logging

from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_api_key, get_webhook_handler
from errors import WebhookError
from models.deploy_request import DeployRequest
from webhook_handler import WebhookHandler

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/deploy", summary="Manual Update Endpoint")
def manual_deploy(
        deploy_request: DeployRequest,
        api_key: str = Depends(get_api_key),
        handler: WebhookHandler = Depends(get_webhook_handler)
):
    repository = deploy_request.repository
    logger.info(f"Manual update triggered for repository: {repository}")

    try:
        workdir = handler.resolve_workdir(repository)
        handler.require_checkout(workdir)
        outcome = handler.update(workdir, repository)
    except WebhookError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    logger.info(f"Manual update of {repository} finished: {outcome}")
    return {"message": outcome}
