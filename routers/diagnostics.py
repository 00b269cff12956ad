import logging
import os

from fastapi import APIRouter, Depends

from dependencies import get_api_key, get_webhook_handler
from errors import CommandError
from webhook_handler import WebhookHandler

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/test-command", summary="Test Command Execution")
def test_command(
        api_key: str = Depends(get_api_key),
        handler: WebhookHandler = Depends(get_webhook_handler)
):
    """
    Simple check of the local tools: 'git --version' & 'make --version'.
    Ensures the environment has these commands installed and reachable.
    """
    logger.info("Test command endpoint was called.")
    return {
        "git_version": _tool_version(handler, ["git", "--version"]),
        "make_version": _tool_version(handler, ["make", "--version"]),
    }


def _tool_version(handler: WebhookHandler, args):
    try:
        output = handler.runner(os.getcwd(), args, timeout=15)
    except CommandError as e:
        logger.error(f"Test command '{' '.join(args)}' failed: {e}")
        return None
    # 'make --version' prints a license blurb after the first line
    return output.splitlines()[0] if output else "No output"
