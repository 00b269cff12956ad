# application.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse

from config import Settings
from notifications import Notifications
from utils import run_command
from webhook_handler import CommandRunner, WebhookHandler

# Routers
from routers.health import router as health_router
from routers.diagnostics import router as diagnostics_router
from routers.webhook import router as webhook_router
from routers.deploy import router as deploy_router

logger = logging.getLogger(__name__)

SERVER_NAME = "webhooks.linu.sk"

INDEX_HTML = f"""<html>
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body>
<pre style="text-align: center; margin: 3em 0;">
<b>{SERVER_NAME}</b><br>
Nothing to see here.
</pre>
</body>
</html>"""


def create_app(
        settings: Settings,
        runner: CommandRunner = run_command,
        notifier: Optional[Notifications] = None
) -> FastAPI:
    """
    Build the application around an explicit Settings object.

    The runner and notifier are injected so tests can replace the external
    commands and the Slack/SMTP delivery.
    """
    if notifier is None:
        notifier = Notifications(settings.notifications)

    handler = WebhookHandler(settings, runner=runner, notifier=notifier)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Deliver queued update notifications before the process exits
        handler.drain_notifications(timeout=60)

    app = FastAPI(
        title="Webhooks",
        description="Pulls and builds repository checkouts on GitHub push webhooks",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.webhook_handler = handler

    @app.middleware("http")
    async def server_header(request: Request, call_next):
        response = await call_next(request)
        response.headers["Server"] = SERVER_NAME
        return response

    @app.get("/", include_in_schema=False, response_class=HTMLResponse)
    def index():
        return INDEX_HTML

    app.include_router(health_router)
    app.include_router(diagnostics_router)
    app.include_router(webhook_router)
    app.include_router(deploy_router)

    return app
