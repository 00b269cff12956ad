# main.py

import logging

import uvicorn

from application import create_app
from config import get_settings
from logging_config import setup_logging

# Console logging first so the settings summary is visible, then the configured setup
setup_logging()
settings = get_settings()
setup_logging(settings.debug, settings.log_db_path)

logger = logging.getLogger(__name__)
logger.info("Starting the webhook application...")

app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
