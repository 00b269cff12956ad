# config.py

import os
import yaml
import logging
from typing import List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"


class EmailSettings(BaseModel):
    smtp_server: Optional[str] = None
    smtp_port: int = 587
    use_tls: bool = True
    username: Optional[str] = None
    password: Optional[str] = None
    sender_email: Optional[str] = None
    recipients: List[str] = Field(default_factory=list)


class NotificationSettings(BaseModel):
    slack_webhook_url: str = ""
    email: Optional[EmailSettings] = None


class Settings(BaseModel):
    github_secret: str = ""
    parent_dir: str = "/var/www/"
    folder_suffix: str = ".linu.sk"
    build_file: str = "Makefile"
    pull_command: List[str] = Field(default_factory=lambda: ["git", "pull"])
    build_command: List[str] = Field(default_factory=lambda: ["make", "build"])
    command_timeout: Optional[float] = None
    api_key: str = ""
    debug: bool = False
    log_db_path: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8010
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


def load_config(path: Optional[str] = None) -> dict:
    """
    Load configuration from a YAML file.

    The file is `path` if given, else the CONFIG_PATH environment variable, else
    config.yaml. Only an explicitly requested file is required to exist; a missing
    default file means "use defaults".

    Returns:
        dict: Parsed configuration dictionary.
    """
    explicit = path or os.getenv("CONFIG_PATH")
    config_path = explicit or DEFAULT_CONFIG_PATH

    if not os.path.exists(config_path):
        if explicit:
            logger.error(f"Configuration file '{config_path}' not found.")
            raise FileNotFoundError(f"Configuration file '{config_path}' not found.")
        logger.warning(f"Configuration file '{config_path}' not found. Using defaults.")
        return {}

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
            logger.info(f"Configuration loaded successfully from '{config_path}'.")
            return config
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML file '{config_path}': {e}")
        raise


def _apply_env_overrides(config: dict) -> dict:
    # Secrets are usually injected by the service manager rather than written to config.yaml
    env_map = {
        "GITHUB_SECRET": "github_secret",
        "WEBHOOK_API_KEY": "api_key",
        "PARENT_DIR": "parent_dir",
        "LOG_DB_PATH": "log_db_path",
        "DEBUG": "debug",
    }
    for env_name, key in env_map.items():
        value = os.getenv(env_name)
        if value is not None:
            config[key] = value

    notifications = dict(config.get("notifications") or {})
    if os.getenv("SLACK_WEBHOOK_URL") is not None:
        notifications["slack_webhook_url"] = os.getenv("SLACK_WEBHOOK_URL")

    email_env_map = {
        "EMAIL_USERNAME": "username",
        "EMAIL_PASSWORD": "password",
        "SMTP_SERVER": "smtp_server",
        "SMTP_PORT": "smtp_port",
        "EMAIL_USE_TLS": "use_tls",
    }
    email_settings = dict(notifications.get("email") or {})
    for env_name, key in email_env_map.items():
        value = os.getenv(env_name)
        if value is not None:
            email_settings[key] = value
    if email_settings:
        notifications["email"] = email_settings

    config["notifications"] = notifications
    return config


def get_settings(path: Optional[str] = None) -> Settings:
    """Build the Settings object once at start-up: YAML first, then environment overrides."""
    config = _apply_env_overrides(dict(load_config(path)))
    settings = Settings(**config)

    if not settings.github_secret:
        logger.error("GITHUB_SECRET is not configured. Every webhook delivery will be rejected.")
    if not settings.api_key:
        logger.warning("No API key configured. Manual deploy and test endpoints are disabled.")

    email_settings = settings.notifications.email
    if email_settings is not None:
        if not email_settings.username or not email_settings.password:
            logger.warning("Email username or password is missing. Email notifications may fail.")
        if not email_settings.recipients:
            logger.warning("No email recipients configured. Email notifications will not be sent.")

    # Log summary of key settings (without sensitive details)
    logger.info(f"Parent directory: {settings.parent_dir}")
    logger.info(f"Folder suffix: {settings.folder_suffix}")
    logger.info(f"Pull command: {' '.join(settings.pull_command)}")
    logger.info(f"Build command: {' '.join(settings.build_command)} (when {settings.build_file} exists)")
    return settings
