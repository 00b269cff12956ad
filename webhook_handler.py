import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Optional
from urllib.parse import parse_qs

from pydantic import ValidationError

from config import Settings
from errors import (
    BuildFailed,
    CommandError,
    InvalidSignature,
    MalformedPayload,
    MissingSignature,
    PullFailed,
    UnknownRepository,
)
from models.github_webhook import GitHubWebhook
from notifications import Notifications
from repositories import resolve_workdir
from utils import run_command, verify_signature

logger = logging.getLogger(__name__)

# Outcomes of a successful request
PONG = "pong"
PULLED = "pulled"
BUILT = "built"

OWNERSHIP_HINT = (
    "Note: If this results in the error 'detected dubious ownership in repository', "
    "the repository is owned by a different user than the one running '{pull}' through this service. "
    "Transfer the ownership with 'sudo chown -R www-data {workdir}' and run "
    "'git config --global --add safe.directory {workdir}' to let other users pull there as well."
)

CommandRunner = Callable[..., str]


class WebhookHandler:
    """
    Authenticates a GitHub push delivery and updates the matching checkout.

    Each call is independent: the handler keeps no per-request state, and
    concurrent deliveries for the same repository are not serialised.
    """

    def __init__(
            self,
            settings: Settings,
            runner: CommandRunner = run_command,
            notifier: Optional[Notifications] = None
    ):
        self.settings = settings
        self.runner = runner
        self.notifier = notifier
        # Slack and SMTP can take tens of seconds; GitHub gives up on a delivery after 10
        self._notify_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="notify")
        self._pending_notifications = set()

    def handle(
            self,
            body: bytes,
            signature_header: Optional[str],
            content_type: str = "application/json",
            event: Optional[str] = None
    ) -> str:
        self.verify(body, signature_header)

        if event == "ping":
            logger.info("Received ping event from GitHub.")
            return PONG

        webhook = self.parse_payload(body, content_type)
        name = webhook.repository.name
        logger.info(f"Received webhook for repository: {name}")

        workdir = self.resolve_workdir(name)
        return self.update(workdir, name)

    def verify(self, body: bytes, signature_header: Optional[str]):
        if not signature_header:
            logger.error("Missing X-Hub-Signature-256 header.")
            raise MissingSignature()
        if not verify_signature(body, signature_header, self.settings.github_secret):
            logger.warning("Invalid HMAC signature provided in X-Hub-Signature-256 header.")
            raise InvalidSignature()

    def parse_payload(self, body: bytes, content_type: str) -> GitHubWebhook:
        try:
            if "application/x-www-form-urlencoded" in content_type:
                form_data = parse_qs(body.decode("utf-8"))
                if "payload" not in form_data:
                    raise ValueError("No payload parameter in form data")
                payload = json.loads(form_data["payload"][0])
            else:
                # GitHub sends JSON by default; a missing or odd Content-Type does not change the body
                payload = json.loads(body)
        except (ValueError, RecursionError) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors; deep nesting is a RecursionError
            logger.error(f"Could not decode JSON payload: {e}")
            raise MalformedPayload()

        if not isinstance(payload, dict):
            logger.error("Payload is not a JSON object.")
            raise MalformedPayload()

        try:
            return GitHubWebhook(**payload)
        except ValidationError as e:
            logger.error(f"Invalid payload: {e}")
            raise MalformedPayload()

    def resolve_workdir(self, name: str) -> str:
        return resolve_workdir(name, self.settings.parent_dir, self.settings.folder_suffix)

    def require_checkout(self, workdir: str):
        """Used by the manual endpoint, which has no GitHub delivery vouching for the name."""
        if not os.path.isdir(workdir):
            logger.warning(f"No checkout found at {workdir}")
            raise UnknownRepository()

    def update(self, workdir: str, repository: Optional[str] = None) -> str:
        """
        Pull `workdir` and, when it contains the build file, build it.

        Returns PULLED when there was nothing to build, BUILT otherwise. There is
        no rollback: a failed build leaves the freshly pulled revision in place.
        """
        repository = repository or os.path.basename(workdir)
        settings = self.settings

        try:
            output = self.runner(workdir, settings.pull_command, timeout=settings.command_timeout)
            logger.info(f"Pull output for {workdir}:\n{output}")
        except CommandError as e:
            logger.error(f"Failed pulling repository {workdir}: {e.output} (exit {e.returncode})")
            logger.error(OWNERSHIP_HINT.format(pull=" ".join(settings.pull_command), workdir=workdir))
            self._notify(repository, "failed", "Failed to pull repository.")
            raise PullFailed()

        if not os.path.isfile(os.path.join(workdir, settings.build_file)):
            logger.info(
                f"No {settings.build_file} found in folder {workdir}. "
                "Nothing to build, but the repository is pulled and up to date."
            )
            self._notify(repository, "successful", "Repository pulled.")
            return PULLED

        try:
            output = self.runner(workdir, settings.build_command, timeout=settings.command_timeout)
            logger.info(f"Build output for {workdir}:\n{output}")
        except CommandError as e:
            logger.error(f"Failed building repository {workdir}: {e.output} (exit {e.returncode})")
            self._notify(repository, "failed", "Failed to build repository.")
            raise BuildFailed()

        self._notify(repository, "successful", "Repository pulled and built.")
        return BUILT

    def _notify(self, repository: str, status: str, details: str):
        if self.notifier is None:
            return
        future = self._notify_executor.submit(self.notifier.notify_update_event, repository, status, details)
        self._pending_notifications.add(future)
        future.add_done_callback(self._notification_done)

    def _notification_done(self, future):
        self._pending_notifications.discard(future)
        if future.exception() is not None:
            logger.error(f"Notification failed: {future.exception()}")

    def drain_notifications(self, timeout: Optional[float] = None):
        """Wait for queued notifications, e.g. on shutdown."""
        pending = list(self._pending_notifications)
        if pending:
            wait(pending, timeout=timeout)
