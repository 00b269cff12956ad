"""Shared test fixtures."""

from __future__ import annotations

import hashlib
import hmac
from pathlib import Path
from typing import Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from application import create_app
from config import Settings
from errors import CommandError
from webhook_handler import WebhookHandler

SECRET = "It's a Secret to Everybody"


def sign(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class FakeRunner:
    """Records commands instead of running them; `fail` lists argv[0]s that exit non-zero."""

    def __init__(self, fail: Sequence[str] = (), output: str = "ok"):
        self.fail = set(fail)
        self.output = output
        self.calls: list[tuple[str, list[str], Optional[float]]] = []

    def __call__(self, cwd: str, args: Sequence[str], timeout: Optional[float] = None) -> str:
        self.calls.append((cwd, list(args), timeout))
        if args[0] in self.fail:
            raise CommandError(args, 1, f"{args[0]}: fatal: detected dubious ownership in repository")
        return self.output

    @property
    def commands(self) -> list[list[str]]:
        return [args for _, args, _ in self.calls]


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, str]] = []

    def notify_update_event(self, repository: str, status: str, details: str = "") -> None:
        self.events.append((repository, status, details))


@pytest.fixture
def parent_dir(tmp_path: Path) -> Path:
    """Temporary /var/www equivalent."""
    www = tmp_path / "www"
    www.mkdir()
    return www


@pytest.fixture
def blog_checkout(parent_dir: Path) -> Path:
    checkout = parent_dir / "blog.linu.sk"
    checkout.mkdir()
    return checkout


@pytest.fixture
def settings(parent_dir: Path) -> Settings:
    return Settings(github_secret=SECRET, parent_dir=str(parent_dir), api_key="api-key")


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def handler(settings: Settings, runner: FakeRunner, notifier: RecordingNotifier) -> WebhookHandler:
    return WebhookHandler(settings, runner=runner, notifier=notifier)


@pytest.fixture
def client(settings: Settings, runner: FakeRunner, notifier: RecordingNotifier) -> TestClient:
    return TestClient(create_app(settings, runner=runner, notifier=notifier))
