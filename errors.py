# errors.py

from typing import Optional, Sequence


class WebhookError(Exception):
    """
    Base class for every failure that terminates a webhook request.

    `detail` is the short message returned to the caller. Diagnostic context
    (command output, paths) belongs in the log, never in `detail`.
    """
    status_code = 500
    detail = "Internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.detail)


class ReadError(WebhookError):
    status_code = 500
    detail = "Error reading request body"


class InvalidSignature(WebhookError):
    status_code = 403
    detail = "Invalid signature"


class MissingSignature(InvalidSignature):
    status_code = 400
    detail = "Missing signature header"


class MalformedPayload(WebhookError):
    status_code = 400
    detail = "Invalid payload"


class UnsafeRepositoryName(WebhookError):
    status_code = 400
    detail = "Invalid repository name"


class UnknownRepository(WebhookError):
    status_code = 400
    detail = "Unknown repository"


class PullFailed(WebhookError):
    status_code = 500
    detail = "Failed to pull repository"


class BuildFailed(WebhookError):
    status_code = 500
    detail = "Failed to build repository"


class CommandError(Exception):
    """Raised by a command runner when a command could not run or exited non-zero."""

    def __init__(self, args: Sequence[str], returncode: Optional[int], output: str = ""):
        self.command = list(args)
        self.returncode = returncode
        self.output = output
        super().__init__(
            f"Command '{' '.join(self.command)}' failed (exit {returncode}): {output.strip()}"
        )
