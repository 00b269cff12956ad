# utils.py

import binascii
import hmac
import hashlib
import subprocess
import logging
from typing import Optional, Sequence

from errors import CommandError

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, request_body: bytes) -> bytes:
    return hmac.new(secret.encode(), msg=request_body, digestmod=hashlib.sha256).digest()


def verify_signature(request_body: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Check an X-Hub-Signature-256 header value against the HMAC-SHA256 of the raw body.

    The header must read 'sha256=<hex>'. Hex decoding is strict (either case, no
    whitespace), and anything that does not decode is rejected. The digests are
    compared as bytes with hmac.compare_digest.
    """
    if not secret:
        logger.error("Webhook secret is not configured. Rejecting signature.")
        return False

    if not signature:
        logger.warning("No signature provided.")
        return False

    if not signature.startswith(SIGNATURE_PREFIX):
        logger.warning("Unsupported signature type.")
        return False

    try:
        provided = binascii.unhexlify(signature[len(SIGNATURE_PREFIX):])
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Couldn't decode X-Hub-Signature-256 header as hex: {e}")
        return False

    is_valid = hmac.compare_digest(provided, compute_signature(secret, request_body))
    if is_valid:
        logger.debug("Webhook signature verified successfully.")
    else:
        logger.warning("Webhook signature verification failed.")
    return is_valid


def run_command(cwd: str, args: Sequence[str], timeout: Optional[float] = None) -> str:
    """
    Run `args` (no shell) in `cwd` and return stdout and stderr combined.

    Raises CommandError on a non-zero exit, when the process cannot be started
    (missing binary or directory) or when `timeout` expires.
    """
    command = " ".join(args)
    logger.debug(f"Executing command: {command} in {cwd}")
    try:
        result = subprocess.run(
            list(args),
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout
        )
    except subprocess.TimeoutExpired as e:
        output = e.output or ""
        if isinstance(output, bytes):
            output = output.decode("utf-8", errors="replace")
        logger.error(f"Command timed out after {timeout}s: {command}")
        raise CommandError(args, None, output)
    except OSError as e:
        logger.error(f"Could not execute command '{command}': {e}")
        raise CommandError(args, None, str(e))

    output = result.stdout.strip()
    if output:
        logger.debug(f"Command output: {output}")

    if result.returncode != 0:
        logger.debug(f"Command '{command}' exit status: {result.returncode}")
        raise CommandError(args, result.returncode, output)

    logger.debug(f"Command executed successfully: {command}")
    return output
