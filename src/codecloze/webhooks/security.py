"""GitHub webhook signature verification."""

import hashlib
import hmac
from typing import Optional

import structlog

from ..errors import ConfigError, SignatureInvalid

logger = structlog.get_logger(__name__)

SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, payload_body: bytes) -> str:
    """Return the ``sha256=<hex>`` HMAC of the raw body."""
    digest = hmac.new(secret.encode("utf-8"), payload_body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def _normalize(signature: str) -> str:
    signature = signature.strip().lower()
    if not signature.startswith(SIGNATURE_PREFIX):
        signature = f"{SIGNATURE_PREFIX}{signature}"
    return signature


def verify_signature(
    payload_body: bytes,
    signature_header: Optional[str],
    secret: Optional[str],
) -> None:
    """Verify the ``X-Hub-Signature-256`` header against the raw body.

    The HMAC is computed over the exact bytes received, never over a parsed
    and re-serialized payload. Raises ``ConfigError`` when no secret is
    configured and ``SignatureInvalid`` when the header is absent or does not
    match.
    """
    if not secret:
        logger.error("GITHUB_WEBHOOK_SECRET is not set")
        raise ConfigError()

    if not signature_header:
        logger.warning("Missing webhook signature")
        raise SignatureInvalid()

    expected = compute_signature(secret, payload_body)
    provided = _normalize(signature_header)
    if not hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8")):
        logger.warning("Invalid webhook signature", signature_length=len(signature_header))
        raise SignatureInvalid()
