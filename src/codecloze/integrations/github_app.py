"""GitHub App authentication: app assertions and installation tokens."""

import base64
import binascii
import re
from typing import Optional

import jwt
import structlog
from github import Auth

from ..config import Settings, get_settings
from ..errors import CredentialConfigError, KeyFormatError, TokenExchangeError
from .github_client import GitHubClient

logger = structlog.get_logger(__name__)

# GitHub rejects assertions living longer than 10 minutes; backdating by a
# minute absorbs clock drift between us and GitHub.
JWT_ISSUED_AT_OFFSET = -60
JWT_EXPIRY_SECONDS = 9 * 60

PEM_LINE_WIDTH = 64
_PEM_RE = re.compile(r"-----BEGIN ([^-]+)-----([^-]+)-----END ([^-]+)-----")


def normalize_pem(key: str) -> str:
    """Restore PEM line breaks stripped during storage.

    Keys that already contain newlines are returned unchanged. Otherwise the
    body between the BEGIN/END markers is re-wrapped at 64 characters.
    """
    if "\n" in key:
        return key

    match = _PEM_RE.search(key)
    if not match:
        return key

    key_type, body, end_type = match.groups()
    body = "".join(body.split())
    lines = [body[i:i + PEM_LINE_WIDTH] for i in range(0, len(body), PEM_LINE_WIDTH)]
    wrapped = "\n".join(lines)
    return f"-----BEGIN {key_type}-----\n{wrapped}\n-----END {end_type}-----\n"


def load_private_key(settings: Settings) -> str:
    """Decode and normalize the configured GitHub App private key."""
    if settings.github_private_key_base64:
        try:
            key = base64.b64decode(settings.github_private_key_base64).decode("utf-8")
        except (binascii.Error, ValueError) as e:
            raise KeyFormatError(f"Failed to decode private key from Base64: {e}") from e
    elif settings.github_private_key:
        key = settings.github_private_key.replace("\\n", "\n")
    else:
        raise CredentialConfigError("GitHub App credentials are not set")

    if "BEGIN" not in key or "PRIVATE KEY" not in key:
        raise KeyFormatError("Decoded private key does not appear to be a valid PEM format")

    return normalize_pem(key)


class GitHubAppCredentials:
    """Produces installation tokens for a GitHub App.

    Nothing is cached: every invocation signs a fresh assertion and exchanges
    it for its own installation token.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        github_client: Optional[GitHubClient] = None,
    ):
        self.settings = settings or get_settings()
        self.github_client = github_client or GitHubClient(self.settings)

    def issue_identity_assertion(self) -> str:
        """Sign a short-lived RS256 JWT identifying the app."""
        if not self.settings.github_app_id:
            raise CredentialConfigError("GitHub App credentials are not set")
        private_key = load_private_key(self.settings)

        try:
            app_auth = Auth.AppAuth(
                self.settings.github_app_id,
                private_key,
                jwt_expiry=JWT_EXPIRY_SECONDS,
                jwt_issued_at=JWT_ISSUED_AT_OFFSET,
            )
            return app_auth.token
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise KeyFormatError(f"Failed to sign JWT: {e}") from e

    async def exchange_for_installation_token(self, installation_id: int, assertion: str) -> str:
        """Exchange the app assertion for an installation-scoped token."""
        return await self.github_client.exchange_installation_token(installation_id, assertion)

    async def get_installation_token(self, installation_id: int) -> str:
        assertion = self.issue_identity_assertion()
        try:
            token = await self.exchange_for_installation_token(installation_id, assertion)
        except TokenExchangeError:
            logger.error(
                "Failed to get installation token",
                installation_id=installation_id,
                has_app_id=bool(self.settings.github_app_id),
                has_private_key=self.settings.has_app_credentials
            )
            raise
        logger.info("Installation token acquired", installation_id=installation_id)
        return token
