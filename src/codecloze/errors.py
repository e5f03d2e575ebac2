"""Error taxonomy for the webhook pipeline.

Every error that can end an invocation carries the HTTP status and the JSON
body the webhook endpoint answers with. Gating and review errors are raised
and recovered inside the review pipeline and never reach the endpoint.
"""

from typing import Any, Dict, Optional


class CodeClozeError(Exception):
    """Base class for errors surfaced as an HTTP response."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        super().__init__(message or self.error)
        self.details = details

    def to_response(self) -> Dict[str, Any]:
        """JSON body returned to the webhook caller."""
        content: Dict[str, Any] = {"error": self.error}
        if self.details:
            content["details"] = self.details
        return content


class ConfigError(CodeClozeError):
    """Required server configuration is missing."""

    status_code = 500
    error = "Server misconfigured"


class SignatureInvalid(CodeClozeError):
    """Webhook signature header is missing or does not match the body."""

    status_code = 401
    error = "Invalid signature"


class PayloadMalformed(CodeClozeError):
    """Request body is not a JSON object of the expected shape."""

    status_code = 400
    error = "Invalid JSON payload"


class MissingRequiredField(CodeClozeError):
    """An invocation is missing a field needed to talk to GitHub."""

    status_code = 400
    error = "Invalid payload: missing required fields"

    def __init__(self, field: str):
        super().__init__(f"Missing required payload field: {field}")
        self.field = field

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.error, "field": self.field}


class _UpstreamError(CodeClozeError):
    """An upstream HTTP call failed; keeps status and body for diagnostics."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message, details=message)
        self.status = status
        self.body = body


class CredentialError(CodeClozeError):
    """The installation token could not be obtained."""

    status_code = 500
    error = "auth failed"

    def __init__(self, message: str):
        super().__init__(message, details=message)


class CredentialConfigError(CredentialError):
    """GitHub App id or private key is not configured."""


class KeyFormatError(CredentialError):
    """The private key does not decode to a usable PEM key."""


class TokenExchangeError(CredentialError):
    """GitHub refused to exchange the app assertion for a token."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class UpstreamDiffError(_UpstreamError):
    """The pull request diff could not be retrieved."""

    status_code = 500
    error = "diff fetch failed"


class DiffFetchError(UpstreamDiffError):
    """GitHub answered the diff request with an error."""


class CommentPostError(_UpstreamError):
    """The review comment could not be posted."""

    status_code = 500
    error = "comment failed"

    def to_response(self) -> Dict[str, Any]:
        content = super().to_response()
        if self.status is not None:
            content["status"] = self.status
        return content


class ModelResponseError(Exception):
    """The model service returned no usable text."""


class GatingError(Exception):
    """The gating stage produced no usable verdict."""


class ReviewError(Exception):
    """The review stage produced no usable findings list."""
