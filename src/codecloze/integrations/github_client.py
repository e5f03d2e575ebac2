"""GitHub REST client for the calls an invocation makes."""

from typing import Dict, Optional

import httpx
import structlog

from ..config import Settings, get_settings
from ..errors import CommentPostError, DiffFetchError, TokenExchangeError
from ..models.github import Diff

logger = structlog.get_logger(__name__)

GITHUB_JSON_MEDIA_TYPE = "application/vnd.github+json"
GITHUB_DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
GITHUB_API_VERSION = "2022-11-28"


class GitHubClient:
    """Client for GitHub API operations.

    Each method opens a short-lived ``httpx.AsyncClient`` bounded by
    ``github_timeout_seconds``. Non-2xx answers, transport failures and
    timeouts are raised as the error of the calling stage; nothing is retried.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize GitHub client."""
        self.settings = settings or get_settings()
        self._transport = transport

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.github_api_url,
            timeout=self.settings.github_timeout_seconds,
            transport=self._transport,
        )

    def _headers(self, bearer: str, accept: str = GITHUB_JSON_MEDIA_TYPE) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {bearer}",
            "Accept": accept,
            "User-Agent": self.settings.user_agent,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    async def exchange_installation_token(self, installation_id: int, assertion: str) -> str:
        """Exchange a signed app assertion for an installation access token."""
        path = f"/app/installations/{installation_id}/access_tokens"
        try:
            async with self._new_client() as client:
                response = await client.post(path, headers=self._headers(assertion))
        except httpx.HTTPError as e:
            logger.error(
                "Installation token request failed",
                installation_id=installation_id,
                error=str(e)
            )
            raise TokenExchangeError(f"Failed to get installation token: {e}") from e

        if not response.is_success:
            logger.error(
                "GitHub API error response",
                status=response.status_code,
                body=response.text,
                installation_id=installation_id
            )
            raise TokenExchangeError(
                f"Failed to get installation token: {response.status_code} {response.text}",
                status=response.status_code,
                body=response.text,
            )

        try:
            token = response.json().get("token")
        except (ValueError, AttributeError):
            token = None
        if not isinstance(token, str) or not token:
            raise TokenExchangeError(
                "Failed to get installation token: response has no token",
                status=response.status_code,
                body=response.text,
            )
        return token

    async def fetch_pull_request_diff(
        self,
        token: str,
        owner: str,
        repo: str,
        pr_number: int
    ) -> Diff:
        """Fetch the unified diff of a pull request."""
        path = f"/repos/{owner}/{repo}/pulls/{pr_number}"
        try:
            async with self._new_client() as client:
                response = await client.get(
                    path, headers=self._headers(token, accept=GITHUB_DIFF_MEDIA_TYPE)
                )
        except httpx.HTTPError as e:
            logger.error(
                "Diff request failed",
                repo=f"{owner}/{repo}",
                pr_number=pr_number,
                error=str(e)
            )
            raise DiffFetchError(f"Failed to fetch diff: {e}") from e

        if not response.is_success:
            logger.error(
                "Error retrieving pull request diff",
                repo=f"{owner}/{repo}",
                pr_number=pr_number,
                status=response.status_code,
                body=response.text
            )
            raise DiffFetchError(
                f"Failed to fetch diff: {response.status_code} {response.text}",
                status=response.status_code,
                body=response.text,
            )

        # Diffs are read as UTF-8 whatever charset the response declares;
        # undecodable bytes become U+FFFD and raw_bytes keeps the wire size.
        diff = Diff(text=response.content.decode("utf-8", errors="replace"))
        logger.info(
            "Retrieved pull request diff",
            repo=f"{owner}/{repo}",
            pr_number=pr_number,
            raw_bytes=len(response.content),
            **diff.stats
        )
        return diff

    async def post_issue_comment(
        self,
        token: str,
        owner: str,
        repo: str,
        issue_number: int,
        body: str
    ) -> None:
        """Post a comment on an issue or pull request."""
        path = f"/repos/{owner}/{repo}/issues/{issue_number}/comments"
        try:
            async with self._new_client() as client:
                response = await client.post(path, headers=self._headers(token), json={"body": body})
        except httpx.HTTPError as e:
            logger.error(
                "Comment request failed",
                repo=f"{owner}/{repo}",
                pr_number=issue_number,
                error=str(e)
            )
            raise CommentPostError(f"Failed to post comment: {e}") from e

        logger.info(
            "GitHub comment response",
            repo=f"{owner}/{repo}",
            pr_number=issue_number,
            status=response.status_code
        )
        if not response.is_success:
            raise CommentPostError(
                f"Failed to post comment: {response.status_code} {response.text}",
                status=response.status_code,
                body=response.text,
            )
