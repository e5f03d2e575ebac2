"""GitHub webhook handler for review invocations on pull requests."""

import json
from typing import Any, Dict, Optional

import structlog
from pydantic import ValidationError

from ..config import Settings, get_settings
from ..errors import PayloadMalformed
from ..integrations.github_app import GitHubAppCredentials
from ..integrations.github_client import GitHubClient
from ..models.github import WebhookPayload
from ..services.review_engine import ReviewPipeline
from .security import verify_signature

logger = structlog.get_logger(__name__)

ISSUE_COMMENT_EVENT = "issue_comment"
CREATED_ACTION = "created"

IGNORED_RESPONSE: Dict[str, Any] = {"ignored": True}


def event_ignore_reason(event_type: Optional[str], action: Any) -> Optional[str]:
    """Reason to ignore a delivery by its event type and action alone."""
    if event_type != ISSUE_COMMENT_EVENT:
        return f"event '{event_type}' not handled"
    if action != CREATED_ACTION:
        return f"action '{action}' not handled"
    return None


def ignore_reason(event_type: Optional[str], payload: WebhookPayload, phrase: str) -> Optional[str]:
    """Why an event is not a review invocation, or None if it is one."""
    reason = event_ignore_reason(event_type, payload.action)
    if reason is not None:
        return reason
    if phrase not in payload.comment_body:
        return "comment does not invoke a review"
    if not payload.is_pull_request:
        return "comment is not on a pull request"
    return None


def is_review_invocation(event_type: Optional[str], payload: WebhookPayload, phrase: str) -> bool:
    return ignore_reason(event_type, payload, phrase) is None


def decode_payload(payload_body: bytes) -> Dict[str, Any]:
    """Decode the raw body into a JSON object."""
    try:
        data = json.loads(payload_body)
    except ValueError as e:
        logger.error("Failed to parse JSON payload", error=str(e))
        raise PayloadMalformed(details=str(e)) from e

    if not isinstance(data, dict):
        raise PayloadMalformed(details="payload is not a JSON object")
    return data


def validate_payload(data: Dict[str, Any]) -> WebhookPayload:
    """Validate a decoded body against ``WebhookPayload``."""
    try:
        return WebhookPayload.model_validate(data)
    except ValidationError as e:
        logger.error("Unexpected webhook payload shape", errors=e.error_count())
        raise PayloadMalformed(details=str(e)) from e


class GitHubWebhookHandler:
    """Handler for GitHub webhook events.

    One call to ``handle_webhook`` is one invocation: verify, filter,
    authenticate, fetch the diff, run the review pipeline, post one comment.
    Stages run strictly in that order and the first failing stage ends the
    request.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        credentials: Optional[GitHubAppCredentials] = None,
        github_client: Optional[GitHubClient] = None,
        review_pipeline: Optional[ReviewPipeline] = None,
    ):
        """Initialize webhook handler."""
        self.settings = settings or get_settings()
        self.github_client = github_client or GitHubClient(self.settings)
        self.credentials = credentials or GitHubAppCredentials(self.settings, self.github_client)
        self.review_pipeline = review_pipeline or ReviewPipeline(self.settings)

    async def handle_webhook(
        self,
        payload_body: bytes,
        signature: Optional[str],
        event_type: Optional[str],
        delivery_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Handle incoming GitHub webhook."""
        log = logger.bind(delivery_id=delivery_id, event=event_type)

        verify_signature(payload_body, signature, self.settings.github_webhook_secret)
        data = decode_payload(payload_body)

        # Other events are ignored before their body shape is looked at.
        reason = event_ignore_reason(event_type, data.get("action"))
        if reason is None:
            payload = validate_payload(data)
            phrase = self.settings.invocation_phrase
            if not is_review_invocation(event_type, payload, phrase):
                reason = ignore_reason(event_type, payload, phrase)
        if reason is not None:
            log.debug("Ignoring webhook", reason=reason)
            return dict(IGNORED_RESPONSE)

        context = payload.invocation_context()
        log = log.bind(
            installation_id=context.installation_id,
            request_id=context.request_id
        )
        log.info("Invocation detected")

        self.settings.require_llm_settings()

        token = await self.credentials.get_installation_token(context.installation_id)
        diff = await self.github_client.fetch_pull_request_diff(
            token, context.owner, context.repo, context.issue_number
        )
        outcome = await self.review_pipeline.run(diff)
        await self.github_client.post_issue_comment(
            token, context.owner, context.repo, context.issue_number, outcome.comment_body
        )

        log.info(
            "Completed code review",
            needs_review=outcome.review_needed,
            findings_count=outcome.findings_count
        )
        return {
            "success": True,
            "needsReview": outcome.review_needed,
            "findingsCount": outcome.findings_count,
        }
