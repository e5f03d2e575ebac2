"""Webhook ingress: signature verification, filtering and orchestration."""

from .github_webhook import GitHubWebhookHandler, is_review_invocation
from .security import compute_signature, verify_signature

__all__ = ["GitHubWebhookHandler", "is_review_invocation", "compute_signature", "verify_signature"]
