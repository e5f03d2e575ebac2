"""Pydantic models for CodeCloze."""

from .github import Diff, InvocationContext, WebhookPayload
from .review import Finding, GatingVerdict, ReviewOutcome

__all__ = [
    "Diff",
    "InvocationContext",
    "WebhookPayload",
    "Finding",
    "GatingVerdict",
    "ReviewOutcome",
]
