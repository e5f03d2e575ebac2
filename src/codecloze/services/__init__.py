"""Services for CodeCloze."""

from .ai_service import AIService
from .llm_client import LLMClient
from .review_engine import ReviewPipeline, render_comment

__all__ = ["AIService", "LLMClient", "ReviewPipeline", "render_comment"]
