"""Model-backed gating and review stages."""

from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError

from ..config import Settings, get_settings
from ..errors import GatingError, ReviewError
from ..models.review import Finding, GatingVerdict
from ..utils.json_extract import load_json_object
from .llm_client import LLMClient

logger = structlog.get_logger(__name__)

GATING_SYSTEM_PROMPT = """You are reviewing a pull request diff.

Determine whether there is any plausible bug risk that could realistically cause:
- runtime errors
- logic regressions
- auth or state bugs
- data integrity issues

Ignore:
- formatting
- refactors
- renames
- comments
- style changes

Use the structured schema enforced by the Responses API to reply. Do not add extra text beyond the schema.

If no meaningful risk exists:
{"review": false}

If any realistic risk might exist:
{"review": true}"""

REVIEW_SYSTEM_PROMPT = """You are a senior engineer reviewing a pull request diff.

Identify realistic bug risks only.
Each finding must:
- Reference specific lines or hunks from the diff
- Explain how the issue could manifest at runtime
- Be grounded in the actual change, not speculation

Do NOT comment on:
- style
- formatting
- refactors
- naming
- best practices unless tied directly to a concrete failure

Use the structured schema enforced by the Responses API to reply. Do not add extra text beyond the schema.

If no meaningful bug risk exists, return:
{"findings": []}

Otherwise, return JSON matching this schema:
{
  "findings": [
    {
      "summary": "short description",
      "lines": "diff context or hunk",
      "failure_mode": "how this could break at runtime",
      "confidence": 0.0-1.0
    }
  ]
}"""

GATING_RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "name": "gating_review",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "review": {
                "type": "boolean",
                "description": "True when a realistic bug risk warrants further review",
            },
        },
        "required": ["review"],
        "additionalProperties": False,
    },
}

REVIEW_RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "name": "review_findings",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "findings": {
                "type": "array",
                "description": "List of plausible bug risks grounded in the diff",
                "items": {
                    "type": "object",
                    "properties": {
                        "summary": {
                            "type": "string",
                            "description": "Short description of the issue",
                        },
                        "lines": {
                            "type": "string",
                            "description": "Diff context or hunk associated with the risk",
                        },
                        "failure_mode": {
                            "type": "string",
                            "description": "How the issue could fail at runtime",
                        },
                        "confidence": {
                            "type": "number",
                            "description": "Confidence between 0 and 1",
                            "minimum": 0,
                            "maximum": 1,
                        },
                    },
                    "required": ["summary", "lines", "failure_mode", "confidence"],
                    "additionalProperties": False,
                },
            },
        },
        "required": ["findings"],
        "additionalProperties": False,
    },
}


def build_messages(system_prompt: str, diff_text: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": f"Diff:\n---\n{diff_text}\n---"},
    ]


def parse_gating_response(raw: str) -> bool:
    """Read the ``review`` verdict from raw model output.

    Raises ``GatingError`` when no JSON object with a boolean ``review`` field
    can be read.
    """
    try:
        data = load_json_object(raw)
    except ValueError as e:
        raise GatingError(f"Failed to parse gating response: {e}") from e

    try:
        verdict = GatingVerdict.model_validate(data)
    except ValidationError as e:
        raise GatingError("Invalid gating response structure") from e
    return verdict.review


def parse_review_response(raw: str) -> List[Finding]:
    """Read validated findings from raw model output.

    Raises ``ReviewError`` when the output holds no JSON object with a
    ``findings`` array. Individual items that fail validation are dropped.
    """
    try:
        data = load_json_object(raw)
    except ValueError as e:
        raise ReviewError(f"Failed to parse review response: {e}") from e

    items = data.get("findings")
    if not isinstance(items, list):
        raise ReviewError("Invalid review response structure")

    findings = []
    for item in items:
        try:
            findings.append(Finding.model_validate(item))
        except ValidationError as e:
            logger.debug("Dropping invalid finding", errors=e.error_count())
    if len(findings) < len(items):
        logger.warning(
            "Dropped invalid findings",
            received=len(items),
            kept=len(findings)
        )
    return findings


class AIService:
    """Runs the two model stages against a diff.

    Both stages recover from their own failures: gating fails open (review
    needed), review degrades to no findings.
    """

    def __init__(self, settings: Optional[Settings] = None, llm: Optional[LLMClient] = None):
        """Initialize AI service."""
        self.settings = settings or get_settings()
        self.llm = llm or LLMClient(self.settings)

    async def assess_risk(self, diff_text: str) -> bool:
        """Gating stage: does the diff warrant a deeper review?"""
        try:
            raw = await self.llm.complete(
                self.settings.azure_openai_gating_deployment,
                build_messages(GATING_SYSTEM_PROMPT, diff_text),
                self.settings.gating_max_output_tokens,
                GATING_RESPONSE_FORMAT,
            )
            review_needed = parse_gating_response(raw)
        except Exception as e:
            logger.error("Gating model error, failing open", error=str(e), exc_info=True)
            return True

        logger.info("Gating decision", review_needed=review_needed)
        return review_needed

    async def find_risks(self, diff_text: str) -> List[Finding]:
        """Review stage: validated findings, or none if the stage fails."""
        try:
            raw = await self.llm.complete(
                self.settings.azure_openai_review_deployment,
                build_messages(REVIEW_SYSTEM_PROMPT, diff_text),
                self.settings.review_max_output_tokens,
                REVIEW_RESPONSE_FORMAT,
            )
            findings = parse_review_response(raw)
        except Exception as e:
            logger.error("Review model error, reporting no findings", error=str(e), exc_info=True)
            return []

        logger.info("Review findings", findings_count=len(findings))
        return findings
