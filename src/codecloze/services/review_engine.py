"""Two-stage review pipeline: gating, optional review, rendering."""

import re
import time
from typing import List, Optional, Sequence

import structlog

from ..config import Settings, get_settings
from ..models.github import Diff
from ..models.review import Finding, ReviewOutcome
from .ai_service import AIService

logger = structlog.get_logger(__name__)

REASSURANCE_MESSAGE = (
    "✅ **CodeCloze review complete**\n\n"
    "No realistic bug risks were found in this diff."
)
FINDINGS_HEADING = "⚠️ **CodeCloze found possible risk**"
FINDINGS_SEPARATOR = "\n\n---\n\n"


def rank_findings(findings: Sequence[Finding], limit: int) -> List[Finding]:
    """Highest confidence first; equal confidences keep the model's order."""
    return sorted(findings, key=lambda finding: finding.confidence, reverse=True)[:limit]


def _code_fence(text: str) -> str:
    """A backtick fence longer than any backtick run inside ``text``."""
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    return "`" * max(3, longest + 1)


def _render_finding(finding: Finding) -> str:
    fence = _code_fence(finding.lines)
    return "\n".join([
        f"**{finding.summary}**",
        "",
        finding.failure_mode,
        "",
        f"*Confidence: {finding.confidence:.0%}*",
        "",
        f"{fence}diff",
        finding.lines.rstrip("\n"),
        fence,
    ])


def render_comment(findings: Sequence[Finding], limit: int = 3) -> str:
    """Render the single comment posted for an invocation."""
    if not findings:
        return REASSURANCE_MESSAGE

    blocks = [_render_finding(finding) for finding in rank_findings(findings, limit)]
    return f"{FINDINGS_HEADING}\n\n" + FINDINGS_SEPARATOR.join(blocks)


class ReviewPipeline:
    """Runs gating, then review when gating asks for it, then renders.

    Stages run once each, in order. Neither stage raises: their failures are
    already folded into a verdict or an empty findings list.
    """

    def __init__(self, settings: Optional[Settings] = None, ai_service: Optional[AIService] = None):
        self.settings = settings or get_settings()
        self.ai_service = ai_service or AIService(self.settings)

    async def run(self, diff: Diff) -> ReviewOutcome:
        start_time = time.monotonic()

        review_needed = await self.ai_service.assess_risk(diff.text)
        findings: List[Finding] = []
        if review_needed:
            findings = await self.ai_service.find_risks(diff.text)
        else:
            logger.info("Gating found no risk, skipping review")

        outcome = ReviewOutcome(
            review_needed=review_needed,
            findings=findings,
            comment_body=render_comment(findings, self.settings.max_rendered_findings),
        )
        logger.info(
            "Review pipeline finished",
            review_needed=review_needed,
            findings_count=outcome.findings_count,
            duration_seconds=round(time.monotonic() - start_time, 3)
        )
        return outcome
