"""Review-related Pydantic models."""

import math
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator


class GatingVerdict(BaseModel):
    """Structured answer of the gating stage."""

    review: StrictBool


class Finding(BaseModel):
    """A single confidence-scored bug risk reported by the review stage."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    summary: StrictStr
    lines: StrictStr
    failure_mode: StrictStr
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence score 0-1")

    @field_validator("confidence", mode="before")
    @classmethod
    def validate_confidence(cls, v: Any) -> Any:
        """Only JSON numbers are confidences; booleans and NaN are rejected."""
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("confidence must be a number")
        if math.isnan(v):
            raise ValueError("confidence must not be NaN")
        return v


class ReviewOutcome(BaseModel):
    """Result of one run of the review pipeline."""

    review_needed: bool
    findings: List[Finding] = Field(default_factory=list)
    comment_body: str

    @property
    def findings_count(self) -> int:
        return len(self.findings)
