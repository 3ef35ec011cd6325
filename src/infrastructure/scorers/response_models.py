"""Schema of the JSON document a scorer backend must return."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...domain.scoring.entities.judgment import CriterionJudgment


class CriterionScoreModel(BaseModel):
    """One criterion entry of a scorer response."""

    model_config = ConfigDict(extra="ignore")

    criterion_id: str = Field(..., min_length=1)
    score: float = Field(..., ge=0)
    max_score: float = Field(default=0, ge=0)
    band: Optional[float] = Field(default=None, ge=0)
    evidence: List[str] = Field(default_factory=list)
    confidence: float = Field(default=0.8, ge=0, le=1)

    def to_domain(self) -> CriterionJudgment:
        return CriterionJudgment(
            criterion_id=self.criterion_id,
            score=Decimal(str(self.score)),
            max_score=Decimal(str(self.max_score)),
            band=Decimal(str(self.band)) if self.band is not None else None,
            evidence=tuple(self.evidence),
            confidence=Decimal(str(self.confidence)),
        )


class ScorerResponse(BaseModel):
    """Full scorer response. The reported total is informational only."""

    model_config = ConfigDict(extra="ignore")

    total_score: Optional[float] = None
    max_score: float = Field(default=0, ge=0)
    criteria_scores: List[CriterionScoreModel] = Field(..., min_length=1)
    overall_feedback: Optional[str] = None
    strengths: List[str] = Field(default_factory=list)
    improvement_areas: List[str] = Field(default_factory=list)
    confidence: float = Field(default=0.8, ge=0, le=1)
