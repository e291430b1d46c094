"""Analysis result models returned to callers and persisted per session."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.rubric import (
    ANALYSIS_ERROR_TYPE,
    SECTION_NAMES,
    AnomalySeverity,
    OutcomeStatus,
    RiskLevel,
    SectionStatus,
    ViolationSeverity,
)


class OutcomeScore(BaseModel):
    """Outcome pillar: score plus resolution status."""

    score: int = Field(ge=0, le=100)
    status: OutcomeStatus


class PillarScores(BaseModel):
    """The five quality pillars. Latency is never measurable here and stays null."""

    reliability: int = Field(ge=0, le=100)
    latency: Optional[int] = Field(default=None, ge=0, le=100)
    accuracy: int = Field(ge=0, le=100)
    adherence: int = Field(ge=0, le=100)
    outcome: OutcomeScore


class SectionResult(BaseModel):
    """Compliance verdict for one rubric section."""

    score: int = Field(ge=0, le=100)
    status: SectionStatus
    notes: str = ""


class Anomaly(BaseModel):
    """A detected deviation from expected conversational behavior."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    severity: AnomalySeverity
    message: str = ""
    turn_index: Optional[int] = Field(default=None, alias="turnIndex", ge=0)


class Violation(BaseModel):
    """A breach of an explicit policy rule, with quoted evidence."""

    rule: str
    evidence: str = ""
    severity: ViolationSeverity


class AnalysisResult(BaseModel):
    """Complete, structurally valid analysis of one call transcript.

    Every rubric section key is always present; the validator fills any
    section the model skipped.
    """

    model_config = ConfigDict(populate_by_name=True)

    pillars: PillarScores
    section_compliance: dict[str, SectionResult] = Field(alias="sectionCompliance")
    anomalies: list[Anomaly] = Field(default_factory=list)
    violations: list[Violation] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    overall_score: int = Field(alias="overallScore", ge=0, le=100)
    risk_level: RiskLevel = Field(alias="riskLevel")

    @model_validator(mode="after")
    def all_sections_present(self) -> "AnalysisResult":
        """Reject results missing any rubric section."""
        missing = [name for name in SECTION_NAMES if name not in self.section_compliance]
        if missing:
            raise ValueError(f"sectionCompliance missing sections: {missing}")
        return self

    @property
    def is_degraded(self) -> bool:
        """True when the result is a fallback produced after an analysis error."""
        return any(a.type == ANALYSIS_ERROR_TYPE for a in self.anomalies)

    def to_payload(self) -> dict[str, Any]:
        """Serialize with the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)
