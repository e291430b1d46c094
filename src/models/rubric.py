"""Fixed call-quality rubric: pillars, compliance sections, anomaly vocabulary.

Everything here is read-only and shared by the prompt builder and the
result validator. Changing the rubric means bumping RUBRIC_VERSION.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

RUBRIC_VERSION = "2024.1"


class SectionStatus(str, Enum):
    """Per-section compliance status."""

    PASS = "pass"
    PARTIAL = "partial"
    FAIL = "fail"


class OutcomeStatus(str, Enum):
    """Outcome pillar status."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class AnomalySeverity(str, Enum):
    """Anomaly severity levels."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ViolationSeverity(str, Enum):
    """Violation severity levels."""

    CRITICAL = "critical"
    WARNING = "warning"


class RiskLevel(str, Enum):
    """Overall call risk level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SECTION_NAMES: tuple[str, ...] = (
    "identity",
    "objectives",
    "style",
    "response_guidelines",
    "greeting",
    "guardrails",
    "fallbacks",
    "variable_capture",
    "task_flow",
    "conditional_paths",
    "required_phrases",
    "forbidden_phrases",
    "escalation_triggers",
    "closing",
    "error_handling",
    "silence_handling",
    "interrupt_handling",
    "context_retention",
)

SECTION_LABELS = MappingProxyType({
    "identity": "Identity",
    "objectives": "Objectives",
    "style": "Style & Tone",
    "response_guidelines": "Response Guidelines",
    "greeting": "Greeting",
    "guardrails": "Guardrails",
    "fallbacks": "Fallbacks",
    "variable_capture": "Variable Capture",
    "task_flow": "Task Flow",
    "conditional_paths": "Conditional Paths",
    "required_phrases": "Required Phrases",
    "forbidden_phrases": "Forbidden Phrases",
    "escalation_triggers": "Escalation Triggers",
    "closing": "Closing",
    "error_handling": "Error Handling",
    "silence_handling": "Silence Handling",
    "interrupt_handling": "Interrupt Handling",
    "context_retention": "Context Retention",
})

PILLAR_NAMES: tuple[str, ...] = (
    "reliability",
    "latency",
    "accuracy",
    "adherence",
    "outcome",
)

# Latency cannot be measured from a transcript; the pipeline always reports null.
PILLAR_DEFINITIONS = MappingProxyType({
    "reliability": "Error handling, tool success, fallback usage, conversation flow stability",
    "latency": "Mark as null (not measurable from transcript alone)",
    "accuracy": "Intent recognition, slot extraction correctness, information accuracy, no hallucinations",
    "adherence": "Script compliance, section coverage, required phrases usage, proper sequencing",
    "outcome": "Primary objective achievement, user satisfaction indicators, successful resolution",
})

ANALYSIS_ERROR_TYPE = "analysis_error"

# Known anomaly types. The vocabulary is open: unknown types are kept,
# this map only drives the descriptions in the prompt and display labels.
ANOMALY_TYPES = MappingProxyType({
    "guardrail_triggered": "Safety check activated",
    "brevity_violation": "Response too long (>50 words) or too short",
    "off_topic": "Discussion outside script scope",
    "pii_exposure": "Sensitive data mishandling",
    "tone_mismatch": "Voice not matching brand",
    "long_monologue": "Bot speaking >30 seconds equivalent",
    "user_frustration": "Signs of user dissatisfaction",
    "hallucination": "Information not in script/context",
})

ANOMALY_TYPE_LABELS = MappingProxyType({
    "guardrail_triggered": "Guardrail Triggered",
    "brevity_violation": "Brevity Violation",
    "off_topic": "Off-Topic",
    "pii_exposure": "PII Exposure",
    "tone_mismatch": "Tone Mismatch",
    "long_monologue": "Long Monologue",
    "user_frustration": "User Frustration",
    "hallucination": "Hallucination",
    ANALYSIS_ERROR_TYPE: "Analysis Error",
})

NOT_ANALYZED_NOTE = "Not analyzed"

# (minimum overall score, risk level), checked top-down
RISK_BANDS: tuple[tuple[int, RiskLevel], ...] = (
    (80, RiskLevel.LOW),
    (60, RiskLevel.MEDIUM),
    (40, RiskLevel.HIGH),
)


def anomaly_label(anomaly_type: str) -> str:
    """Human label for an anomaly type, title-casing unknown types."""
    if anomaly_type in ANOMALY_TYPE_LABELS:
        return ANOMALY_TYPE_LABELS[anomaly_type]
    return anomaly_type.replace("_", " ").strip().title()


def risk_level_for(overall_score: int) -> RiskLevel:
    """Derive the risk level from an overall score."""
    for minimum, level in RISK_BANDS:
        if overall_score >= minimum:
            return level
    return RiskLevel.CRITICAL


@dataclass(frozen=True)
class ComplianceThresholds:
    """Score thresholds that decide a section's status.

    Attributes:
        pass_min: Lowest score that counts as pass
        partial_min: Lowest score that counts as partial
    """

    pass_min: int = 80
    partial_min: int = 60

    def __post_init__(self) -> None:
        if not 0 <= self.partial_min < self.pass_min <= 100:
            raise ValueError(
                "thresholds must satisfy 0 <= partial_min < pass_min <= 100"
            )

    def status_for(self, score: int) -> SectionStatus:
        """Status implied by a section score."""
        if score >= self.pass_min:
            return SectionStatus.PASS
        if score >= self.partial_min:
            return SectionStatus.PARTIAL
        return SectionStatus.FAIL
