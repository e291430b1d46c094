"""Coercion of untrusted model output into a complete AnalysisResult.

This is the boundary between the model's free-form text and the typed
pipeline. coerce() never raises: text that cannot be parsed produces the
fallback result, and every field of a parsed object is defaulted,
clamped, or recomputed so callers always see a full rubric.
"""

import json
import math
import re
from typing import Any, Iterator, Optional

import structlog

from src.config import get_settings
from src.models.analysis import (
    AnalysisResult,
    Anomaly,
    OutcomeScore,
    PillarScores,
    SectionResult,
    Violation,
)
from src.models.rubric import (
    ANALYSIS_ERROR_TYPE,
    NOT_ANALYZED_NOTE,
    SECTION_NAMES,
    AnomalySeverity,
    ComplianceThresholds,
    OutcomeStatus,
    RiskLevel,
    SectionStatus,
    ViolationSeverity,
    risk_level_for,
)

logger = structlog.get_logger(__name__)

# ```json ... ``` wrappers, anywhere in the text
CODE_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?[ \t]*\n?")

FALLBACK_RECOMMENDATION = "Re-run analysis with clearer transcript"

# Opening braces tried when looking for an object embedded in prose
MAX_OBJECT_CANDIDATES = 50

FAILURE_MESSAGES = {
    "empty": "Failed to analyze transcript: the model returned an empty response",
    "invalid_json": "Failed to analyze transcript: the model response was not valid JSON",
    "not_object": "Failed to analyze transcript: the model response was not a JSON object",
    "internal": "Failed to analyze transcript: the model response could not be validated",
}


class ShapeError(ValueError):
    """Parsed model output is not a JSON object."""


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence markers and surrounding whitespace."""
    return CODE_FENCE_PATTERN.sub("", text).strip()


def _balanced_object_at(text: str, start: int) -> Optional[str]:
    """Return the balanced {...} span opening at start, skipping braces inside strings."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def _json_object_candidates(text: str) -> Iterator[str]:
    """Balanced {...} spans in text, in order of their opening brace.

    Only the first MAX_OBJECT_CANDIDATES opening braces are tried.
    """
    start = text.find("{")
    for _ in range(MAX_OBJECT_CANDIDATES):
        if start == -1:
            return
        span = _balanced_object_at(text, start)
        if span is not None:
            yield span
        start = text.find("{", start + 1)


def parse_model_json(raw_text: str) -> dict:
    """Parse model output into a dict.

    Raises:
        json.JSONDecodeError: No JSON could be recovered from the text
        RecursionError: The JSON nests deeper than the decoder allows
        ShapeError: JSON was recovered but is not an object
    """
    text = strip_code_fences(raw_text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as error:
        # Models sometimes wrap the object in prose, which may hold stray braces
        for candidate in _json_object_candidates(text):
            try:
                data = json.loads(candidate)
                break
            except json.JSONDecodeError:
                continue
        else:
            raise error

    if not isinstance(data, dict):
        raise ShapeError(f"expected JSON object, got {type(data).__name__}")
    return data


def clamp_score(value: Any, default: int = 0) -> int:
    """Coerce a model-supplied score to an int in [0, 100].

    Numeric strings are accepted; booleans, NaN, infinities and anything
    else non-numeric become the default.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip().rstrip("%"))
        except ValueError:
            return default
    if not isinstance(value, (int, float)):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    return max(0, min(100, int(round(value))))


def _text(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value.strip()
    if value is None:
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _enum_value(enum_cls, value: Any, default):
    """Case-insensitive enum lookup with a default."""
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    return default


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def not_analyzed_section() -> SectionResult:
    """Section entry used when the model omitted a section."""
    return SectionResult(score=0, status=SectionStatus.FAIL, notes=NOT_ANALYZED_NOTE)


def build_fallback_result(message: str) -> AnalysisResult:
    """Deterministic, structurally complete result for unusable model output.

    Args:
        message: Failure description for the analysis_error anomaly
            (never the raw model text)
    """
    return AnalysisResult(
        pillars=PillarScores(
            reliability=0,
            latency=None,
            accuracy=0,
            adherence=0,
            outcome=OutcomeScore(score=0, status=OutcomeStatus.FAILED),
        ),
        section_compliance={name: not_analyzed_section() for name in SECTION_NAMES},
        anomalies=[
            Anomaly(
                type=ANALYSIS_ERROR_TYPE,
                severity=AnomalySeverity.HIGH,
                message=message,
            )
        ],
        violations=[],
        recommendations=[FALLBACK_RECOMMENDATION],
        overall_score=0,
        risk_level=RiskLevel.HIGH,
    )


class ResultValidator:
    """Validates and coerces model output against the fixed rubric."""

    def __init__(self, thresholds: Optional[ComplianceThresholds] = None):
        if thresholds is None:
            settings = get_settings()
            thresholds = ComplianceThresholds(
                pass_min=settings.compliance_pass_threshold,
                partial_min=settings.compliance_partial_threshold,
            )
        self.thresholds = thresholds

    def coerce(self, raw_text: Optional[str]) -> AnalysisResult:
        """Turn raw model text into a complete AnalysisResult. Never raises.

        Args:
            raw_text: Message content returned by the LLM adapter

        Returns:
            Coerced result, or the fallback result when the text is unusable
        """
        if not isinstance(raw_text, str) or not raw_text.strip():
            logger.warning("analysis_output_empty")
            return build_fallback_result(FAILURE_MESSAGES["empty"])

        try:
            data = parse_model_json(raw_text)
        except (json.JSONDecodeError, RecursionError) as e:
            logger.warning(
                "analysis_output_unparseable",
                response_length=len(raw_text),
                error=str(e),
            )
            return build_fallback_result(FAILURE_MESSAGES["invalid_json"])
        except ShapeError as e:
            logger.warning("analysis_output_wrong_shape", error=str(e))
            return build_fallback_result(FAILURE_MESSAGES["not_object"])

        try:
            return self.coerce_object(data)
        except Exception as e:
            logger.error(
                "analysis_output_coercion_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return build_fallback_result(FAILURE_MESSAGES["internal"])

    def coerce_object(self, data: dict) -> AnalysisResult:
        """Coerce an already-parsed JSON object."""
        overall_score = clamp_score(data.get("overallScore"))
        risk_level = _enum_value(RiskLevel, data.get("riskLevel"), None)
        if risk_level is None:
            risk_level = risk_level_for(overall_score)

        return AnalysisResult(
            pillars=self._pillars(_as_dict(data.get("pillars"))),
            section_compliance=self._sections(_as_dict(data.get("sectionCompliance"))),
            anomalies=self._anomalies(_as_list(data.get("anomalies"))),
            violations=self._violations(_as_list(data.get("violations"))),
            recommendations=self._recommendations(_as_list(data.get("recommendations"))),
            overall_score=overall_score,
            risk_level=risk_level,
        )

    def _pillars(self, pillars: dict) -> PillarScores:
        outcome = pillars.get("outcome")
        if isinstance(outcome, dict):
            outcome_score = clamp_score(outcome.get("score"))
            outcome_status = _enum_value(
                OutcomeStatus, outcome.get("status"), OutcomeStatus.FAILED
            )
        else:
            # A bare number is read as the outcome score
            outcome_score = clamp_score(outcome)
            outcome_status = OutcomeStatus.FAILED

        return PillarScores(
            reliability=clamp_score(pillars.get("reliability")),
            latency=None,
            accuracy=clamp_score(pillars.get("accuracy")),
            adherence=clamp_score(pillars.get("adherence")),
            outcome=OutcomeScore(score=outcome_score, status=outcome_status),
        )

    def _sections(self, compliance: dict) -> dict[str, SectionResult]:
        sections: dict[str, SectionResult] = {}
        for name in SECTION_NAMES:
            entry = compliance.get(name)
            if isinstance(entry, dict) and "score" in entry:
                score = clamp_score(entry.get("score"))
                notes = _text(entry.get("notes"))
            elif isinstance(entry, (int, float, str)) and not isinstance(entry, bool):
                score = clamp_score(entry)
                notes = ""
            else:
                sections[name] = not_analyzed_section()
                continue
            # Score is authoritative; the model's stated status is ignored
            sections[name] = SectionResult(
                score=score,
                status=self.thresholds.status_for(score),
                notes=notes,
            )

        dropped = sorted(set(compliance) - set(SECTION_NAMES))
        if dropped:
            logger.debug("analysis_unknown_sections_dropped", sections=dropped)
        return sections

    @staticmethod
    def _anomalies(items: list) -> list[Anomaly]:
        anomalies = []
        for item in items:
            if not isinstance(item, dict):
                continue
            turn_index = item.get("turnIndex")
            if isinstance(turn_index, float) and turn_index.is_integer():
                turn_index = int(turn_index)
            if isinstance(turn_index, bool) or not isinstance(turn_index, int) or turn_index < 0:
                turn_index = None
            anomalies.append(
                Anomaly(
                    type=_text(item.get("type")) or "unknown",
                    severity=_enum_value(
                        AnomalySeverity, item.get("severity"), AnomalySeverity.MEDIUM
                    ),
                    message=_text(item.get("message")),
                    turn_index=turn_index,
                )
            )
        return anomalies

    @staticmethod
    def _violations(items: list) -> list[Violation]:
        violations = []
        for item in items:
            if not isinstance(item, dict):
                continue
            rule = _text(item.get("rule"))
            if not rule:
                continue
            violations.append(
                Violation(
                    rule=rule,
                    evidence=_text(item.get("evidence")),
                    severity=_enum_value(
                        ViolationSeverity, item.get("severity"), ViolationSeverity.WARNING
                    ),
                )
            )
        return violations

    @staticmethod
    def _recommendations(items: list) -> list[str]:
        return [item.strip() for item in items if isinstance(item, str) and item.strip()]
