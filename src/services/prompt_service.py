"""Analysis prompt construction for the call-quality judge."""

import json
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from src.config import get_settings
from src.models.rubric import (
    ANOMALY_TYPES,
    PILLAR_DEFINITIONS,
    PILLAR_NAMES,
    SECTION_NAMES,
)
from src.models.transcript import TranscriptTurn
from src.prompts.analysis import (
    ANALYSIS_PROMPT_TEMPLATE,
    NO_SCRIPT_CONTEXT,
    SYSTEM_PROMPT,
)

ScriptDefinition = Union[dict[str, Any], str]


class ChatMessage(BaseModel):
    """One chat-completion message."""

    role: Literal["system", "user"]
    content: str


class PromptPayload(BaseModel):
    """Everything the LLM adapter needs for one analysis request."""

    model: str
    messages: list[ChatMessage]
    max_tokens: int = Field(ge=1)
    temperature: float = Field(ge=0.0, le=2.0)


def format_turns(turns: list[TranscriptTurn]) -> str:
    """Render turns as "[Turn N] role: content" lines, N one-based."""
    return "\n".join(
        f"[Turn {turn.turn_index + 1}] {turn.role.value}: {turn.content}"
        for turn in turns
    )


def format_script(script: Optional[ScriptDefinition]) -> str:
    """Render the opaque script definition as prompt context."""
    if script is None or script == {} or script == "":
        return NO_SCRIPT_CONTEXT
    if isinstance(script, str):
        return script
    return json.dumps(script, indent=2, ensure_ascii=False)


def _pillar_lines() -> str:
    return "\n".join(
        f"- **{name.capitalize()}**: {PILLAR_DEFINITIONS[name]}"
        for name in PILLAR_NAMES
    )


def _anomaly_lines() -> str:
    return "\n".join(
        f"- {anomaly_type}: {description}"
        for anomaly_type, description in ANOMALY_TYPES.items()
    )


class AnalysisPromptBuilder:
    """Builds the analysis prompt from transcript turns and an optional script.

    Pure and deterministic: the same turns and script always produce the
    same payload.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ):
        if model is None or max_tokens is None or temperature is None:
            settings = get_settings()
            model = model if model is not None else settings.llm_model
            max_tokens = max_tokens if max_tokens is not None else settings.analysis_max_tokens
            temperature = (
                temperature if temperature is not None else settings.analysis_temperature
            )
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    def render_user_prompt(
        self,
        turns: list[TranscriptTurn],
        script: Optional[ScriptDefinition] = None,
    ) -> str:
        """Fill the analysis template."""
        return ANALYSIS_PROMPT_TEMPLATE.format(
            script_context=format_script(script),
            formatted_transcript=format_turns(turns),
            pillar_definitions=_pillar_lines(),
            section_count=len(SECTION_NAMES),
            section_names=", ".join(SECTION_NAMES),
            anomaly_types=_anomaly_lines(),
        )

    def build(
        self,
        turns: list[TranscriptTurn],
        script: Optional[ScriptDefinition] = None,
    ) -> PromptPayload:
        """Compose the chat-completion payload.

        Args:
            turns: Normalized transcript turns
            script: Optional agent script, forwarded as opaque context

        Returns:
            PromptPayload with system and user messages
        """
        return PromptPayload(
            model=self.model,
            messages=[
                ChatMessage(role="system", content=SYSTEM_PROMPT),
                ChatMessage(role="user", content=self.render_user_prompt(turns, script)),
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
