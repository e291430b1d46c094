"""Canonical transcript turn model."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TurnRole(str, Enum):
    """Speaker of a transcript turn."""

    USER = "user"
    ASSISTANT = "assistant"


class TranscriptTurn(BaseModel):
    """A single normalized turn. Immutable once the normalizer assigns it.

    Attributes:
        role: user or assistant
        content: Spoken text, whitespace-stripped and non-empty
        turn_index: Zero-based position in the normalized sequence
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    role: TurnRole
    content: str = Field(min_length=1)
    turn_index: int = Field(alias="turnIndex", ge=0)
