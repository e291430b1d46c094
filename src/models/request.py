"""Analysis request model with validation."""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalyzeRequest(BaseModel):
    """Incoming observability analysis request.

    Attributes:
        script_json: Optional agent script, forwarded to the prompt as opaque context
        transcript: role/content list, bot/user list, or freeform text.
            Optional here so an absent transcript gets the same error as an empty one.
        call_id: External correlation id, stored as external_call_id
        session_id: When present, the result is upserted under this id
    """

    model_config = ConfigDict(populate_by_name=True)

    script_json: Optional[Union[dict[str, Any], str]] = Field(default=None, alias="scriptJson")
    transcript: Optional[Union[list[Any], str]] = None
    call_id: Optional[str] = Field(default=None, alias="callId", max_length=255)
    session_id: Optional[str] = Field(default=None, alias="sessionId", max_length=255)

    @field_validator("call_id", mode="before")
    @classmethod
    def call_id_as_string(cls, v: Any) -> Any:
        """Telephony providers sometimes send numeric call ids."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("session_id")
    @classmethod
    def blank_session_id_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank session id as absent."""
        if v is None:
            return v
        v = v.strip()
        return v or None
