"""Transcript normalization into canonical ordered turns.

Accepted shapes:
- list of {"role": ..., "content": ...} entries
- list of Ringg-style {"bot": ...} / {"user": ...} entries
- a single freeform string, one utterance per line
"""

import re
from typing import Any, Iterator, Union

import structlog

from src.models.transcript import TranscriptTurn, TurnRole
from src.services.errors import EmptyTranscriptError, InvalidTranscriptError

logger = structlog.get_logger(__name__)

RawTranscript = Union[list[Any], str, None]

# "Bot: hello" / "User: hi" / "Assistant: ..." prefixed lines
SPEAKER_LINE_PATTERN = re.compile(r"^(Bot|User|Assistant):\s*(.+)$", re.IGNORECASE)

ROLE_ALIASES = {
    "assistant": TurnRole.ASSISTANT,
    "bot": TurnRole.ASSISTANT,
    "agent": TurnRole.ASSISTANT,
    "user": TurnRole.USER,
    "customer": TurnRole.USER,
    "human": TurnRole.USER,
}


def _role_content_turns(entry: dict, position: int) -> Iterator[tuple[TurnRole, str]]:
    """Map a {role, content} entry."""
    role = entry.get("role")
    content = entry.get("content")
    if not isinstance(role, str) or role.strip().lower() not in ROLE_ALIASES:
        raise InvalidTranscriptError(
            f"Transcript entry {position} has unsupported role: {role!r}"
        )
    if content is not None and not isinstance(content, str):
        raise InvalidTranscriptError(
            f"Transcript entry {position} content must be a string"
        )
    yield ROLE_ALIASES[role.strip().lower()], content or ""


def _bot_user_turns(entry: dict, position: int) -> Iterator[tuple[TurnRole, str]]:
    """Map a Ringg-style entry; a combined entry yields the bot turn first."""
    for key, role in (("bot", TurnRole.ASSISTANT), ("user", TurnRole.USER)):
        value = entry.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise InvalidTranscriptError(
                f"Transcript entry {position} field '{key}' must be a string"
            )
        yield role, value


def _entry_turns(entry: Any, position: int) -> Iterator[tuple[TurnRole, str]]:
    """Dispatch one list entry to the mapper for its variant."""
    if not isinstance(entry, dict):
        raise InvalidTranscriptError(f"Transcript entry {position} must be an object")
    if "role" in entry:
        return _role_content_turns(entry, position)
    if "bot" in entry or "user" in entry:
        return _bot_user_turns(entry, position)
    raise InvalidTranscriptError(
        f"Transcript entry {position} needs role/content or bot/user fields"
    )


def _text_turns(text: str) -> Iterator[tuple[TurnRole, str]]:
    """Map freeform text, one utterance per line."""
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        match = SPEAKER_LINE_PATTERN.match(line)
        if match is None:
            yield TurnRole.USER, line
            continue
        speaker = match.group(1).lower()
        role = TurnRole.USER if speaker == "user" else TurnRole.ASSISTANT
        yield role, match.group(2)


def normalize_transcript(raw: RawTranscript) -> list[TranscriptTurn]:
    """Convert any supported transcript shape into ordered turns.

    Args:
        raw: Transcript as received from the caller

    Returns:
        Turns in input order, turn_index assigned from zero

    Raises:
        EmptyTranscriptError: If no non-empty turn remains
        InvalidTranscriptError: If an entry matches no supported shape
    """
    if raw is None:
        raise EmptyTranscriptError()

    if isinstance(raw, str):
        pairs: Iterator[tuple[TurnRole, str]] = _text_turns(raw)
    elif isinstance(raw, list):
        pairs = (
            pair
            for position, entry in enumerate(raw)
            for pair in _entry_turns(entry, position)
        )
    else:
        raise InvalidTranscriptError("Transcript must be a list of entries or a string")

    turns: list[TranscriptTurn] = []
    skipped = 0
    for role, content in pairs:
        content = content.strip()
        if not content:
            skipped += 1
            continue
        turns.append(TranscriptTurn(role=role, content=content, turn_index=len(turns)))

    if not turns:
        raise EmptyTranscriptError()

    if skipped:
        logger.debug("transcript_empty_entries_skipped", skipped=skipped)

    return turns
