"""
Side-effect directives embedded in model replies.

The model asks for a calendar write by putting a JSON object between
``[CREATE_EVENT]`` and ``[/CREATE_EVENT]`` inside its otherwise free-text
answer. Only the first block is considered. A block that does not decode is
treated as if there were no directive at all, and the reply is left as-is.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

OPEN_MARKER = "[CREATE_EVENT]"
CLOSE_MARKER = "[/CREATE_EVENT]"

_DIRECTIVE_PATTERN = re.compile(
    re.escape(OPEN_MARKER) + r"(.*?)" + re.escape(CLOSE_MARKER),
    re.DOTALL,
)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


class EventCreationDirective(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject: str = Field(..., min_length=1, description="Event title")
    start_date_time: str = Field(..., alias="startDateTime", description="Start, YYYY-MM-DDTHH:MM:SS")
    end_date_time: str = Field(..., alias="endDateTime", description="End, YYYY-MM-DDTHH:MM:SS")
    location: str | None = Field(None, description="Event location")
    body: str | None = Field(None, description="Event notes")

    @field_validator("start_date_time", "end_date_time")
    @classmethod
    def check_timestamp(cls, value: str) -> str:
        # Offsets and a trailing Z are tolerated; date-only values are not
        if "T" not in value:
            raise ValueError(f"expected {TIMESTAMP_FORMAT}, got {value!r}")
        datetime.fromisoformat(value.replace("Z", "+00:00"))
        return value


@dataclass(frozen=True)
class ExtractedReply:
    text: str
    directive: EventCreationDirective | None


def extract_directive(reply: str) -> ExtractedReply:
    """Split a model reply into user-visible text and an optional directive.

    On success the block is removed and the remaining text stripped. When
    there is no block, or the block does not parse, the reply comes back
    unchanged with no directive.
    """
    match = _DIRECTIVE_PATTERN.search(reply)
    if match is None:
        return ExtractedReply(text=reply, directive=None)

    try:
        payload = json.loads(match.group(1))
        directive = EventCreationDirective.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logger.error(f"[directives] Failed to parse calendar event: {e}")
        return ExtractedReply(text=reply, directive=None)

    text = (reply[: match.start()] + reply[match.end():]).strip()
    return ExtractedReply(text=text, directive=directive)
