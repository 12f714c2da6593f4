from __future__ import annotations

import logging

from pydantic import BaseModel, Field, ValidationError

from app.core.config import settings
from app.core.store import JsonFileStore

logger = logging.getLogger(__name__)


class Preferences(BaseModel):
    summary_style: str = ""
    important_senders: list[str] = Field(default_factory=list)
    important_keywords: list[str] = Field(default_factory=list)


class UserMemory(BaseModel):
    """Preferences and notes edited by hand in memory.json; read-only here."""

    user_name: str = ""
    preferences: Preferences = Field(default_factory=Preferences)
    notes: list[str] = Field(default_factory=list)
    custom_instructions: str = ""


def load_memory(store: JsonFileStore | None = None) -> UserMemory:
    """Load the memory record; a missing or invalid file yields empty memory."""
    store = store or JsonFileStore(settings.memory_file)
    data = store.load()
    if data is None:
        return UserMemory()
    try:
        return UserMemory.model_validate(data)
    except ValidationError as e:
        logger.error(f"[memory] Ignoring invalid memory record: {e}")
        return UserMemory()
