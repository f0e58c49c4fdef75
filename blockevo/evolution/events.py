from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

__all__ = ["EventType", "EvolutionEvent"]


class EventType(str, Enum):
    START = "START"
    PROGRESS = "PROGRESS"
    DEAD_END = "DEAD_END"
    BACKTRACK = "BACKTRACK"
    COMPLETE = "COMPLETE"
    EXHAUSTED = "EXHAUSTED"
    TREE_BRANCH = "TREE_BRANCH"
    TOURNAMENT_WINNER = "TOURNAMENT_WINNER"
    CONTINUE = "CONTINUE"


class EvolutionEvent(BaseModel):
    type: EventType
    generation: int
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
