from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class LookupStatus(StrEnum):
    hit = "hit"
    miss = "miss"
    unavailable = "unavailable"
    error = "error"


@dataclass(frozen=True)
class CacheLookup:
    """Outcome of a cache read that keeps miss, disconnect and failure apart."""

    status: LookupStatus
    value: Any = None
    reason: str | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.hit


class CacheStats(BaseModel):
    connected: bool
    key_count: int | None = None
    memory_usage: str | None = None


class PatternDeleteResponse(BaseModel):
    pattern: str
    deleted: int


class KeyDeleteResponse(BaseModel):
    key: str
    deleted: bool
