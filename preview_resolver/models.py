"""Data models used throughout the resolver pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class Outcome(Enum):
    """Terminal state of one resolution attempt."""

    CACHED = "cached"
    RESOLVED = "resolved"
    NOT_FOUND = "not-found"
    FETCH_ERROR = "fetch-error"


@dataclass
class RunResult:
    """Outcome of resolving a single source URL."""

    source_url: str
    outcome: Outcome
    image_url: Optional[str] = None
    error: Optional[str] = None


@dataclass
class RunSummary:
    """Aggregate statistics for one resolver run."""

    total: int = 0
    cached: int = 0
    resolved: int = 0
    cache_size: int = 0
    elapsed_seconds: float = 0.0
    not_found: List[str] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def record(self, result: RunResult) -> None:
        if result.outcome is Outcome.CACHED:
            self.cached += 1
        elif result.outcome is Outcome.RESOLVED:
            self.resolved += 1
        elif result.outcome is Outcome.NOT_FOUND:
            self.not_found.append(result.source_url)
        else:
            self.errors.append((result.source_url, result.error or "Unknown error"))
