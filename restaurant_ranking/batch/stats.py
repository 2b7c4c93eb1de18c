from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class RunState(str, Enum):
    IDLE = "IDLE"
    FETCH_PAGE = "FETCH_PAGE"
    PROCESS_PAGE = "PROCESS_PAGE"
    DONE = "DONE"
    FATAL = "FATAL"
    CANCELLED = "CANCELLED"


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RestaurantOutcome:
    restaurant_id: str
    name: str
    status: OutcomeStatus
    score: float | None = None
    tag_count: int = 0
    error: str | None = None
    duration_ms: float = 0.0


@dataclass
class BatchSummary:
    profile: str
    score_field: str
    state: RunState = RunState.IDLE
    pages: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    with_tags: int = 0
    without_tags: int = 0
    total_tags: int = 0
    score_sum: float = 0.0
    duration_s: float = 0.0
    error: str | None = None
    outcomes: list[RestaurantOutcome] = field(default_factory=list)

    def add(self, outcome: RestaurantOutcome) -> None:
        self.outcomes.append(outcome)
        self.processed += 1
        if outcome.status is OutcomeStatus.SKIPPED:
            self.skipped += 1
        elif outcome.status is OutcomeStatus.FAILED:
            self.failed += 1
        else:
            self.succeeded += 1
            self.total_tags += outcome.tag_count
            self.score_sum += outcome.score or 0.0
            if outcome.tag_count > 0:
                self.with_tags += 1
            else:
                self.without_tags += 1

    @property
    def average_score(self) -> float:
        return self.score_sum / self.succeeded if self.succeeded else 0.0

    @property
    def failures(self) -> list[RestaurantOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.FAILED]

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("outcomes")
        data["state"] = self.state.value
        data["average_score"] = round(self.average_score, 4)
        data["failures"] = [
            {"restaurant_id": o.restaurant_id, "name": o.name, "error": o.error} for o in self.failures
        ]
        return data
