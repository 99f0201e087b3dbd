"""Bounded in-memory and JSONL-backed records of planning calls."""

from __future__ import annotations

import json
from collections import deque
from itertools import islice
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

from htn_colony.planning.actions import Plan


class PlanStatus(str, Enum):
    """Outcome of one planning call."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(slots=True)
class PlanRecord:
    """What was asked of the planner and what it answered."""

    id: str
    goal: str
    status: PlanStatus
    submitted_at: datetime
    actions: list[str] = field(default_factory=list)
    stats: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    agent: str | None = None

    @classmethod
    def from_outcome(
        cls,
        goal: str,
        plan: Plan | None,
        *,
        error: BaseException | None = None,
        agent: str | None = None,
    ) -> PlanRecord:
        if error is not None:
            status = PlanStatus.FAILED
        elif plan is None:
            status = PlanStatus.NOT_FOUND
        else:
            status = PlanStatus.FOUND
        return cls(
            id=uuid4().hex,
            goal=goal,
            status=status,
            submitted_at=datetime.now(timezone.utc),
            actions=[str(action) for action in plan] if plan is not None else [],
            stats=plan.stats.as_dict() if plan is not None and plan.stats is not None else {},
            error=None if error is None else f"{type(error).__name__}: {error}",
            agent=agent,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready view; enum and timestamp become strings."""
        payload = asdict(self)
        payload["status"] = self.status.value
        payload["submitted_at"] = self.submitted_at.isoformat()
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> PlanRecord:
        return cls(
            id=payload["id"],
            goal=payload["goal"],
            status=PlanStatus(payload["status"]),
            submitted_at=datetime.fromisoformat(payload["submitted_at"]),
            actions=list(payload.get("actions", [])),
            stats=dict(payload.get("stats", {})),
            error=payload.get("error"),
            agent=payload.get("agent"),
        )


class PlanHistoryStore(Protocol):
    """Persistence contract for planning records, newest first on read."""

    def append(self, record: PlanRecord) -> None:
        """Persist one record."""

    def list_recent(self, limit: int) -> list[PlanRecord]:
        """Return up to ``limit`` newest records."""


class InMemoryPlanHistory:
    """Keeps the last ``max_records`` records; older ones fall off."""

    def __init__(self, max_records: int = 1_000) -> None:
        self._records: deque[PlanRecord] = deque(maxlen=max_records)

    def append(self, record: PlanRecord) -> None:
        self._records.append(record)

    def list_recent(self, limit: int) -> list[PlanRecord]:
        return list(islice(reversed(self._records), max(limit, 0)))

    def __len__(self) -> int:
        return len(self._records)


class JsonlPlanHistory:
    """One JSON object per line, appended in submission order."""

    def __init__(self, file_path: str | Path) -> None:
        self._path = Path(file_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: PlanRecord) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record.to_dict()) + "\n")

    def list_recent(self, limit: int) -> list[PlanRecord]:
        if limit <= 0 or not self._path.exists():
            return []
        lines = self._path.read_text(encoding="utf-8").splitlines()
        newest = deque((line for line in lines if line.strip()), maxlen=limit)
        return [PlanRecord.from_dict(json.loads(line)) for line in reversed(newest)]
