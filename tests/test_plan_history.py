from __future__ import annotations

from pathlib import Path

from htn_colony.domains import build_travel_domain, travel_state
from htn_colony.planning import (
    DepthExceeded,
    InMemoryPlanHistory,
    JsonlPlanHistory,
    Planner,
    PlanRecord,
    PlanStatus,
)

ROUTE = ("me", "home", "park")


def _found_record(agent: str | None = None) -> PlanRecord:
    result = Planner(build_travel_domain()).plan(travel_state(), "travel", ROUTE)
    return PlanRecord.from_outcome("travel", result, agent=agent)


def test_record_status_follows_outcome() -> None:
    found = _found_record()
    missing = PlanRecord.from_outcome("travel", None)
    failed = PlanRecord.from_outcome("travel", None, error=DepthExceeded(3))

    assert found.status == PlanStatus.FOUND
    assert found.actions == [
        "call_taxi('me', 'home', 'park')",
        "ride_taxi('me', 'home', 'park')",
        "pay_driver('me', 'home', 'park')",
    ]
    assert found.stats["operators_applied"] == 3
    assert missing.status == PlanStatus.NOT_FOUND
    assert failed.status == PlanStatus.FAILED
    assert failed.error.startswith("DepthExceeded")


def test_in_memory_history_is_bounded_and_newest_first() -> None:
    history = InMemoryPlanHistory(max_records=2)
    records = [PlanRecord.from_outcome(f"goal-{i}", None) for i in range(3)]

    for record in records:
        history.append(record)

    assert len(history) == 2
    assert [record.goal for record in history.list_recent(5)] == ["goal-2", "goal-1"]


def test_jsonl_history_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "history" / "plans.jsonl"
    store = JsonlPlanHistory(path)
    first = _found_record(agent="worker-0")
    second = PlanRecord.from_outcome("travel", None, agent="worker-1")

    store.append(first)
    store.append(second)

    loaded = store.list_recent(limit=10)
    assert [record.id for record in loaded] == [second.id, first.id]
    assert loaded[1].status == PlanStatus.FOUND
    assert loaded[1].actions == first.actions
    assert loaded[1].submitted_at == first.submitted_at
    assert loaded[0].agent == "worker-1"
    assert store.list_recent(limit=1)[0].id == second.id


def test_jsonl_history_missing_file_is_empty(tmp_path: Path) -> None:
    assert JsonlPlanHistory(tmp_path / "absent.jsonl").list_recent(5) == []


def test_record_dict_form_is_json_ready() -> None:
    record = _found_record(agent="worker-3")

    payload = record.to_dict()

    assert payload["status"] == "found"
    assert payload["submitted_at"] == record.submitted_at.isoformat()
    assert PlanRecord.from_dict(payload) == record


def test_jsonl_history_reads_only_the_newest_lines(tmp_path: Path) -> None:
    store = JsonlPlanHistory(tmp_path / "plans.jsonl")
    for index in range(5):
        store.append(PlanRecord.from_outcome(f"goal-{index}", None))

    assert [record.goal for record in store.list_recent(2)] == ["goal-4", "goal-3"]
    assert store.list_recent(0) == []
