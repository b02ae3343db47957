import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from dateutil import tz

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import habit_config
from habit_models import HabitRecord, Snapshot
from memory import HabitStore

NOON = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def hours(n: float) -> timedelta:
    return timedelta(hours=n)


def make_habit(habit_id: str, **fields) -> HabitRecord:
    fields.setdefault("name", habit_id.replace("-", " ").title())
    return HabitRecord(id=habit_id, **fields)


def make_snapshot(*records: HabitRecord) -> Snapshot:
    return Snapshot(habits={r.id: r for r in records})


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Pin the clock zone to UTC and keep every log and store inside tmp_path."""
    monkeypatch.setattr(habit_config, "LOCAL_TZ", tz.UTC)
    monkeypatch.setattr(habit_config, "AUDIT_LOG_PATH", str(tmp_path / "logs" / "audit.log"))
    monkeypatch.setattr(habit_config, "TRACE_LOG_PATH", None)
    monkeypatch.setattr(habit_config, "DECAY_REQUIRES_STREAK", False)
    monkeypatch.setattr(habit_config, "HABITS_FILE", str(tmp_path / "habits.json"))
    monkeypatch.delenv("HABITS_FILE", raising=False)


@pytest.fixture
def now():
    return NOON


@pytest.fixture
def snapshot():
    return make_snapshot(
        make_habit("diary", description="Write a short reflection"),
        make_habit("memory-check"),
    )


@pytest.fixture
def store_path(tmp_path, snapshot):
    path = tmp_path / "habits.json"
    HabitStore(str(path)).save(snapshot, now=NOON - hours(48))
    return path
