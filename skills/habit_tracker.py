"""
Habit Tracker Skill.
Owns the weight/streak rules for habit records: completion, missed-deadline decay
and feedback, plus the read-only views the reports are built from.
Every function works on an in-memory Snapshot; loading and saving happen around it.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import habit_config
from habit_errors import AlreadyCompleted, HabitNotFound, InvalidArgument
from habit_models import (
    CompletionMarker,
    FeedbackEntry,
    HabitRecord,
    Snapshot,
    SnapshotStats,
    StreakLeader,
)

logger = logging.getLogger(__name__)

WEIGHT_INCREMENT = 0.10
WEIGHT_DECAY = 0.05
POSITIVE_BOOST = 0.15
NEGATIVE_PENALTY = 0.10
MAX_WEIGHT = 3.0
MIN_WEIGHT = 1.0
FEEDBACK_MIN_WEIGHT = 0.5  # floor once a habit has received any feedback
DECAY_THRESHOLD = timedelta(hours=24)
FEEDBACK_HISTORY_LIMIT = 20
WEIGHT_PRECISION = 4


# ---------- helpers ----------
def _aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=habit_config.LOCAL_TZ)
    return moment


def local_date(moment: datetime) -> date:
    return _aware(moment).astimezone(habit_config.LOCAL_TZ).date()


def _round(weight: float) -> float:
    return round(weight, WEIGHT_PRECISION)


def weight_floor(record: HabitRecord) -> float:
    """Completion/decay floor is 1.0; feedback may already have pushed a habit down to 0.5."""
    return FEEDBACK_MIN_WEIGHT if record.feedback.total > 0 else MIN_WEIGHT


def get_habit(snapshot: Snapshot, habit_id: str) -> HabitRecord:
    record = snapshot.habits.get(habit_id)
    if record is None:
        raise HabitNotFound(habit_id)
    return record


def completed_on(record: HabitRecord, day: date) -> bool:
    if record.last_completed is not None and local_date(record.last_completed) == day:
        return True
    day_iso = day.isoformat()
    return any(marker.date == day_iso for marker in record.history)


def feedback_score(record: HabitRecord) -> float:
    fb = record.feedback
    if fb.total == 0:
        return 0.0
    return (fb.positive - fb.negative) / fb.total


# ---------- state transitions ----------
def apply_decay(snapshot: Snapshot, now: datetime, requires_streak: Optional[bool] = None) -> int:
    """
    Penalize every habit whose last completion is more than 24h before `now`:
    weight drops by WEIGHT_DECAY (never below its floor) and the streak resets.
    There is no debouncing, each call decays again. Returns the number of habits decayed.
    """
    if requires_streak is None:
        requires_streak = habit_config.DECAY_REQUIRES_STREAK
    now = _aware(now)
    decayed = 0
    for record in snapshot.habits.values():
        if record.last_completed is None:
            continue
        if now - record.last_completed <= DECAY_THRESHOLD:
            continue
        if requires_streak and record.streak <= 0:
            continue
        # a weight already below the floor is left where it is
        floor = min(weight_floor(record), record.weight)
        record.weight = _round(max(record.weight - WEIGHT_DECAY, floor))
        record.streak = 0
        decayed += 1
    if decayed:
        logger.info("Decay applied to %d habit(s)", decayed)
    return decayed


def complete_habit(snapshot: Snapshot, habit_id: str, now: datetime) -> Dict[str, Any]:
    record = get_habit(snapshot, habit_id)
    now = _aware(now)
    today = local_date(now)
    if completed_on(record, today):
        raise AlreadyCompleted(habit_id, record.display_name)

    record.streak += 1
    record.weight = _round(min(record.weight + WEIGHT_INCREMENT, MAX_WEIGHT))
    record.last_completed = now
    record.history.append(CompletionMarker(date=today.isoformat()))
    logger.info("Completed %s: streak=%d weight=%.2f", habit_id, record.streak, record.weight)
    return {
        "habit_id": record.id,
        "name": record.display_name,
        "streak": record.streak,
        "weight": record.weight,
    }


def log_feedback(snapshot: Snapshot, habit_id: str, is_positive: bool, note: str = "",
                 now: Optional[datetime] = None) -> Dict[str, Any]:
    record = get_habit(snapshot, habit_id)
    now = _aware(now or datetime.now(timezone.utc))
    fb = record.feedback

    if is_positive:
        fb.positive += 1
        record.weight = _round(min(record.weight + POSITIVE_BOOST, MAX_WEIGHT))
    else:
        fb.negative += 1
        floor = min(FEEDBACK_MIN_WEIGHT, record.weight)
        record.weight = _round(max(record.weight - NEGATIVE_PENALTY, floor))

    fb.history.append(FeedbackEntry(
        type="positive" if is_positive else "negative",
        timestamp=now,
        note=note or "",
    ))
    # keep the most recent entries only
    del fb.history[:-FEEDBACK_HISTORY_LIMIT]

    logger.info("Feedback for %s: %s, weight=%.2f", habit_id,
                "positive" if is_positive else "negative", record.weight)
    return {
        "habit_id": record.id,
        "name": record.display_name,
        "is_positive": is_positive,
        "weight": record.weight,
        "score": feedback_score(record),
        "positive": fb.positive,
        "negative": fb.negative,
        "note": note or "",
    }


# ---------- configuration ----------
def add_habit(snapshot: Snapshot, habit_id: str, name: str, description: Optional[str] = None,
              frequency: str = "daily", now: Optional[datetime] = None) -> Dict[str, Any]:
    """Register a new habit record. Not an engine transition: this is configuration editing."""
    if habit_id in snapshot.habits:
        raise InvalidArgument(f"Habit already exists: {habit_id}")
    snapshot.habits[habit_id] = HabitRecord(
        id=habit_id,
        name=name,
        description=description,
        frequency=frequency,
    )
    return {"habit_id": habit_id, "name": name, "frequency": frequency}


# ---------- read-only views ----------
def list_habits(snapshot: Snapshot) -> List[HabitRecord]:
    """Habits sorted by weight, highest first; ties keep store order."""
    return sorted(snapshot.habits.values(), key=lambda r: r.weight, reverse=True)


def feedback_ranking(snapshot: Snapshot) -> List[HabitRecord]:
    with_feedback = [r for r in snapshot.habits.values() if r.feedback.total > 0]
    return sorted(with_feedback, key=lambda r: r.feedback.positive - r.feedback.negative, reverse=True)


def snapshot_stats(snapshot: Snapshot, now: datetime) -> SnapshotStats:
    today = local_date(now)
    habits = list(snapshot.habits.values())
    daily = [r for r in habits if r.frequency == "daily"]
    completed = [r for r in habits if completed_on(r, today)]
    completed_ids = {r.id for r in completed}
    completed_daily = [r for r in daily if r.id in completed_ids]

    leader = None
    for record in habits:
        if record.streak > 0 and (leader is None or record.streak > leader.streak):
            leader = record

    return SnapshotStats(
        date=today.isoformat(),
        habit_count=len(habits),
        total_daily=len(daily),
        completed_daily=len(completed_daily),
        completion_rate=len(completed_daily) / len(daily) if daily else 0.0,
        average_weight=sum(r.weight for r in habits) / len(habits) if habits else 0.0,
        streak_leader=StreakLeader(habit_id=leader.id, name=leader.display_name, streak=leader.streak)
        if leader else None,
        completed=[r.id for r in completed],
        pending=[r.id for r in daily if r.id not in completed_ids],
    )


def run_status(snapshot: Snapshot, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {"habits": [r.id for r in list_habits(snapshot)]}


def run_feedback_report(snapshot: Snapshot, now: Optional[datetime] = None) -> Dict[str, Any]:
    ranked = feedback_ranking(snapshot)
    return {
        "habits": [r.id for r in ranked],
        "total_positive": sum(r.feedback.positive for r in ranked),
        "total_negative": sum(r.feedback.negative for r in ranked),
    }


def run_daily_summary(snapshot: Snapshot, now: datetime) -> Dict[str, Any]:
    return snapshot_stats(snapshot, now).model_dump()
