import random

import pytest
from dateutil import tz

import habit_config
from conftest import NOON, hours, make_habit, make_snapshot
from habit_errors import AlreadyCompleted, HabitNotFound, InvalidArgument
from skills.habit_tracker import (
    FEEDBACK_HISTORY_LIMIT,
    add_habit,
    apply_decay,
    complete_habit,
    feedback_ranking,
    feedback_score,
    list_habits,
    log_feedback,
    snapshot_stats,
)


# ---------- completion ----------
def test_complete_increments_streak_and_weight(snapshot, now):
    result = complete_habit(snapshot, "diary", now)

    diary = snapshot.habits["diary"]
    assert result == {"habit_id": "diary", "name": "Diary", "streak": 1, "weight": 1.1}
    assert diary.streak == 1
    assert diary.weight == pytest.approx(1.10)
    assert diary.last_completed == now
    assert [m.date for m in diary.history] == ["2026-10-18"]
    assert diary.history[0].action == "completed"


def test_complete_twice_same_day_is_a_noop(snapshot, now):
    complete_habit(snapshot, "diary", now)

    with pytest.raises(AlreadyCompleted) as excinfo:
        complete_habit(snapshot, "diary", now + hours(3))

    diary = snapshot.habits["diary"]
    assert excinfo.value.exit_code == 0
    assert diary.streak == 1
    assert diary.weight == pytest.approx(1.10)
    assert len(diary.history) == 1
    assert diary.last_completed == now


def test_complete_next_day_extends_streak(snapshot, now):
    complete_habit(snapshot, "diary", now)
    complete_habit(snapshot, "diary", now + hours(20))

    diary = snapshot.habits["diary"]
    assert diary.streak == 2
    assert diary.weight == pytest.approx(1.20)


def test_complete_detects_today_in_history_markers(now):
    snap = make_snapshot(make_habit("diary", history=["2026-10-18"]))

    with pytest.raises(AlreadyCompleted):
        complete_habit(snap, "diary", now)
    assert snap.habits["diary"].streak == 0


def test_complete_uses_local_calendar_day(monkeypatch):
    monkeypatch.setattr(habit_config, "LOCAL_TZ", tz.gettz("America/New_York"))
    snap = make_snapshot(make_habit("diary"))
    evening = NOON.replace(day=19, hour=1)  # 21:00 on the 18th in New York

    complete_habit(snap, "diary", evening)
    assert snap.habits["diary"].history[0].date == "2026-10-18"

    # different UTC day, same New York day
    with pytest.raises(AlreadyCompleted):
        complete_habit(snap, "diary", evening + hours(2.5))


def test_complete_caps_weight(now):
    snap = make_snapshot(make_habit("diary", weight=2.95))
    complete_habit(snap, "diary", now)
    assert snap.habits["diary"].weight == 3.0


def test_complete_unknown_habit(snapshot, now):
    with pytest.raises(HabitNotFound) as excinfo:
        complete_habit(snapshot, "nope", now)
    assert excinfo.value.kind == "NotFound"
    assert "nope" in str(excinfo.value)


# ---------- decay ----------
def test_decay_after_25_hours(now):
    snap = make_snapshot(make_habit("diary", weight=1.5, streak=4, last_completed=now - hours(25)))

    assert apply_decay(snap, now) == 1
    assert snap.habits["diary"].weight == pytest.approx(1.45)
    assert snap.habits["diary"].streak == 0


def test_no_decay_within_23_hours(now):
    snap = make_snapshot(make_habit("diary", weight=1.5, streak=4, last_completed=now - hours(23)))

    assert apply_decay(snap, now) == 0
    assert snap.habits["diary"].weight == 1.5
    assert snap.habits["diary"].streak == 4


def test_no_decay_at_exactly_24_hours(now):
    snap = make_snapshot(make_habit("diary", weight=1.5, streak=4, last_completed=now - hours(24)))
    assert apply_decay(snap, now) == 0


def test_decay_skips_never_completed(snapshot, now):
    assert apply_decay(snapshot, now) == 0
    assert snapshot.habits["diary"].weight == 1.0


def test_decay_floors_at_one_without_feedback(now):
    snap = make_snapshot(make_habit("diary", weight=1.02, streak=2, last_completed=now - hours(30)))
    apply_decay(snap, now)
    assert snap.habits["diary"].weight == 1.0
    assert snap.habits["diary"].streak == 0


def test_decay_floors_at_half_after_feedback(now):
    snap = make_snapshot(make_habit(
        "diary", weight=0.6, last_completed=now - hours(30),
        feedback={"positive": 0, "negative": 4, "history": []},
    ))
    apply_decay(snap, now)
    assert snap.habits["diary"].weight == pytest.approx(0.55)
    apply_decay(snap, now)
    apply_decay(snap, now)
    assert snap.habits["diary"].weight == 0.5


def test_decay_never_raises_weight(now):
    snap = make_snapshot(make_habit("diary", weight=0.8, last_completed=now - hours(30)))
    apply_decay(snap, now)
    assert snap.habits["diary"].weight == 0.8


def test_decay_reapplies_on_every_call(now):
    snap = make_snapshot(make_habit("diary", weight=1.5, streak=1, last_completed=now - hours(30)))
    assert apply_decay(snap, now) == 1
    assert apply_decay(snap, now) == 1
    assert snap.habits["diary"].weight == pytest.approx(1.40)


def test_decay_can_require_positive_streak(now):
    snap = make_snapshot(
        make_habit("diary", weight=1.5, streak=0, last_completed=now - hours(30)),
        make_habit("walk", weight=1.5, streak=3, last_completed=now - hours(30)),
    )
    assert apply_decay(snap, now, requires_streak=True) == 1
    assert snap.habits["diary"].weight == 1.5
    assert snap.habits["walk"].weight == pytest.approx(1.45)


def test_decay_gating_follows_config(monkeypatch, now):
    monkeypatch.setattr(habit_config, "DECAY_REQUIRES_STREAK", True)
    snap = make_snapshot(make_habit("diary", weight=1.5, streak=0, last_completed=now - hours(30)))
    assert apply_decay(snap, now) == 0


# ---------- feedback ----------
def test_negative_feedback_scenario(snapshot, now):
    result = log_feedback(snapshot, "memory-check", False, "forgot", now=now)

    record = snapshot.habits["memory-check"]
    assert record.weight == pytest.approx(0.90)
    assert record.feedback.negative == 1
    assert record.feedback.positive == 0
    assert result["score"] == -1.0
    assert result["note"] == "forgot"
    entry = record.feedback.history[0]
    assert (entry.type, entry.timestamp, entry.note) == ("negative", now, "forgot")


def test_positive_feedback_boosts_and_caps(now):
    snap = make_snapshot(make_habit("diary", weight=2.9))
    result = log_feedback(snap, "diary", True, now=now)
    assert snap.habits["diary"].weight == 3.0
    assert result["score"] == 1.0
    assert snap.habits["diary"].feedback.history[0].note == ""


def test_negative_feedback_floors_at_half(now):
    snap = make_snapshot(make_habit("diary", weight=0.55))
    log_feedback(snap, "diary", False, now=now)
    log_feedback(snap, "diary", False, now=now)
    assert snap.habits["diary"].weight == 0.5


def test_feedback_history_keeps_latest_twenty(snapshot, now):
    for i in range(25):
        log_feedback(snapshot, "diary", i % 2 == 0, f"n{i}", now=now + hours(i))

    history = snapshot.habits["diary"].feedback.history
    assert len(history) == FEEDBACK_HISTORY_LIMIT
    assert [e.note for e in history] == [f"n{i}" for i in range(5, 25)]
    assert snapshot.habits["diary"].feedback.total == 25


def test_feedback_score(snapshot, now):
    assert feedback_score(snapshot.habits["diary"]) == 0.0
    log_feedback(snapshot, "diary", True, now=now)
    log_feedback(snapshot, "diary", True, now=now)
    log_feedback(snapshot, "diary", False, now=now)
    assert feedback_score(snapshot.habits["diary"]) == pytest.approx(1 / 3)


def test_feedback_unknown_habit(snapshot, now):
    with pytest.raises(HabitNotFound):
        log_feedback(snapshot, "nope", True, now=now)


# ---------- scenario and bounds ----------
def test_diary_scenario(snapshot, now):
    complete_habit(snapshot, "diary", now)
    diary = snapshot.habits["diary"]
    assert (diary.streak, diary.weight) == (1, pytest.approx(1.10))

    with pytest.raises(AlreadyCompleted):
        complete_habit(snapshot, "diary", now)
    assert (diary.streak, diary.weight) == (1, pytest.approx(1.10))

    apply_decay(snapshot, now + hours(25))
    assert diary.streak == 0
    assert diary.weight == pytest.approx(1.05)


def _random_walk(snap, rng, steps, with_feedback):
    clock = NOON
    for _ in range(steps):
        clock += hours(rng.choice([1, 6, 23, 25, 49]))
        apply_decay(snap, clock)
        action = rng.random()
        if with_feedback and action < 0.4:
            log_feedback(snap, "diary", rng.random() < 0.4, now=clock)
        else:
            try:
                complete_habit(snap, "diary", clock)
            except AlreadyCompleted:
                pass
        yield snap.habits["diary"]


@pytest.mark.parametrize("seed", range(5))
def test_weight_bounds_without_feedback(seed):
    snap = make_snapshot(make_habit("diary"))
    for record in _random_walk(snap, random.Random(seed), 200, with_feedback=False):
        assert 1.0 <= record.weight <= 3.0
        assert record.streak >= 0


@pytest.mark.parametrize("seed", range(5))
def test_weight_bounds_with_feedback(seed):
    snap = make_snapshot(make_habit("diary"))
    for record in _random_walk(snap, random.Random(seed), 200, with_feedback=True):
        assert 0.5 <= record.weight <= 3.0


# ---------- configuration ----------
def test_add_habit_creates_fresh_record(now):
    snap = make_snapshot()
    add_habit(snap, "walk", "Walk", description="20 minutes", frequency="weekly")

    walk = snap.habits["walk"]
    assert (walk.weight, walk.streak, walk.last_completed, walk.history) == (1.0, 0, None, [])
    assert walk.feedback.total == 0
    assert walk.frequency == "weekly"


def test_add_habit_rejects_duplicates(snapshot):
    with pytest.raises(InvalidArgument):
        add_habit(snapshot, "diary", "Diary again")


# ---------- read-only views ----------
def test_completion_rate_counts_daily_habits_only(now):
    records = [make_habit(f"h{i}") for i in range(10)]
    records.append(make_habit("weekly-review", frequency="weekly", last_completed=now))
    snap = make_snapshot(*records)
    for habit_id in ("h0", "h4", "h7"):
        complete_habit(snap, habit_id, now)

    stats = snapshot_stats(snap, now)
    assert stats.total_daily == 10
    assert stats.completed_daily == 3
    assert stats.completion_rate == pytest.approx(0.30)
    assert stats.completed == ["h0", "h4", "h7", "weekly-review"]
    assert "weekly-review" not in stats.pending
    assert len(stats.pending) == 7


def test_stats_average_weight_and_leader(now):
    snap = make_snapshot(
        make_habit("a", weight=1.0, streak=2),
        make_habit("b", weight=2.0, streak=5),
        make_habit("c", weight=1.5, streak=5),
    )
    stats = snapshot_stats(snap, now)
    assert stats.average_weight == pytest.approx(1.5)
    assert stats.streak_leader.habit_id == "b"
    assert stats.streak_leader.streak == 5


def test_stats_empty_snapshot(now):
    stats = snapshot_stats(make_snapshot(), now)
    assert stats.completion_rate == 0.0
    assert stats.average_weight == 0.0
    assert stats.streak_leader is None


def test_stats_does_not_mutate(snapshot, now):
    complete_habit(snapshot, "diary", now)
    before = snapshot.to_json_dict()
    snapshot_stats(snapshot, now)
    assert snapshot.to_json_dict() == before


def test_list_habits_sorted_by_weight(now):
    snap = make_snapshot(
        make_habit("low", weight=1.0),
        make_habit("high", weight=2.5),
        make_habit("tie", weight=1.0),
    )
    assert [r.id for r in list_habits(snap)] == ["high", "low", "tie"]


def test_feedback_ranking(now):
    snap = make_snapshot(make_habit("a"), make_habit("b"), make_habit("quiet"))
    log_feedback(snap, "a", False, now=now)
    log_feedback(snap, "b", True, now=now)
    log_feedback(snap, "b", True, now=now)
    assert [r.id for r in feedback_ranking(snap)] == ["b", "a"]
