"""
Final Response Composer node for the habit tracker (LangGraph).
Renders snapshots and command results as plain text, markdown or JSON.
All render functions are pure: they never mutate the snapshot.
"""
import json
import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from command_state import CommandState
from habit_models import HabitRecord, Snapshot, SnapshotStats
from skills.habit_tracker import feedback_score, local_date, run_feedback_report, run_status, snapshot_stats

RULE_WIDE = '─' * 60
RULE_SUMMARY = '═' * 40
RECENT_FEEDBACK = 3


def _percent(fraction: float) -> int:
    # rounds half away from zero
    return int(math.copysign(math.floor(abs(fraction) * 100 + 0.5), fraction))


def _dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _decay_line(decayed: int) -> Optional[str]:
    return f"📉 Decay applied to {decayed} habit(s)" if decayed else None


def _indicator(score_pct: int) -> str:
    if score_pct > 50:
        return '🟢'
    if score_pct < -50:
        return '🔴'
    return '🟡'


def _records(snapshot: Snapshot, habit_ids):
    return [snapshot.habits[h] for h in habit_ids]


# ---------- status ----------
def render_status(snapshot: Snapshot, fmt: str = "text", decayed: int = 0,
                  result: Optional[Dict[str, Any]] = None) -> str:
    habits = _records(snapshot, (result or run_status(snapshot))["habits"])
    if fmt == "json":
        return _dumps({
            "lastUpdated": _timestamp(snapshot.last_updated),
            "decayed": decayed,
            "habits": [{
                "id": h.id,
                "name": h.display_name,
                "weight": h.weight,
                "streak": h.streak,
                "frequency": h.frequency,
                "lastCompleted": _timestamp(h.last_completed),
            } for h in habits],
        })

    last_updated = _timestamp(snapshot.last_updated) or 'never'
    lines = []
    if decayed:
        lines.append(_decay_line(decayed))
    if fmt == "markdown":
        lines.append("## 🌲 Habit Status\n")
        lines.append("| | Habit | Weight | Streak | Frequency |")
        lines.append("|---|---|---|---|---|")
        for h in habits:
            status = '🔥' if h.streak > 0 else '⚪'
            lines.append(f"| {status} | {h.display_name} | {h.weight:.2f} | {h.streak} | {h.frequency} |")
        lines.append(f"\n*Last updated: {last_updated}*")
        return "\n".join(lines)

    lines.append("\n🌲 Habit Status\n")
    lines.append(RULE_WIDE)
    for h in habits:
        status = '🔥' if h.streak > 0 else '⚪'
        lines.append(f"{status} {h.display_name}")
        lines.append(f"   Weight: {h.weight:.2f} | Streak: {h.streak} | Freq: {h.frequency}")
    lines.append(RULE_WIDE)
    lines.append(f"Last updated: {last_updated}\n")
    return "\n".join(lines)


# ---------- feedback report ----------
def _recent_feedback(record: HabitRecord):
    return record.feedback.history[-RECENT_FEEDBACK:]


def render_feedback_report(snapshot: Snapshot, fmt: str = "text", result: Optional[Dict[str, Any]] = None) -> str:
    result = result or run_feedback_report(snapshot)
    ranked = _records(snapshot, result["habits"])
    total_positive = result["total_positive"]
    total_negative = result["total_negative"]

    if fmt == "json":
        return _dumps({
            "habits": [{
                "id": h.id,
                "name": h.display_name,
                "score": _percent(feedback_score(h)),
                "positive": h.feedback.positive,
                "negative": h.feedback.negative,
                "weight": h.weight,
                "recent": [entry.model_dump(mode="json") for entry in _recent_feedback(h)],
            } for h in ranked],
            "total_positive": total_positive,
            "total_negative": total_negative,
        })

    if fmt == "markdown":
        lines = ["## 📊 Feedback Report\n"]
        if not ranked:
            lines.append("*No feedback logged yet.*")
            return "\n".join(lines)
        for h in ranked:
            score = _percent(feedback_score(h))
            lines.append(f"### {_indicator(score)} {h.display_name}\n")
            lines.append(f"**Score:** {score}% | {h.feedback.positive}👍 {h.feedback.negative}👎 | "
                         f"**Weight:** {h.weight:.2f}\n")
            for entry in _recent_feedback(h):
                mark = '✓' if entry.type == 'positive' else '✗'
                note = f": {entry.note}" if entry.note else ''
                lines.append(f"- {mark} {local_date(entry.timestamp).isoformat()}{note}")
            lines.append("")
        lines.append(f"**Total Feedback:** {total_positive}👍 {total_negative}👎")
        return "\n".join(lines)

    lines = ["\n📊 Feedback Report\n", RULE_WIDE]
    if not ranked:
        lines.append("No feedback logged yet.")
        return "\n".join(lines)
    for h in ranked:
        score = _percent(feedback_score(h))
        lines.append(f"{_indicator(score)} {h.display_name}")
        lines.append(f"   Score: {score}% | {h.feedback.positive}👍 {h.feedback.negative}👎 | Weight: {h.weight:.2f}")
        for entry in _recent_feedback(h):
            mark = '  ✓' if entry.type == 'positive' else '  ✗'
            note = f": {entry.note}" if entry.note else ''
            lines.append(f"   {mark} {local_date(entry.timestamp).isoformat()}{note}")
        lines.append("")
    lines.append(RULE_WIDE)
    lines.append(f"Total Feedback: {total_positive}👍 {total_negative}👎")
    return "\n".join(lines)


# ---------- daily summary ----------
def render_summary(snapshot: Snapshot, now: Optional[datetime] = None, fmt: str = "text",
                   result: Optional[Dict[str, Any]] = None) -> str:
    if result is not None:
        stats = SnapshotStats.model_validate(result)
    else:
        stats = snapshot_stats(snapshot, now or datetime.now(timezone.utc))
    rate = _percent(stats.completion_rate)

    if fmt == "json":
        payload = stats.model_dump()
        payload["completion_percent"] = rate
        payload["average_weight"] = round(stats.average_weight, 2)
        return _dumps(payload)

    completed = _records(snapshot, stats.completed)
    pending = _records(snapshot, stats.pending)
    leader = stats.streak_leader

    if fmt == "markdown":
        md = [f"## 📊 Habit Summary — {stats.date}\n"]
        md.append(f"**Completion Rate:** {stats.completed_daily}/{stats.total_daily} daily habits ({rate}%)\n")
        md.append(f"**Average Weight:** {stats.average_weight:.2f}\n")
        if leader:
            md.append(f"**Streak Leader:** {leader.name} ({leader.streak} days)\n")
        md.append("### Completed Today")
        md.extend(f"- ✅ {h.display_name} (streak: {h.streak})" for h in completed)
        if not completed:
            md.append("- *(none)*")
        md.append("\n### Pending")
        md.extend(f"- ⚪ {h.display_name}" for h in pending)
        if not pending:
            md.append("- *(all daily habits complete!)*")
        return "\n".join(md)

    out = [f"\n📊 HABIT SUMMARY — {stats.date}", RULE_SUMMARY, ""]
    out.append(f"Completion: {stats.completed_daily}/{stats.total_daily} daily habits ({rate}%)")
    out.append(f"Avg Weight: {stats.average_weight:.2f}")
    if leader:
        out.append(f"Streak Leader: {leader.name} ({leader.streak} days)")
    out.append("\n✅ COMPLETED TODAY:")
    out.extend(f"   • {h.display_name} (streak: {h.streak})" for h in completed)
    if not completed:
        out.append("   (none)")
    out.append("\n⚪ PENDING:")
    out.extend(f"   • {h.display_name}" for h in pending)
    if not pending:
        out.append("   (all daily habits complete!)")
    out.append("\n" + RULE_SUMMARY)
    return "\n".join(out)


# ---------- command results ----------
def render_completion(result: Dict[str, Any], fmt: str = "text", decayed: int = 0) -> str:
    if fmt == "json":
        return _dumps({**result, "decayed": decayed})
    lines = [_decay_line(decayed)] if decayed else []
    if fmt == "markdown":
        lines.append(f"**✅ Completed:** {result['name']}  ")
        lines.append(f"Streak: {result['streak']} | Weight: {result['weight']:.2f}")
    else:
        lines.append(f"✅ Completed: {result['name']}")
        lines.append(f"   Streak: {result['streak']} | Weight: {result['weight']:.2f}")
    return "\n".join(lines)


def render_feedback_result(result: Dict[str, Any], fmt: str = "text") -> str:
    if fmt == "json":
        return _dumps(result)
    if result["is_positive"]:
        headline = f"👍 Positive feedback logged for: {result['name']}"
    else:
        headline = f"👎 Negative feedback logged for: {result['name']}"
    details = (f"Weight: {result['weight']:.2f} | Feedback Score: {result['score']:.2f} "
               f"({result['positive']}+ / {result['negative']}-)")
    if fmt == "markdown":
        lines = [f"**{headline}**  ", details]
        if result["note"]:
            lines.append(f"\n> {result['note']}")
        return "\n".join(lines)
    lines = [headline, f"   {details}"]
    if result["note"]:
        lines.append(f"   Note: \"{result['note']}\"")
    return "\n".join(lines)


def render_added(result: Dict[str, Any], fmt: str = "text") -> str:
    if fmt == "json":
        return _dumps(result)
    return f"➕ Added habit: {result['name']} ({result['habit_id']}, {result['frequency']})"


def render(snapshot: Snapshot, view: str = "summary", fmt: str = "text", now: Optional[datetime] = None) -> str:
    """Render a whole-snapshot view without touching the snapshot."""
    if view == "status":
        return render_status(snapshot, fmt)
    if view == "report":
        return render_feedback_report(snapshot, fmt)
    if view == "summary":
        return render_summary(snapshot, now, fmt)
    raise ValueError(f"Unknown view: {view}")


def response_composer(state: CommandState) -> CommandState:
    from memory import log_node
    log_node('response_composer:entry', state)
    fmt = state.output_format
    if state.command == "status":
        state.response = render_status(state.snapshot, fmt, decayed=state.decayed, result=state.result)
    elif state.command == "complete":
        state.response = render_completion(state.result, fmt, decayed=state.decayed)
    elif state.command == "feedback":
        state.response = render_feedback_result(state.result, fmt)
    elif state.command == "report":
        state.response = render_feedback_report(state.snapshot, fmt, result=state.result)
    elif state.command == "summary":
        state.response = render_summary(state.snapshot, state.now, fmt, result=state.result)
    elif state.command == "add":
        state.response = render_added(state.result, fmt)
    else:
        state.response = "No result."
    state.step = "response_composer"
    log_node('response_composer:exit', state)
    return state
