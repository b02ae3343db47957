"""
Skill interface and loader for the habit tracker. Each command the CLI exposes maps to one skill.
"""
from typing import Any, Dict, Callable

class Skill:
    def __init__(self, name: str, description: str, run: Callable[..., Dict[str, Any]]):
        self.name = name
        self.description = description
        self.run = run

def load_skills() -> Dict[str, Skill]:
    from .habit_tracker import (
        add_habit,
        complete_habit,
        log_feedback,
        run_daily_summary,
        run_feedback_report,
        run_status,
    )
    return {
        "status": Skill(
            name="status",
            description="List habits sorted by weight, highest first.",
            run=run_status
        ),
        "complete": Skill(
            name="complete",
            description="Mark a habit as completed for today.",
            run=complete_habit
        ),
        "feedback": Skill(
            name="feedback",
            description="Log positive or negative feedback for a habit.",
            run=log_feedback
        ),
        "report": Skill(
            name="report",
            description="Aggregate feedback per habit.",
            run=run_feedback_report
        ),
        "summary": Skill(
            name="summary",
            description="Daily completion rate, average weight and streak leader.",
            run=run_daily_summary
        ),
        "add": Skill(
            name="add",
            description="Register a new habit.",
            run=add_habit
        ),
    }
