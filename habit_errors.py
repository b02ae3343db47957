"""
Error taxonomy for the habit tracker.
Every error carries the exit code the CLI should finish with.
"""


class HabitError(Exception):
    kind = "HabitError"
    exit_code = 1


class HabitNotFound(HabitError):
    kind = "NotFound"

    def __init__(self, habit_id: str):
        super().__init__(f"Habit not found: {habit_id}")
        self.habit_id = habit_id


class AlreadyCompleted(HabitError):
    """Benign no-op: the habit already has a completion for today."""
    kind = "AlreadyCompleted"
    exit_code = 0

    def __init__(self, habit_id: str, name: str = None):
        super().__init__(f'Habit "{name or habit_id}" already logged today.')
        self.habit_id = habit_id


class StoreReadError(HabitError):
    kind = "IOError"


class StoreParseError(HabitError):
    kind = "ParseError"


class StoreWriteError(HabitError):
    kind = "IOError"


class InvalidArgument(HabitError):
    kind = "InvalidArgument"
    exit_code = 2
