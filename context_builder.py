"""
Context Builder node for the habit tracker (LangGraph).
Fixes the clock for the run and loads the full snapshot from the habit store.
"""
from datetime import datetime, timezone

import habit_config
from command_router import COMMANDS
from command_state import CommandState
from habit_errors import HabitError
from memory import HabitStore


def context_builder(state: CommandState) -> CommandState:
    from memory import log_node
    log_node('context_builder:entry', state)
    if state.now is None:
        state.now = datetime.now(timezone.utc)
    store = HabitStore(state.store_path or habit_config.HABITS_FILE)
    try:
        if COMMANDS[state.command].get("create_store") and not store.exists():
            store.initialize(now=state.now)
        state.snapshot = store.load()
    except HabitError as e:
        state.error = str(e)
        state.error_kind = e.kind
        state.exit_code = e.exit_code
        state.step = "context_builder"
        log_node('context_builder:error', state)
        return state
    state.step = "context_builder"
    log_node('context_builder:exit', state)
    return state
