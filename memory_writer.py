"""
Memory Writer node for the habit tracker (LangGraph).
Persists the snapshot after a successful mutating command and records it in the audit log.
"""
import habit_config
from command_router import COMMANDS
from command_state import CommandState
from habit_errors import HabitError
from memory import AuditLog, HabitStore


def memory_writer(state: CommandState) -> CommandState:
    from memory import log_node
    log_node('memory_writer:entry', state)
    if not COMMANDS[state.command]["persist"]:
        state.step = "memory_writer"
        log_node('memory_writer:skip', state)
        return state
    store = HabitStore(state.store_path or habit_config.HABITS_FILE)
    try:
        store.save(state.snapshot, now=state.now)
    except HabitError as e:
        state.error = str(e)
        state.error_kind = e.kind
        state.exit_code = e.exit_code
        state.step = "memory_writer"
        log_node('memory_writer:error', state)
        return state
    entry = {
        "step": "memory_writer",
        "command": state.command,
        "params": state.params,
        "decayed": state.decayed,
        "result": state.result,
        "timestamp": state.now.isoformat(),
    }
    AuditLog(habit_config.AUDIT_LOG_PATH).append(entry)
    state.audit_log = state.audit_log + [entry]
    state.step = "memory_writer"
    log_node('memory_writer:exit', state)
    return state
