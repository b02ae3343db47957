"""
Error handler node for the habit tracker (LangGraph).
Logs the failure and turns it into the message and exit code the CLI reports.
Nothing is saved on this path, so the store keeps its previous contents.
"""
import json

import habit_config
from command_state import CommandState
from memory import AuditLog


def error_handler(state: CommandState) -> CommandState:
    from memory import log_node
    log_node('error_handler:entry', state)
    AuditLog(habit_config.AUDIT_LOG_PATH).append({
        "step": state.step,
        "command": state.command,
        "params": state.params,
        "error": state.error,
        "kind": state.error_kind,
    })
    if state.output_format == "json":
        state.response = json.dumps(
            {"error": state.error, "kind": state.error_kind, "exit_code": state.exit_code},
            indent=2, ensure_ascii=False,
        )
    elif state.error_kind == "AlreadyCompleted":
        state.response = state.error
    else:
        state.response = f"❌ {state.error}"
    state.step = "error_handler"
    log_node('error_handler:exit', state)
    return state
