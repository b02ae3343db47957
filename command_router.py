"""
Command Router node for the habit tracker (LangGraph).
Validates the requested command and its parameters before the store is touched.
"""
from command_state import CommandState
from habit_errors import InvalidArgument

# ======================
# Command definitions
# ======================
# decay: run the missed-deadline sweep before the command
# persist: save the snapshot after the command succeeds
# create_store: start from an empty store when the file does not exist yet

COMMANDS = {
    "status": {"decay": True, "persist": True, "requires": ()},
    "complete": {"decay": True, "persist": True, "requires": ("habit_id",)},
    "feedback": {"decay": False, "persist": True, "requires": ("habit_id", "is_positive")},
    "report": {"decay": False, "persist": False, "requires": ()},
    "summary": {"decay": False, "persist": False, "requires": ()},
    "add": {"decay": False, "persist": True, "requires": ("habit_id", "name"), "create_store": True},
}

OUTPUT_FORMATS = ("text", "markdown", "json")

USAGE = {
    "complete": "Usage: habit-tracker complete <habit-id>",
    "feedback": "Usage: habit-tracker feedback <habit-id> --positive|--negative [--note \"reason\"]",
    "add": "Usage: habit-tracker add <habit-id> --name <name> [--description <text>] [--frequency daily]",
}


def validate_command(command: str, params: dict, output_format: str = "text"):
    entry = COMMANDS.get(command)
    if entry is None:
        raise InvalidArgument(f"Unknown command: {command}")
    if output_format not in OUTPUT_FORMATS:
        raise InvalidArgument(f"Unknown output format: {output_format}")
    for key in entry["requires"]:
        value = params.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            if key == "is_positive":
                raise InvalidArgument("Specify --positive or --negative")
            raise InvalidArgument(USAGE.get(command, f"Missing required argument: {key}"))
    return entry


def command_router(state: CommandState) -> CommandState:
    from memory import log_node
    log_node('command_router:entry', state)
    try:
        validate_command(state.command, state.params, state.output_format)
    except InvalidArgument as e:
        state.error = str(e)
        state.error_kind = e.kind
        state.exit_code = e.exit_code
        state.step = "command_router"
        log_node('command_router:error', state)
        return state
    # drop parameters the caller left unset so skills fall back to their defaults
    state.params = {k: v for k, v in state.params.items() if v is not None}
    state.step = "command_router"
    log_node('command_router:exit', state)
    return state
