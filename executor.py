"""
Executor node for the habit tracker (LangGraph).
Runs the decay sweep when the command asks for it, then the command's skill.
"""
from command_router import COMMANDS
from command_state import CommandState
from habit_errors import HabitError
from skills import load_skills
from skills.habit_tracker import apply_decay

SKILLS = load_skills()


def executor(state: CommandState) -> CommandState:
    from memory import log_node
    log_node('executor:entry', state)
    entry = COMMANDS[state.command]
    skill = SKILLS[state.command]
    try:
        if entry["decay"]:
            state.decayed = apply_decay(state.snapshot, state.now)
        state.result = skill.run(state.snapshot, now=state.now, **state.params)
    except HabitError as e:
        state.error = str(e)
        state.error_kind = e.kind
        state.exit_code = e.exit_code
        state.step = "executor"
        log_node('executor:error', state)
        return state
    state.step = "executor"
    log_node('executor:exit', state)
    return state
