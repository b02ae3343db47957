"""
LangGraph setup for the habit tracker: defines the command graph, nodes, and transitions.
"""

from langgraph.graph import StateGraph, START, END
from command_state import CommandState
from command_router import command_router
from context_builder import context_builder
from executor import executor
from memory_writer import memory_writer
from response_composer import response_composer
from error_handler import error_handler


def _next_or_error(next_node: str):
    def route(state: CommandState):
        if state.error:
            return "error_handler"
        return next_node
    return route


def build_habit_graph():
    graph = StateGraph(CommandState)
    graph.add_node("command_router", command_router)
    graph.add_node("context_builder", context_builder)
    graph.add_node("executor", executor)
    graph.add_node("memory_writer", memory_writer)
    graph.add_node("response_composer", response_composer)
    graph.add_node("error_handler", error_handler)

    # Entry point
    graph.add_edge(START, "command_router")

    # Transitions (explicit, deterministic); any recorded error short-circuits to error_handler
    for node, next_node in (
        ("command_router", "context_builder"),
        ("context_builder", "executor"),
        ("executor", "memory_writer"),
        ("memory_writer", "response_composer"),
    ):
        graph.add_conditional_edges(
            node,
            _next_or_error(next_node),
            {
                next_node: next_node,
                "error_handler": "error_handler"
            }
        )

    graph.add_edge("response_composer", END)
    graph.add_edge("error_handler", END)

    return graph


def run_command(command: str, params: dict = None, output_format: str = "text",
                store_path: str = None, now=None) -> dict:
    """Run one command through the compiled graph and return the final state values."""
    compiled_graph = build_habit_graph().compile()
    state = CommandState(
        command=command,
        params=params or {},
        output_format=output_format,
        store_path=store_path,
        now=now,
    )
    return compiled_graph.invoke(state)
