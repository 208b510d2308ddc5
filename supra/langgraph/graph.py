"""LangGraph pipeline definition."""

from typing import Literal

from langgraph.graph import StateGraph, END

from supra.models.state import ConversationState
from supra.langgraph.nodes import (
    context_resolver_node,
    turn_interpreter_node,
    selection_policy_node,
    reconcile_node,
)


def route_after_interpretation(state: ConversationState) -> Literal[
    "selection_policy_node",
    "__end__",
]:
    """Stop the turn when the backend could not interpret it."""
    if state.get("error") or not state.get("intent"):
        return END
    return "selection_policy_node"


def create_conversation_graph() -> StateGraph:
    """Create the LangGraph conversation pipeline.

    Pipeline Flow:
    1. Context Resolver → Load selection context from Redis
    2. Turn Interpreter → Backend classifies intent, names dishes
    3. Router → error → END
    4. Selection Policy → Deterministic selection update
    5. Reconcile → Prune catalog to the selection
    """
    graph = StateGraph(ConversationState)

    graph.add_node("context_resolver_node", context_resolver_node)
    graph.add_node("turn_interpreter_node", turn_interpreter_node)
    graph.add_node("selection_policy_node", selection_policy_node)
    graph.add_node("reconcile_node", reconcile_node)

    graph.set_entry_point("context_resolver_node")

    graph.add_edge("context_resolver_node", "turn_interpreter_node")

    graph.add_conditional_edges(
        "turn_interpreter_node",
        route_after_interpretation,
        {
            "selection_policy_node": "selection_policy_node",
            END: END,
        },
    )

    graph.add_edge("selection_policy_node", "reconcile_node")
    graph.add_edge("reconcile_node", END)

    return graph


def compile_conversation_graph():
    """Compile the conversation graph for execution."""
    graph = create_conversation_graph()
    return graph.compile()


# Pre-compiled graph instance
conversation_pipeline = None


def get_conversation_pipeline():
    """Get the compiled conversation pipeline (singleton)."""
    global conversation_pipeline
    if conversation_pipeline is None:
        conversation_pipeline = compile_conversation_graph()
    return conversation_pipeline
