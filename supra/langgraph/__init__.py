"""LangGraph pipeline for conversational dish selection."""

from supra.langgraph.graph import create_conversation_graph, get_conversation_pipeline
from supra.langgraph.nodes import (
    context_resolver_node,
    turn_interpreter_node,
    selection_policy_node,
    reconcile_node,
)

__all__ = [
    "create_conversation_graph",
    "get_conversation_pipeline",
    "context_resolver_node",
    "turn_interpreter_node",
    "selection_policy_node",
    "reconcile_node",
]
