"""LangGraph node implementations for a conversation turn."""

import structlog

from supra.models.search import SelectionResponse, TurnInterpretation
from supra.models.state import ConversationState, SelectionContext
from supra.search.engine import SupraSearchEngine
from supra.search.policy import SelectionPolicy
from supra.search.reconcile import reconcile

logger = structlog.get_logger()

# Set by the API layer at startup
_session_manager = None
_search_engine: SupraSearchEngine | None = None

_policy = SelectionPolicy()


def set_session_manager(manager) -> None:
    """Set the session manager instance (called by API layer at startup)."""
    global _session_manager
    _session_manager = manager


def get_session_manager():
    """Get the session manager instance."""
    return _session_manager


def set_search_engine(engine: SupraSearchEngine | None) -> None:
    """Set the search engine instance (called by API layer at startup)."""
    global _search_engine
    _search_engine = engine


def get_search_engine() -> SupraSearchEngine | None:
    """Get the search engine instance."""
    return _search_engine


async def context_resolver_node(state: ConversationState) -> ConversationState:
    """Load the selection context and preferences from the session."""
    logger.info("context_resolver_node", session_id=state["session_id"])

    manager = get_session_manager()
    if manager is None:
        logger.warning("context_resolver_no_session_manager")
        state["context"] = state.get("context") or SelectionContext()
        return state

    try:
        session = await manager.get_or_create_session(state["session_id"])
        state["context"] = session.selection
        if not state.get("preferences") and session.preferences:
            state["preferences"] = session.preferences

        logger.info(
            "context_resolved",
            session_id=state["session_id"],
            selected=len(session.selection.entries),
            constraints=len(session.selection.constraints),
        )

    except Exception as e:
        logger.error("context_resolver_error", error=str(e))
        state["context"] = SelectionContext()

    return state


async def turn_interpreter_node(state: ConversationState) -> ConversationState:
    """Ask the backend to classify the turn and name the dishes it refers to."""
    logger.info("turn_interpreter_node", user_input=state["user_input"])

    engine = get_search_engine()
    if engine is None:
        state["error"] = "Search engine is not configured"
        return state

    try:
        interpretation, catalog = await engine.interpret_turn(
            query=state["user_input"],
            image=state.get("image"),
            context=state.get("context") or SelectionContext(),
            preferences=state.get("preferences", ""),
            limit=state.get("limit", 10),
        )
    except Exception as e:
        logger.error("turn_interpretation_error", error=str(e))
        state["error"] = str(e)
        return state

    state["intent"] = interpretation.intent
    state["category"] = interpretation.category
    state["candidates"] = interpretation.results
    state["constraints"] = interpretation.constraints
    state["lifted_constraints"] = interpretation.lifted_constraints
    state["catalog"] = catalog

    return state


async def selection_policy_node(state: ConversationState) -> ConversationState:
    """Apply the deterministic selection policy to the interpreted turn."""
    interpretation = TurnInterpretation(
        intent=state["intent"],
        category=state.get("category"),
        results=state.get("candidates", []),
        constraints=state.get("constraints", []),
        lifted_constraints=state.get("lifted_constraints", []),
    )

    result = _policy.apply(
        context=state.get("context") or SelectionContext(),
        interpretation=interpretation,
        catalog=state.get("catalog", []),
        limit=state.get("limit", 10),
    )

    state["context"] = result.context
    state["operation"] = result.operation

    return state


async def reconcile_node(state: ConversationState) -> ConversationState:
    """Prune the catalog snapshot to the current selection."""
    context = state.get("context") or SelectionContext()
    state["restaurants"] = reconcile(
        SelectionResponse(results=context.entries),
        state.get("catalog", []),
    )

    logger.info(
        "reconcile_complete",
        restaurants=len(state["restaurants"]),
        dishes=sum(len(r.dishes) for r in state["restaurants"]),
    )

    return state
