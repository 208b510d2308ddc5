"""Tests for conversation-related node implementations."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from supra.langgraph.graph import route_after_interpretation
from supra.langgraph.nodes import (
    context_resolver_node,
    reconcile_node,
    selection_policy_node,
    set_search_engine,
    set_session_manager,
    turn_interpreter_node,
)
from supra.models.search import ImageUpload, SelectionEntry, TurnInterpretation
from supra.models.state import SelectionContext, SessionState
from supra.search.errors import InferenceError


def _entry(restaurant_id, dish_name, category=None):
    return SelectionEntry(
        restaurant_id=restaurant_id,
        restaurant_name="",
        dish_name=dish_name,
        category=category,
    )


def _base_state(**overrides) -> dict:
    """Create a base ConversationState dict with required fields."""
    state = {
        "session_id": "test-session-123",
        "user_input": "I want khinkali",
        "image": None,
        "preferences": "",
        "limit": 10,
        "timestamp": "2026-01-25T10:00:00Z",
        "context": SelectionContext(),
        "intent": None,
        "category": None,
        "candidates": [],
        "constraints": [],
        "lifted_constraints": [],
        "operation": None,
        "catalog": [],
        "restaurants": [],
        "error": None,
    }
    state.update(overrides)
    return state


@pytest.fixture(autouse=True)
def reset_globals():
    yield
    set_session_manager(None)
    set_search_engine(None)


# --- Context Resolver Node ---


class TestContextResolverNode:
    """Tests for context_resolver_node."""

    @pytest.mark.asyncio
    async def test_loads_selection_from_session(self):
        """Test that the stored selection and preferences are loaded."""
        session = SessionState(
            session_id="test-session-123",
            selection=SelectionContext(
                entries=[_entry("11", "Beef Khinkali", "khinkali")],
                constraints=["nuts"],
            ),
            preferences="vegetarian",
        )
        mock_manager = AsyncMock()
        mock_manager.get_or_create_session.return_value = session
        set_session_manager(mock_manager)

        result = await context_resolver_node(_base_state())

        assert result["context"].entries[0].key == ("11", "Beef Khinkali")
        assert result["context"].constraints == ["nuts"]
        assert result["preferences"] == "vegetarian"

    @pytest.mark.asyncio
    async def test_explicit_preferences_win(self):
        session = SessionState(session_id="test-session-123", preferences="vegetarian")
        mock_manager = AsyncMock()
        mock_manager.get_or_create_session.return_value = session
        set_session_manager(mock_manager)

        result = await context_resolver_node(_base_state(preferences="no pork"))

        assert result["preferences"] == "no pork"

    @pytest.mark.asyncio
    async def test_no_session_manager_passthrough(self):
        """Test graceful passthrough when no session manager set."""
        set_session_manager(None)
        context = SelectionContext(constraints=["nuts"])

        result = await context_resolver_node(_base_state(context=context))

        assert result["context"] == context

    @pytest.mark.asyncio
    async def test_session_error_starts_empty(self):
        """Test graceful handling of session errors."""
        mock_manager = AsyncMock()
        mock_manager.get_or_create_session.side_effect = Exception("Redis down")
        set_session_manager(mock_manager)

        result = await context_resolver_node(_base_state())

        assert result["context"].entries == []


# --- Turn Interpreter Node ---


class TestTurnInterpreterNode:
    """Tests for turn_interpreter_node."""

    @pytest.mark.asyncio
    async def test_fills_interpretation(self, sample_catalog):
        engine = MagicMock()
        engine.interpret_turn = AsyncMock(return_value=(
            TurnInterpretation(
                intent="explore",
                category="khinkali",
                results=[_entry("11", "Beef Khinkali")],
                constraints=["pork"],
            ),
            sample_catalog,
        ))
        set_search_engine(engine)

        result = await turn_interpreter_node(_base_state(limit=5))

        assert result["intent"] == "explore"
        assert result["category"] == "khinkali"
        assert len(result["candidates"]) == 1
        assert result["constraints"] == ["pork"]
        assert result["catalog"] == sample_catalog
        assert engine.interpret_turn.call_args.kwargs["limit"] == 5

    @pytest.mark.asyncio
    async def test_passes_image_with_context(self, sample_catalog):
        engine = MagicMock()
        engine.interpret_turn = AsyncMock(return_value=(
            TurnInterpretation(intent="add", results=[_entry("11", "Khachapuri")]),
            sample_catalog,
        ))
        set_search_engine(engine)
        upload = ImageUpload(data=b"png-bytes", filename="photo.png")
        context = SelectionContext(entries=[_entry("12", "Churchkhela", "desserts")])

        result = await turn_interpreter_node(_base_state(image=upload, context=context))

        kwargs = engine.interpret_turn.call_args.kwargs
        assert kwargs["image"] == upload
        assert kwargs["context"] == context
        assert result["intent"] == "add"

    @pytest.mark.asyncio
    async def test_backend_error_recorded(self):
        engine = MagicMock()
        engine.interpret_turn = AsyncMock(side_effect=InferenceError("bad json"))
        set_search_engine(engine)

        result = await turn_interpreter_node(_base_state())

        assert result["error"] == "bad json"
        assert result["intent"] is None

    @pytest.mark.asyncio
    async def test_no_engine(self):
        set_search_engine(None)

        result = await turn_interpreter_node(_base_state())

        assert result["error"]


class TestRouting:
    """Tests for route_after_interpretation."""

    def test_error_ends_turn(self):
        assert route_after_interpretation(_base_state(error="boom", intent="explore")) == "__end__"

    def test_missing_intent_ends_turn(self):
        assert route_after_interpretation(_base_state()) == "__end__"

    def test_interpreted_turn_continues(self):
        state = _base_state(intent="explore")
        assert route_after_interpretation(state) == "selection_policy_node"


# --- Selection Policy and Reconcile Nodes ---


class TestSelectionPolicyNode:
    """Tests for selection_policy_node."""

    @pytest.mark.asyncio
    async def test_applies_policy(self, sample_catalog):
        context = SelectionContext(entries=[
            _entry("11", "Beef Khinkali", "khinkali"),
            _entry("11", "Pork Khinkali", "khinkali"),
        ])
        state = _base_state(
            context=context,
            intent="select",
            category="khinkali",
            candidates=[_entry("11", "Beef Khinkali", "khinkali")],
            catalog=sample_catalog,
        )

        result = await selection_policy_node(state)

        assert [e.dish_name for e in result["context"].entries] == ["Beef Khinkali"]
        assert result["operation"] == "filtered"


class TestReconcileNode:
    """Tests for reconcile_node."""

    @pytest.mark.asyncio
    async def test_prunes_catalog_to_selection(self, sample_catalog):
        context = SelectionContext(entries=[
            _entry("11", "Khachapuri"),
            _entry("12", "Churchkhela"),
        ])

        result = await reconcile_node(_base_state(context=context, catalog=sample_catalog))

        assert [r.id for r in result["restaurants"]] == [11, 12]
        assert [d.name for d in result["restaurants"][0].dishes] == ["Khachapuri"]

    @pytest.mark.asyncio
    async def test_empty_selection(self, sample_catalog):
        result = await reconcile_node(_base_state(catalog=sample_catalog))
        assert result["restaurants"] == []
