"""Tests for Redis session manager."""

from unittest.mock import AsyncMock

import redis.asyncio as redis

import pytest

from supra.models.search import SelectionEntry
from supra.models.state import SelectionContext, SessionState
from supra.session.manager import SessionManager


def _context() -> SelectionContext:
    return SelectionContext(
        entries=[
            SelectionEntry(
                restaurant_id="11",
                restaurant_name="Sakhli",
                dish_name="Beef Khinkali",
                dish_price=1.5,
                category="khinkali",
            )
        ],
        constraints=["nuts"],
    )


class TestSessionManager:
    """Tests for SessionManager."""

    @pytest.fixture
    def mock_redis(self):
        """Create a mock Redis client."""
        client = AsyncMock()
        client.get = AsyncMock(return_value=None)
        client.setex = AsyncMock()
        client.delete = AsyncMock(return_value=1)
        client.close = AsyncMock()
        return client

    @pytest.fixture
    def manager(self, mock_redis):
        """Create a SessionManager with mock Redis."""
        return SessionManager(client=mock_redis)

    @pytest.mark.asyncio
    async def test_create_session(self, manager, mock_redis):
        """Test creating a new session."""
        session = await manager.create_session("sess-1")

        assert session.session_id == "sess-1"
        assert session.conversation == []
        assert session.selection.entries == []
        assert session.selection.constraints == []
        mock_redis.setex.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_session_exists(self, manager, mock_redis):
        """Test retrieving an existing session."""
        session_data = SessionState(session_id="sess-1")
        mock_redis.get.return_value = session_data.model_dump_json()

        result = await manager.get_session("sess-1")

        assert result is not None
        assert result.session_id == "sess-1"
        mock_redis.get.assert_called_once_with("supra:session:sess-1")

    @pytest.mark.asyncio
    async def test_get_session_not_found(self, manager, mock_redis):
        """Test retrieving a non-existent session."""
        mock_redis.get.return_value = None

        result = await manager.get_session("nonexistent")
        assert result is None

    @pytest.mark.asyncio
    async def test_get_or_create_existing(self, manager, mock_redis):
        """Test get_or_create returns existing session."""
        session_data = SessionState(session_id="sess-1")
        mock_redis.get.return_value = session_data.model_dump_json()

        result = await manager.get_or_create_session("sess-1")

        assert result.session_id == "sess-1"
        mock_redis.setex.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_or_create_new(self, manager, mock_redis):
        """Test get_or_create creates new when not found."""
        mock_redis.get.return_value = None

        result = await manager.get_or_create_session("new-sess")

        assert result.session_id == "new-sess"
        mock_redis.setex.assert_called_once()

    @pytest.mark.asyncio
    async def test_delete_session(self, manager, mock_redis):
        """Test deleting a session."""
        mock_redis.delete.return_value = 1

        result = await manager.delete_session("sess-1")

        assert result is True
        mock_redis.delete.assert_called_once_with("supra:session:sess-1")

    @pytest.mark.asyncio
    async def test_delete_session_not_found(self, manager, mock_redis):
        """Test deleting a non-existent session."""
        mock_redis.delete.return_value = 0

        result = await manager.delete_session("nonexistent")
        assert result is False

    @pytest.mark.asyncio
    async def test_selection_round_trips(self, manager, mock_redis):
        """Selection and constraints survive a save/load cycle."""
        session = SessionState(session_id="sess-1", selection=_context())
        await manager.save_session(session)

        saved = mock_redis.setex.call_args[0][2]
        mock_redis.get.return_value = saved

        context = (await manager.get_session("sess-1")).selection

        assert context.entries[0].key == ("11", "Beef Khinkali")
        assert context.entries[0].category == "khinkali"
        assert context.constraints == ["nuts"]

    @pytest.mark.asyncio
    async def test_corrupted_session_discarded(self, manager, mock_redis):
        """A payload that no longer validates is treated as missing."""
        mock_redis.get.return_value = '{"selection": "garbage"}'

        assert await manager.get_session("sess-1") is None

    @pytest.mark.asyncio
    async def test_session_ttl(self, manager, mock_redis):
        """Test that sessions are saved with TTL."""
        await manager.create_session("sess-1")

        call_args = mock_redis.setex.call_args
        # Second arg is TTL
        assert call_args[0][1] == 86400

    @pytest.mark.asyncio
    async def test_redis_error_get_session(self, manager, mock_redis):
        """Test graceful handling of Redis errors on get."""
        mock_redis.get.side_effect = redis.ConnectionError("Redis connection refused")

        result = await manager.get_session("sess-1")
        assert result is None

    @pytest.mark.asyncio
    async def test_redis_error_save_session_propagates(self, manager, mock_redis):
        """Save errors are not swallowed."""
        mock_redis.setex.side_effect = Exception("Redis connection refused")

        with pytest.raises(Exception):
            await manager.save_session(SessionState(session_id="sess-1"))


class TestSessionState:
    """Tests for SessionState model."""

    def test_add_user_turn(self):
        """Test adding user conversation turn."""
        session = SessionState(session_id="sess-1")
        session.add_user_turn("hello")

        assert len(session.conversation) == 1
        assert session.conversation[0].role == "user"
        assert session.conversation[0].content == "hello"

    def test_add_assistant_turn_records_operation(self):
        """Test adding assistant turn keeps intent and operation."""
        session = SessionState(session_id="sess-1")
        session.add_assistant_turn("3 dishes selected", intent="explore", operation="added")

        assert session.conversation[0].intent == "explore"
        assert session.conversation[0].operation == "added"

    def test_get_recent_conversation(self):
        """Test getting recent conversation turns."""
        session = SessionState(session_id="sess-1")
        for i in range(10):
            session.add_user_turn(f"msg-{i}")
            session.add_assistant_turn(f"reply-{i}")

        recent = session.get_recent_conversation(3)
        # max_turns=3 → last 6 entries (3 user + 3 assistant)
        assert len(recent) == 6

    def test_get_recent_conversation_empty(self):
        """Test recent conversation on empty session."""
        session = SessionState(session_id="sess-1")
        recent = session.get_recent_conversation()
        assert recent == []
