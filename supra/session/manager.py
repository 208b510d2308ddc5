"""Conversation sessions stored in Redis.

A session carries the selection context between chat turns: the dishes
selected so far, the standing constraints, the user's preferences and the
turn log. Each save refreshes the TTL.
"""

from datetime import datetime

import structlog
import redis.asyncio as redis

from supra.config import get_settings
from supra.models.state import SessionState

logger = structlog.get_logger()

KEY_PREFIX = "supra:session:"


class SessionManager:
    """Load and persist SessionState documents keyed by session id."""

    def __init__(self, client: redis.Redis | None = None, ttl_seconds: int | None = None):
        self.client = client
        self.ttl_seconds = ttl_seconds or get_settings().session_ttl_seconds

    async def connect(self) -> None:
        if self.client is None:
            self.client = redis.from_url(get_settings().redis_url)
            logger.info("session_store_connected")

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            self.client = None

    async def _redis(self) -> redis.Redis:
        await self.connect()
        return self.client

    @staticmethod
    def key_for(session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}"

    async def get_session(self, session_id: str) -> SessionState | None:
        """Fetch a session; an unreadable or missing document yields None."""
        client = await self._redis()
        try:
            raw = await client.get(self.key_for(session_id))
        except redis.RedisError as e:
            logger.error("session_read_failed", session_id=session_id, error=str(e))
            return None

        if raw is None:
            return None

        try:
            return SessionState.model_validate_json(raw)
        except ValueError as e:
            # Stale schema or corrupted payload: start over
            logger.warning("session_discarded", session_id=session_id, error=str(e))
            return None

    async def save_session(self, session: SessionState) -> None:
        """Persist the session and refresh its TTL.

        Raises:
            redis.RedisError: The store rejected the write
        """
        client = await self._redis()
        session.last_activity = datetime.utcnow()
        await client.setex(
            self.key_for(session.session_id),
            session.ttl_seconds,
            session.model_dump_json(),
        )
        logger.debug(
            "session_saved",
            session_id=session.session_id,
            selected=len(session.selection.entries),
        )

    async def create_session(self, session_id: str) -> SessionState:
        session = SessionState(session_id=session_id, ttl_seconds=self.ttl_seconds)
        await self.save_session(session)
        logger.info("session_created", session_id=session_id)
        return session

    async def get_or_create_session(self, session_id: str) -> SessionState:
        return await self.get_session(session_id) or await self.create_session(session_id)

    async def delete_session(self, session_id: str) -> bool:
        """Drop a session. Returns False when nothing was stored under the id."""
        client = await self._redis()
        try:
            removed = await client.delete(self.key_for(session_id))
        except redis.RedisError as e:
            logger.error("session_delete_failed", session_id=session_id, error=str(e))
            return False

        if removed:
            logger.info("session_deleted", session_id=session_id)
        return removed > 0
