# app/conversation/context_manager.py
"""
Chat Session Store
Handles persistence and retrieval of chat sessions through a cache adapter.
Clean separation: no AI logic, no conversation rules.
Backend failures surface as SessionStoreError so a turn never reports
success for a write that did not happen.
"""

import json
import uuid
import logging
from typing import Optional, List, Dict, Any

from pydantic import ValidationError as PydanticValidationError

from app.conversation.models import JsonChatSession, MessageRole
from app.infrastructure.cache import CacheAdapter, CacheError, RedisCache
from app.core.config import settings
from services.exceptions import SessionStoreError

logger = logging.getLogger(__name__)


class ContextManager:
    """
    Manages chat session persistence.
    Each session is stored as camelCase JSON with a TTL; a per-user list
    indexes session ids, most recent first.
    """

    # Key prefixes
    KEY_PREFIX = "chat:session:"
    USER_SESSIONS_PREFIX = "user:chat_sessions:"

    def __init__(
        self,
        cache: Optional[CacheAdapter] = None,
        ttl_seconds: Optional[int] = None,
        max_user_sessions: Optional[int] = None
    ):
        """
        Initialize context manager.

        Args:
            cache: Cache adapter (defaults to RedisCache if not provided)
            ttl_seconds: Session TTL (defaults to settings.CHAT_SESSION_TTL)
            max_user_sessions: Size of the per-user index
        """
        self.cache = cache or RedisCache()
        self.ttl = ttl_seconds or settings.CHAT_SESSION_TTL
        self.max_user_sessions = max_user_sessions or settings.MAX_USER_SESSIONS
        logger.debug(f"✓ ContextManager initialized with TTL={self.ttl}s")

    def _session_key(self, session_id: str) -> str:
        return f"{self.KEY_PREFIX}{session_id}"

    def _user_key(self, user_id: str) -> str:
        return f"{self.USER_SESSIONS_PREFIX}{user_id}"

    # ============================================================
    # SESSION MANAGEMENT
    # ============================================================

    @staticmethod
    def new_session(user_id: str, session_id: Optional[str] = None) -> JsonChatSession:
        """Build a fresh session in collecting_origin without persisting it"""
        return JsonChatSession(
            session_id=session_id or str(uuid.uuid4()),
            user_id=user_id
        )

    async def create_session(
        self,
        user_id: str,
        session_id: Optional[str] = None
    ) -> JsonChatSession:
        """
        Create a new chat session, persist it and index it for the user.

        Args:
            user_id: Owner of the session
            session_id: Client-chosen id (generated when omitted)

        Returns:
            New JsonChatSession in collecting_origin
        """
        session = self.new_session(user_id, session_id)

        await self.save_session(session)
        await self.index_user_session(user_id, session.session_id)

        logger.info(f"✓ Created new session: {session.session_id} (user={user_id})")
        return session

    async def get_session(self, session_id: str) -> Optional[JsonChatSession]:
        """
        Retrieve a session.

        Returns:
            JsonChatSession if found, None otherwise

        Raises:
            SessionStoreError: If the backend is unreachable
        """
        key = self._session_key(session_id)

        try:
            data = await self.cache.get(key)
        except CacheError as e:
            raise SessionStoreError(f"Could not load session {session_id}: {e}") from e

        if not data:
            logger.debug(f"Session not found: {session_id}")
            return None

        try:
            session = JsonChatSession.model_validate(json.loads(data))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.error(f"Invalid stored session {session_id}, discarding: {e}")
            await self.delete_session(session_id)
            return None

        logger.debug(
            f"✓ Retrieved session {session_id}: "
            f"stage={session.current_stage.value}, "
            f"messages={len(session.messages)}"
        )
        return session

    async def save_session(self, session: JsonChatSession) -> JsonChatSession:
        """
        Persist a session with a fresh TTL.

        Raises:
            SessionStoreError: If the write fails
        """
        key = self._session_key(session.session_id)
        payload = json.dumps(session.to_storage_dict(), ensure_ascii=False)

        try:
            await self.cache.set(key, payload, self.ttl)
        except CacheError as e:
            logger.error(f"Error saving session {session.session_id}: {e}")
            raise SessionStoreError(f"Could not save session {session.session_id}: {e}") from e

        logger.debug(
            f"✓ Saved session {session.session_id}: "
            f"stage={session.current_stage.value}, messages={len(session.messages)}"
        )
        return session

    async def delete_session(self, session_id: str, user_id: Optional[str] = None) -> bool:
        """
        Delete a session (and its entry in the user's index when known).

        Returns:
            True if the session existed
        """
        try:
            deleted = await self.cache.delete(self._session_key(session_id))
            if user_id:
                await self.cache.lrem(self._user_key(user_id), session_id)
        except CacheError as e:
            raise SessionStoreError(f"Could not delete session {session_id}: {e}") from e

        if deleted:
            logger.info(f"✓ Deleted session: {session_id}")
        return deleted

    async def session_exists(self, session_id: str) -> bool:
        try:
            return await self.cache.exists(self._session_key(session_id))
        except CacheError as e:
            raise SessionStoreError(f"Could not check session {session_id}: {e}") from e

    # ============================================================
    # USER SESSION TRACKING
    # ============================================================

    async def get_user_sessions(
        self,
        user_id: str,
        limit: int = 10
    ) -> List[JsonChatSession]:
        """
        Get recent sessions for a user, most recent first.
        Ids whose session has expired are pruned from the index.
        """
        user_key = self._user_key(user_id)

        try:
            session_ids = await self.cache.lrange(user_key, 0, limit - 1)
        except CacheError as e:
            raise SessionStoreError(f"Could not list sessions for {user_id}: {e}") from e

        sessions = []
        for sid in session_ids:
            session = await self.get_session(sid)
            if session:
                sessions.append(session)
                continue
            try:
                await self.cache.lrem(user_key, sid)
            except CacheError as e:
                raise SessionStoreError(f"Could not prune session index for {user_id}: {e}") from e

        logger.debug(f"Retrieved {len(sessions)} sessions for user {user_id}")
        return sessions

    async def index_user_session(self, user_id: str, session_id: str):
        """Move session to the front of the user's index, keeping it bounded"""
        user_key = self._user_key(user_id)

        try:
            await self.cache.lrem(user_key, session_id)
            await self.cache.lpush(user_key, session_id)
            await self.cache.ltrim(user_key, 0, self.max_user_sessions - 1)
            await self.cache.expire(user_key, self.ttl)
        except CacheError as e:
            raise SessionStoreError(f"Could not index session {session_id}: {e}") from e

        logger.debug(f"✓ Added session {session_id} to user {user_id} history")

    # ============================================================
    # SUMMARIES
    # ============================================================

    @staticmethod
    def get_session_summary(session: JsonChatSession) -> Dict[str, Any]:
        """
        History-list entry: first user message, message count and the
        recommended destination once there is one.
        """
        first_user_message = next(
            (m.content for m in session.messages if m.role == MessageRole.USER),
            ""
        )

        destination = None
        data = session.collected_data
        if session.has_recommendation and data.destination_name:
            destination = {
                "name": data.destination_name,
                "iata": data.destination_iata,
            }

        return {
            "sessionId": session.session_id,
            "createdAt": session.created_at.isoformat(),
            "updatedAt": session.updated_at.isoformat(),
            "currentStage": session.current_stage.value,
            "isComplete": session.is_complete,
            "hasRecommendation": session.has_recommendation,
            "messageCount": len(session.messages),
            "summary": first_user_message[:100],
            "recommendedDestination": destination,
        }


# ============================================================
# FACTORY FUNCTION
# ============================================================

def get_context_manager(cache: Optional[CacheAdapter] = None) -> ContextManager:
    """
    Factory function to get ContextManager instance.

    Args:
        cache: Optional cache adapter (defaults to RedisCache)

    Returns:
        ContextManager instance
    """
    return ContextManager(cache=cache)


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    'ContextManager',
    'get_context_manager'
]
