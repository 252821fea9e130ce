"""
In-memory session store for the Volume Bot.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

from volumebot.models.session import Session
from volumebot.utils.logger import get_logger

logger = get_logger(__name__)


class SessionStore:
    """Holds one session per user; work on a session is serialized per user."""
    
    def __init__(self):
        self._sessions: Dict[int, Session] = {}
        self._locks: Dict[int, asyncio.Lock] = {}
    
    def get_or_create(self, user_id: int) -> Session:
        """Get the user's session, creating it on first interaction."""
        session = self._sessions.get(user_id)
        if session is None:
            session = Session(user_id=user_id)
            self._sessions[user_id] = session
            self._locks.setdefault(user_id, asyncio.Lock())
            logger.info("Session created", user_id=user_id)
        return session
    
    def get(self, user_id: int) -> Optional[Session]:
        return self._sessions.get(user_id)
    
    @asynccontextmanager
    async def session(self, user_id: int) -> AsyncIterator[Session]:
        """Exclusive access to the user's session for the duration of the block."""
        self.get_or_create(user_id)
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            yield self._sessions[user_id]
    
    def is_busy(self, user_id: int) -> bool:
        """True while some handler holds the user's session."""
        lock = self._locks.get(user_id)
        return lock is not None and lock.locked()
    
    def evict(self, user_id: int) -> None:
        """Drop a session, e.g. from an external TTL policy."""
        self._sessions.pop(user_id, None)
        self._locks.pop(user_id, None)
        logger.info("Session evicted", user_id=user_id)
    
    def user_ids(self) -> List[int]:
        return list(self._sessions.keys())
    
    def __len__(self) -> int:
        return len(self._sessions)
    
    def __contains__(self, user_id: int) -> bool:
        return user_id in self._sessions
