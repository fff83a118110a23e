"""In-memory registry of running learning sessions.

Sessions are kept in-process only. Each one belongs to the viewer who started
it; anonymous viewers (share-link readers) are identified by the unguessable
session id alone. Idle sessions are swept periodically.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional
from uuid import uuid4

from flashdeck.core.config import settings
from flashdeck.core.errors import SessionNotFound
from flashdeck.core.logging import get_logger
from flashdeck.modules.access import Viewer
from flashdeck.modules.learning.engine import LearningSession

logger = get_logger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ActiveSession:
    id: str
    set_id: int
    user_id: Optional[int]
    engine: LearningSession
    started_at: datetime = field(default_factory=_now_utc)
    last_activity: datetime = field(default_factory=_now_utc)

    def touch(self) -> None:
        self.last_activity = _now_utc()


class SessionRegistry:
    def __init__(
        self,
        *,
        idle_seconds: int = 3600,
        sweep_interval: int = 60,
    ) -> None:
        self.sessions: dict[str, ActiveSession] = {}
        self._idle_seconds = idle_seconds
        self._sweep_interval = sweep_interval
        self._cleanup_task: Optional[asyncio.Task] = None

    def start(
        self, viewer: Viewer, set_id: int, cards: Iterable[Any]
    ) -> ActiveSession:
        engine = LearningSession(cards)
        session = ActiveSession(
            id=uuid4().hex, set_id=set_id, user_id=viewer.user_id, engine=engine
        )
        self.sessions[session.id] = session
        return session

    def get(self, viewer: Viewer, session_id: str) -> ActiveSession:
        session = self.sessions.get(session_id)
        if session is None or session.user_id != viewer.user_id:
            raise SessionNotFound()
        session.touch()
        return session

    def remove(self, viewer: Viewer, session_id: str) -> None:
        self.get(viewer, session_id)
        self.sessions.pop(session_id, None)

    def sweep(self, now: Optional[datetime] = None) -> int:
        cutoff = (now or _now_utc()) - timedelta(seconds=self._idle_seconds)
        stale = [sid for sid, s in self.sessions.items() if s.last_activity < cutoff]
        for sid in stale:
            self.sessions.pop(sid, None)
        if stale:
            logger.info(f"Swept {len(stale)} idle learning sessions")
        return len(stale)

    # Background cleanup -------------------------------------------------
    async def _cleanup_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self._sweep_interval)
                self.sweep()
        except asyncio.CancelledError:
            return

    def start_cleanup(self) -> None:
        if self._cleanup_task and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop_cleanup(self) -> None:
        if self._cleanup_task:
            self._cleanup_task.cancel()
            await asyncio.gather(self._cleanup_task, return_exceptions=True)
            self._cleanup_task = None


session_registry = SessionRegistry(
    idle_seconds=settings.sessions.idle_seconds,
    sweep_interval=settings.sessions.sweep_interval_seconds,
)
