"""
Message reaper: deletes messages older than the retention window.
Presence rows are never touched; they drop out of the roster by age.
"""
import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from chatroom.crud import chat_message_crud
from chatroom.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)


def reap_expired_messages(db: Session, *, now: int, retention_ms: int) -> int:
    """Delete messages with timestamp < now - retention_ms. Returns the number deleted."""
    cutoff = now - retention_ms
    deleted = chat_message_crud.delete_expired(db, cutoff=cutoff)
    logger.info("Reaper removed %s messages older than %s", deleted, cutoff)
    return deleted


class ReaperTask:
    """Runs the sweep periodically on the event loop. A failed sweep is retried on the next tick."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        interval_seconds: float,
        retention_ms: int,
        clock: Clock = now_ms,
    ) -> None:
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self.retention_ms = retention_ms
        self.clock = clock
        self._task: Optional[asyncio.Task] = None

    def _sweep(self) -> int:
        db = self.session_factory()
        try:
            return reap_expired_messages(db, now=self.clock(), retention_ms=self.retention_ms)
        finally:
            db.close()

    async def run_once(self) -> Optional[int]:
        try:
            return await asyncio.to_thread(self._sweep)
        except Exception as e:
            logger.exception(f"Reaper sweep failed, retrying next tick: {e}")
            return None

    async def _run(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())
            logger.info("Reaper started (every %ss, retention %sms)", self.interval_seconds, self.retention_ms)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Reaper stopped")
