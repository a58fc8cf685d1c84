"""Revocation cleanup service - purges denylist rows for tokens that expired anyway."""

import asyncio
import threading
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sessionward.core import async_session_maker, settings
from sessionward.core.logging import get_logger
from sessionward.services.revocation import RevocationService

logger = get_logger("revocation_cleanup")

DEFAULT_CLEANUP_INTERVAL_SECONDS = 3600  # 1 hour

# Delay before the first run so startup is not slowed by a large delete
INITIAL_DELAY_SECONDS = 60


class RevocationCleanupService:
    """Background service that periodically purges expired revocation records."""

    _instance: Optional["RevocationCleanupService"] = None
    _instance_lock: threading.Lock = threading.Lock()

    def __init__(
        self,
        interval_seconds: int = DEFAULT_CLEANUP_INTERVAL_SECONDS,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        self._running = False
        self._task: asyncio.Task | None = None
        self._interval_seconds = interval_seconds
        self._session_factory = session_factory or async_session_maker

    @classmethod
    def get_instance(cls) -> "RevocationCleanupService":
        """Get singleton instance of the cleanup service (thread-safe)."""
        if cls._instance is None:
            with cls._instance_lock:
                # Double-check locking pattern
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @property
    def interval_seconds(self) -> int:
        return self._interval_seconds

    @interval_seconds.setter
    def interval_seconds(self, value: int) -> None:
        """Set the cleanup interval; 0 disables the background loop."""
        self._interval_seconds = max(0, value)

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background cleanup task."""
        if self._interval_seconds == 0:
            logger.info("Revocation cleanup disabled (interval is 0)")
            return
        if self._running:
            logger.warning("Revocation cleanup service is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._cleanup_loop())
        logger.info(f"Revocation cleanup service started (interval: {self._interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background cleanup task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Revocation cleanup service stopped")

    async def _cleanup_loop(self) -> None:
        await asyncio.sleep(min(INITIAL_DELAY_SECONDS, self._interval_seconds))

        while self._running:
            try:
                await self.run_cleanup_now()
            except Exception as e:
                logger.error(f"Error in revocation cleanup: {e}")

            await asyncio.sleep(self._interval_seconds)

    async def run_cleanup_now(self) -> int:
        """Execute a single cleanup run.

        Returns:
            Number of revocation records deleted
        """
        async with self._session_factory() as db:
            try:
                removed = await RevocationService(db, settings.session_config).purge_expired()
            except Exception:
                await db.rollback()
                raise

        if removed > 0:
            logger.info(f"Revocation cleanup: deleted {removed} expired records")
        return removed
