"""Periodic background sweep of stale artifacts."""

import asyncio
from typing import Optional

from .artifact_store import ArtifactStore
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ArtifactSweeper:
    """Runs ``ArtifactStore.sweep`` on a fixed interval until stopped."""

    def __init__(
        self,
        store: ArtifactStore,
        interval_seconds: float = 3600.0,
        max_age_seconds: float = 3600.0,
    ):
        self.store = store
        self.interval_seconds = interval_seconds
        self.max_age_seconds = max_age_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Sweep once; failures are logged and reported as zero deletions."""
        try:
            deleted = await asyncio.to_thread(self.store.sweep, self.max_age_seconds)
        except Exception as e:
            logger.error(f"Error during cleanup: {e}", extra={"error": str(e)}, exc_info=True)
            return 0

        if deleted:
            logger.info(
                f"Swept {deleted} stale artifacts",
                extra={"deleted": deleted, "max_age_seconds": self.max_age_seconds}
            )
        return deleted

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "Artifact sweeper started",
            extra={
                "interval_seconds": self.interval_seconds,
                "max_age_seconds": self.max_age_seconds,
            }
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Artifact sweeper stopped")
