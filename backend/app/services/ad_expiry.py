"""
Ad Expiry Service - background sweep that deactivates ads past their expiry.

Reads already filter on expires_at, so the sweep only keeps is_active
honest for admin listings and stats.
"""

import asyncio
from typing import Optional

from app.core.config import settings
from app.core.database import AsyncSessionLocal
from app.core.logging_config import logger
from app.services.ad_service import ad_service


class AdExpiryService:
    """Periodically deactivates expired ads"""

    def __init__(self, interval_seconds: int = None):
        self.interval_seconds = interval_seconds or settings.AD_SWEEP_INTERVAL_SECONDS
        self.running = False
        self._task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the background sweep"""
        if self.running:
            logger.warning("[AdExpiry] Service already running")
            return

        self.running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info(f"[AdExpiry] Started - Interval: {self.interval_seconds}s")

    async def stop(self):
        """Stop the sweep"""
        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("[AdExpiry] Stopped")

    async def _sweep_loop(self):
        while self.running:
            try:
                await self.sweep_once()
            except Exception as e:
                logger.error(f"[AdExpiry] Error in sweep loop: {e}", exc_info=True)

            await asyncio.sleep(self.interval_seconds)

    async def sweep_once(self) -> int:
        async with AsyncSessionLocal() as session:
            count = await ad_service.deactivate_expired(session)
            await session.commit()
        if count:
            logger.info(f"[AdExpiry] Deactivated {count} expired ads")
        return count


ad_expiry_service = AdExpiryService()
