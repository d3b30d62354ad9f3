"""Skip flags for the two non-blocking onboarding steps.

The pending-requirements skip lives in memory for the current session and is
cleared whenever onboarding completes. The cash-on-delivery skip is persisted
per site and read again on every resolution.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.schemas.onboarding import SkipFlags

if TYPE_CHECKING:
    from src.integrations.woocommerce.gateway import RemoteStoreGateway

logger = logging.getLogger(__name__)


class SkipFlagStore:
    def __init__(self, gateway: RemoteStoreGateway) -> None:
        self._gateway = gateway
        self._pending_requirements_skipped = False

    # ── Pending requirements (session) ───────────────────────────────

    def is_pending_requirements_skipped(self) -> bool:
        return self._pending_requirements_skipped

    def skip_pending_requirements(self) -> None:
        self._pending_requirements_skipped = True
        logger.info("Pending requirements step skipped for this session")

    def reset_pending_requirements_skip(self) -> None:
        if self._pending_requirements_skipped:
            logger.debug("Pending requirements skip reset")
        self._pending_requirements_skipped = False

    # ── Cash on delivery (persisted) ─────────────────────────────────

    async def is_cod_step_skipped(self, site_id: int) -> bool:
        return await self._gateway.get_cod_step_skipped(site_id)

    async def set_cod_step_skipped(self, site_id: int, skipped: bool = True) -> None:
        await self._gateway.set_cod_step_skipped(site_id, skipped)
        logger.info("Cash on delivery step for site %s %s", site_id, "skipped" if skipped else "un-skipped")

    async def snapshot(self, site_id: int) -> SkipFlags:
        """Both flags as resolver input."""
        return SkipFlags(
            pending_requirements_skipped=self._pending_requirements_skipped,
            cod_step_skipped=await self.is_cod_step_skipped(site_id),
        )
