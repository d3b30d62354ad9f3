"""Onboarding HTTP API — FastAPI router over the onboarding service.

Every route returns the resulting outcome as JSON, tagged by its ``kind``.
The service instance is created by the application lifespan and stored on
``app.state.onboarding_service``.
"""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from src.models.enums import Plugin
from src.onboarding.service import PaymentsOnboardingService
from src.schemas.onboarding import OUTCOME_ADAPTER, OnboardingOutcome

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments/onboarding", tags=["onboarding"])


def get_onboarding_service(request: Request) -> PaymentsOnboardingService:
    """Resolve the onboarding service wired by the lifespan."""
    service: PaymentsOnboardingService | None = getattr(request.app.state, "onboarding_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Onboarding service not initialized",
        )
    return service


def _dump(outcome: OnboardingOutcome) -> dict[str, Any]:
    return OUTCOME_ADAPTER.dump_python(outcome, mode="json")


# ── State ────────────────────────────────────────────────────────────


@router.get("")
async def current_state(
    service: PaymentsOnboardingService = Depends(get_onboarding_service),
) -> dict[str, Any]:
    """Currently published outcome, without contacting the store."""
    return _dump(service.state)


@router.post("/refresh")
async def refresh(
    force: bool = Query(False),
    service: PaymentsOnboardingService = Depends(get_onboarding_service),
) -> dict[str, Any]:
    outcome = await service.force_refresh() if force else await service.refresh()
    return _dump(outcome)


@router.post("/refresh-if-necessary")
async def refresh_if_necessary(
    service: PaymentsOnboardingService = Depends(get_onboarding_service),
) -> dict[str, Any]:
    return _dump(await service.refresh_if_necessary())


# ── Merchant choices ─────────────────────────────────────────────────


@router.post("/skip-pending-requirements")
async def skip_pending_requirements(
    service: PaymentsOnboardingService = Depends(get_onboarding_service),
) -> dict[str, Any]:
    return _dump(await service.skip_pending_requirements())


@router.post("/skip-cod")
async def skip_cod_step(
    service: PaymentsOnboardingService = Depends(get_onboarding_service),
) -> dict[str, Any]:
    return _dump(await service.skip_cod_step())


@router.post("/plugins/{plugin}/select")
async def select_plugin(
    plugin: Plugin,
    service: PaymentsOnboardingService = Depends(get_onboarding_service),
) -> dict[str, Any]:
    return _dump(await service.select_plugin(plugin))


@router.delete("/plugins/selection")
async def clear_plugin_selection(
    service: PaymentsOnboardingService = Depends(get_onboarding_service),
) -> dict[str, Any]:
    return _dump(await service.clear_plugin_selection())


# ── Store actions ────────────────────────────────────────────────────


@router.post("/plugins/{plugin}/install")
async def install_plugin(
    plugin: Plugin,
    service: PaymentsOnboardingService = Depends(get_onboarding_service),
) -> dict[str, Any]:
    return _dump(await service.install_plugin(plugin))


@router.post("/plugins/{plugin}/activate")
async def activate_plugin(
    plugin: Plugin,
    service: PaymentsOnboardingService = Depends(get_onboarding_service),
) -> dict[str, Any]:
    return _dump(await service.activate_plugin(plugin))


@router.post("/cash-on-delivery/enable")
async def enable_cash_on_delivery(
    service: PaymentsOnboardingService = Depends(get_onboarding_service),
) -> dict[str, Any]:
    return _dump(await service.enable_cash_on_delivery())
