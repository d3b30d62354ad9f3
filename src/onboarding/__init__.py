"""Onboarding engine — decides whether in-person payments are ready for a store."""

from src.models.enums import Plugin
from src.onboarding.resolver import resolve
from src.onboarding.service import PaymentsOnboardingService

__all__ = [
    "resolve",
    "Plugin",
    "PaymentsOnboardingService",
]
