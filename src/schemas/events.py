"""SystemEvent schema — the diagnostic event type that flows through the service.

Every onboarding step emits a SystemEvent. Subscribers (the log subscriber,
and anything an embedding application registers) consume these events asynchronously.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """All event types emitted by the system."""

    # Onboarding state
    ONBOARDING_STATE_CHANGED = "onboarding.state_changed"
    ONBOARDING_SYNC_FAILED = "onboarding.sync_failed"
    ONBOARDING_COMPLETED = "onboarding.completed"

    # Merchant choices
    PENDING_REQUIREMENTS_SKIPPED = "onboarding.pending_requirements_skipped"
    COD_STEP_SKIPPED = "onboarding.cod_step_skipped"
    PLUGIN_SELECTED = "plugin.selected"
    PLUGIN_SELECTION_CLEARED = "plugin.selection_cleared"
    PREFERRED_PLUGIN_PERSISTED = "plugin.preferred_persisted"

    # Store actions
    PLUGIN_INSTALLED = "plugin.installed"
    PLUGIN_ACTIVATED = "plugin.activated"
    COD_GATEWAY_ENABLED = "gateway.cod_enabled"
    STORE_ACTION_FAILED = "store.action_failed"

    # Payment gateway accounts
    ACCOUNT_BOUND = "account.bound"

    # External API
    EXTERNAL_API_CALL = "external.api_call"
    EXTERNAL_API_RESPONSE = "external.api_response"

    # System
    SYSTEM_STARTUP = "system.startup"
    SYSTEM_SHUTDOWN = "system.shutdown"


class SystemEvent(BaseModel):
    """Core event that flows through the onboarding service.

    Immutable once created. Consumed by:
    - log_on_event → writes a structured line to the application log
    - any subscriber registered by the embedding application
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Context (optional — not every event concerns a site)
    site_id: int | None = None

    # Flexible payload
    data: dict[str, Any] = Field(default_factory=dict)

    # Metadata
    source_module: str | None = Field(default=None, description="Module that emitted this event")

    model_config = {"frozen": True}
