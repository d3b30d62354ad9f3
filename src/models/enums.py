"""Domain enums used across the onboarding engine and the store integration.

All enums use str mixin for JSON serialization and stable wire values.
"""

from __future__ import annotations

from enum import Enum


class AccountStatus(str, Enum):
    """Verification status of a payment-gateway account, as reported by the gateway plugin."""

    NO_ACCOUNT = "NOACCOUNT"
    RESTRICTED = "restricted"
    RESTRICTED_SOON = "restricted_soon"
    UNDER_REVIEW = "under_review"
    COMPLETE = "complete"
    ENABLED = "enabled"
    PENDING_VERIFICATION = "pending_verification"
    REJECTED_FRAUD = "rejected.fraud"
    REJECTED_TERMS_OF_SERVICE = "rejected.terms_of_service"
    REJECTED_LISTED = "rejected.listed"
    REJECTED_OTHER = "rejected.other"
    UNKNOWN = "unknown"  # any value the gateway adds that we don't know yet

    @classmethod
    def _missing_(cls, value: object) -> AccountStatus:
        return cls.UNKNOWN

    @property
    def is_rejected(self) -> bool:
        return self in REJECTED_STATUSES


REJECTED_STATUSES = frozenset({
    AccountStatus.REJECTED_FRAUD,
    AccountStatus.REJECTED_TERMS_OF_SERVICE,
    AccountStatus.REJECTED_LISTED,
    AccountStatus.REJECTED_OTHER,
})

# Statuses that allow card-present payments to be collected.
COLLECTABLE_STATUSES = frozenset({
    AccountStatus.COMPLETE,
    AccountStatus.ENABLED,
    AccountStatus.RESTRICTED_SOON,
    AccountStatus.PENDING_VERIFICATION,
})


class OutcomeKind(str, Enum):
    """Discriminator for every onboarding outcome variant."""

    LOADING = "loading"
    SELECT_PLUGIN = "select_plugin"
    COUNTRY_NOT_SUPPORTED = "country_not_supported"
    COUNTRY_NOT_SUPPORTED_FOR_PLUGIN = "country_not_supported_for_plugin"
    PLUGIN_NOT_INSTALLED = "plugin_not_installed"
    PLUGIN_UNSUPPORTED_VERSION = "plugin_unsupported_version"
    PLUGIN_NOT_ACTIVATED = "plugin_not_activated"
    PLUGIN_SETUP_NOT_COMPLETED = "plugin_setup_not_completed"
    PLUGIN_TEST_MODE_WITH_LIVE_ACCOUNT = "plugin_test_mode_with_live_account"
    ACCOUNT_UNDER_REVIEW = "account_under_review"
    ACCOUNT_PENDING_REQUIREMENT = "account_pending_requirement"
    ACCOUNT_OVERDUE_REQUIREMENT = "account_overdue_requirement"
    ACCOUNT_REJECTED = "account_rejected"
    COD_GATEWAY_NOT_SET_UP = "cod_gateway_not_set_up"
    COMPLETED = "completed"
    NO_CONNECTION_ERROR = "no_connection_error"
    GENERIC_ERROR = "generic_error"


class FailureTrigger(str, Enum):
    """Which merchant-initiated action failed — attached to diagnostic events."""

    PLUGIN_INSTALL = "plugin_install"
    PLUGIN_ACTIVATE = "plugin_activate"
    COD_ENABLE = "cod_enable"
    COD_SKIP = "cod_skip"


class Plugin(str, Enum):
    """The two payment plugins competing to provide in-person payments.

    Declaration order is evaluation order when both are in play.
    """

    PRIMARY = "primary"  # WooPayments
    SECONDARY = "secondary"  # Stripe gateway
