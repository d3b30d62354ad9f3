"""Typed failures raised by the store gateway and the settings store.

The onboarding service converts these into outcome variants; they never
cross the service boundary.
"""

from __future__ import annotations


class StoreGatewayError(Exception):
    """Base class for every failure reaching the remote store or persisted settings."""


class StoreConnectionError(StoreGatewayError):
    """Transport-level failure: connection refused, DNS, timeout."""


class StoreAPIError(StoreGatewayError):
    """The store answered, but with an error status or an unusable payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SettingsStoreError(StoreGatewayError):
    """Persisted app settings could not be read or written."""


def is_connectivity_error(error: BaseException) -> bool:
    """True if the failure means the device could not reach the store at all."""
    return isinstance(error, StoreConnectionError)
