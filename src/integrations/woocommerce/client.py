"""Async httpx client for the WooCommerce / WordPress REST API of a merchant's store."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.config import settings
from src.diagnostics.events import emit
from src.integrations.errors import StoreAPIError, StoreConnectionError
from src.integrations.woocommerce.schemas import (
    GatewayAccountPayload,
    PaymentGatewayPayload,
    SettingOption,
    SystemStatusPayload,
)
from src.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)

_GENERAL_SETTINGS_PATH = "/wc/v3/settings/general"
_SYSTEM_STATUS_PATH = "/wc/v3/system_status"
_WCPAY_ACCOUNT_PATH = "/wc/v3/payments/accounts"
_STRIPE_ACCOUNT_PATH = "/wc/v3/wc_stripe/account/summary"
_PAYMENT_GATEWAY_PATH = "/wc/v3/payment_gateways/{gateway_id}"
_PLUGINS_PATH = "/wp/v2/plugins"


class WooCommerceClient:
    """Thin async wrapper around the store's REST API.

    Base URL: the store's /wp-json root.
    Auth: WooCommerce consumer key/secret over HTTP Basic.

    Transport failures are raised as StoreConnectionError. HTTP error statuses,
    undecodable responses and malformed bodies are raised as StoreAPIError.
    """

    def __init__(
        self,
        base_url: str | None = None,
        consumer_key: str | None = None,
        consumer_secret: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        store = settings.store
        self._base_url = (base_url or store.store_api_url).rstrip("/")
        key = consumer_key if consumer_key is not None else store.store_consumer_key
        secret = consumer_secret if consumer_secret is not None else store.store_consumer_secret
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            auth=(key, secret) if key else None,
            timeout=httpx.Timeout(store.request_timeout, connect=store.connect_timeout),
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body."""
        await emit(SystemEvent(
            event_type=EventType.EXTERNAL_API_CALL,
            data={"integration": "woocommerce", "method": method, "path": path},
            source_module="integrations.woocommerce.client",
        ))

        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            payload = response.json()

        except httpx.TransportError as exc:
            logger.warning("Store API transport error on %s %s: %s", method, path, exc)
            await self._emit_response(method, path, error=type(exc).__name__)
            msg = f"Could not reach the store: {exc}"
            raise StoreConnectionError(msg) from exc

        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("Store API HTTP error %s on %s %s", status, method, path)
            await self._emit_response(method, path, error=f"http_{status}")
            msg = f"Store API returned HTTP {status} for {method} {path}"
            raise StoreAPIError(msg, status_code=status) from exc

        except httpx.HTTPError as exc:
            # Decoding errors, redirect loops and other non-transport request failures
            logger.warning("Store API request failed on %s %s: %s", method, path, exc)
            await self._emit_response(method, path, error=type(exc).__name__)
            msg = f"Store API request failed for {method} {path}: {exc}"
            raise StoreAPIError(msg) from exc

        except ValueError as exc:
            logger.warning("Store API returned a non-JSON body on %s %s", method, path)
            await self._emit_response(method, path, error="invalid_json")
            msg = f"Store API returned an unreadable body for {method} {path}"
            raise StoreAPIError(msg) from exc

        await self._emit_response(method, path, status_code=response.status_code)
        return payload

    async def _emit_response(self, method: str, path: str, **data: Any) -> None:
        await emit(SystemEvent(
            event_type=EventType.EXTERNAL_API_RESPONSE,
            data={"integration": "woocommerce", "method": method, "path": path, **data},
            source_module="integrations.woocommerce.client",
        ))

    @staticmethod
    def _parse(model: type[Any], payload: Any, what: str) -> Any:
        try:
            return model.model_validate(payload)
        except ValueError as exc:
            logger.debug("Unexpected %s payload: %r", what, payload)
            msg = f"Unexpected {what} payload"
            raise StoreAPIError(msg) from exc

    # ── Reads ────────────────────────────────────────────────────────

    async def fetch_general_settings(self) -> list[SettingOption]:
        payload = await self._request("GET", _GENERAL_SETTINGS_PATH)
        if not isinstance(payload, list):
            msg = "Unexpected general settings payload"
            raise StoreAPIError(msg)
        return [self._parse(SettingOption, item, "setting option") for item in payload]

    async def fetch_system_status(self) -> SystemStatusPayload:
        payload = await self._request("GET", _SYSTEM_STATUS_PATH, params={"_fields": "active_plugins,inactive_plugins"})
        return self._parse(SystemStatusPayload, payload, "system status")

    async def fetch_wcpay_account(self) -> GatewayAccountPayload:
        payload = await self._request("GET", _WCPAY_ACCOUNT_PATH)
        return self._parse(GatewayAccountPayload, payload, "WooPayments account")

    async def fetch_stripe_account(self) -> GatewayAccountPayload:
        payload = await self._request("GET", _STRIPE_ACCOUNT_PATH)
        return self._parse(GatewayAccountPayload, payload, "Stripe account")

    async def fetch_payment_gateway(self, gateway_id: str) -> PaymentGatewayPayload:
        payload = await self._request("GET", _PAYMENT_GATEWAY_PATH.format(gateway_id=gateway_id))
        return self._parse(PaymentGatewayPayload, payload, "payment gateway")

    # ── Writes ───────────────────────────────────────────────────────

    async def update_payment_gateway(self, gateway_id: str, *, enabled: bool) -> PaymentGatewayPayload:
        payload = await self._request(
            "PUT",
            _PAYMENT_GATEWAY_PATH.format(gateway_id=gateway_id),
            json={"enabled": enabled},
        )
        return self._parse(PaymentGatewayPayload, payload, "payment gateway")

    async def install_plugin(self, slug: str) -> None:
        """Install a plugin from wordpress.org without activating it."""
        await self._request("POST", _PLUGINS_PATH, json={"slug": slug, "status": "inactive"})

    async def activate_plugin(self, plugin_path: str) -> None:
        """Activate an installed plugin identified by "<dir>/<file>"."""
        await self._request("PUT", f"{_PLUGINS_PATH}/{plugin_path}", json={"status": "active"})

    async def close(self) -> None:
        await self._client.aclose()
