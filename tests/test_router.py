"""Tests for the onboarding HTTP API."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.models.enums import AccountStatus, Plugin
from src.onboarding.router import router
from src.onboarding.service import PaymentsOnboardingService
from tests.factories import SITE_ID


@pytest.fixture()
def app(gateway):
    app = FastAPI()
    app.include_router(router)
    app.state.onboarding_service = PaymentsOnboardingService(gateway, SITE_ID)
    return app


@pytest.fixture()
def client(app):
    return TestClient(app)


class TestOnboardingRoutes:
    def test_current_state_before_refresh(self, client):
        response = client.get("/payments/onboarding")
        assert response.status_code == 200
        assert response.json() == {"kind": "loading"}

    def test_refresh(self, client):
        response = client.post("/payments/onboarding/refresh")
        assert response.status_code == 200
        assert response.json() == {
            "kind": "completed",
            "preferred_plugin": "primary",
            "available_plugins": ["primary"],
        }

    def test_force_refresh(self, client):
        response = client.post("/payments/onboarding/refresh", params={"force": "true"})
        assert response.json()["kind"] == "completed"

    def test_refresh_if_necessary(self, client):
        assert client.post("/payments/onboarding/refresh-if-necessary").json()["kind"] == "completed"

    def test_cod_flow(self, client, gateway):
        gateway.cod_enabled = False
        body = client.post("/payments/onboarding/refresh").json()
        assert body == {"kind": "cod_gateway_not_set_up", "plugin": "primary"}

        assert client.post("/payments/onboarding/skip-cod").json()["kind"] == "completed"
        assert gateway.cod_step_skipped is True

    def test_enable_cod(self, client, gateway):
        gateway.cod_enabled = False
        assert client.post("/payments/onboarding/cash-on-delivery/enable").json()["kind"] == "completed"

    def test_skip_pending_requirements(self, client, gateway):
        gateway.set_account(Plugin.PRIMARY, AccountStatus.RESTRICTED_SOON)
        body = client.post("/payments/onboarding/refresh").json()
        assert body == {"kind": "account_pending_requirement", "plugin": "primary", "deadline": None}

        assert client.post("/payments/onboarding/skip-pending-requirements").json()["kind"] == "completed"

    def test_select_and_clear_plugin(self, client, gateway):
        gateway.install(Plugin.SECONDARY)
        gateway.set_account(Plugin.SECONDARY)
        assert client.post("/payments/onboarding/refresh").json() == {
            "kind": "select_plugin",
            "selection_was_cleared": False,
        }

        body = client.post("/payments/onboarding/plugins/secondary/select").json()
        assert body["preferred_plugin"] == "secondary"
        assert body["available_plugins"] == ["primary", "secondary"]

        body = client.delete("/payments/onboarding/plugins/selection").json()
        assert body == {"kind": "select_plugin", "selection_was_cleared": True}

    def test_install_and_activate(self, client, gateway):
        assert client.post("/payments/onboarding/plugins/secondary/install").status_code == 200
        assert client.post("/payments/onboarding/plugins/secondary/activate").status_code == 200
        assert gateway.calls_to("install_plugin") == [("install_plugin", (SITE_ID, "woocommerce-gateway-stripe"))]

    def test_unknown_plugin_rejected(self, client):
        assert client.post("/payments/onboarding/plugins/paypal/select").status_code == 422


class TestServiceNotReady:
    def test_503_without_service(self):
        app = FastAPI()
        app.include_router(router)
        response = TestClient(app).get("/payments/onboarding")
        assert response.status_code == 503
