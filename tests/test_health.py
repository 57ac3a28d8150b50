from app.config import Settings, get_settings
from app.main import app


class TestHealth:
    """Health and integration status endpoints."""

    def test_health(self, client) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert "/webhooks/affinity-ev" in [endpoint["path"] for endpoint in body["endpoints"]]

    def test_integrations_configured(self, client) -> None:
        affinity = client.get("/health/integrations").json()["affinity"]

        assert affinity["connected"] is True
        assert affinity["list_id"] == 300305
        assert affinity["ev_field"] == "field-5305096"

    def test_integrations_without_token(self, client, settings) -> None:
        app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={"affinity_v2_token": ""})

        affinity = client.get("/health/integrations").json()["affinity"]

        assert affinity["connected"] is False
        assert affinity["status"] == "api token not configured"


class TestAppSetup:
    """Application wiring."""

    def test_no_browser_facing_middleware(self) -> None:
        assert [middleware.cls.__name__ for middleware in app.user_middleware] == []
        assert "allowed_origins" not in Settings.model_fields
