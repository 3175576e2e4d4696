"""
Tests for the web application
"""
import pytest

import sys
sys.path.insert(0, '.')

from fastapi.testclient import TestClient

from floodwatch.api import main as api_main
from floodwatch.core.exceptions import ConfigurationError
from floodwatch.session.context import ClientContext, ContextRegistry

from tests.conftest import FakeAuthProvider, AYESHA


@pytest.fixture
def client(store, gateway, test_settings, monkeypatch):
    """TestClient whose sessions are backed by the in-memory store."""
    providers = []
    contexts = []

    async def factory():
        provider = FakeAuthProvider(accounts={"ayesha@floodwatch.pk": ("monsoon2026", AYESHA)})
        providers.append(provider)
        context = ClientContext(provider=provider, gateway=gateway, config=test_settings)
        contexts.append(context)
        return context

    monkeypatch.setattr(api_main, "registry", ContextRegistry(factory))

    with TestClient(api_main.app) as test_client:
        test_client.factory = factory
        test_client.providers = providers
        test_client.contexts = contexts
        yield test_client


def sign_in(client):
    return client.post(
        "/auth",
        data={"email": "ayesha@floodwatch.pk", "password": "monsoon2026", "mode": "login"},
        follow_redirects=False,
    )


class TestSystemEndpoints:
    """Test suite for system endpoints."""

    def test_health(self, client):
        """Test health endpoint returns correct structure."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["supabase_configured"] is not None
        assert "version" in data


class TestPages:
    """Test suite for server-rendered pages."""

    def test_home_sets_session_cookie(self, client):
        """Test the first visit gets a session cookie and the anonymous home page."""
        response = client.get("/")

        assert response.status_code == 200
        assert "floodwatch_sid" in response.cookies
        assert "Get Started" in response.text

    def test_session_reused(self, client):
        """Test one browser keeps one context."""
        client.get("/")
        client.get("/map")

        assert len(client.providers) == 1

    def test_protected_page_redirects_to_auth(self, client):
        """Test anonymous dashboard access is redirected."""
        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/auth"

    def test_sign_in_redirects_home(self, client):
        """Test a successful sign-in redirects and greets on the next page."""
        response = sign_in(client)

        assert response.status_code == 303
        assert response.headers["location"] == "/"

        home = client.get("/")
        assert "Welcome back!" in home.text
        assert "ayesha@floodwatch.pk" in home.text

    def test_sign_in_wrong_password(self, client):
        """Test rejected credentials re-render the form with the message."""
        response = client.post(
            "/auth",
            data={"email": "ayesha@floodwatch.pk", "password": "wrong-pass", "mode": "login"},
        )

        assert response.status_code == 200
        assert "Invalid email or password" in response.text

    def test_dashboard_after_sign_in(self, client):
        """Test the dashboard shows the profile once signed in."""
        sign_in(client)

        response = client.get("/dashboard")

        assert response.status_code == 200
        assert "Welcome, Ayesha" in response.text
        assert "10.0 kg" in response.text

    def test_report_submission(self, client, store):
        """Test a valid report is stored, credited and redirected to the map."""
        sign_in(client)

        response = client.post(
            "/report",
            data={
                "location": "Nursery, Shahrah-e-Faisal",
                "latitude": "24.8607",
                "longitude": "67.0099",
                "description": "Water up to the car doors near Nursery",
                "rain_level": "high",
                "image_url": "",
            },
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/map"
        assert len(store.tables["road_reports"]) == 3
        assert store.tables["profiles"][0]["total_co2_saved"] == 11.5

    def test_report_invalid_latitude(self, client, store):
        """Test an out-of-range latitude is rejected without writes."""
        sign_in(client)

        response = client.post(
            "/report",
            data={
                "location": "Nursery",
                "latitude": "91",
                "longitude": "67.0099",
                "description": "Water up to the car doors near Nursery",
                "rain_level": "high",
            },
        )

        assert response.status_code == 200
        assert "Latitude must be between -90 and 90" in response.text
        assert store.writes == []

    def test_report_locate(self, client):
        """Test browser coordinates are filled into the form."""
        sign_in(client)

        response = client.post("/report/locate", data={"latitude": "24.9", "longitude": "67.1"})

        assert "Location detected!" in response.text
        assert 'value="24.9"' in response.text

    def test_map_page(self, client):
        """Test the live map renders for anonymous visitors."""
        response = client.get("/map")

        assert response.status_code == 200
        assert "Live Flood Map" in response.text
        assert "2 road reports" in response.text

    def test_user_text_escaped(self, client, store):
        """Test stored report text is escaped on the dashboard."""
        store.tables["road_reports"][0]["location"] = "<b>Clifton</b>"
        sign_in(client)

        response = client.get("/dashboard")

        assert "<b>Clifton</b>" not in response.text
        assert "&lt;b&gt;Clifton&lt;/b&gt;" in response.text

    def test_logout(self, client):
        """Test logout signs out and protected pages redirect again."""
        sign_in(client)

        response = client.post("/logout", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert client.get("/dashboard", follow_redirects=False).status_code == 303

    def test_logout_replaces_context(self, client):
        """Test logout closes the signed-in context without growing the registry."""
        sign_in(client)
        signed_in = client.contexts[0]

        response = client.post("/logout")

        assert "Logged out successfully" in response.text
        assert len(api_main.registry) == 1
        assert signed_in.is_open is False
        assert api_main.registry.get(signed_in.id) is None

    def test_sign_in_survives_restart(self, client, monkeypatch):
        """Test a new process resumes the sign-in from the session cookie."""
        sign_in(client)
        monkeypatch.setattr(api_main, "registry", ContextRegistry(client.factory))

        response = client.get("/dashboard")

        assert response.status_code == 200
        assert "Welcome, Ayesha" in response.text
        assert len(api_main.registry) == 1

    def test_sign_out_clears_stored_tokens(self, client, monkeypatch):
        """Test a signed-out browser is anonymous after a restart."""
        sign_in(client)
        client.post("/logout")
        monkeypatch.setattr(api_main, "registry", ContextRegistry(client.factory))

        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 303

    def test_forged_cookie_ignored(self, client):
        """Test an unsigned session cookie is treated as a first visit."""
        client.cookies.set("floodwatch_sid", "not-a-signed-session")

        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 303

    def test_cookieless_visits_bounded(self, client, monkeypatch):
        """Test browsers that never return cannot grow the registry past its cap."""
        registry = ContextRegistry(client.factory, max_contexts=5)
        monkeypatch.setattr(api_main, "registry", registry)

        for _ in range(25):
            client.cookies.clear()
            client.get("/")

        assert len(registry) == 5
        assert sum(1 for c in client.contexts if c.is_open) == 5

    def test_reconcile(self, client, store):
        """Test recalculation from the dashboard."""
        sign_in(client)

        response = client.post("/dashboard/reconcile")

        assert response.status_code == 200
        assert "Eco impact recalculated: 0.0 kg" in response.text
        assert store.tables["profiles"][0]["total_co2_saved"] == 0.0


class TestReportsAPI:
    """Test suite for the JSON reports endpoint."""

    def test_list_reports(self, client):
        """Test all reports newest first."""
        response = client.get("/api/v1/reports")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert data["reports"][0]["location"] == "Saddar"
        assert data["reports"][0]["rain_level"] == "low"

    def test_list_reports_by_owner(self, client):
        """Test the owner filter."""
        response = client.get("/api/v1/reports", params={"owner_id": "user-bilal"})

        assert response.json()["count"] == 1

    def test_list_reports_limit(self, client):
        """Test the limit parameter."""
        response = client.get("/api/v1/reports", params={"limit": 1})

        assert response.json()["count"] == 1

    def test_list_reports_read_failure(self, client, store):
        """Test a store failure maps to 502."""
        store.fail("road_reports", "select", "upstream unavailable")

        response = client.get("/api/v1/reports")

        assert response.status_code == 502
        assert response.json()["detail"] == "upstream unavailable"

    def test_cookieless_calls_share_one_context(self, client):
        """Test API calls without a cookie neither create sessions nor set cookies."""
        for _ in range(25):
            client.cookies.clear()
            response = client.get("/api/v1/reports")
            assert response.status_code == 200
            assert "floodwatch_sid" not in response.cookies

        assert len(api_main.registry) == 0
        assert len(client.providers) == 1


class TestConfiguration:
    """Test suite for missing configuration."""

    def test_unconfigured_supabase(self, monkeypatch):
        """Test a missing Supabase configuration answers 503."""
        async def factory():
            raise ConfigurationError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")

        monkeypatch.setattr(api_main, "registry", ContextRegistry(factory))

        with TestClient(api_main.app) as test_client:
            response = test_client.get("/")

        assert response.status_code == 503
