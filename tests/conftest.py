"""
Pytest configuration and fixtures
"""
import pytest
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from postgrest.exceptions import APIError

from floodwatch.core.config import Settings
from floodwatch.core.exceptions import AuthenticationError
from floodwatch.gateway.data_gateway import RemoteDataGateway
from floodwatch.gateway.records import Identity
from floodwatch.session.context import ClientContext
from floodwatch.session.subscription import Subscription


class FakeResponse:
    """Stand-in for the PostgREST APIResponse (only .data is read)."""

    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable query builder mirroring the calls the gateway makes."""

    def __init__(self, store, table):
        self.store = store
        self.table = table
        self.op = "select"
        self.filters = []
        self.payload = None
        self.order_by = None
        self.row_limit = None
        self.single = False

    def select(self, columns="*"):
        self.op = "select"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def maybe_single(self):
        self.single = True
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = dict(payload)
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = dict(payload)
        return self

    async def execute(self):
        return self.store.run(self)


class FakeStoreClient:
    """
    In-memory record store with the Supabase client's table() entry point.

    Failures are injected per (table, op) and raised as PostgREST APIError.
    Every executed query is recorded in `calls` as (table, op).
    """

    def __init__(self, tables=None):
        self.tables = {
            "profiles": [],
            "road_reports": [],
            "eco_stats": [],
            "eco_tips": [],
        }
        for name, rows in (tables or {}).items():
            self.tables[name] = [dict(row) for row in rows]
        self.failures = {}
        self.calls = []
        self.before_execute = None
        self._next_id = 1
        self._clock = datetime(2026, 8, 1, 9, 0, 0)

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, op, message="connection reset by peer", code="500"):
        self.failures[(table, op)] = (message, code)

    @property
    def writes(self):
        return [call for call in self.calls if call[1] in ("insert", "update")]

    def _matches(self, row, filters):
        return all(row.get(column) == value for column, value in filters)

    def run(self, query):
        self.calls.append((query.table, query.op))
        if self.before_execute is not None:
            self.before_execute(query.table, query.op)

        failure = self.failures.get((query.table, query.op))
        if failure is not None:
            message, code = failure
            raise APIError({"message": message, "code": code, "hint": None, "details": None})

        rows = self.tables.setdefault(query.table, [])

        if query.op == "insert":
            row = dict(query.payload)
            row.setdefault("id", self._next_id)
            self._next_id += 1
            self._clock += timedelta(minutes=1)
            row.setdefault("created_at", self._clock.isoformat())
            rows.append(row)
            return FakeResponse([dict(row)])

        if query.op == "update":
            updated = []
            for row in rows:
                if self._matches(row, query.filters):
                    row.update(query.payload)
                    updated.append(dict(row))
            return FakeResponse(updated)

        selected = [dict(row) for row in rows if self._matches(row, query.filters)]
        if query.order_by is not None:
            column, desc = query.order_by
            selected.sort(key=lambda row: row.get(column) or "", reverse=desc)
        if query.row_limit is not None:
            selected = selected[:query.row_limit]
        if query.single:
            # supabase-py returns None for a maybe_single() miss
            return FakeResponse(selected[0]) if selected else None
        return FakeResponse(selected)


class FakeAuthProvider:
    """Auth provider with in-memory accounts that emits change events."""

    def __init__(self, identity=None, accounts=None):
        self.identity = identity
        # email -> (password, Identity)
        self.accounts = dict(accounts or {})
        self.sign_up_calls = []
        self._callbacks = {}
        self._next_key = 0

    async def current_identity(self):
        return self.identity

    def subscribe(self, callback):
        key = self._next_key
        self._next_key += 1
        self._callbacks[key] = callback
        return Subscription(lambda: self._callbacks.pop(key, None), name=f"fake listener {key}")

    @property
    def subscriber_count(self):
        return len(self._callbacks)

    def emit(self, event, identity):
        self.identity = identity
        for callback in list(self._callbacks.values()):
            callback(event, identity)

    async def sign_in(self, email, password):
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthenticationError("Invalid login credentials", 400)
        self.emit("SIGNED_IN", account[1])
        return account[1]

    async def sign_up(self, email, password, redirect_to):
        self.sign_up_calls.append((email, redirect_to))
        if email in self.accounts:
            raise AuthenticationError("User already registered", 422)
        self.accounts[email] = (password, Identity(id=f"user-{len(self.accounts) + 1}", email=email))

    async def sign_out(self):
        self.emit("SIGNED_OUT", None)

    async def session_tokens(self):
        if self.identity is None:
            return None
        return f"access-{self.identity.id}", f"refresh-{self.identity.id}"

    async def restore_session(self, access_token, refresh_token):
        for _, identity in self.accounts.values():
            if refresh_token == f"refresh-{identity.id}":
                self.emit("SIGNED_IN", identity)
                return identity
        return None


AYESHA = Identity(id="user-ayesha", email="ayesha@floodwatch.pk")


def make_report_row(report_id, user_id="user-ayesha", rain_level="high", **overrides):
    """Road report row as the store returns it."""
    row = {
        "id": report_id,
        "user_id": user_id,
        "location": "Clifton Block 5",
        "latitude": 24.8138,
        "longitude": 67.0300,
        "description": "Knee deep water near the underpass",
        "rain_level": rain_level,
        "image_url": None,
        "created_at": f"2026-07-0{report_id}T10:00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def test_settings():
    """Settings with Supabase configured and the weather banner off."""
    return Settings(
        supabase_url="https://floodwatch.supabase.co",
        supabase_anon_key="anon-key",
        weather_enabled=False,
        site_url="https://floodwatch.example.pk",
    )


@pytest.fixture
def identity():
    return AYESHA


@pytest.fixture
def store():
    """Store seeded with Ayesha's profile (10 kg), two reports and a tip."""
    return FakeStoreClient({
        "profiles": [
            {"id": "user-ayesha", "username": "Ayesha", "total_co2_saved": 10.0},
        ],
        "road_reports": [
            make_report_row(1, rain_level="high"),
            make_report_row(2, user_id="user-bilal", rain_level="low", location="Saddar"),
        ],
        "eco_tips": [
            {"id": 1, "tip": "Carpool to work during monsoon season", "category": "transport"},
        ],
    })


@pytest.fixture
def gateway(store):
    return RemoteDataGateway(store)


@pytest.fixture
def provider():
    """Signed-out provider that knows Ayesha's account."""
    return FakeAuthProvider(accounts={"ayesha@floodwatch.pk": ("monsoon2026", AYESHA)})


@pytest.fixture
def signed_in_provider():
    return FakeAuthProvider(
        identity=AYESHA,
        accounts={"ayesha@floodwatch.pk": ("monsoon2026", AYESHA)},
    )


@pytest.fixture
def make_context(gateway, test_settings):
    """Build a ClientContext around a provider (not yet opened)."""
    def _make(provider):
        return ClientContext(provider=provider, gateway=gateway, config=test_settings)
    return _make


@pytest.fixture
def valid_report_fields():
    """Report form input that passes every rule."""
    return {
        "location": "  Shahrah-e-Faisal  ",
        "latitude": "24.8607",
        "longitude": "67.0099",
        "description": "Road flooded near the bridge, cars stuck",
        "rain_level": "High",
        "image_url": "",
    }
