from types import SimpleNamespace

import pytest

from flexstore.api.rate_limit import InMemoryRateLimiter, caller_key
from flexstore.config import RateLimitRule, Settings, get_settings
from flexstore.main import app


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def test_limiter_allows_up_to_max_then_blocks(clock):
    limiter = InMemoryRateLimiter(clock=clock)
    rule = RateLimitRule(max_requests=2, window_seconds=60)

    assert limiter.hit("login", "ip:1", rule) == (True, 0)
    assert limiter.hit("login", "ip:1", rule) == (True, 0)

    clock.now += 15
    allowed, retry_after = limiter.hit("login", "ip:1", rule)

    assert allowed is False
    assert retry_after == 45


def test_limiter_window_resets(clock):
    limiter = InMemoryRateLimiter(clock=clock)
    rule = RateLimitRule(max_requests=1, window_seconds=10)

    limiter.hit("login", "ip:1", rule)
    assert limiter.hit("login", "ip:1", rule)[0] is False

    clock.now += 10
    assert limiter.hit("login", "ip:1", rule) == (True, 0)


def test_limiter_counts_operations_and_keys_separately(clock):
    limiter = InMemoryRateLimiter(clock=clock)
    rule = RateLimitRule(max_requests=1, window_seconds=60)

    assert limiter.hit("login", "ip:1", rule)[0]
    assert limiter.hit("signup", "ip:1", rule)[0]
    assert limiter.hit("login", "ip:2", rule)[0]
    assert not limiter.hit("login", "ip:1", rule)[0]

    limiter.reset()
    assert limiter.hit("login", "ip:1", rule)[0]


def test_limiter_evicts_expired_windows_when_full(clock):
    limiter = InMemoryRateLimiter(clock=clock, max_entries=2)
    rule = RateLimitRule(max_requests=1, window_seconds=5)

    limiter.hit("login", "a", rule)
    limiter.hit("login", "b", rule)
    clock.now += 6
    limiter.hit("login", "c", rule)

    assert set(limiter._windows) == {("login", "c")}


@pytest.mark.parametrize("raw, expected", [("5/30", (5, 30)), ("7", (7, 60))])
def test_rule_parse(raw, expected):
    rule = RateLimitRule.parse(raw)

    assert (rule.max_requests, rule.window_seconds) == expected


@pytest.mark.parametrize("raw", ["0/60", "x/60", "5/-1"])
def test_rule_parse_rejects_bad_values(raw):
    with pytest.raises(ValueError):
        RateLimitRule.parse(raw)


def test_caller_key_prefers_tenant(admin):
    request = SimpleNamespace(client=SimpleNamespace(host="10.0.0.1"))

    assert caller_key(request, admin) == f"tenant:{admin.tenant_id}"
    assert caller_key(request, None) == "ip:10.0.0.1"
    assert caller_key(SimpleNamespace(client=None), None) == "ip:unknown"


@pytest.fixture
def limited_settings():
    return Settings(
        jwt_secret_key="test-secret-key",
        rate_limit_enabled=True,
        rate_limits={
            "login": RateLimitRule(2, 60),
            "create_record": RateLimitRule(1, 60),
        },
    )


@pytest.fixture
def limited_client(client, limited_settings):
    app.dependency_overrides[get_settings] = lambda: limited_settings
    return client


def test_login_is_rate_limited_per_address(limited_client):
    payload = {"email": "nobody@example.com", "password": "x"}

    statuses = [limited_client.post("/auth/login", json=payload).status_code for _ in range(3)]

    assert statuses == [401, 401, 429]


def test_rate_limited_response_shape(limited_client):
    payload = {"email": "nobody@example.com", "password": "x"}
    for _ in range(2):
        limited_client.post("/auth/login", json=payload)

    response = limited_client.post("/auth/login", json=payload)

    assert response.json()["error"] == "rate_limited"
    assert int(response.headers["Retry-After"]) >= 1


def test_record_creation_is_limited_per_tenant(limited_client, admin, editor, other_admin, auth_headers):
    database = limited_client.post("/databases", json={"name": "Tasks"}, headers=auth_headers(admin)).json()
    url = f"/databases/{database['id']}/records"

    first = limited_client.post(url, json={"values": {}}, headers=auth_headers(admin))
    same_tenant = limited_client.post(url, json={"values": {}}, headers=auth_headers(editor))
    other_tenant = limited_client.post(url, json={"values": {}}, headers=auth_headers(other_admin))

    assert first.status_code == 201
    assert same_tenant.status_code == 429
    # Not limited; the database is simply not theirs
    assert other_tenant.status_code == 404


def test_no_limits_when_disabled(client):
    payload = {"email": "nobody@example.com", "password": "x"}

    statuses = {client.post("/auth/login", json=payload).status_code for _ in range(15)}

    assert statuses == {401}
