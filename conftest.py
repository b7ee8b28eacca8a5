import json
from urllib.parse import urlparse

import jwt
import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from accounts.services import ROLE_CLAIM

API_URL = "http://backend.test/api"


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text=None, reason="OK"):
        self.status_code = status_code
        self._json = json_data
        if text is None:
            text = json.dumps(json_data) if json_data is not None else ""
        self.text = text
        self.reason = reason

    def json(self):
        if self._json is None:
            raise ValueError("Response is not JSON")
        return self._json


def envelope(data=None, message="OK", status=True):
    return FakeResponse(200, {"status": status, "message": message, "data": data})


class FakeBackend:
    """Stands in for requests.request; routes on (method, path below /api)."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, method, endpoint, response):
        self.routes[(method, endpoint)] = response
        return self

    def __call__(self, method, url, **kwargs):
        endpoint = urlparse(url).path[len("/api"):]
        self.calls.append({"method": method, "endpoint": endpoint, "url": url, **kwargs})
        response = self.routes.get((method, endpoint))
        if response is None:
            return FakeResponse(404, {"status": False, "message": f"No route for {method} {endpoint}"}, reason="Not Found")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(method, url, **kwargs)
        return response

    def calls_to(self, method, endpoint):
        return [c for c in self.calls if c["method"] == method and c["endpoint"] == endpoint]

    def json_body(self, call):
        return json.loads(call["data"])


def make_token(role="User", sub="user-1", email="citizen@example.com", name="Jane Citizen", **extra):
    claims = {"sub": sub, "email": email, ROLE_CLAIM: role, **extra}
    if name:
        claims["name"] = name
    return jwt.encode(claims, "test-signing-key-that-is-long-enough-for-hs256", algorithm="HS256")


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def backend(monkeypatch, settings):
    settings.CITIWATCH_API_URL = API_URL
    fake = FakeBackend()
    monkeypatch.setattr("requests.request", fake)
    return fake


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def sign_in(api_client, backend):
    def _sign_in(role="User", **claims):
        backend.on("POST", "/User/Login", FakeResponse(200, {"token": make_token(role=role, **claims)}))
        response = api_client.post(
            "/api/v1/auth/login",
            {"email": claims.get("email", "citizen@example.com"), "password": "secret123"},
            format="json",
        )
        assert response.status_code == 200, response.content
        return api_client
    return _sign_in
