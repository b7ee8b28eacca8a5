import json

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from accounts import storage
from accounts.cache import cache_user_profile, get_cached_user_profile
from accounts.permissions import derive_permissions
from accounts.roles import Role
from accounts.serializers import RegisterSerializer
from accounts.services import AuthService, decode_claims, user_from_claims
from accounts.storage import TOKEN_KEY, USER_KEY, TokenStore, generate_checksum
from conftest import FakeResponse, envelope, make_token
from gateway.client import ApiClient

USER_FLAGS = {
    "is_user",
    "can_submit_complaint",
    "can_view_own_complaints",
    "can_view_categories",
    "can_view_statuses",
    "can_update_own_profile",
    "can_view_own_profile",
    "can_view_user_dashboard",
}


# token store

def test_checksum_matches_rolling_hash():
    assert generate_checksum("") == "0"
    assert generate_checksum("abc") == "96354"


def test_checksum_wraps_to_signed_32_bit():
    value = int(generate_checksum("x" * 64))
    assert -2**31 <= value < 2**31


def test_checksum_counts_utf16_code_units():
    # U+1F600 is a surrogate pair: 0xD83D, 0xDE00
    expected = ((0xD83D * 31) + 0xDE00) & 0xFFFFFFFF
    assert generate_checksum("\U0001F600") == str(expected)


def test_secure_store_wraps_values():
    backend = {}
    store = TokenStore(backend, secure=True)

    store.set_token("header.payload.sig")

    wrapped = json.loads(backend[TOKEN_KEY])
    assert wrapped["data"] == "header.payload.sig"
    assert wrapped["checksum"] == generate_checksum("header.payload.sig")
    assert isinstance(wrapped["timestamp"], int)
    assert store.get_token() == "header.payload.sig"


def test_tampered_value_reads_as_absent_and_is_removed():
    backend = {}
    store = TokenStore(backend, secure=True)
    store.set_token("original")

    wrapped = json.loads(backend[TOKEN_KEY])
    wrapped["data"] = "forged"
    backend[TOKEN_KEY] = json.dumps(wrapped)

    assert store.get_token() is None
    assert TOKEN_KEY not in backend


def test_altered_checksum_reads_as_absent_and_is_removed():
    backend = {}
    store = TokenStore(backend, secure=True)
    store.set_token("original")

    wrapped = json.loads(backend[TOKEN_KEY])
    wrapped["checksum"] = str(int(wrapped["checksum"]) + 1)
    backend[TOKEN_KEY] = json.dumps(wrapped)

    assert store.get_token() is None
    assert TOKEN_KEY not in backend


def test_unreadable_value_reads_as_absent():
    backend = {TOKEN_KEY: "not json at all"}
    assert TokenStore(backend, secure=True).get_token() is None
    assert backend == {}


def test_value_older_than_ceiling_expires(monkeypatch):
    backend = {}
    store = TokenStore(backend, secure=True, max_age_ms=24 * 60 * 60 * 1000)

    monkeypatch.setattr(storage, "_now_ms", lambda: 1_000_000)
    store.set_token("tok")

    monkeypatch.setattr(storage, "_now_ms", lambda: 1_000_000 + 23 * 60 * 60 * 1000)
    assert store.get_token() == "tok"

    monkeypatch.setattr(storage, "_now_ms", lambda: 1_000_000 + 24 * 60 * 60 * 1000 + 1)
    assert store.get_token() is None
    assert TOKEN_KEY not in backend


def test_plain_store_keeps_raw_values():
    backend = {}
    store = TokenStore(backend, secure=False)
    store.set_token("tok")
    store.set_user({"id": "u1", "role": "user"})

    assert backend[TOKEN_KEY] == "tok"
    assert store.get_user() == {"id": "u1", "role": "user"}


def test_clear_auth_removes_token_and_user():
    store = TokenStore({}, secure=True)
    store.set_token("tok")
    store.set_user({"id": "u1"})

    store.clear_auth()

    assert not store.has_token()
    assert store.get_user() is None


def test_user_that_is_not_json_is_discarded():
    backend = {}
    store = TokenStore(backend, secure=True)
    store._set(USER_KEY, "{broken")
    assert store.get_user() is None
    assert USER_KEY not in backend


# roles and permissions

@pytest.mark.parametrize("value,expected", [
    (1, Role.ADMIN),
    ("1", Role.ADMIN),
    ("Admin", Role.ADMIN),
    (" admin ", Role.ADMIN),
    (0, Role.USER),
    ("User", Role.USER),
    (None, Role.USER),
    (True, Role.USER),
    ("superuser", Role.USER),
])
def test_role_parse(value, expected):
    assert Role.parse(value) is expected


def test_admin_gets_every_flag_except_user_dashboard():
    flags = derive_permissions(Role.ADMIN).as_dict()
    assert len([k for k in flags if k.startswith("can_")]) == 25
    granted = {k for k, v in flags.items() if v}
    assert granted == set(flags) - {"is_user", "can_view_user_dashboard"}


def test_user_gets_only_self_service_flags():
    flags = derive_permissions("User").as_dict()
    granted = {k for k, v in flags.items() if v}
    assert granted == USER_FLAGS


def test_unknown_role_is_treated_as_user():
    assert derive_permissions(None) == derive_permissions(Role.USER)


# claims

def test_claims_decoded_without_verification():
    claims = decode_claims(make_token(role="Admin", sub="abc"))
    assert claims["sub"] == "abc"
    assert decode_claims("garbage") == {}


def test_user_from_claims_falls_back_to_cached_name_then_email():
    claims = decode_claims(make_token(name=None, email="a@example.com"))
    assert user_from_claims(claims, "a@example.com")["full_name"] == "a@example.com"

    cache_user_profile("A@example.com", "Ada Lovelace")
    user = user_from_claims(claims, "a@example.com")
    assert user["full_name"] == "Ada Lovelace"
    assert user["role"] == "user"
    assert user["id"] == "user-1"


# auth service

def test_login_stores_token_and_user(backend):
    token = make_token(role="Admin", sub="admin-1", email="boss@example.com", name="Boss")
    backend.on("POST", "/User/Login", FakeResponse(200, {"token": token}))
    store = TokenStore({}, secure=True)

    result = AuthService(ApiClient(token_store=store), store).login("boss@example.com", "secret123")

    assert result.success
    assert store.get_token() == token
    assert store.get_user() == {"id": "admin-1", "email": "boss@example.com", "full_name": "Boss", "role": "admin"}
    assert backend.json_body(backend.calls[0]) == {"email": "boss@example.com", "password": "secret123"}


def test_login_accepts_token_nested_in_data(backend):
    backend.on("POST", "/User/Login", envelope({"token": make_token()}))
    store = TokenStore({}, secure=False)

    assert AuthService(ApiClient(token_store=store), store).login("citizen@example.com", "x").success


def test_login_strips_http_prefix_from_errors(backend):
    backend.on("POST", "/User/Login", FakeResponse(400, text="HTTP 400: Account locked", reason="Bad Request"))
    store = TokenStore({}, secure=False)

    result = AuthService(ApiClient(token_store=store), store).login("citizen@example.com", "x")

    assert not result.success
    assert result.message == "Account locked"


def test_complaints_endpoint_depends_on_role():
    store = TokenStore({}, secure=False)
    service = AuthService(ApiClient(token_store=store), store)

    store.set_user({"role": "user"})
    assert service.complaints_endpoint() == "/Complaint/GetAllUserComplaints"

    store.set_user({"role": "admin"})
    assert service.complaints_endpoint() == "/Complaint/GetAll"


# serializers

def test_register_rejects_mismatched_passwords():
    serializer = RegisterSerializer(data={
        "full_name": "Jane Citizen",
        "email": "jane@example.com",
        "password": "secret123",
        "confirm_password": "secret124",
    })
    assert not serializer.is_valid()
    assert serializer.errors["confirm_password"] == ["Passwords do not match"]


def test_register_rejects_digits_in_name_and_short_password():
    serializer = RegisterSerializer(data={
        "full_name": "R2D2",
        "email": "not-an-email",
        "password": "123",
        "confirm_password": "123",
    })
    assert not serializer.is_valid()
    assert serializer.errors["full_name"] == ["Full name can only contain letters, spaces, hyphens, and apostrophes"]
    assert serializer.errors["email"] == ["Please enter a valid email address"]
    assert serializer.errors["password"] == ["Password must be at least 6 characters long"]


# HTTP surface

def test_login_endpoint_sets_cookie_and_redirects_by_role(api_client, backend):
    token = make_token(role="Admin", email="boss@example.com")
    backend.on("POST", "/User/Login", FakeResponse(200, {"token": token}))

    response = api_client.post(
        "/api/v1/auth/login", {"email": "boss@example.com", "password": "secret123"}, format="json",
    )

    body = response.json()
    assert response.status_code == 200
    assert body["status"] == "success"
    assert body["data"]["redirect"] == "/admin"
    assert body["data"]["permissions"]["can_view_all_complaints"] is True
    assert response.cookies["token"].value == token


def test_login_endpoint_reports_bad_credentials(api_client, backend):
    backend.on("POST", "/User/Login", FakeResponse(401, {"message": "Unauthorized"}, reason="Unauthorized"))

    response = api_client.post(
        "/api/v1/auth/login", {"email": "citizen@example.com", "password": "wrong-pass"}, format="json",
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid email or password"


def test_me_requires_login(api_client):
    response = api_client.get("/api/v1/auth/me")

    body = response.json()
    assert response.status_code == 401
    assert body["status"] == "error"
    assert body["data"]["redirect"] == "/login?redirect=%2Fapi%2Fv1%2Fauth%2Fme"


def test_me_returns_session_user(sign_in):
    client = sign_in(role="User", name="Jane Citizen")

    body = client.get("/api/v1/auth/me").json()

    assert body["data"]["user"]["full_name"] == "Jane Citizen"
    assert body["data"]["permissions"]["can_view_user_dashboard"] is True


def test_logout_clears_session(sign_in):
    client = sign_in()

    response = client.post("/api/v1/auth/logout")

    assert response.status_code == 200
    assert response.cookies["token"]["max-age"] == 0
    assert client.get("/api/v1/auth/me").status_code == 401


def test_register_caches_full_name(api_client, backend):
    backend.on("POST", "/User/Create", envelope(message="User created"))

    response = api_client.post("/api/v1/auth/register", {
        "full_name": "Jane Citizen",
        "email": "jane@example.com",
        "password": "secret123",
        "confirm_password": "secret123",
    }, format="json")

    assert response.status_code == 201
    assert get_cached_user_profile("jane@example.com")["full_name"] == "Jane Citizen"
    assert backend.json_body(backend.calls[0]) == {
        "fullName": "Jane Citizen", "email": "jane@example.com", "password": "secret123",
    }


def test_users_list_is_admin_only(sign_in):
    client = sign_in(role="User")

    response = client.get("/api/v1/users")

    assert response.status_code == 403
    assert response.json()["message"] == "Access Denied"


def test_users_list_normalizes_roles(sign_in, backend):
    client = sign_in(role="Admin")
    backend.on("GET", "/User/GetAll", envelope([
        {"id": "1", "fullName": "Boss", "email": "boss@example.com", "role": 1},
        {"id": "2", "fullName": "Jane", "email": "jane@example.com", "role": "User"},
    ]))

    body = client.get("/api/v1/users").json()

    assert body["data"]["count"] == 2
    assert [u["role"] for u in body["data"]["items"]] == ["admin", "user"]
    assert body["data"]["items"][0]["full_name"] == "Boss"


def test_backend_401_ends_the_session(sign_in, backend):
    client = sign_in(role="Admin")
    backend.on("GET", "/User/GetAll", FakeResponse(401, text="", reason="Unauthorized"))

    response = client.get("/api/v1/users")

    assert response.status_code == 401
    assert response.json()["data"]["redirect"] == "/login?redirect=%2Fapi%2Fv1%2Fusers"
    assert response["Refresh"].endswith("url=/login?redirect=%2Fapi%2Fv1%2Fusers")
    assert client.get("/api/v1/auth/me").status_code == 401


def test_delete_user_posts_to_backend(sign_in, backend):
    client = sign_in(role="Admin")
    backend.on("POST", "/User/Delete/u-9", envelope(message="User deleted"))

    response = client.delete("/api/v1/users/u-9")

    assert response.status_code == 200
    assert response.json()["message"] == "User deleted"


def test_admin_creates_user_without_confirmation(sign_in, backend):
    client = sign_in(role="Admin")
    backend.on("POST", "/User/Create", envelope(message="User created"))

    response = client.post("/api/v1/users", {
        "full_name": "New Clerk",
        "email": "clerk@example.com",
        "password": "secret123",
    }, format="json")

    assert response.status_code == 201
    assert backend.json_body(backend.calls_to("POST", "/User/Create")[0])["fullName"] == "New Clerk"


# management commands

@pytest.fixture
def operator(backend, settings):
    settings.CITIWATCH_ADMIN_EMAIL = "root@example.com"
    settings.CITIWATCH_ADMIN_PASSWORD = "rootpass"
    backend.on("POST", "/User/Login", FakeResponse(200, {"token": make_token(role="Admin")}))
    return backend


def test_create_admin_command(operator, capsys):
    operator.on("POST", "/User/CreateAdmin", envelope(message="Admin created"))

    call_command("create_admin", email="new@example.com", password="secret123")

    create = operator.calls_to("POST", "/User/CreateAdmin")[0]
    assert operator.json_body(create) == {
        "fullName": "System Administrator", "email": "new@example.com", "password": "secret123",
    }
    assert create["headers"]["Authorization"].startswith("Bearer ")
    assert "Admin created: new@example.com" in capsys.readouterr().out


@pytest.mark.parametrize("email,password,message", [
    ("not-an-email", "secret123", "Invalid email format."),
    ("new@example.com", "123", "Password must be at least 6 characters long."),
])
def test_create_admin_command_validates_input(operator, email, password, message):
    with pytest.raises(CommandError, match=message):
        call_command("create_admin", email=email, password=password)
    assert operator.calls == []


def test_create_admin_command_needs_operator_credentials(backend, settings):
    settings.CITIWATCH_ADMIN_EMAIL = ""
    settings.CITIWATCH_ADMIN_PASSWORD = ""

    with pytest.raises(CommandError, match="Admin credentials required"):
        call_command("create_admin", email="new@example.com", password="secret123")


def test_list_admins_command(operator, capsys):
    operator.on("GET", "/User/GetAll", envelope([
        {"email": "root@example.com", "fullName": "Root", "role": 1, "createdOn": "2024-01-01"},
        {"email": "jane@example.com", "fullName": "Jane", "role": 0},
        {"email": "ops@example.com", "fullName": "Ops", "role": "Admin"},
    ]))

    call_command("list_admins")

    out = capsys.readouterr().out
    assert "root@example.com\tRoot\t2024-01-01" in out
    assert "ops@example.com" in out
    assert "jane@example.com" not in out
    assert "2 admin(s)" in out
