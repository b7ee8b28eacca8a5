import pytest
import requests

from accounts.storage import TokenStore
from conftest import API_URL, FakeResponse
from gateway.client import ApiClient, extract_error_message, login_redirect_target
from gateway.exceptions import ApiError, NotFoundError, SessionExpired, is_not_found
from gateway.handlers import envelope_exception_handler
from gateway.results import ServiceResult


@pytest.fixture
def store():
    return TokenStore({}, secure=True)


@pytest.fixture
def client(backend, store):
    return ApiClient(token_store=store, current_path="/admin/complaints?page=2")


def test_bearer_token_attached_when_signed_in(backend, client, store):
    store.set_token("abc.def.ghi")
    backend.on("GET", "/Status/GetAll", FakeResponse(200, {"status": True, "data": []}))

    client.get("/Status/GetAll")

    call = backend.calls[0]
    assert call["url"] == f"{API_URL}/Status/GetAll"
    assert call["headers"]["Authorization"] == "Bearer abc.def.ghi"
    assert call["headers"]["Content-Type"] == "application/json"


def test_no_authorization_header_without_token(backend, client):
    backend.on("GET", "/Category/GetAll", FakeResponse(200, {"status": True, "data": []}))

    client.get("/Category/GetAll")

    assert "Authorization" not in backend.calls[0]["headers"]


def test_json_body_is_serialized(backend, client):
    backend.on("PUT", "/Complaint/UpdateStatus/c1", FakeResponse(200, {"status": True}))

    client.put("/Complaint/UpdateStatus/c1", {"id": "s1"})

    assert backend.json_body(backend.calls[0]) == {"id": "s1"}


def test_delete_sends_bearer_token_without_body(backend, client, store):
    store.set_token("tok")
    backend.on("DELETE", "/Category/Delete/7", FakeResponse(200, {"status": True, "message": "Deleted"}))

    assert client.delete("/Category/Delete/7") == {"status": True, "message": "Deleted"}

    call = backend.calls[0]
    assert call["method"] == "DELETE"
    assert call["url"] == f"{API_URL}/Category/Delete/7"
    assert call["headers"] == {"Content-Type": "application/json", "Authorization": "Bearer tok"}
    assert "data" not in call


def test_multipart_leaves_content_type_to_requests(backend, client, store):
    store.set_token("tok")
    backend.on("POST", "/Complaint/Submit", FakeResponse(200, {"status": True, "message": "ok"}))

    client.post_form("/Complaint/Submit", {"Title": "Pothole"}, {"formFile": ("a.png", b"x", "image/png")})

    call = backend.calls[0]
    assert "Content-Type" not in call["headers"]
    assert call["headers"]["Authorization"] == "Bearer tok"
    assert call["data"] == {"Title": "Pothole"}
    assert call["files"]["formFile"][0] == "a.png"


def test_error_message_prefers_json_envelope():
    response = FakeResponse(400, {"status": False, "message": "Email already exists"}, reason="Bad Request")
    assert extract_error_message(response) == "Email already exists"


def test_error_message_accepts_pascal_case_key():
    response = FakeResponse(400, {"Message": "Invalid category"})
    assert extract_error_message(response) == "Invalid category"


def test_error_message_falls_back_to_text_then_reason():
    assert extract_error_message(FakeResponse(500, text="Upstream exploded")) == "Upstream exploded"
    assert extract_error_message(FakeResponse(503, text="", reason="Service Unavailable")) == "Service Unavailable"
    assert extract_error_message(FakeResponse(418, text="", reason="")) == "HTTP 418"


def test_non_2xx_raises_api_error(backend, client):
    backend.on("POST", "/User/Create", FakeResponse(400, {"message": "Email already exists"}))

    with pytest.raises(ApiError) as exc:
        client.post("/User/Create", {"email": "a@b.c"})

    assert exc.value.status_code == 400
    assert str(exc.value) == "Email already exists"


def test_404_raises_not_found(backend, client):
    with pytest.raises(NotFoundError):
        client.get("/Complaint/GetById/missing")


def test_401_clears_session_and_raises_session_expired(backend, client, store):
    store.set_token("stale")
    store.set_user({"id": "u1", "role": "user"})
    backend.on("GET", "/Complaint/GetAll", FakeResponse(401, text="", reason="Unauthorized"))

    with pytest.raises(SessionExpired) as exc:
        client.get("/Complaint/GetAll")

    assert exc.value.message == "Session expired."
    assert exc.value.redirect_to == "/login?redirect=%2Fadmin%2Fcomplaints%3Fpage%3D2"
    assert store.get_token() is None
    assert store.get_user() is None


def test_success_body_without_json_content_type_is_parsed_from_text(backend, client):
    response = FakeResponse(200, text='{"status": true, "data": [1]}')
    backend.on("GET", "/Status/GetAll", response)

    assert client.get("/Status/GetAll") == {"status": True, "data": [1]}


def test_success_body_that_is_not_json_raises(backend, client):
    backend.on("GET", "/Status/GetAll", FakeResponse(200, text="<html>oops</html>"))

    with pytest.raises(ApiError, match="Invalid JSON response"):
        client.get("/Status/GetAll")


def test_network_failure_becomes_api_error(backend, client):
    backend.on("GET", "/Status/GetAll", requests.ConnectionError("connection refused"))

    with pytest.raises(ApiError) as exc:
        client.get("/Status/GetAll")

    assert exc.value.status_code is None
    assert "connection refused" in exc.value.message


def test_login_redirect_target():
    assert login_redirect_target(None) == "/login"
    assert login_redirect_target("/dashboard") == "/login?redirect=%2Fdashboard"


def test_not_found_sentinel():
    assert is_not_found("Not found!")
    assert is_not_found(" not found ")
    assert not is_not_found("Category not found for id 3")


def test_service_result_from_envelope():
    ok = ServiceResult.from_envelope({"status": True, "message": "Done", "data": [1, 2]})
    assert ok.success and ok.message == "Done" and ok.data == [1, 2]

    failed = ServiceResult.from_envelope({"status": False}, "Failed to fetch")
    assert not failed.success and failed.message == "Failed to fetch"

    textual = ServiceResult.from_envelope({"status": "success", "data": {}})
    assert textual.success and textual.message == ""

    assert not ServiceResult.from_envelope("garbage").success


def test_session_expired_handler_schedules_redirect_and_drops_cookie(settings):
    settings.CITIWATCH_SESSION_EXPIRED_REDIRECT_DELAY = 3

    response = envelope_exception_handler(SessionExpired(redirect_to="/login?redirect=%2Fadmin"), {})

    assert response.status_code == 401
    assert response.data["status"] == "error"
    assert response.data["data"]["redirect"] == "/login?redirect=%2Fadmin"
    assert response["Refresh"] == "3; url=/login?redirect=%2Fadmin"
    assert response.cookies["token"]["max-age"] == 0


def test_backend_error_handler_keeps_status_code():
    response = envelope_exception_handler(ApiError("Forbidden", status_code=403), {})
    assert response.status_code == 403
    assert response.data["message"] == "Forbidden"

    network = envelope_exception_handler(ApiError("Network error: timeout"), {})
    assert network.status_code == 502


def test_unexpected_error_gets_generic_envelope():
    response = envelope_exception_handler(RuntimeError("boom"), {"view": None})
    assert response.status_code == 500
    assert response.data["status"] == "error"
    assert "reload" in response.data["message"]
