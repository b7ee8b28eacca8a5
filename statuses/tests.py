from accounts.storage import TokenStore
from conftest import envelope
from gateway.client import ApiClient
from statuses.services import StatusService

STATUSES = [
    {"id": "s1", "name": "Pending"},
    {"id": "s2", "name": "In Progress"},
    {"id": "s3", "name": "Resolved"},
]


def test_list_keeps_backend_order(sign_in, backend):
    client = sign_in(role="User")
    backend.on("GET", "/Status/GetAll", envelope(STATUSES))

    data = client.get("/api/v1/statuses/").json()["data"]

    assert data["count"] == 3
    assert [(s["name"], s["position"]) for s in data["items"]] == [
        ("Pending", 0), ("In Progress", 1), ("Resolved", 2),
    ]


def test_list_requires_login(api_client, backend):
    assert api_client.get("/api/v1/statuses/").status_code == 401


def test_find_by_name_ignores_case(backend):
    backend.on("GET", "/Status/GetAll", envelope(STATUSES))
    service = StatusService(ApiClient(token_store=TokenStore({}, secure=False)))

    assert service.find_by_name(" in progress ").data["id"] == "s2"
    assert not service.find_by_name("Closed").success
