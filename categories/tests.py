import pytest

from categories.serializers import CategoryInputSerializer
from conftest import FakeResponse, envelope


@pytest.mark.parametrize("name", ["ab", "x" * 50])
def test_category_name_length_accepted(name):
    assert CategoryInputSerializer(data={"name": name}).is_valid()


@pytest.mark.parametrize("name,message", [
    ("a", "Category name must be at least 2 characters long"),
    ("x" * 51, "Category name cannot exceed 50 characters"),
    ("", "Category name is required"),
])
def test_category_name_length_rejected(name, message):
    serializer = CategoryInputSerializer(data={"name": name})
    assert not serializer.is_valid()
    assert serializer.errors["name"] == [message]


def test_category_defaults_and_color_normalization():
    serializer = CategoryInputSerializer(data={"name": "Roads", "color": "#ff8800"})
    assert serializer.is_valid(), serializer.errors
    assert serializer.to_backend() == {
        "name": "Roads",
        "description": "",
        "icon": "fas fa-tag",
        "color": "#FF8800",
    }


def test_category_rejects_bad_color_and_long_description():
    serializer = CategoryInputSerializer(data={"name": "Roads", "color": "orange", "description": "d" * 201})
    assert not serializer.is_valid()
    assert "color" in serializer.errors
    assert serializer.errors["description"] == ["Category description cannot exceed 200 characters"]


def test_list_fills_in_icon_and_color(sign_in, backend):
    client = sign_in(role="User")
    backend.on("GET", "/Category/GetAll", envelope([
        {"id": "1", "name": "Lighting", "description": "Street lights"},
        {"id": "2", "name": "Roads", "icon": "fas fa-road", "color": "#111111"},
    ]))

    items = client.get("/api/v1/categories/").json()["data"]["items"]

    assert items[0]["icon"] == "fas fa-tag"
    assert items[0]["color"] == "#3B82F6"
    assert items[1]["icon"] == "fas fa-road"


def test_list_with_no_data_is_empty(sign_in, backend):
    client = sign_in(role="User")
    backend.on("GET", "/Category/GetAll", envelope(None))

    data = client.get("/api/v1/categories/").json()["data"]

    assert data == {"items": [], "count": 0}


def test_create_is_admin_only(sign_in, backend):
    client = sign_in(role="User")

    response = client.post("/api/v1/categories/", {"name": "Roads"}, format="json")

    assert response.status_code == 403
    assert response.json()["message"] == "Insufficient Permissions"
    assert backend.calls_to("POST", "/Category/Create") == []


def test_create_sends_validated_category(sign_in, backend):
    client = sign_in(role="Admin")
    backend.on("POST", "/Category/Create", envelope({"id": "9"}, message="Category created"))

    response = client.post("/api/v1/categories/", {"name": "Roads", "color": "#00ff00"}, format="json")

    assert response.status_code == 201
    body = backend.json_body(backend.calls_to("POST", "/Category/Create")[0])
    assert body["color"] == "#00FF00"


def test_create_rejects_short_name_without_calling_backend(sign_in, backend):
    client = sign_in(role="Admin")

    response = client.post("/api/v1/categories/", {"name": "R"}, format="json")

    assert response.status_code == 400
    assert response.json()["data"]["name"] == ["Category name must be at least 2 characters long"]
    assert backend.calls_to("POST", "/Category/Create") == []


def test_update_and_delete_use_put(sign_in, backend):
    client = sign_in(role="Admin")
    backend.on("PUT", "/Category/Update/7", envelope(message="Category updated"))
    backend.on("PUT", "/Category/Delete/7", envelope(message="Category deleted"))

    assert client.put("/api/v1/categories/7", {"name": "Parks"}, format="json").status_code == 200
    response = client.delete("/api/v1/categories/7")

    assert response.json()["message"] == "Category deleted"


def test_retrieve_missing_category(sign_in, backend):
    client = sign_in(role="User")
    backend.on("GET", "/Category/Get/404", FakeResponse(404, {"message": "Category not found"}, reason="Not Found"))

    response = client.get("/api/v1/categories/404")

    assert response.status_code == 404
    assert response.json()["message"] == "Category not found"
