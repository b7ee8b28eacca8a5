from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone

from complaints import directions, workflow
from complaints.services import PLACEHOLDER_FILE, fetch_together
from conftest import FakeResponse, envelope

CATEGORY_ID = "3f2504e0-4f89-41d3-9a0c-0305e82c3301"

STATUSES = [
    {"id": "s-pending", "name": "Pending"},
    {"id": "s-progress", "name": "In Progress"},
    {"id": "s-resolved", "name": "Resolved"},
    {"id": "s-rejected", "name": "Rejected"},
    {"id": "s-escalated", "name": "Escalated"},
]

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


def complaint(complaint_id="c1", status="Pending", created=None, **extra):
    data = {
        "id": complaint_id,
        "title": "Broken streetlight",
        "description": "The streetlight on Elm street is out",
        "categoryName": "Lighting",
        "statusName": status,
        "userName": "Jane Citizen",
        "latitude": "40.7128",
        "longitude": "-74.0060",
        "createdOn": (created or timezone.now() - timedelta(days=1)).isoformat(),
    }
    data.update(extra)
    return data


# workflow

def test_days_pending_and_overdue_boundaries():
    created = "2024-03-01T12:00:00"
    assert workflow.days_pending(created, T0 + timedelta(days=6)) == 6
    assert not workflow.is_overdue(created, T0 + timedelta(days=6))
    assert not workflow.is_overdue(created, T0 + timedelta(days=7, hours=23))
    assert workflow.days_pending(created, T0 + timedelta(days=8)) == 8
    assert workflow.is_overdue(created, T0 + timedelta(days=8))


def test_days_pending_without_created_on():
    assert workflow.days_pending(None, T0) is None
    assert workflow.days_pending("not a date", T0) is None
    assert workflow.days_pending("2024-13-45T00:00:00", T0) is None
    assert not workflow.is_overdue(None, T0)
    assert not workflow.is_overdue("2024-13-45T00:00:00", T0)


def test_age_label():
    assert workflow.age_label(0) == "Today"
    assert workflow.age_label(3) == "3 days ago"
    assert workflow.age_label(None) == ""


def test_transition_table_is_complete():
    flow = workflow.StatusWorkflow.from_statuses(STATUSES)
    for current in flow.states:
        for target in flow.states:
            assert flow.can_transition(current, target) == (current != target)
    assert flow.can_transition("Resolved", "Pending")
    assert flow.can_transition("pending", "Escalated")


def test_quick_actions():
    flow = workflow.StatusWorkflow()
    assert flow.quick_action("Pending") == "In Progress"
    assert flow.quick_action(" in progress ") == "Resolved"
    assert flow.quick_action("Resolved") is None
    assert flow.quick_action("Rejected") is None


def test_canonical_name():
    assert workflow.canonical_name("IN PROGRESS") == "In Progress"
    assert workflow.canonical_name("") == "Unknown"
    assert workflow.canonical_name(" Escalated ") == "Escalated"


def test_pending_queue_filters_searches_and_sorts_newest_first():
    complaints = [
        complaint("old", created=T0 - timedelta(days=10)),
        complaint("new", created=T0 - timedelta(days=1), title="Pothole on Main"),
        complaint("done", status="Resolved", created=T0 - timedelta(days=20)),
    ]

    assert [c["id"] for c in workflow.pending_queue(complaints, now=T0)] == ["new", "old"]
    assert [c["id"] for c in workflow.pending_queue(complaints, overdue_only=True, now=T0)] == ["old"]
    assert [c["id"] for c in workflow.pending_queue(complaints, search="pothole", now=T0)] == ["new"]


def test_summarize_counts_overdue_pending_only():
    complaints = [
        complaint("a", created=T0 - timedelta(days=9)),
        complaint("b", status="In Progress", created=T0 - timedelta(days=9)),
        complaint("c", status="Resolved"),
        complaint("d", status="Escalated"),
        complaint("e", status=None),
    ]

    assert workflow.summarize(complaints, T0) == {
        "total": 5,
        "pending": 1,
        "in_progress": 1,
        "resolved": 1,
        "rejected": 0,
        "other": 2,
        "overdue": 1,
    }


def test_apply_status_uses_submitted_name():
    original = complaint(status="Pending")

    updated = workflow.apply_status(original, {"id": "s-escalated", "name": "Escalated"})

    assert updated["statusName"] == "Escalated"
    assert original["statusName"] == "Pending"
    assert workflow.apply_status(original, {"id": "x"})["statusName"] == "Unknown"


# directions

@pytest.mark.parametrize("user_agent,expected", [
    ("Mozilla/5.0 (Linux; Android 14; Pixel 8)", "google.navigation:q=40.7,-74.0"),
    ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)", "maps://maps.apple.com/?daddr=40.7,-74.0"),
    ("Mozilla/5.0 (X11; Linux x86_64)", "https://www.google.com/maps/dir/?api=1&destination=40.7,-74.0"),
    (None, "https://www.google.com/maps/dir/?api=1&destination=40.7,-74.0"),
])
def test_directions_url_per_platform(user_agent, expected):
    assert directions.directions_url("40.7", "-74.0", user_agent) == expected


def test_view_url():
    assert directions.view_url("40.7", "-74.0") == "https://www.google.com/maps?q=40.7,-74.0"


def test_fetch_together_keeps_order():
    assert fetch_together(lambda: 1, lambda: 2, lambda: 3) == [1, 2, 3]


# submission

def submission(**overrides):
    data = {
        "title": "Broken streetlight",
        "description": "The streetlight on Elm street is out",
        "category_id": CATEGORY_ID,
        "latitude": "40.7128",
        "longitude": "-74.0060",
    }
    data.update(overrides)
    return data


def test_submit_without_image_attaches_placeholder(sign_in, backend):
    client = sign_in()
    backend.on("POST", "/Complaint/Submit", envelope({"id": "c-new"}, message="Complaint submitted"))

    response = client.post("/api/v1/complaints/", submission(), format="multipart")

    assert response.status_code == 201
    assert response.json()["message"] == "Complaint submitted"
    call = backend.calls_to("POST", "/Complaint/Submit")[0]
    assert call["files"] == {"formFile": PLACEHOLDER_FILE}
    assert call["files"]["formFile"][1] == b""
    assert call["data"] == {
        "Title": "Broken streetlight",
        "Description": "The streetlight on Elm street is out",
        "CategoryId": CATEGORY_ID,
        "Latitude": "40.7128",
        "Longitude": "-74.0060",
    }
    assert "Content-Type" not in call["headers"]


def test_submit_with_image_forwards_file(sign_in, backend):
    client = sign_in()
    backend.on("POST", "/Complaint/Submit", envelope(message="Complaint submitted"))
    image = SimpleUploadedFile("light.png", b"\x89PNG fake", content_type="image/png")

    response = client.post("/api/v1/complaints/", submission(image=image), format="multipart")

    assert response.status_code == 201
    upload = backend.calls_to("POST", "/Complaint/Submit")[0]["files"]["formFile"]
    assert upload == ("light.png", b"\x89PNG fake", "image/png")


def test_submit_without_location_omits_coordinates(sign_in, backend):
    client = sign_in()
    backend.on("POST", "/Complaint/Submit", envelope(message="Complaint submitted"))

    data = submission()
    del data["latitude"], data["longitude"]
    client.post("/api/v1/complaints/", data, format="multipart")

    fields = backend.calls_to("POST", "/Complaint/Submit")[0]["data"]
    assert "Latitude" not in fields and "Longitude" not in fields


def test_submit_rejects_wrong_image_type(sign_in, backend):
    client = sign_in()
    document = SimpleUploadedFile("notes.pdf", b"%PDF-1.4", content_type="application/pdf")

    response = client.post("/api/v1/complaints/", submission(image=document), format="multipart")

    assert response.status_code == 400
    assert response.json()["data"]["image"] == ["Please select a valid image file (JPEG, PNG, GIF)"]
    assert backend.calls_to("POST", "/Complaint/Submit") == []


def test_submit_validates_fields(sign_in, backend):
    client = sign_in()

    response = client.post(
        "/api/v1/complaints/",
        submission(title="Hole", category_id="lighting", latitude="91"),
        format="multipart",
    )

    errors = response.json()["data"]
    assert response.status_code == 400
    assert errors["title"] == ["Title must be at least 5 characters long"]
    assert errors["category_id"] == ["Invalid category selected"]
    assert errors["latitude"] == ["Latitude must be between -90 and 90"]


def test_submit_requires_login(api_client, backend):
    response = api_client.post("/api/v1/complaints/", submission(), format="multipart")
    assert response.status_code == 401


# listing

def test_user_list_reads_own_complaints(sign_in, backend):
    client = sign_in(role="User")
    backend.on("GET", "/Complaint/GetAllUserComplaints", envelope([complaint()]))

    body = client.get("/api/v1/complaints/").json()

    assert body["data"]["count"] == 1
    assert backend.calls_to("GET", "/Complaint/GetAll") == []
    item = body["data"]["items"][0]
    assert item["status_name"] == "Pending"
    assert item["days_pending"] == 1
    assert item["quick_action"] == "In Progress"
    assert item["links"]["view"] == "https://www.google.com/maps?q=40.7128,-74.0060"


def test_admin_list_reads_every_complaint(sign_in, backend):
    client = sign_in(role="Admin")
    backend.on("GET", "/Complaint/GetAll", envelope([complaint("c1"), complaint("c2")]))

    body = client.get("/api/v1/complaints/").json()

    assert body["data"]["count"] == 2


def test_not_found_list_is_an_empty_result(sign_in, backend):
    client = sign_in(role="User")
    backend.on(
        "GET", "/Complaint/GetAllUserComplaints",
        FakeResponse(400, {"status": False, "message": "Not found!"}, reason="Bad Request"),
    )

    response = client.get("/api/v1/complaints/mine")

    body = response.json()
    assert response.status_code == 200
    assert body["status"] == "success"
    assert body["data"] == {"items": [], "count": 0, "empty": True}


def test_list_failure_is_an_error(sign_in, backend):
    client = sign_in(role="User")
    backend.on("GET", "/Complaint/GetAllUserComplaints", FakeResponse(500, text="Database offline", reason="Error"))

    response = client.get("/api/v1/complaints/mine")

    assert response.status_code == 400
    assert response.json()["message"] == "Database offline"


def test_missing_route_is_an_error_not_an_empty_list(sign_in, backend):
    client = sign_in(role="Admin")
    backend.on(
        "GET", "/Complaint/GetAll",
        FakeResponse(404, text="<html>404 Not Found: no such route</html>", reason="Not Found"),
    )

    response = client.get("/api/v1/complaints/")

    body = response.json()
    assert response.status_code == 400
    assert body["status"] == "error"
    assert body["message"] == "<html>404 Not Found: no such route</html>"


def test_not_found_reply_with_404_status_is_still_empty(sign_in, backend):
    client = sign_in(role="User")
    backend.on(
        "GET", "/Complaint/GetAllUserComplaints",
        FakeResponse(404, {"status": False, "message": "Not found!"}, reason="Not Found"),
    )

    body = client.get("/api/v1/complaints/mine").json()

    assert body["status"] == "success"
    assert body["data"]["empty"] is True


def test_malformed_created_on_serializes_without_age(sign_in, backend):
    client = sign_in(role="User")
    backend.on("GET", "/Complaint/GetById/c1", envelope(complaint("c1", createdOn="2024-13-45T00:00:00")))

    response = client.get("/api/v1/complaints/c1")

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["days_pending"] is None
    assert data["is_overdue"] is False
    assert data["age_label"] == ""


def test_missing_category_and_status_show_unknown(sign_in, backend):
    client = sign_in(role="User")
    backend.on("GET", "/Complaint/GetById/c1", envelope(complaint(categoryName=None, statusName="", userName=None)))

    data = client.get("/api/v1/complaints/c1").json()["data"]

    assert data["category_name"] == "Unknown"
    assert data["status_name"] == "Unknown"
    assert data["user_name"] == "User Info N/A"


def test_pending_queue_is_admin_only(sign_in, backend):
    client = sign_in(role="User")
    assert client.get("/api/v1/complaints/pending").status_code == 403


def test_pending_queue_overdue_filter(sign_in, backend):
    client = sign_in(role="Admin")
    now = timezone.now()
    backend.on("GET", "/Complaint/GetAll", envelope([
        complaint("late", created=now - timedelta(days=9)),
        complaint("fresh", created=now - timedelta(days=2)),
        complaint("done", status="Resolved", created=now - timedelta(days=30)),
    ]))

    everything = client.get("/api/v1/complaints/pending").json()["data"]
    overdue = client.get("/api/v1/complaints/pending", {"overdue": "1"}).json()["data"]

    assert [c["id"] for c in everything["items"]] == ["fresh", "late"]
    assert [c["id"] for c in overdue["items"]] == ["late"]
    assert overdue["items"][0]["is_overdue"] is True


def test_stats(sign_in, backend):
    client = sign_in(role="Admin")
    backend.on("GET", "/Complaint/GetAll", envelope([
        complaint("a", created=timezone.now() - timedelta(days=10)),
        complaint("b", status="Resolved"),
    ]))

    data = client.get("/api/v1/complaints/stats").json()["data"]

    assert data["total"] == 2
    assert data["pending"] == 1
    assert data["resolved"] == 1
    assert data["overdue"] == 1


# status changes

@pytest.fixture
def admin(sign_in, backend):
    client = sign_in(role="Admin")
    backend.on("GET", "/Status/GetAll", envelope(STATUSES))
    backend.on("GET", "/Complaint/GetById/c1", envelope(complaint("c1", status="Pending")))
    return client


def test_status_update_shows_submitted_status(admin, backend):
    backend.on("PUT", "/Complaint/UpdateStatus/c1", envelope(message="Status updated"))

    response = admin.put("/api/v1/complaints/c1/status", {"status_id": "s-escalated"}, format="json")

    assert response.status_code == 200
    assert response.json()["data"]["status_name"] == "Escalated"
    put = backend.calls_to("PUT", "/Complaint/UpdateStatus/c1")[0]
    assert backend.json_body(put) == {"id": "s-escalated"}


def test_any_transition_is_allowed(admin, backend):
    backend.on("GET", "/Complaint/GetById/c1", envelope(complaint("c1", status="Resolved")))
    backend.on("PUT", "/Complaint/UpdateStatus/c1", envelope(message="Status updated"))

    response = admin.put("/api/v1/complaints/c1/status", {"status_id": "s-pending"}, format="json")

    assert response.json()["data"]["status_name"] == "Pending"


def test_unknown_status_is_rejected_before_update(admin, backend):
    response = admin.put("/api/v1/complaints/c1/status", {"status_id": "s-nope"}, format="json")

    assert response.status_code == 400
    assert response.json()["message"] == "Selected status does not exist"
    assert backend.calls_to("PUT", "/Complaint/UpdateStatus/c1") == []


def test_rejected_update_leaves_status_alone(admin, backend):
    backend.on("PUT", "/Complaint/UpdateStatus/c1", FakeResponse(400, {"message": "Invalid status transition"}))

    response = admin.put("/api/v1/complaints/c1/status", {"status_id": "s-resolved"}, format="json")

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid status transition"


def test_status_change_is_admin_only(sign_in, backend):
    client = sign_in(role="User")

    response = client.put("/api/v1/complaints/c1/status", {"status_id": "s-resolved"}, format="json")

    assert response.status_code == 403
    assert backend.calls_to("PUT", "/Complaint/UpdateStatus/c1") == []


def test_quick_action_moves_pending_to_in_progress(admin, backend):
    backend.on("PUT", "/Complaint/UpdateStatus/c1", envelope())

    response = admin.post("/api/v1/complaints/c1/quick-action")

    body = response.json()
    assert body["message"] == "Complaint marked as In Progress"
    assert body["data"]["status_name"] == "In Progress"
    assert body["data"]["quick_action"] == "Resolved"
    assert backend.json_body(backend.calls_to("PUT", "/Complaint/UpdateStatus/c1")[0]) == {"id": "s-progress"}


def test_quick_action_has_nothing_to_do_for_resolved(admin, backend):
    backend.on("GET", "/Complaint/GetById/c1", envelope(complaint("c1", status="Resolved")))

    response = admin.post("/api/v1/complaints/c1/quick-action")

    assert response.status_code == 400
    assert response.json()["message"] == "No quick action for status 'Resolved'"


def test_bulk_start_reports_each_complaint(admin, backend):
    backend.on("GET", "/Complaint/GetById/c2", envelope(complaint("c2", status="In Progress")))
    backend.on("PUT", "/Complaint/UpdateStatus/c1", envelope())

    response = admin.post("/api/v1/complaints/bulk-start", {"ids": ["c1", "c2"]}, format="json")

    body = response.json()
    assert response.status_code == 207
    assert body["message"] == "1 of 2 complaints moved to In Progress"
    assert body["data"]["items"] == [
        {"id": "c1", "success": True, "message": "Complaint marked as In Progress"},
        {"id": "c2", "success": False, "message": "Complaint is not Pending"},
    ]
    assert backend.calls_to("PUT", "/Complaint/UpdateStatus/c2") == []


def test_directions_endpoint(sign_in, backend):
    client = sign_in(role="User")
    backend.on("GET", "/Complaint/GetById/c1", envelope(complaint("c1")))

    data = client.get(
        "/api/v1/complaints/c1/directions", HTTP_USER_AGENT="Mozilla/5.0 (iPhone; CPU iPhone OS 17_0)",
    ).json()["data"]

    assert data["platform"] == "ios"
    assert data["directions_url"] == "maps://maps.apple.com/?daddr=40.7128,-74.0060"


def test_directions_without_location(sign_in, backend):
    client = sign_in(role="User")
    backend.on("GET", "/Complaint/GetById/c1", envelope(complaint("c1", latitude=None, longitude=None)))

    response = client.get("/api/v1/complaints/c1/directions")

    assert response.status_code == 400
    assert response.json()["message"] == "Complaint has no location"
