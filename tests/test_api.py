import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from condition_reports.api.dependencies import get_db
from condition_reports.main import app
from condition_reports.services.storage import StorageService, get_storage

PROPERTY_PAYLOAD = {
    "name": "Sea Point Flat",
    "property_type": "Flat",
    "address": {
        "street_number": "45",
        "street_name": "Beach Road",
        "suburb": "Sea Point",
        "city": "Cape Town",
        "province": "Western Cape",
        "postal_code": "8005",
    },
    "gps_coordinates": {
        "latitude": -33.9137,
        "longitude": 18.3867,
        "accuracy": 6.5,
        "timestamp": "2024-03-01T09:30:00Z",
    },
    "user_role": "tenant",
}


def _override_get_db(session):
    def _generator():
        try:
            yield session
        finally:
            pass

    return _generator


@pytest.fixture
def client(db_session, tmp_path):
    storage = StorageService(backend="local", upload_root=tmp_path / "uploads")
    app.dependency_overrides[get_db] = _override_get_db(db_session)
    app.dependency_overrides[get_storage] = lambda: storage
    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        test_client.close()
        app.dependency_overrides.clear()


def _signup_and_login(client, email="inspector@example.com"):
    response = client.post(
        "/auth/signup",
        json={"email": email, "password": "changeme123", "full_name": "Thandi Mokoena"},
    )
    assert response.status_code == 201
    token = client.post("/auth/login", data={"username": email, "password": "changeme123"})
    assert token.status_code == 200
    body = token.json()
    assert body["expires_in"] > 0
    return {"Authorization": f"Bearer {body['access_token']}"}


def _create_report(client, headers):
    prop = client.post("/properties/", json=PROPERTY_PAYLOAD, headers=headers)
    assert prop.status_code == 201
    report = client.post("/reports/", json={"property_id": prop.json()["id"], "title": "Move-in"}, headers=headers)
    assert report.status_code == 201
    return prop.json(), report.json()


def test_signup_rejects_duplicate_email_and_bad_login(client):
    _signup_and_login(client)
    duplicate = client.post("/auth/signup", json={"email": "inspector@example.com", "password": "changeme123"})
    assert duplicate.status_code == 400

    bad = client.post("/auth/login", data={"username": "inspector@example.com", "password": "wrong-password"})
    assert bad.status_code == 401


def test_protected_routes_require_a_token(client):
    assert client.get("/reports/").status_code == 401
    assert client.get("/properties/").status_code == 401


def test_me_and_refresh(client):
    email = "refresh@example.com"
    client.post("/auth/signup", json={"email": email, "password": "changeme123"})
    tokens = client.post("/auth/login", data={"username": email, "password": "changeme123"}).json()

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.json()["email"] == email

    refreshed = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    # A refresh token is not accepted as an access token.
    assert client.get("/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"}).status_code == 401


def test_report_workflow_over_http(client):
    headers = _signup_and_login(client)
    prop, report = _create_report(client, headers)
    assert report["status"] == "draft"

    room = client.post(f"/reports/{report['id']}/rooms", json={"name": "Lounge", "type": "Standard"}, headers=headers)
    assert room.status_code == 201
    room_id = room.json()["id"]

    incomplete = client.post(f"/reports/{report['id']}/status", json={"status": "completed"}, headers=headers)
    assert incomplete.status_code == 422
    assert incomplete.json()["errors"] == ["Lounge: No inspection items"]

    missing_comment = client.put(f"/reports/rooms/{room_id}/items/walls", json={"condition": "Poor"}, headers=headers)
    assert missing_comment.status_code == 422

    batch = client.post(
        f"/reports/rooms/{room_id}/items:batch",
        json={
            "items": [
                {"category_id": "walls", "condition": "Good"},
                {"category_id": "floors", "condition": "Fair", "notes": "Worn"},
                {"category_id": "windows", "condition": "Urgent Repair"},
            ]
        },
        headers=headers,
    )
    assert batch.json()["saved"] == 2
    assert batch.json()["failed"] == 1

    completeness = client.get(f"/reports/{report['id']}/completeness", headers=headers)
    assert completeness.json() == {"is_complete": True, "issues": []}

    completed = client.post(f"/reports/{report['id']}/status", json={"status": "completed"}, headers=headers)
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"

    paid = client.post(f"/reports/{report['id']}/payment", json={"payment_reference": "PAY-1"}, headers=headers)
    assert paid.json()["payment_status"] == "paid"

    finalized = client.post(f"/reports/{report['id']}/finalize", headers=headers)
    assert finalized.json()["status"] == "finalized"

    locked = client.post(f"/reports/{report['id']}/rooms", json={"name": "Kitchen", "type": "Kitchen"}, headers=headers)
    assert locked.status_code == 403
    backwards = client.post(f"/reports/{report['id']}/status", json={"status": "draft"}, headers=headers)
    assert backwards.status_code == 403

    public = client.get(f"/public/reports/{report['id']}")
    assert public.status_code == 200
    assert public.json()["property"]["name"] == prop["name"]
    assert len(public.json()["report"]["rooms"][0]["items"]) == 2

    deleted = client.delete(f"/reports/{report['id']}", headers=headers)
    assert deleted.status_code == 403


def test_delete_draft_report_returns_counts(client):
    headers = _signup_and_login(client)
    _, report = _create_report(client, headers)
    room_id = client.post(
        f"/reports/{report['id']}/rooms", json={"name": "Bathroom", "type": "Bathroom"}, headers=headers
    ).json()["id"]
    client.put(f"/reports/rooms/{room_id}/items/toilet", json={"condition": "Good"}, headers=headers)

    response = client.delete(f"/reports/{report['id']}", headers=headers)
    assert response.json() == {"rooms_deleted": 1, "items_deleted": 1}
    assert client.get(f"/reports/{report['id']}", headers=headers).status_code == 404


def test_export_pdf_stores_file_and_records_url(client):
    headers = _signup_and_login(client)
    prop, report = _create_report(client, headers)
    room_id = client.post(
        f"/reports/{report['id']}/rooms", json={"name": "Lounge", "type": "Standard"}, headers=headers
    ).json()["id"]
    client.put(f"/reports/rooms/{room_id}/items/walls", json={"condition": "Good"}, headers=headers)

    response = client.post(f"/reports/{report['id']}/pdf", headers=headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert "Sea_Point_Flat_Report_" in response.headers["content-disposition"]

    stored = client.get(f"/reports/{report['id']}", headers=headers).json()
    assert stored["pdf_url"].endswith(".pdf")


def test_generate_pdf_from_posted_document(client):
    missing = client.post("/generate-pdf", json={"report": {"id": "r1", "title": "T"}})
    assert missing.status_code == 400
    assert missing.json() == {"error": "Missing required fields"}

    document = {
        "report": {
            "id": "0a1b2c3d-0000-4000-8000-000000000000",
            "title": "Exit inspection",
            "rooms": [
                {
                    "name": "Kitchen",
                    "type": "Kitchen",
                    "items": [{"category_id": "stove", "condition": "Fair", "notes": "Grease build-up"}],
                }
            ],
        },
        "property": {"id": "p1", **PROPERTY_PAYLOAD},
        "creatorRole": "landlord",
        "creatorName": "Sam Dube",
    }
    response = client.post("/generate-pdf", json=document)
    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")
    assert 'filename="Sea_Point_Flat_Report_0a1b2c3d.pdf"' in response.headers["content-disposition"]

    broken = dict(document, property={"id": "p1", "name": "No address"})
    failed = client.post("/generate-pdf", json=broken)
    assert failed.status_code == 500
    assert failed.json()["error"] == "Failed to generate PDF"


def test_generate_pdf_survives_malformed_photo_url(client):
    document = {
        "report": {
            "id": "0a1b2c3d-0000-4000-8000-000000000001",
            "title": "Exit inspection",
            "rooms": [
                {
                    "name": "Kitchen",
                    "type": "Kitchen",
                    "items": [
                        {
                            "category_id": "stove",
                            "condition": "Fair",
                            "notes": "Grease build-up",
                            "photos": ["https://cdn.example.com:abc/x.png"],
                        }
                    ],
                }
            ],
        },
        "property": {"id": "p1", **PROPERTY_PAYLOAD},
        "creatorRole": "tenant",
        "creatorName": "Thandi Mokoena",
    }
    response = client.post("/generate-pdf", json=document)
    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")


def test_catalog_endpoints(client):
    room_types = client.get("/catalog/room-types").json()
    assert {"value": "Standard", "label": "Standard Room"} in room_types

    categories = client.get("/catalog/rooms/Bathroom").json()
    assert categories[0]["id"] == "walls"
    assert client.get("/catalog/rooms/Garage").status_code == 404

    conditions = {entry["value"]: entry for entry in client.get("/catalog/conditions").json()}
    assert conditions["Good"]["requires_comment"] is False
    assert conditions["Poor"]["color"] == "#c62121"

    verdict = client.post("/validation/item", json={"category_id": "walls", "condition": "Fair"}).json()
    assert verdict == {"valid": False, "issues": ["Comment required for Fair condition"]}


def test_photo_upload(client):
    headers = _signup_and_login(client)
    _, report = _create_report(client, headers)
    buffer = io.BytesIO()
    Image.new("RGB", (10, 10), (0, 0, 0)).save(buffer, format="JPEG")

    response = client.post(
        "/media/photos",
        data={"report_id": report["id"], "item_or_room_id": "walls"},
        files={"file": ("walls.jpg", buffer.getvalue(), "image/jpeg")},
        headers=headers,
    )
    assert response.status_code == 201
    assert response.json()["path"].endswith(".jpg")

    rejected = client.post(
        "/media/photos",
        data={"report_id": report["id"], "item_or_room_id": "walls"},
        files={"file": ("walls.gif", b"GIF89a", "image/gif")},
        headers=headers,
    )
    assert rejected.status_code == 422


def test_health_and_activity(client):
    assert client.get("/health").json()["status"] == "ok"

    headers = _signup_and_login(client)
    _create_report(client, headers)
    activity = client.get("/system/activity", headers=headers).json()
    assert {"user_signed_up", "property_created", "report_created"} <= {entry["activity_type"] for entry in activity}
