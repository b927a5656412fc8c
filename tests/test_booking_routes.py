from fastapi.testclient import TestClient

from app.main import create_app
from app.services.notifier import Notifier
from app.utils.errors import StorageError
from tests.fakes import ADMIN_EMAIL, FakeTransport, SpyStore

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\n%%EOF\n"


def _html(message):
    return message.get_body(preferencelist=("html",)).get_content()


def test_ping(client):
    response = client.get("/ping")

    assert response.status_code == 200
    assert response.text == "pong"
    assert response.headers["content-type"].startswith("text/plain")


def test_submit_booking_end_to_end(client, store, transport, auth_headers):
    response = client.post("/submit-booking", data={
        "contact_name": "Jane",
        "contact_email": "jane@x.com",
        "general_project-type": "Editorial",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Booking received"
    assert body["id"]

    bookings = client.get("/bookings", headers=auth_headers).json()
    assert len(bookings) == 1
    assert bookings[0]["_id"] == body["id"]
    assert bookings[0]["date"]
    assert "file" not in bookings[0]

    admin, = transport.to(ADMIN_EMAIL)
    html = _html(admin)
    assert list(admin.iter_attachments()) == []
    assert html.index(">Contact</h3>") < html.index("Jane") < html.index(">Project</h3>") < html.index("Editorial")

    client_message, = transport.to("jane@x.com")
    assert "Hi Jane," in _html(client_message)


def test_submit_json_body(client, store, auth_headers):
    response = client.post("/submit-booking", json={
        "contact_name": "Jane",
        "general_crew-size": 4,
        "general_equipment": ["Camera", "Lights"],
    })

    assert response.status_code == 200
    stored, = client.get("/bookings", headers=auth_headers).json()
    assert stored["general_crew-size"] == "4"
    assert stored["general_equipment"] == ["Camera", "Lights"]


def test_submit_with_pdf_attaches_file(client, transport, auth_headers):
    response = client.post(
        "/submit-booking",
        data={"contact_name": "Jane", "contact_email": "jane@x.com"},
        files={"file": ("brief.pdf", PDF_BYTES, "application/pdf")},
    )

    assert response.status_code == 200
    stored, = client.get("/bookings", headers=auth_headers).json()
    assert stored["file"] == {
        "originalname": "brief.pdf",
        "mimetype": "application/pdf",
        "size": len(PDF_BYTES),
    }

    admin, = transport.to(ADMIN_EMAIL)
    attachment, = list(admin.iter_attachments())
    assert attachment.get_filename() == "brief.pdf"
    assert attachment.get_content() == PDF_BYTES
    client_message, = transport.to("jane@x.com")
    assert list(client_message.iter_attachments()) == []


def test_multi_select_fields_become_lists(client, auth_headers):
    response = client.post(
        "/submit-booking",
        data={"contact_name": "Jane", "general_equipment[]": ["Camera", "Lights"], "general_extras[]": "Drone"},
    )

    assert response.status_code == 200
    stored, = client.get("/bookings", headers=auth_headers).json()
    assert stored["general_equipment"] == ["Camera", "Lights"]
    assert stored["general_extras"] == ["Drone"]


def test_reserved_keys_cannot_be_supplied(client, auth_headers):
    response = client.post("/submit-booking", json={"_id": "forged", "file": "x", "contact_name": "Jane"})

    assert response.status_code == 200
    stored, = client.get("/bookings", headers=auth_headers).json()
    assert stored["_id"] == response.json()["id"] != "forged"
    assert "file" not in stored


def test_oversized_file_rejected_before_storage_and_email(client, store, transport):
    response = client.post(
        "/submit-booking",
        data={"contact_name": "Jane", "contact_email": "jane@x.com"},
        files={"file": ("huge.pdf", b"0" * (15 * 1024 * 1024), "application/pdf")},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "File too large"}
    assert store.writes == 0
    assert transport.sent == []


def test_non_pdf_rejected(client, store, transport):
    response = client.post(
        "/submit-booking",
        data={"contact_name": "Jane"},
        files={"file": ("photo.png", b"\x89PNG", "image/png")},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Only PDF files are allowed"}
    assert store.writes == 0
    assert transport.sent == []


def test_file_under_unexpected_field_rejected(client, store):
    response = client.post(
        "/submit-booking",
        data={"contact_name": "Jane"},
        files={"brief": ("brief.pdf", PDF_BYTES, "application/pdf")},
    )

    assert response.status_code == 400
    assert store.writes == 0


def test_invalid_bodies_rejected(client, store):
    assert client.post("/submit-booking", json=["not", "an", "object"]).status_code == 400
    assert client.post(
        "/submit-booking", content=b"{broken", headers={"Content-Type": "application/json"}
    ).status_code == 400
    assert client.post(
        "/submit-booking", content=b"hello", headers={"Content-Type": "text/plain"}
    ).status_code == 400
    assert store.writes == 0


def test_storage_failure_returns_500_and_sends_nothing(settings, tmp_path, transport):
    class FailingStore(SpyStore):
        async def _insert(self, record):
            raise StorageError("disk full")

    app = create_app(settings, store=FailingStore(str(tmp_path / "b.json")), notifier=Notifier(settings, transport))
    with TestClient(app) as client:
        response = client.post("/submit-booking", data={"contact_name": "Jane", "contact_email": "jane@x.com"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save booking."}
    assert transport.sent == []


def test_notification_failure_does_not_fail_request(settings, store, auth_headers):
    transport = FakeTransport(fail_for={ADMIN_EMAIL})
    app = create_app(settings, store=store, notifier=Notifier(settings, transport))

    with TestClient(app) as client:
        response = client.post("/submit-booking", data={"contact_name": "Jane", "contact_email": "jane@x.com"})
        bookings = client.get("/bookings", headers=auth_headers).json()

    assert response.status_code == 200
    assert [booking["_id"] for booking in bookings] == [response.json()["id"]]
    assert transport.sent == []


def test_client_confirmation_failure_does_not_fail_request(settings, store):
    transport = FakeTransport(fail_for={"jane@x.com"})
    app = create_app(settings, store=store, notifier=Notifier(settings, transport))

    with TestClient(app) as client:
        response = client.post("/submit-booking", data={"contact_name": "Jane", "contact_email": "jane@x.com"})

    assert response.status_code == 200
    assert len(transport.to(ADMIN_EMAIL)) == 1


def test_list_bookings_requires_header(client, store):
    response = client.get("/bookings")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert store.reads == 0


def test_list_bookings_rejects_wrong_token(client, store):
    for header in ("Bearer wrong", "Basic czNjcmV0LXRva2Vu", "s3cret-token"):
        response = client.get("/bookings", headers={"Authorization": header})
        assert response.status_code == 401
    assert store.reads == 0


def test_list_bookings_read_failure(client, settings, auth_headers):
    with open(settings.BOOKINGS_FILE, "w", encoding="utf-8") as f:
        f.write("{corrupt")

    response = client.get("/bookings", headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to read bookings."}


def test_requests_before_store_is_ready_get_503(booking_app, store):
    # no context manager: lifespan never runs, so the store is never connected
    client = TestClient(booking_app)

    response = client.post("/submit-booking", data={"contact_name": "Jane"})

    assert response.status_code == 503
    assert "error" in response.json()
    assert store.writes == 0


def test_health_reports_store_state(client):
    body = client.get("/health").json()

    assert body == {"status": "healthy", "store": "json", "store_ready": True}


def test_header_injection_in_contact_email_keeps_admin_copy(client, transport):
    response = client.post("/submit-booking", json={
        "contact_name": "Jane",
        "contact_email": "jane@x.com\nBcc: x@y.z",
    })

    assert response.status_code == 200
    admin, = transport.to(ADMIN_EMAIL)
    assert len(transport.sent) == 1
    assert "Jane" in _html(admin)


def test_oversized_text_field_gets_error_body(client, store):
    response = client.post(
        "/submit-booking",
        data={"contact_name": "Jane", "general_notes": "x" * (1024 * 1024 + 10)},
        files={"file": ("brief.pdf", PDF_BYTES, "application/pdf")},
    )

    assert response.status_code == 400
    assert set(response.json()) == {"error"}
    assert store.writes == 0


def test_framework_errors_use_error_body(client):
    response = client.get("/no-such-route")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_list_bookings_requires_exact_bearer_scheme(client, store):
    response = client.get("/bookings", headers={"Authorization": "bearer s3cret-token"})

    assert response.status_code == 401
    assert store.reads == 0
