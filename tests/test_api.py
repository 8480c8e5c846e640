"""Tests for the loopback API."""

from fastapi.testclient import TestClient

from photo_gallery.api.app import create_app
from photo_gallery.domain.view import BROKEN_IMAGE_CLASS, PLACEHOLDER_IMAGE
from tests.conftest import listing


def _settle(client: TestClient, container) -> None:
    client.portal.call(container.view_controller.wait_idle)


def _sign_in(client: TestClient, container) -> dict[str, object]:
    response = client.get("/callback", params={"code": "abc123"})
    assert response.status_code == 200
    _settle(client, container)
    return response.json()


def test_health_endpoint(container) -> None:
    with TestClient(create_app(container)) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_state_is_signed_out_after_startup(container) -> None:
    with TestClient(create_app(container)) as client:
        data = client.get("/state").json()

    assert data["is_authenticated"] is False
    assert data["auth_loading"] is False
    assert data["photos"] == []
    assert data["upload_phase"] == "idle"


def test_gallery_routes_require_session(container) -> None:
    with TestClient(create_app(container)) as client:
        refresh = client.post("/photos/refresh")
        upload = client.put("/uploads/a.jpg", content=b"1")

    assert refresh.status_code == 401
    assert upload.status_code == 401


def test_login_returns_hosted_ui_url(container) -> None:
    with TestClient(create_app(container)) as client:
        response = client.post("/login")
        state = client.get("/state").json()

    assert response.json() == {"redirect_url": container.settings.login_url}
    assert state["auth_loading"] is True


def test_register_returns_signup_url(container) -> None:
    with TestClient(create_app(container)) as client:
        response = client.post("/register")

    assert response.json() == {"redirect_url": container.settings.signup_url}


def test_callback_exchanges_code_and_loads_photos(container, listing_client) -> None:
    listing_client.payloads = [listing("a", "b")]

    with TestClient(create_app(container)) as client:
        data = _sign_in(client, container)
        state = client.get("/state").json()

    assert data["is_authenticated"] is True
    assert data["username"] == "Demo User"
    assert container.navigator.current_url() == "http://testserver/callback"
    assert [photo["id"] for photo in state["photos"]] == ["a", "b"]
    assert state["loading"] is False


def test_logout_clears_photos(container, listing_client) -> None:
    listing_client.payloads = [listing("a")]

    with TestClient(create_app(container)) as client:
        _sign_in(client, container)
        data = client.post("/logout").json()

    assert data["is_authenticated"] is False
    assert data["photos"] == []


def test_refresh_reports_listing_error(container, listing_client) -> None:
    with TestClient(create_app(container)) as client:
        _sign_in(client, container)
        listing_client.payloads = [{"Items": "broken"}]
        data = client.post("/photos/refresh").json()

    assert data["error"] == "Unexpected API response format"
    assert data["photos"] == []


def test_upload_accepted_and_processed(container, upload_client) -> None:
    with TestClient(create_app(container)) as client:
        _sign_in(client, container)
        response = client.put(
            "/uploads/cat.jpg",
            content=b"jpeg-bytes",
            headers={"Content-Type": "image/jpeg"},
        )
        accepted = response.json()
        _settle(client, container)
        final = client.get("/state").json()

    assert response.status_code == 202
    assert accepted["upload_success"] is True
    assert accepted["file_to_upload"] is None
    assert upload_client.requests[0]["content"] == b"jpeg-bytes"
    assert upload_client.requests[0]["content_type"] == "image/jpeg"
    assert str(upload_client.requests[0]["url"]).endswith("-cat.jpg")
    assert final["processing_progress"] == 100
    assert final["processing_image"] is False


def test_upload_failure_keeps_file(container, upload_client) -> None:
    upload_client.status_code = 500

    with TestClient(create_app(container)) as client:
        _sign_in(client, container)
        response = client.put("/uploads/cat.jpg", content=b"x" * 1536)

    data = response.json()
    assert response.status_code == 502
    assert "500" in data["upload_error"]
    assert data["uploading"] is False
    assert data["upload_phase"] == "failed"
    assert data["file_to_upload"] == {
        "name": "cat.jpg",
        "size": 1536,
        "size_label": "1.5 KB",
        "content_type": "application/octet-stream",
    }


def test_thumbnail_error_marks_photo_broken(container, listing_client) -> None:
    listing_client.payloads = [listing("a", "b")]

    with TestClient(create_app(container)) as client:
        _sign_in(client, container)
        response = client.post("/photos/1/thumbnail-error")
        state = client.get("/state").json()
        missing = client.post("/photos/9/thumbnail-error")

    assert response.json() == {"src": PLACEHOLDER_IMAGE, "classes": [BROKEN_IMAGE_CLASS]}
    assert state["photos"][1]["thumbnail_url"] == PLACEHOLDER_IMAGE
    assert state["photos"][1]["broken"] is True
    assert state["photos"][0]["broken"] is False
    assert missing.status_code == 404


def test_modal_open_and_close(container, listing_client, image_loader) -> None:
    listing_client.payloads = [listing("a")]

    with TestClient(create_app(container)) as client:
        _sign_in(client, container)
        opened = client.post("/photos/0/open").json()
        _settle(client, container)
        loaded = client.get("/state").json()
        closed = client.post("/modal/close").json()
        client.post("/modal/close")
        _settle(client, container)
        final = client.get("/state").json()

    assert opened["show_modal"] is True
    assert opened["selected_photo"]["id"] == "a"
    assert loaded["modal_loading"] is False
    assert image_loader.loaded == ["https://cdn.test/originals/a.jpg"]
    assert closed["show_modal"] is False
    assert final["selected_photo"] is None
    assert final["show_modal"] is False
