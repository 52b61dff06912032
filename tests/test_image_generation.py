import base64
import json
from datetime import datetime, timezone

import httpx
import pytest
import respx
from fastapi import status

from vfxhub.api.exceptions import ConfigurationError, StorageUploadError
from vfxhub.api.services.image_generation import generated_image_filename, store_generated_image
from vfxhub.api.services.record_client import FileStorageClient
from vfxhub.config import config

CLIPDROP_URL = "https://clipdrop-api.co/text-to-image/v1"
STORAGE_URL = "https://records.example.test/v1"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(64))


@pytest.fixture
def storage_mode(monkeypatch):
    def set_mode(mode):
        monkeypatch.setitem(config.get("image_generation"), "storage_mode", mode)

    return set_mode


@pytest.fixture
def storage_client():
    return FileStorageClient(STORAGE_URL, project_id="proj", public_key="pk")


def test_generate_image(client, clipdrop_key):
    with respx.mock:
        route = respx.post(CLIPDROP_URL).mock(return_value=httpx.Response(200, content=PNG_BYTES))
        response = client.post("/ai/text-to-image", json={"prompt": "  a neon harbor at night "})

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["image"] == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
    assert data["prompt"] == "a neon harbor at night"
    assert data["width"] == 1024
    assert data["height"] == 1024
    assert data["result"] is None

    request = route.calls.last.request
    assert request.headers["x-api-key"] == "clipdrop-test"
    assert request.headers["content-type"].startswith("multipart/form-data")


def test_width_and_height_are_echoed(client, clipdrop_key):
    with respx.mock:
        respx.post(CLIPDROP_URL).mock(return_value=httpx.Response(200, content=PNG_BYTES))
        response = client.post(
            "/ai/text-to-image", json={"prompt": "matte painting", "width": 512, "height": 768}
        )

    data = response.json()["data"]
    assert (data["width"], data["height"]) == (512, 768)


def test_missing_api_key(client, no_ai_keys):
    response = client.post("/ai/text-to-image", json={"prompt": "x"})
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"success": False, "error": "CLIPDROP API key not configured"}


@pytest.mark.parametrize(
    "payload, error",
    [
        ({}, "Prompt is required and must be a non-empty string"),
        ({"prompt": " "}, "Prompt is required and must be a non-empty string"),
        ({"prompt": "x" * 1001}, "Prompt must be less than 1000 characters"),
    ],
)
def test_prompt_validation(client, clipdrop_key, payload, error):
    response = client.post("/ai/text-to-image", json=payload)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"success": False, "error": error}


def test_prompt_of_exactly_max_length_is_accepted(client, clipdrop_key):
    with respx.mock:
        respx.post(CLIPDROP_URL).mock(return_value=httpx.Response(200, content=PNG_BYTES))
        response = client.post("/ai/text-to-image", json={"prompt": "x" * 1000})
    assert response.status_code == status.HTTP_200_OK


def test_upstream_error_is_a_failure(client, clipdrop_key):
    """A rejected generation never comes back as success"""
    with respx.mock:
        respx.post(CLIPDROP_URL).mock(return_value=httpx.Response(429, text="quota exceeded"))
        response = client.post("/ai/text-to-image", json={"prompt": "x"})

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert response.json() == {
        "success": False,
        "error": "Clipdrop API Error: 429 - quota exceeded",
        "statusCode": 429,
    }


def test_upstream_server_error_maps_to_bad_gateway(client, clipdrop_key):
    with respx.mock:
        respx.post(CLIPDROP_URL).mock(return_value=httpx.Response(500, text="boom"))
        response = client.post("/ai/text-to-image", json={"prompt": "x"})

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["statusCode"] == 500


def test_empty_image_is_a_failure(client, clipdrop_key):
    with respx.mock:
        respx.post(CLIPDROP_URL).mock(return_value=httpx.Response(200, content=b""))
        response = client.post("/ai/text-to-image", json={"prompt": "x"})

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["error"] == "No image generated by Clipdrop API"


def test_connection_failure(client, clipdrop_key):
    with respx.mock:
        respx.post(CLIPDROP_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))
        response = client.post("/ai/text-to-image", json={"prompt": "x"})

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["error"] == "Failed to connect to Clipdrop API"


def test_get_is_not_allowed(client):
    response = client.get("/ai/text-to-image")
    assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
    assert response.json() == {"success": False, "error": "Method not allowed"}


class TestStoredImages:
    @pytest.fixture
    def file_storage(self, storage_client):
        return storage_client

    def test_generated_image_is_stored(self, client, clipdrop_key):
        with respx.mock:
            respx.post(CLIPDROP_URL).mock(return_value=httpx.Response(200, content=PNG_BYTES))
            upload = respx.post(f"{STORAGE_URL}/storage/files").mock(
                return_value=httpx.Response(200, json={"success": True, "data": {"id": 31}})
            )
            response = client.post("/ai/text-to-image", json={"prompt": "x"})

        assert response.json()["data"]["result"] == {"id": 31}
        sent = json.loads(upload.calls.last.request.content)
        assert sent["purpose"] == "RecordAttachment"
        assert sent["contentType"] == "image/png"
        assert sent["file"].startswith("data:image/png;base64,")
        assert sent["filename"].startswith("image_")

    def test_best_effort_storage_failure_still_succeeds(self, client, clipdrop_key):
        with respx.mock:
            respx.post(CLIPDROP_URL).mock(return_value=httpx.Response(200, content=PNG_BYTES))
            respx.post(f"{STORAGE_URL}/storage/files").mock(
                return_value=httpx.Response(500, json={"success": False, "message": "disk full"})
            )
            response = client.post("/ai/text-to-image", json={"prompt": "x"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["result"] is None

    def test_required_storage_failure_fails_request(self, client, clipdrop_key, storage_mode):
        storage_mode("required")
        with respx.mock:
            respx.post(CLIPDROP_URL).mock(return_value=httpx.Response(200, content=PNG_BYTES))
            respx.post(f"{STORAGE_URL}/storage/files").mock(
                return_value=httpx.Response(500, json={"success": False, "message": "disk full"})
            )
            response = client.post("/ai/text-to-image", json={"prompt": "x"})

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json() == {
            "success": False,
            "error": "Failed to store generated image",
            "details": "disk full",
        }

    def test_required_storage_success(self, client, clipdrop_key, storage_mode):
        storage_mode("required")
        with respx.mock:
            respx.post(CLIPDROP_URL).mock(return_value=httpx.Response(200, content=PNG_BYTES))
            respx.post(f"{STORAGE_URL}/storage/files").mock(
                return_value=httpx.Response(200, json={"success": True, "data": {"id": 32}})
            )
            response = client.post("/ai/text-to-image", json={"prompt": "x"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["result"] == {"id": 32}

    def test_disabled_storage_skips_upload(self, client, clipdrop_key, storage_mode):
        storage_mode("disabled")
        with respx.mock(assert_all_called=False) as respx_mock:
            respx_mock.post(CLIPDROP_URL).mock(return_value=httpx.Response(200, content=PNG_BYTES))
            upload = respx_mock.post(f"{STORAGE_URL}/storage/files")
            response = client.post("/ai/text-to-image", json={"prompt": "x"})

        assert response.status_code == status.HTTP_200_OK
        assert not upload.called


@pytest.mark.asyncio
async def test_required_storage_without_client():
    with pytest.raises(ConfigurationError) as exc_info:
        await store_generated_image(None, "data:image/png;base64,AA==", "required")
    assert exc_info.value.error == "File storage not configured"


@pytest.mark.asyncio
async def test_best_effort_storage_without_client():
    assert await store_generated_image(None, "data:image/png;base64,AA==", "best_effort") is None


@pytest.mark.asyncio
async def test_storage_connection_failure(storage_client):
    async with respx.mock:
        respx.post(f"{STORAGE_URL}/storage/files").mock(side_effect=httpx.ConnectError("down"))
        with pytest.raises(StorageUploadError) as exc_info:
            await storage_client.upload_file("data:image/png;base64,AA==", "a.png")
    assert exc_info.value.error == "Failed to connect to file storage"


def test_generated_image_filename():
    stamp = datetime(2025, 6, 15, 12, 30, tzinfo=timezone.utc)
    assert generated_image_filename(stamp) == "image_2025-06-15T12:30:00Z.png"
