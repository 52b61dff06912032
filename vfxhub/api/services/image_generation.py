"""
Text-to-image proxy (Clipdrop)

generate() either returns a PNG data URL or raises a GatewayError; there is
no "nothing came back" result for callers to guess about.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from vfxhub.api.exceptions import (
    ConfigurationError,
    GatewayError,
    InvalidRequestError,
    StorageUploadError,
    UpstreamError,
    map_upstream_status,
)
from vfxhub.api.schemas.ai import ImageGenerationRequest
from vfxhub.api.services.encoding import ChunkedBase64Encoder, data_url
from vfxhub.api.services.record_client import FileStorageClient
from vfxhub.api.services.text_generation import PROMPT_REQUIRED

logger = logging.getLogger(__name__)

CLIPDROP_URL = "https://clipdrop-api.co/text-to-image/v1"
MAX_PROMPT_LENGTH = 1000
IMAGE_MIME_TYPE = "image/png"
STORAGE_PURPOSE = "RecordAttachment"
STORAGE_MODES = ("disabled", "best_effort", "required")


def validate_image_request(payload: Any) -> ImageGenerationRequest:
    if not isinstance(payload, dict):
        payload = {}

    prompt = payload.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        raise InvalidRequestError(PROMPT_REQUIRED)
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise InvalidRequestError(f"Prompt must be less than {MAX_PROMPT_LENGTH} characters")

    return ImageGenerationRequest(
        prompt=prompt,
        width=payload.get("width", 1024),
        height=payload.get("height", 1024),
    )


class ImageGenerationService:
    def __init__(self, api_key: str, url: str = CLIPDROP_URL, timeout: float = 60.0) -> None:
        self.api_key = api_key
        self.url = url
        self.timeout = timeout

    async def generate(self, prompt: str) -> str:
        # Multipart body; httpx computes the boundary and content-type itself
        form = {"prompt": (None, prompt)}
        encoder = ChunkedBase64Encoder()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                async with client.stream(
                    "POST", self.url, headers={"x-api-key": self.api_key}, files=form
                ) as response:
                    if response.is_error:
                        await response.aread()
                        status = response.status_code
                        logger.warning(f"Clipdrop returned {status}")
                        raise GatewayError(
                            f"Clipdrop API Error: {status} - {response.text}",
                            status_code=map_upstream_status(status),
                            upstream_status=status,
                        )
                    async for chunk in response.aiter_bytes():
                        encoder.update(chunk)
        except httpx.HTTPError as e:
            logger.error(f"Clipdrop request failed: {e!r}")
            raise UpstreamError("Failed to connect to Clipdrop API", details=str(e) or repr(e))

        if not encoder.bytes_read:
            raise UpstreamError("No image generated by Clipdrop API")

        logger.info(f"Generated image ({encoder.bytes_read} bytes)")
        return data_url(IMAGE_MIME_TYPE, encoder.finalize())


def generated_image_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"image_{now.isoformat().replace('+00:00', 'Z')}.png"


async def store_generated_image(
    storage: Optional[FileStorageClient], image: str, mode: str
) -> Optional[Dict[str, Any]]:
    """
    Persist a generated image according to the configured storage mode.

    disabled: skip. best_effort: upload, log failures and return None.
    required: upload, failures become a 502 for the whole request.
    """
    if mode not in STORAGE_MODES:
        raise ConfigurationError(f"Unknown image storage mode: {mode}")
    if mode == "disabled":
        return None

    if storage is None:
        if mode == "required":
            raise ConfigurationError("File storage not configured")
        logger.warning("File storage not configured; generated image not stored")
        return None

    try:
        return await storage.upload_file(
            image,
            filename=generated_image_filename(),
            purpose=STORAGE_PURPOSE,
            content_type=IMAGE_MIME_TYPE,
        )
    except StorageUploadError as e:
        if mode == "required":
            raise StorageUploadError("Failed to store generated image", details=e.details)
        logger.warning(f"Storing generated image failed: {e.error} ({e.details})")
        return None
