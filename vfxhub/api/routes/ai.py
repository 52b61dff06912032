"""
AI proxy gateway routes

Every route answers with the envelope {success, data} or
{success: false, error, details?, statusCode?}. Provider credentials are
looked up per request and never leave the server.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile

from vfxhub.api.dependencies import get_file_storage, get_settings
from vfxhub.api.exceptions import (
    ConfigurationError,
    GatewayError,
    InternalGatewayError,
    InvalidRequestError,
)
from vfxhub.api.limiter import ai_rate_limit, limiter
from vfxhub.api.schemas.ai import (
    ErrorEnvelope,
    ImageGenerationData,
    ImageGenerationResponse,
    ImageUploadData,
    ImageUploadResponse,
    StreamFileData,
    StreamFileResponse,
    StreamFileRequest,
    TextGenerationResponse,
)
from vfxhub.api.services.encoding import ENCODE_CHUNK_SIZE, ChunkedBase64Encoder, data_url
from vfxhub.api.services.file_streaming import host_allowed, stream_file_to_data_url
from vfxhub.api.services.image_generation import (
    ImageGenerationService,
    store_generated_image,
    validate_image_request,
)
from vfxhub.api.services.record_client import FileStorageClient
from vfxhub.api.services.text_generation import TextGenerationService, validate_text_request
from vfxhub.api.services.upload_rules import MAX_IMAGE_UPLOAD_SIZE
from vfxhub.config import Config, get_secret

router = APIRouter(prefix="/ai", tags=["AI"])
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorEnvelope, "description": "Invalid request"},
    405: {"model": ErrorEnvelope, "description": "Method not allowed"},
    429: {"model": ErrorEnvelope, "description": "Rate limited (here or upstream)"},
    500: {"model": ErrorEnvelope, "description": "Missing credential or internal error"},
    502: {"model": ErrorEnvelope, "description": "Upstream provider failure"},
}


@asynccontextmanager
async def gateway_boundary(operation: str):
    """Anything that is not already a GatewayError becomes a 500 envelope."""
    try:
        yield
    except GatewayError:
        raise
    except Exception as e:
        logger.exception(f"{operation} failed")
        raise InternalGatewayError(details=str(e)) from e


async def read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise InvalidRequestError("Invalid JSON in request body")


def require_secret(name: str, label: str) -> str:
    api_key = get_secret(name)
    if not api_key:
        raise ConfigurationError(f"{label} API key not configured")
    return api_key


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.post(
    "/openai",
    response_model=TextGenerationResponse,
    summary="Text generation proxy",
    description=(
        "Body: {prompt, type=chat|completion|analysis|generation, model='gpt-3.5-turbo', "
        "maxTokens=1000 (1-4000), temperature=0.7 (0-2)}"
    ),
    responses=ERROR_RESPONSES,
)
@limiter.limit(ai_rate_limit)
async def generate_text(request: Request, settings: Config = Depends(get_settings)):
    async with gateway_boundary("Text generation"):
        api_key = require_secret("OPENAI_API_KEY", "OpenAI")
        payload = await read_json_body(request)
        generation_request = validate_text_request(payload)

        service = TextGenerationService(
            api_key,
            base_url=settings.get("openai", "base_url"),
            timeout=float(settings.get("openai", "timeout", 60.0)),
        )
        data = await service.generate(generation_request)

    return TextGenerationResponse(data=data)


@router.post(
    "/text-to-image",
    response_model=ImageGenerationResponse,
    summary="Text-to-image proxy",
    description="Body: {prompt (max 1000 chars), width=1024, height=1024}. Returns a PNG data URL.",
    responses=ERROR_RESPONSES,
)
@limiter.limit(ai_rate_limit)
async def generate_image(
    request: Request,
    settings: Config = Depends(get_settings),
    storage: Optional[FileStorageClient] = Depends(get_file_storage),
):
    async with gateway_boundary("Image generation"):
        api_key = require_secret("CLIPDROP_API_KEY", "CLIPDROP")
        payload = await read_json_body(request)
        image_request = validate_image_request(payload)

        service = ImageGenerationService(
            api_key,
            url=settings.get("clipdrop", "url"),
            timeout=float(settings.get("clipdrop", "timeout", 60.0)),
        )
        image = await service.generate(image_request.prompt)
        result = await store_generated_image(
            storage, image, settings.get("image_generation", "storage_mode", "best_effort")
        )

    return ImageGenerationResponse(
        data=ImageGenerationData(
            result=result,
            image=image,
            prompt=image_request.prompt.strip(),
            width=image_request.width,
            height=image_request.height,
            timestamp=_now(),
        )
    )


@router.post(
    "/stream-file",
    response_model=StreamFileResponse,
    summary="Fetch a remote file as a base64 data URL",
    description="Only hosts listed in streaming.allowed_hosts are fetched, redirects included.",
    responses=ERROR_RESPONSES,
)
@limiter.limit(ai_rate_limit)
async def stream_file(request: Request, settings: Config = Depends(get_settings)):
    async with gateway_boundary("File streaming"):
        payload = await read_json_body(request)
        url = payload.get("url") if isinstance(payload, dict) else None
        if not isinstance(url, str) or not url.strip():
            raise InvalidRequestError("url is required")

        mime_type = payload.get("mimeType") or "application/octet-stream"
        if not isinstance(mime_type, str):
            raise InvalidRequestError("mimeType must be a string")

        body = StreamFileRequest(url=url.strip(), mime_type=mime_type)
        if not body.url.startswith(("http://", "https://")):
            raise InvalidRequestError("url must be an http(s) URL")

        allowed_hosts = settings.get("streaming", "allowed_hosts") or []
        if not host_allowed(body.url, allowed_hosts):
            raise InvalidRequestError("url host is not allowed")

        streamed = await stream_file_to_data_url(
            body.url,
            body.mime_type,
            max_bytes=settings.get("streaming", "max_bytes"),
            timeout=float(settings.get("streaming", "timeout", 120.0)),
            allowed_hosts=allowed_hosts,
        )

    return StreamFileResponse(
        data=StreamFileData(
            data_url=streamed.data_url,
            mime_type=streamed.mime_type,
            size=streamed.size,
            timestamp=_now(),
        )
    )


@router.post(
    "/upload-large-image",
    response_model=ImageUploadResponse,
    summary="Upload an image (max 10MB) to file storage",
    responses=ERROR_RESPONSES,
)
@limiter.limit(ai_rate_limit)
async def upload_large_image(
    request: Request,
    image: Optional[UploadFile] = File(None),
    storage: Optional[FileStorageClient] = Depends(get_file_storage),
):
    async with gateway_boundary("Image upload"):
        if image is None:
            raise InvalidRequestError("Image file is required")
        if not (image.content_type or "").startswith("image/"):
            raise InvalidRequestError("Please select a valid image file")
        if storage is None:
            raise ConfigurationError("File storage not configured")

        encoder = ChunkedBase64Encoder()
        while True:
            chunk = await image.read(ENCODE_CHUNK_SIZE)
            if not chunk:
                break
            encoder.update(chunk)
            if encoder.bytes_read > MAX_IMAGE_UPLOAD_SIZE:
                raise InvalidRequestError("Image file is too large (max 10MB)")

        file_name = image.filename or "upload"
        result = await storage.upload_file(
            data_url(image.content_type, encoder.finalize()),
            filename=file_name,
            purpose="RecordAttachment",
            content_type=image.content_type,
        )
        logger.info(f"Uploaded {file_name} ({encoder.bytes_read} bytes)")

    return ImageUploadResponse(
        data=ImageUploadData(
            result=result, file_name=file_name, size=encoder.bytes_read, timestamp=_now()
        )
    )
