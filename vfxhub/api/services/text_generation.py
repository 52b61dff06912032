"""
Text generation proxy (OpenAI)

Validates a client request, builds the provider payload for the requested
generation type, calls exactly one upstream endpoint and normalizes the
answer. Nothing is retried: every call is a new billable request.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import httpx

from vfxhub.api.exceptions import (
    GatewayError,
    InvalidRequestError,
    UpstreamError,
    map_upstream_status,
)
from vfxhub.api.schemas.ai import GenerationType, TextGenerationData, TextGenerationRequest

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-3.5-turbo"
COMPLETION_MODEL = "gpt-3.5-turbo-instruct"
VALID_TYPES = [t.value for t in GenerationType]

MAX_TOKENS_RANGE = (1, 4000)
TEMPERATURE_RANGE = (0, 2)

SYSTEM_PROMPTS = {
    GenerationType.ANALYSIS: (
        "You are an expert analyst. Provide detailed, structured analysis of the given content."
    ),
    GenerationType.GENERATION: (
        "You are a creative content generator. Generate high-quality, original content "
        "based on the user request."
    ),
}

PROMPT_REQUIRED = "Prompt is required and must be a non-empty string"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_text_request(payload: Any) -> TextGenerationRequest:
    """Check fields in a fixed order and stop at the first failure."""
    if not isinstance(payload, dict):
        payload = {}

    prompt = payload.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        raise InvalidRequestError(PROMPT_REQUIRED)

    generation_type = payload.get("type", GenerationType.CHAT.value)
    if generation_type not in VALID_TYPES:
        raise InvalidRequestError(f"Invalid type. Must be one of: {', '.join(VALID_TYPES)}")

    max_tokens = payload.get("maxTokens", 1000)
    low, high = MAX_TOKENS_RANGE
    if not _is_number(max_tokens) or not low <= max_tokens <= high:
        raise InvalidRequestError(f"maxTokens must be a number between {low} and {high}")

    temperature = payload.get("temperature", 0.7)
    low, high = TEMPERATURE_RANGE
    if not _is_number(temperature) or not low <= temperature <= high:
        raise InvalidRequestError(f"temperature must be a number between {low} and {high}")

    # Forwarded as given; the provider rejects models it does not know
    model = payload.get("model", DEFAULT_MODEL)

    return TextGenerationRequest(
        prompt=prompt.strip(),
        type=generation_type,
        model=model,
        max_tokens=max_tokens,
        temperature=temperature,
    )


def build_openai_request(request: TextGenerationRequest) -> Tuple[str, Dict[str, Any]]:
    """Return (endpoint path, payload) for the provider."""
    if request.type == GenerationType.COMPLETION:
        model = COMPLETION_MODEL if request.model == DEFAULT_MODEL else request.model
        return "/completions", {
            "model": model,
            "prompt": request.prompt,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }

    messages = []
    system_prompt = SYSTEM_PROMPTS.get(request.type)
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": request.prompt})

    return "/chat/completions", {
        "model": request.model,
        "messages": messages,
        "max_tokens": request.max_tokens,
        "temperature": request.temperature,
    }


def extract_content(request_type: GenerationType, body: Dict[str, Any]) -> str:
    choices = body.get("choices") or []
    first = choices[0] if choices and isinstance(choices[0], dict) else {}

    if request_type == GenerationType.COMPLETION:
        content = first.get("text")
    else:
        content = (first.get("message") or {}).get("content")

    return content.strip() if isinstance(content, str) else ""


def _upstream_error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.reason_phrase}"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return "OpenAI API request failed"


class TextGenerationService:
    def __init__(self, api_key: str, base_url: str = OPENAI_BASE_URL, timeout: float = 60.0) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def generate(self, request: TextGenerationRequest) -> TextGenerationData:
        path, payload = build_openai_request(request)
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(f"{self.base_url}{path}", json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"OpenAI request to {path} failed: {e!r}")
            raise UpstreamError("Failed to connect to OpenAI API", details=str(e) or repr(e))

        if response.is_error:
            message = _upstream_error_message(response)
            logger.warning(f"OpenAI returned {response.status_code}: {message}")
            raise GatewayError(
                message,
                status_code=map_upstream_status(response.status_code),
                upstream_status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            raise UpstreamError("Failed to parse OpenAI API response")

        content = extract_content(request.type, body if isinstance(body, dict) else {})
        if not content:
            raise UpstreamError("No content generated by OpenAI API")

        usage: Optional[Dict[str, Any]] = body.get("usage")
        logger.info(f"Generated {request.type.value} content with {payload['model']}")

        return TextGenerationData(
            content=content,
            type=request.type,
            model=request.model,
            usage=usage,
            timestamp=datetime.now(timezone.utc),
        )
