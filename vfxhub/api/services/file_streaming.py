import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

import httpx

from vfxhub.api.exceptions import FileStreamError
from vfxhub.api.services.encoding import ChunkedBase64Encoder, data_url

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

MAX_REDIRECTS = 5


@dataclass(frozen=True)
class StreamedFile:
    data_url: str
    mime_type: str
    size: int


def url_host(url: str) -> Optional[str]:
    try:
        host = httpx.URL(url).host
    except httpx.InvalidURL:
        return None
    return host.lower() if host else None


def host_allowed(url: str, allowed_hosts: Optional[Iterable[str]]) -> bool:
    """
    None allows every host. Otherwise the URL host must equal an entry, or end
    with an entry that starts with a dot (".example.com" covers subdomains).
    """
    if allowed_hosts is None:
        return True
    host = url_host(url)
    if not host:
        return False
    for entry in allowed_hosts:
        entry = entry.strip().lower()
        if host == entry or (entry.startswith(".") and host.endswith(entry)):
            return True
    return False


async def stream_file_to_data_url(
    url: str,
    mime_type: str,
    client: Optional[httpx.AsyncClient] = None,
    on_progress: Optional[ProgressCallback] = None,
    max_bytes: Optional[int] = None,
    timeout: float = 120.0,
    allowed_hosts: Optional[Iterable[str]] = None,
) -> StreamedFile:
    """
    Download url incrementally and return it as a base64 data URL.

    on_progress receives the cumulative number of bytes read after every chunk.
    Redirects are followed by hand (at most MAX_REDIRECTS) and every hop must
    pass allowed_hosts. Raises FileStreamError on HTTP errors, transport
    failures, disallowed hosts, or when the body grows past max_bytes.
    """
    if allowed_hosts is not None:
        allowed_hosts = list(allowed_hosts)

    own_client = client is None
    if own_client:
        client = httpx.AsyncClient(timeout=timeout)

    encoder = ChunkedBase64Encoder()
    logger.info(f"Streaming file from: {url}")

    try:
        for _ in range(MAX_REDIRECTS + 1):
            if not host_allowed(url, allowed_hosts):
                raise FileStreamError(
                    f"Failed to stream file: host {url_host(url)} is not allowed", status_code=403
                )

            async with client.stream("GET", url, follow_redirects=False) as response:
                if response.is_redirect:
                    url = str(response.url.join(response.headers["location"]))
                    logger.info(f"Redirected to: {url}")
                    continue

                if response.is_error:
                    raise FileStreamError(
                        f"Failed to stream file: HTTP error! status: {response.status_code}",
                        upstream_status=response.status_code,
                    )

                async for chunk in response.aiter_bytes():
                    encoder.update(chunk)
                    if max_bytes is not None and encoder.bytes_read > max_bytes:
                        raise FileStreamError(
                            f"Failed to stream file: exceeds {max_bytes} bytes", status_code=413
                        )
                    if on_progress:
                        on_progress(encoder.bytes_read)
                    logger.debug(f"Downloaded: {encoder.bytes_read / 1024 / 1024:.2f} MB")
                break
        else:
            raise FileStreamError("Failed to stream file: too many redirects")
    except httpx.HTTPError as e:
        raise FileStreamError(f"Failed to stream file: {e}", details=repr(e))
    finally:
        if own_client:
            await client.aclose()

    return StreamedFile(
        data_url=data_url(mime_type, encoder.finalize()),
        mime_type=mime_type,
        size=encoder.bytes_read,
    )
