"""
HTTP clients for the hosted record platform.

RecordStorageClient exposes the platform's generic record contract
(fetch / get by id / create / update / delete). FileStorageClient uploads
files to the platform's attachment storage.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from vfxhub.api.exceptions import RecordStorageError, StorageUploadError

logger = logging.getLogger(__name__)


def _platform_headers(project_id: Optional[str], public_key: Optional[str]) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if project_id:
        headers["X-Apper-Project-Id"] = project_id
    if public_key:
        headers["Authorization"] = f"Bearer {public_key}"
    return headers


def _failure_message(body: Dict[str, Any], default: str) -> str:
    message = body.get("message") or default
    errors = body.get("errors") or []
    details = [e.get("message") if isinstance(e, dict) else str(e) for e in errors]
    details = [d for d in details if d]
    if details:
        message = f"{message}: {'; '.join(details)}"
    return message


class RecordStorageClient:
    def __init__(
        self,
        base_url: str,
        project_id: Optional[str] = None,
        public_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not base_url:
            raise ValueError("platform base_url is required for the platform storage backend")
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=_platform_headers(project_id, public_key),
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Record storage {method} {path} failed: {e}")
            raise RecordStorageError(detail=f"Failed to reach record storage: {e}")

        try:
            body = response.json()
        except ValueError:
            raise RecordStorageError(
                detail=f"Record storage returned HTTP {response.status_code} without JSON"
            )

        if response.is_error or not body.get("success"):
            message = _failure_message(body, f"Record storage returned HTTP {response.status_code}")
            logger.warning(f"Record storage {method} {path} rejected: {message}")
            raise RecordStorageError(detail=message)
        return body

    def fetch_records(
        self,
        table_key: str,
        fields: Optional[List[str]] = None,
        where: Optional[List[Dict[str, Any]]] = None,
        order_by: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if fields:
            params["fields"] = [{"field": {"Name": name}} for name in fields]
        if where:
            params["where"] = where
        if order_by:
            params["orderBy"] = order_by
        return self._request("POST", f"/tables/{table_key}/records/fetch", json=params)

    def get_record_by_id(
        self, table_key: str, record_id: int, fields: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        params = {"fields": ",".join(fields)} if fields else None
        return self._request("GET", f"/tables/{table_key}/records/{record_id}", params=params)

    def create_record(self, table_key: str, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        return self._request("POST", f"/tables/{table_key}/records", json={"records": records})

    def update_record(self, table_key: str, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        return self._request("PUT", f"/tables/{table_key}/records", json={"records": records})

    def delete_record(self, table_key: str, record_ids: List[int]) -> Dict[str, Any]:
        return self._request(
            "DELETE", f"/tables/{table_key}/records", json={"RecordIds": record_ids}
        )


def successful_results(body: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Per-record results of a bulk call; any failed entry fails the whole call."""
    results = body.get("results") or []
    failed = [r for r in results if not r.get("success")]
    if failed:
        messages = [_failure_message(r, "Record rejected") for r in failed]
        raise RecordStorageError(detail="; ".join(messages))
    return [r.get("data") for r in results if r.get("data") is not None]


class FileStorageClient:
    """Uploads a data URL to the platform's attachment storage."""

    def __init__(
        self,
        base_url: str,
        project_id: Optional[str] = None,
        public_key: Optional[str] = None,
        timeout: float = 60.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = _platform_headers(project_id, public_key)
        self.timeout = timeout

    async def upload_file(
        self,
        data_url: str,
        filename: str,
        purpose: str = "RecordAttachment",
        content_type: str = "application/octet-stream",
    ) -> Dict[str, Any]:
        payload = {
            "file": data_url,
            "filename": filename,
            "purpose": purpose,
            "contentType": content_type,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/storage/files", json=payload, headers=self.headers
                )
        except httpx.HTTPError as e:
            raise StorageUploadError("Failed to connect to file storage", details=str(e))

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error or not body.get("success"):
            message = _failure_message(body, f"HTTP {response.status_code}: {response.reason_phrase}")
            raise StorageUploadError("File storage upload failed", details=message)

        logger.info(f"Stored {filename} ({purpose})")
        return body.get("data") or {}
