from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class VfxHubException(HTTPException):
    """Base exception for the records API (rendered as a problem document)"""

    def __init__(
        self, status_code: int, detail: Any = None, headers: Optional[Dict[str, str]] = None
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class RecordNotFoundError(VfxHubException):
    """Requested record does not exist in its collection"""

    def __init__(self, detail: str = "Record not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ProjectNotFoundError(RecordNotFoundError):
    def __init__(self, detail: str = "Project not found"):
        super().__init__(detail=detail)


class AssetNotFoundError(RecordNotFoundError):
    def __init__(self, detail: str = "Asset not found"):
        super().__init__(detail=detail)


class MilestoneNotFoundError(RecordNotFoundError):
    def __init__(self, detail: str = "Milestone not found"):
        super().__init__(detail=detail)


class InvalidRecordError(VfxHubException):
    """Record payload rejected before it reaches storage"""

    def __init__(self, detail: str = "Invalid record"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class RecordStorageError(VfxHubException):
    """The record storage platform reported a failure"""

    def __init__(self, detail: str = "Record storage request failed"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


class GatewayError(Exception):
    """
    Failure inside an AI proxy operation.

    Rendered as the uniform envelope {success: false, error, details?, statusCode?}.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        error: str,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ) -> None:
        super().__init__(error)
        self.error = error
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        self.upstream_status = upstream_status

    def to_envelope(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.error}
        if self.details is not None:
            body["details"] = self.details
        if self.upstream_status is not None:
            body["statusCode"] = self.upstream_status
        return body


class MethodNotAllowedError(GatewayError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED

    def __init__(self):
        super().__init__("Method not allowed")


class ConfigurationError(GatewayError):
    """Missing credential or collaborator"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class InvalidRequestError(GatewayError):
    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamError(GatewayError):
    """Provider call failed or returned something unusable"""

    status_code = status.HTTP_502_BAD_GATEWAY


class FileStreamError(UpstreamError):
    pass


class StorageUploadError(UpstreamError):
    pass


class InternalGatewayError(GatewayError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, details: Optional[str] = None):
        super().__init__("Internal server error", details=details)


def map_upstream_status(upstream_status: int) -> int:
    """Rate-limit and auth failures pass through, everything else is a bad gateway."""
    if upstream_status in (429, 401, 403):
        return upstream_status
    return status.HTTP_502_BAD_GATEWAY
