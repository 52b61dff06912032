"""
FastAPI dependencies
"""
import logging
from typing import Optional

from fastapi import Depends, Request

from vfxhub.api.services.record_client import FileStorageClient
from vfxhub.api.services.repository import Repositories, build_repositories
from vfxhub.config import Config, config

logger = logging.getLogger(__name__)


def get_settings() -> Config:
    return config


def get_repositories(request: Request, settings: Config = Depends(get_settings)) -> Repositories:
    """
    Repositories for the configured storage backend.

    Built on first use and kept on app.state; tests override this dependency
    with in-memory repositories.
    """
    repositories = getattr(request.app.state, "repositories", None)
    if repositories is None:
        repositories = build_repositories(settings)
        request.app.state.repositories = repositories
    return repositories


def get_file_storage(settings: Config = Depends(get_settings)) -> Optional[FileStorageClient]:
    """Attachment storage on the record platform, or None when no platform is configured."""
    platform = settings.get("platform")
    if not platform or not platform.get("base_url"):
        return None
    return FileStorageClient(
        base_url=platform["base_url"],
        project_id=platform.get("project_id"),
        public_key=platform.get("public_key"),
        timeout=float(platform.get("timeout", 60.0)),
    )
