import os
import sys

import pytest
from fastapi.testclient import TestClient

# Test environment
os.environ["APP_ENV"] = "test"

# Project root on sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from vfxhub.api.dependencies import get_file_storage, get_repositories
from vfxhub.api.limiter import limiter
from vfxhub.api.main import app
from vfxhub.api.services.repository import (
    ASSETS,
    MILESTONES,
    PROJECTS,
    DocumentRepository,
    Repositories,
)
from vfxhub.api.services.store import InMemoryDocumentStore

# AI endpoints are rate limited; tests hit them far more often than a user would
limiter.enabled = False


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def repositories(store):
    return Repositories(
        projects=DocumentRepository(store, PROJECTS),
        assets=DocumentRepository(store, ASSETS),
        milestones=DocumentRepository(store, MILESTONES),
    )


@pytest.fixture
def file_storage():
    """No attachment storage unless a test supplies one"""
    return None


@pytest.fixture
def client(repositories, file_storage):
    app.dependency_overrides[get_repositories] = lambda: repositories
    app.dependency_overrides[get_file_storage] = lambda: file_storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def openai_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    return "sk-test"


@pytest.fixture
def clipdrop_key(monkeypatch):
    monkeypatch.setenv("CLIPDROP_API_KEY", "clipdrop-test")
    return "clipdrop-test"


@pytest.fixture
def no_ai_keys(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("CLIPDROP_API_KEY", raising=False)


@pytest.fixture
def seeded(repositories):
    """Two projects, three assets (one dangling), three milestones"""
    nebula = repositories.projects.create(
        {
            "title": "Nebula Drift",
            "client": "Orbit Pictures",
            "status": "in-progress",
            "dueDate": "2025-03-15",
            "description": "Main title sequence",
        }
    )
    harbor = repositories.projects.create(
        {
            "title": "Harbor Lights",
            "client": "Tidewater Films",
            "status": "review",
            "dueDate": "2025-01-20",
            "description": "Night harbour set extension",
        }
    )
    repositories.assets.create(
        {"fileName": "nebula_plate_v003.png", "fileType": "image/png", "fileSize": 2048,
         "projectId": nebula.id, "tags": ["plate", "hero"]}
    )
    repositories.assets.create(
        {"fileName": "harbor_flythrough.mp4", "fileType": "video/mp4", "fileSize": 4096,
         "projectId": harbor.id, "tags": ["previs"]}
    )
    repositories.assets.create(
        {"fileName": "ship_rig.fbx", "fileType": "application/fbx", "fileSize": 1024,
         "projectId": 99, "tags": []}
    )
    repositories.milestones.create(
        {"title": "Layout lock", "dueDate": "2025-02-01", "completed": True, "projectId": nebula.id}
    )
    repositories.milestones.create(
        {"title": "Final delivery", "dueDate": "2099-01-01", "completed": False, "projectId": nebula.id}
    )
    repositories.milestones.create(
        {"title": "Client review", "dueDate": "2020-06-01", "completed": False, "projectId": harbor.id}
    )
    return {"nebula": nebula, "harbor": harbor}
