"""
Record repositories

One repository per collection, injected into the routes. Backends:
- DocumentRepository: whole collection stored as one JSON document (in-memory
  for tests, SQL table for local persistence)
- PlatformRepository: the hosted record platform's generic record API
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import ValidationError

from vfxhub.api.exceptions import (
    AssetNotFoundError,
    InvalidRecordError,
    MilestoneNotFoundError,
    ProjectNotFoundError,
    RecordNotFoundError,
    RecordStorageError,
)
from vfxhub.api.schemas.asset import Asset
from vfxhub.api.schemas.base import RecordModel
from vfxhub.api.schemas.milestone import Milestone
from vfxhub.api.schemas.project import Project
from vfxhub.api.services.mapping import (
    denormalize_record,
    normalize_record,
    platform_field,
    platform_fields,
)
from vfxhub.api.services.query import coerce_id
from vfxhub.api.services.record_client import RecordStorageClient, successful_results
from vfxhub.api.services.store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collection:
    name: str
    storage_key: str
    model: Type[RecordModel]
    not_found: Type[RecordNotFoundError]
    timestamp_field: Optional[str] = None


PROJECTS = Collection("projects", "vfx_projects", Project, ProjectNotFoundError, "createdAt")
ASSETS = Collection("assets", "vfx_assets", Asset, AssetNotFoundError, "uploadDate")
MILESTONES = Collection("milestones", "vfx_milestones", Milestone, MilestoneNotFoundError)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _build(collection: Collection, data: Dict[str, Any]) -> RecordModel:
    try:
        return collection.model.model_validate(data)
    except ValidationError as e:
        raise InvalidRecordError(detail=f"Invalid {collection.name[:-1]}: {e.errors()[0]['msg']}")


class Repository(ABC):
    collection: Collection

    @abstractmethod
    def list_all(self) -> List[RecordModel]:
        ...

    @abstractmethod
    def get(self, record_id: Union[int, str]) -> RecordModel:
        ...

    def list_by_project(self, project_id: Union[int, str]) -> List[RecordModel]:
        target = coerce_id(project_id)
        if target is None:
            return []
        return [r for r in self.list_all() if getattr(r, "project_id", None) == target]

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> RecordModel:
        ...

    @abstractmethod
    def update(self, record_id: Union[int, str], data: Dict[str, Any]) -> RecordModel:
        ...

    @abstractmethod
    def delete(self, record_id: Union[int, str]) -> None:
        ...


class DocumentRepository(Repository):
    def __init__(self, store: DocumentStore, collection: Collection):
        self.store = store
        self.collection = collection

    def _load(self) -> List[Dict[str, Any]]:
        return self.store.load(self.collection.storage_key) or []

    def _save(self, records: List[Dict[str, Any]]) -> None:
        self.store.save(self.collection.storage_key, records)

    def _index_of(self, records, record_id) -> int:
        target = coerce_id(record_id)
        for index, record in enumerate(records):
            if target is not None and coerce_id(record.get("id")) == target:
                return index
        raise self.collection.not_found()

    def list_all(self):
        return [self.collection.model.model_validate(r) for r in self._load()]

    def get(self, record_id):
        records = self._load()
        return self.collection.model.model_validate(records[self._index_of(records, record_id)])

    def create(self, data):
        with self.store.lock:
            return self._create(data)

    def _create(self, data):
        records = self._load()
        next_id = max((coerce_id(r.get("id")) or 0 for r in records), default=0) + 1

        fields = dict(data)
        fields["id"] = next_id
        stamp = self.collection.timestamp_field
        if stamp and not fields.get(stamp):
            fields[stamp] = _now_iso()

        record = _build(self.collection, fields)
        records.append(record.model_dump(mode="json", by_alias=True))
        self._save(records)
        logger.info(f"Created {self.collection.name[:-1]} {next_id}")
        return record

    def update(self, record_id, data):
        with self.store.lock:
            return self._update(record_id, data)

    def _update(self, record_id, data):
        records = self._load()
        index = self._index_of(records, record_id)

        merged = {**records[index], **data, "id": records[index]["id"]}
        record = _build(self.collection, merged)
        records[index] = record.model_dump(mode="json", by_alias=True)
        self._save(records)
        return record

    def delete(self, record_id):
        with self.store.lock:
            records = self._load()
            index = self._index_of(records, record_id)
            records.pop(index)
            self._save(records)
        logger.info(f"Deleted {self.collection.name[:-1]} {record_id}")


class PlatformRepository(Repository):
    def __init__(self, client: RecordStorageClient, table_key: str, collection: Collection):
        self.client = client
        self.table_key = table_key
        self.collection = collection

    def _to_model(self, raw: Dict[str, Any]) -> RecordModel:
        return _build(self.collection, normalize_record(self.collection.name, raw))

    def _fetch(self, where=None) -> List[RecordModel]:
        body = self.client.fetch_records(
            self.table_key,
            fields=platform_fields(self.collection.name),
            where=where,
            order_by=[{"fieldName": "Id", "sorttype": "ASC"}],
        )
        records = []
        for raw in body.get("data") or []:
            try:
                records.append(self._to_model(raw))
            except InvalidRecordError as e:
                # One unreadable row must not take the whole list down
                logger.warning(f"Skipping {self.collection.name[:-1]} {raw.get('Id')}: {e.detail}")
        return records

    def list_all(self):
        return self._fetch()

    def list_by_project(self, project_id):
        target = coerce_id(project_id)
        if target is None or "project_id" not in self.collection.model.model_fields:
            return []
        where = [
            {
                "FieldName": platform_field(self.collection.name, "projectId"),
                "Operator": "EqualTo",
                "Values": [target],
            }
        ]
        return self._fetch(where=where)

    def get(self, record_id):
        target = coerce_id(record_id)
        if target is None:
            raise self.collection.not_found()
        body = self.client.get_record_by_id(
            self.table_key, target, fields=platform_fields(self.collection.name)
        )
        if not body.get("data"):
            raise self.collection.not_found()
        return self._to_model(body["data"])

    def create(self, data):
        fields = dict(data)
        stamp = self.collection.timestamp_field
        if stamp and stamp != "createdAt" and not fields.get(stamp):
            fields[stamp] = _now_iso()

        payload = denormalize_record(self.collection.name, fields)
        created = successful_results(self.client.create_record(self.table_key, [payload]))
        if not created:
            raise RecordStorageError(detail=f"No {self.collection.name[:-1]} returned by record storage")
        return self._to_model(created[0])

    def update(self, record_id, data):
        current = self.get(record_id)
        payload = denormalize_record(self.collection.name, {**data, "id": current.id}, include_id=True)
        updated = successful_results(self.client.update_record(self.table_key, [payload]))
        if updated:
            return self._to_model(updated[0])
        return self.collection.model.model_validate(
            {**current.model_dump(by_alias=True), **data, "id": current.id}
        )

    def delete(self, record_id):
        current = self.get(record_id)
        successful_results(self.client.delete_record(self.table_key, [current.id]))
        logger.info(f"Deleted {self.collection.name[:-1]} {current.id}")


@dataclass
class Repositories:
    projects: Repository
    assets: Repository
    milestones: Repository


def build_repositories(settings) -> Repositories:
    """Pick the storage backend named in configuration."""
    backend = settings.get("storage", "backend", "sql")

    if backend == "memory":
        from vfxhub.api.services.store import InMemoryDocumentStore

        store = InMemoryDocumentStore()
    elif backend == "sql":
        from vfxhub.api.database import (
            SQLALCHEMY_DATABASE_URL,
            create_db_engine,
            create_session_factory,
        )
        from vfxhub.api.services.store import SqlDocumentStore

        url = settings.get("storage", "database_url") or SQLALCHEMY_DATABASE_URL
        store = SqlDocumentStore(create_session_factory(create_db_engine(url)))
    elif backend == "platform":
        platform = settings.get("platform")
        client = RecordStorageClient(
            base_url=platform.get("base_url"),
            project_id=platform.get("project_id"),
            public_key=platform.get("public_key"),
            timeout=float(platform.get("timeout", 30.0)),
        )
        tables = platform.get("tables", {})
        logger.info(f"Using record platform at {client.base_url}")
        return Repositories(
            projects=PlatformRepository(client, tables.get("projects", "project_c"), PROJECTS),
            assets=PlatformRepository(client, tables.get("assets", "asset_c"), ASSETS),
            milestones=PlatformRepository(client, tables.get("milestones", "milestone_c"), MILESTONES),
        )
    else:
        raise ValueError(f"Unknown storage backend: {backend}")

    logger.info(f"Using {backend} document store")
    return Repositories(
        projects=DocumentRepository(store, PROJECTS),
        assets=DocumentRepository(store, ASSETS),
        milestones=DocumentRepository(store, MILESTONES),
    )
