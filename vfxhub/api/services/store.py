"""
Key-value document stores

Each collection lives under one key as a JSON array (vfx_projects,
vfx_assets, vfx_milestones). Writers replace the whole document. Within one
process, repositories serialize read-modify-write cycles on the store lock;
there is no version check, so across processes the last writer wins.
"""

import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from vfxhub.api.exceptions import RecordStorageError
from vfxhub.api.models import DocumentModel

logger = logging.getLogger(__name__)


class DocumentStore(ABC):
    def __init__(self):
        # Held by repositories around load -> mutate -> save
        self.lock = threading.RLock()

    @abstractmethod
    def load(self, key: str) -> Optional[List[Dict[str, Any]]]:
        ...

    @abstractmethod
    def save(self, key: str, records: List[Dict[str, Any]]) -> None:
        ...


class InMemoryDocumentStore(DocumentStore):
    def __init__(self, initial: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        super().__init__()
        self._documents: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(initial or {})

    def load(self, key):
        if key not in self._documents:
            return None
        return copy.deepcopy(self._documents[key])

    def save(self, key, records):
        self._documents[key] = copy.deepcopy(records)


class SqlDocumentStore(DocumentStore):
    """Documents table in the local database (SQLAlchemy)"""

    def __init__(self, session_factory):
        super().__init__()
        self._session_factory = session_factory

    def load(self, key):
        db = self._session_factory()
        try:
            document = db.query(DocumentModel).filter(DocumentModel.key == key).first()
            if document is None:
                return None
            return json.loads(document.value)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load document {key}: {e}")
            raise RecordStorageError(detail=f"Failed to load {key}")
        finally:
            db.close()

    def save(self, key, records):
        db = self._session_factory()
        try:
            document = db.query(DocumentModel).filter(DocumentModel.key == key).first()
            payload = json.dumps(records)
            if document is None:
                db.add(DocumentModel(key=key, value=payload))
            else:
                document.value = payload
                document.updated_at = datetime.utcnow()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save document {key}: {e}")
            raise RecordStorageError(detail=f"Failed to save {key}")
        finally:
            db.close()
