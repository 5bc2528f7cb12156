"""Persistence for documents, line items, library records and business profiles.

The hosted backend is reached only through ``DocumentStore``. Two local
implementations ship with the package: ``InMemoryStore`` for tests and
embedding, and ``JsonFileStore`` which keeps one JSON file per collection.

Saving an existing document replaces all of its line items (delete then
insert, never a diff). Failures raise ``StoreError`` and leave the store as
it was before the call.
"""
from __future__ import annotations

import copy
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from .schemas import (
    BusinessProfile,
    ClientRecord,
    Document,
    DocumentStatus,
    ItemRecord,
    LibraryKind,
    LibraryRecord,
    TermRecord,
    new_id,
)

logger = structlog.get_logger(__name__)

RECORD_MODELS = {
    LibraryKind.CLIENT: ClientRecord,
    LibraryKind.ITEM: ItemRecord,
    LibraryKind.TERM: TermRecord,
}

# Creation order key kept next to each stored row.
_SEQ = "_seq"


class StoreError(RuntimeError):
    """A persistence operation could not be completed."""


class DocumentNotFound(StoreError):
    def __init__(self, document_id: str) -> None:
        super().__init__(f"document not found: {document_id}")
        self.document_id = document_id


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class DocumentStore:
    """Interface of the persistence backend used by the editor, API and CLI."""

    def load_document(self, document_id: str) -> Optional[Document]:
        raise NotImplementedError

    def save_document(self, document: Document) -> str:
        raise NotImplementedError

    def delete_document(self, document_id: str) -> None:
        raise NotImplementedError

    def list_documents(self, user_id: Optional[str] = None) -> List[Document]:
        raise NotImplementedError

    def set_status(self, document_id: str, status: DocumentStatus) -> Document:
        raise NotImplementedError

    def latest_document_number(self, user_id: Optional[str] = None) -> Optional[str]:
        raise NotImplementedError

    def list_records(self, kind: Union[LibraryKind, str], user_id: Optional[str] = None) -> List[LibraryRecord]:
        raise NotImplementedError

    def save_record(self, record: LibraryRecord) -> LibraryRecord:
        raise NotImplementedError

    def delete_record(self, kind: Union[LibraryKind, str], record_id: str) -> bool:
        raise NotImplementedError

    def get_profile(self, profile_id: str = "default") -> Optional[BusinessProfile]:
        raise NotImplementedError

    def save_profile(self, profile: BusinessProfile) -> BusinessProfile:
        raise NotImplementedError


class InMemoryStore(DocumentStore):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._items: Dict[str, List[Dict[str, Any]]] = {}
        self._records: Dict[str, Dict[str, Dict[str, Any]]] = {kind.value: {} for kind in LibraryKind}
        self._profiles: Dict[str, Dict[str, Any]] = {}
        self._sequence = 0

    # Documents
    def load_document(self, document_id: str) -> Optional[Document]:
        with self._lock:
            row = self._documents.get(document_id)
            if row is None:
                return None
            return Document.model_validate({**row, "items": self._items.get(document_id, [])})

    def save_document(self, document: Document) -> str:
        row = document.model_dump(mode="json", exclude={"items"})
        items = [item.model_dump(mode="json") for item in document.items]
        with self._lock:
            if document.id:
                existing = self._documents.get(document.id)
                if existing is None:
                    raise DocumentNotFound(document.id)
                document_id = document.id
                row["created_at"] = existing.get("created_at")
                row[_SEQ] = existing[_SEQ]
                action = "updated"
            else:
                document_id = new_id()
                action = "created"
            with self._transaction():
                if action == "created":
                    row.update(id=document_id, created_at=_now(), **{_SEQ: self._next_sequence()})
                self._documents[document_id] = row
                self._items[document_id] = items
        logger.info("document.saved", document_id=document_id, action=action, items=len(items))
        return document_id

    def delete_document(self, document_id: str) -> None:
        with self._lock:
            if document_id not in self._documents:
                raise DocumentNotFound(document_id)
            with self._transaction():
                del self._documents[document_id]
                self._items.pop(document_id, None)
        logger.info("document.deleted", document_id=document_id)

    def list_documents(self, user_id: Optional[str] = None) -> List[Document]:
        with self._lock:
            rows = self._newest_first(self._documents.values(), user_id)
            return [Document.model_validate({**row, "items": self._items.get(row["id"], [])}) for row in rows]

    def set_status(self, document_id: str, status: DocumentStatus) -> Document:
        with self._lock:
            if document_id not in self._documents:
                raise DocumentNotFound(document_id)
            value = DocumentStatus(status).value
            with self._transaction():
                self._documents[document_id]["status"] = value
            document = self.load_document(document_id)
        logger.info("document.status_changed", document_id=document_id, status=value)
        return document

    def latest_document_number(self, user_id: Optional[str] = None) -> Optional[str]:
        with self._lock:
            rows = self._newest_first(self._documents.values(), user_id)
        return rows[0].get("document_number") if rows else None

    # Library
    def list_records(self, kind: Union[LibraryKind, str], user_id: Optional[str] = None) -> List[LibraryRecord]:
        kind = LibraryKind(kind)
        model = RECORD_MODELS[kind]
        with self._lock:
            rows = self._newest_first(self._records[kind.value].values(), user_id)
            return [model.model_validate(row) for row in rows]

    def save_record(self, record: LibraryRecord) -> LibraryRecord:
        with self._lock:
            table = self._records[record.kind]
            if record.id and record.id in table:
                saved = record
                sequence = table[record.id][_SEQ]
            else:
                saved = record.model_copy(update={"id": record.id or new_id()})
                sequence = None
            with self._transaction():
                if sequence is None:
                    sequence = self._next_sequence()
                self._records[record.kind][saved.id] = {**saved.model_dump(mode="json"), _SEQ: sequence}
        logger.info("library.saved", kind=record.kind, record_id=saved.id)
        return saved

    def delete_record(self, kind: Union[LibraryKind, str], record_id: str) -> bool:
        kind = LibraryKind(kind)
        with self._lock:
            if record_id not in self._records[kind.value]:
                return False
            with self._transaction():
                del self._records[kind.value][record_id]
        return True

    # Business profile
    def get_profile(self, profile_id: str = "default") -> Optional[BusinessProfile]:
        with self._lock:
            row = self._profiles.get(profile_id)
        return BusinessProfile.model_validate(row) if row is not None else None

    def save_profile(self, profile: BusinessProfile) -> BusinessProfile:
        saved = profile.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        with self._lock, self._transaction():
            self._profiles[saved.id] = saved.model_dump(mode="json")
        logger.info("profile.saved", profile_id=saved.id)
        return saved

    # Internals
    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    @staticmethod
    def _newest_first(rows, user_id: Optional[str]) -> List[Dict[str, Any]]:
        selected = [row for row in rows if user_id is None or row.get("user_id") == user_id]
        return sorted(selected, key=lambda row: row.get(_SEQ, 0), reverse=True)

    @contextmanager
    def _transaction(self):
        """Apply the changes made in the block and persist them, or roll all of them back.

        Must be entered with the lock held.
        """
        snapshot = copy.deepcopy((self._documents, self._items, self._records, self._profiles, self._sequence))
        try:
            yield
            self._persist()
        except BaseException:
            self._documents, self._items, self._records, self._profiles, self._sequence = snapshot
            raise

    def _persist(self) -> None:
        """Hook for durable subclasses; called with the lock held after every change."""


class JsonFileStore(InMemoryStore):
    """Keeps each collection in its own JSON file under ``data_dir``."""

    FILES = {
        "documents": "documents.json",
        "items": "document_items.json",
        "records": "library.json",
        "profiles": "business_profiles.json",
    }

    def __init__(self, data_dir: Union[str, Path]) -> None:
        super().__init__()
        self.data_dir = Path(data_dir)
        self._load()

    def _load(self) -> None:
        self._documents = self._read("documents", {})
        self._items = self._read("items", {})
        records = self._read("records", {})
        for kind in LibraryKind:
            self._records[kind.value] = records.get(kind.value, {})
        self._profiles = self._read("profiles", {})

        sequences = [row.get(_SEQ, 0) for row in self._documents.values()]
        for table in self._records.values():
            sequences.extend(row.get(_SEQ, 0) for row in table.values())
        self._sequence = max(sequences, default=0)
        logger.debug("store.loaded", data_dir=str(self.data_dir), documents=len(self._documents))

    def _read(self, collection: str, default: Any) -> Any:
        path = self.data_dir / self.FILES[collection]
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"cannot read {path}: {exc}") from exc

    def _persist(self) -> None:
        payloads = {
            "documents": self._documents,
            "items": self._items,
            "records": self._records,
            "profiles": self._profiles,
        }
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for collection, payload in payloads.items():
                self._write_atomic(self.data_dir / self.FILES[collection], payload)
        except OSError as exc:
            logger.error("store.write_failed", data_dir=str(self.data_dir), error=str(exc))
            raise StoreError(f"cannot write to {self.data_dir}: {exc}") from exc

    @staticmethod
    def _write_atomic(path: Path, payload: Any) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
