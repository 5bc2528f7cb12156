"""FastAPI application exposing document editing, storage, library and PDF endpoints."""
from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from . import editor
from .config import get_settings
from .dashboard import dashboard_stats, search_documents
from .library import suggest_library_additions
from .numbering import next_sequence
from .renderer import pdf_filename, render_pdf_bytes
from .schemas import (
    ApplyRecordRequest,
    BusinessProfile,
    DashboardResponse,
    Document,
    DocumentType,
    ItemRemoveRequest,
    ItemUpdateRequest,
    LibraryKind,
    LibrarySuggestions,
    LineItem,
    SaveRecordRequest,
    SaveResult,
    StatusUpdate,
    Totals,
    TypeChangeRequest,
)
from .store import DocumentNotFound, DocumentStore, JsonFileStore, StoreError
from .totals import compute_totals
from .utils import CURRENCIES

logger = structlog.get_logger(__name__)

app = FastAPI(title="Invoice Studio", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache
def get_store() -> DocumentStore:
    return JsonFileStore(get_settings().data_dir)


def _not_found(document_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"document not found: {document_id}")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/totals", response_model=Totals)
def totals(items: List[LineItem]):
    return compute_totals(items)


@app.get("/currencies")
def currencies() -> List[dict[str, str]]:
    return [{"code": code, "name": name, "symbol": symbol} for code, (name, symbol) in CURRENCIES.items()]


# Documents
@app.post("/documents/new", response_model=Document)
def new_document(doc_type: DocumentType = DocumentType.QUOTATION, store: DocumentStore = Depends(get_store)):
    settings = get_settings()
    sequence = next_sequence(store.latest_document_number())
    return editor.blank_document(
        store.get_profile(),
        sequence,
        doc_type=doc_type,
        currency=settings.default_currency,
        today=date.today(),
        due_days=settings.due_days,
    )


@app.get("/documents", response_model=List[Document])
def list_documents(q: Optional[str] = None, store: DocumentStore = Depends(get_store)):
    return search_documents(store.list_documents(), q or "")


@app.get("/documents/{document_id}", response_model=Document)
def get_document(document_id: str, store: DocumentStore = Depends(get_store)):
    document = store.load_document(document_id)
    if document is None:
        raise _not_found(document_id)
    return editor.recalculate(document)


@app.post("/documents", response_model=SaveResult)
def save_document(document: Document, store: DocumentStore = Depends(get_store)):
    try:
        document_id = store.save_document(editor.recalculate(document))
    except DocumentNotFound as exc:
        raise _not_found(exc.document_id) from exc
    except StoreError as exc:
        logger.error("api.save_failed", document_id=document.id, error=str(exc))
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return SaveResult(ok=True, document_id=document_id)


@app.delete("/documents/{document_id}", status_code=204)
def delete_document(document_id: str, store: DocumentStore = Depends(get_store)):
    try:
        store.delete_document(document_id)
    except DocumentNotFound as exc:
        raise _not_found(document_id) from exc
    return Response(status_code=204)


@app.patch("/documents/{document_id}/status", response_model=Document)
def update_status(document_id: str, update: StatusUpdate, store: DocumentStore = Depends(get_store)):
    try:
        return store.set_status(document_id, update.status)
    except DocumentNotFound as exc:
        raise _not_found(document_id) from exc


@app.get("/documents/{document_id}/pdf")
def document_pdf(document_id: str, store: DocumentStore = Depends(get_store)):
    document = store.load_document(document_id)
    if document is None:
        raise _not_found(document_id)
    document = editor.recalculate(document)
    if not document.logo_url:
        profile = store.get_profile()
        if profile is not None:
            document = document.model_copy(update={"logo_url": profile.logo_url})
    return Response(
        content=render_pdf_bytes(document),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(document)}"'},
    )


@app.post("/preview.pdf")
def preview_pdf(document: Document):
    return Response(content=render_pdf_bytes(editor.recalculate(document)), media_type="application/pdf")


# Editor operations over a posted document
@app.post("/editor/add-item", response_model=Document)
def add_item(document: Document):
    return editor.add_item(editor.recalculate(document))


@app.post("/editor/update-item", response_model=Document)
def update_item(request: ItemUpdateRequest):
    return editor.update_item(editor.recalculate(request.document), request.item_id, request.field, request.value)


@app.post("/editor/remove-item", response_model=Document)
def remove_item(request: ItemRemoveRequest):
    return editor.remove_item(editor.recalculate(request.document), request.item_id)


@app.post("/editor/set-type", response_model=Document)
def set_type(request: TypeChangeRequest, store: DocumentStore = Depends(get_store)):
    next_number = request.next_number
    if next_number is None:
        next_number = next_sequence(store.latest_document_number(request.document.user_id))
    return editor.set_document_type(editor.recalculate(request.document), request.type, next_number)


@app.post("/editor/apply-record", response_model=Document)
def apply_record(request: ApplyRecordRequest):
    return editor.apply_record(editor.recalculate(request.document), request.record)


# Library
@app.get("/library/{kind}")
def list_library(kind: LibraryKind, store: DocumentStore = Depends(get_store)):
    return store.list_records(kind)


@app.post("/library")
def save_library_record(request: SaveRecordRequest, store: DocumentStore = Depends(get_store)):
    return store.save_record(request.record)


@app.delete("/library/{kind}/{record_id}", status_code=204)
def delete_library_record(kind: LibraryKind, record_id: str, store: DocumentStore = Depends(get_store)):
    if not store.delete_record(kind, record_id):
        raise HTTPException(status_code=404, detail=f"{kind.value} not found: {record_id}")
    return Response(status_code=204)


@app.post("/library/suggestions", response_model=LibrarySuggestions)
def library_suggestions(document: Document, store: DocumentStore = Depends(get_store)):
    return suggest_library_additions(document, store, document.user_id)


# Business profile and dashboard
@app.get("/profile", response_model=BusinessProfile)
def get_profile(store: DocumentStore = Depends(get_store)):
    profile = store.get_profile()
    if profile is None:
        raise HTTPException(status_code=404, detail="business profile not set")
    return profile


@app.put("/profile", response_model=BusinessProfile)
def save_profile(profile: BusinessProfile, store: DocumentStore = Depends(get_store)):
    return store.save_profile(profile)


@app.get("/dashboard", response_model=DashboardResponse)
def dashboard(q: Optional[str] = None, store: DocumentStore = Depends(get_store)):
    documents = store.list_documents()
    return DashboardResponse(stats=dashboard_stats(documents), documents=search_documents(documents, q or ""))
