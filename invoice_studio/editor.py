"""Line-item editing model.

Every operation takes a ``Document`` and returns a new one whose derived
totals have been recomputed from its items; the input is never mutated.
Bad input (unknown item ids, non-numeric values, read-only fields) is a
no-op or degrades to zero, it never raises.

``DocumentEditor`` wraps the same operations for one editing session and
adds loading, saving and preview snapshots.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, Optional, Union

import structlog
from pydantic import ValidationError

from .library import apply_library_record
from .numbering import format_document_number, next_sequence
from .schemas import (
    BusinessProfile,
    Document,
    DocumentType,
    LibraryRecord,
    LineItem,
    NumericInput,
    SaveResult,
)
from .store import DocumentStore, StoreError
from .totals import compute_totals, line_amount
from .utils import parse_date

if TYPE_CHECKING:
    from .preview import PreviewDebouncer

logger = structlog.get_logger(__name__)

DEFAULT_CURRENCY = "AED"
DEFAULT_DUE_DAYS = 7
DEFAULT_NOTES = "Payment is due within 7 days. Thank you for your business!"

ITEM_FIELDS = {"description", "quantity", "unit_price", "tax_rate"}
AMOUNT_FIELDS = {"quantity", "unit_price", "tax_rate"}
HEADER_FIELDS = {
    "document_number",
    "currency",
    "issue_date",
    "due_date",
    "sender_name",
    "sender_address",
    "sender_email",
    "sender_tax_id",
    "payment_details",
    "client_name",
    "client_address",
    "client_email",
    "notes",
    "logo_url",
}
DATE_FIELDS = {"issue_date", "due_date"}


def with_totals(document: Document) -> Document:
    """Replace the derived totals with values computed from ``document.items``."""
    totals = compute_totals(document.items)
    return document.model_copy(update=totals.model_dump())


def recalculate(document: Document) -> Document:
    """Refresh every line amount and the document totals."""
    items = [item.model_copy(update={"amount": line_amount(item)}) for item in document.items]
    return with_totals(document.model_copy(update={"items": items}))


def new_line_item(**fields) -> LineItem:
    item = LineItem(**fields)
    return item.model_copy(update={"amount": line_amount(item)})


def blank_document(
    profile: Optional[BusinessProfile] = None,
    sequence: int = 1,
    *,
    doc_type: DocumentType = DocumentType.QUOTATION,
    currency: str = DEFAULT_CURRENCY,
    today: Optional[date] = None,
    due_days: int = DEFAULT_DUE_DAYS,
) -> Document:
    """A new document with one empty line, sender details taken from ``profile``."""
    today = today or date.today()
    profile = profile or BusinessProfile()
    document = Document(
        document_number=format_document_number(doc_type, sequence),
        type=doc_type,
        currency=currency,
        issue_date=today,
        due_date=today + timedelta(days=due_days),
        sender_name=profile.business_name,
        sender_address=profile.address_line_1,
        sender_email=profile.email,
        sender_tax_id=profile.tax_id,
        payment_details=profile.bank_account_no,
        notes=DEFAULT_NOTES,
        logo_url=profile.logo_url,
        items=[new_line_item(quantity=1, unit_price=0, tax_rate=0)],
    )
    return with_totals(document)


def add_item(document: Document) -> Document:
    item = new_line_item(description="", quantity=1, unit_price=0, tax_rate=0)
    return with_totals(document.model_copy(update={"items": [*document.items, item]}))


def update_item(document: Document, item_id: str, field: str, value: NumericInput) -> Document:
    """Set one field of one line item and recompute.

    Only description, quantity, unit_price and tax_rate are editable; ``amount``
    follows from the numeric fields and ``id`` is fixed for the item's lifetime.
    """
    if field not in ITEM_FIELDS:
        logger.warning("editor.field_not_editable", field=field)
        return with_totals(document)

    items = []
    for item in document.items:
        if item.id == item_id:
            try:
                item = LineItem.model_validate({**item.model_dump(), field: value})
            except ValidationError:
                logger.warning("editor.invalid_value", item_id=item_id, field=field)
            else:
                if field in AMOUNT_FIELDS:
                    item = item.model_copy(update={"amount": line_amount(item)})
        items.append(item)
    return with_totals(document.model_copy(update={"items": items}))


def remove_item(document: Document, item_id: str) -> Document:
    items = [item for item in document.items if item.id != item_id]
    return with_totals(document.model_copy(update={"items": items}))


def set_document_type(document: Document, new_type: Union[DocumentType, str], next_number: int) -> Document:
    """Switch between invoice and quotation and renumber with the type's prefix."""
    try:
        doc_type = DocumentType(new_type)
    except ValueError:
        logger.warning("editor.unknown_document_type", type=str(new_type))
        return with_totals(document)
    updated = document.model_copy(
        update={"type": doc_type, "document_number": format_document_number(doc_type, next_number)}
    )
    return with_totals(updated)


def apply_record(document: Document, record: LibraryRecord) -> Document:
    """Copy a saved client, item or term into the document."""
    return with_totals(apply_library_record(document, record))


def set_field(document: Document, field: str, value: object) -> Document:
    """Edit a header field (parties, dates, currency, notes, ...)."""
    if field not in HEADER_FIELDS:
        logger.warning("editor.field_not_editable", field=field)
        return document
    if field in DATE_FIELDS and isinstance(value, str):
        parsed = parse_date(value.strip())
        if parsed is None and value.strip():
            logger.warning("editor.invalid_value", field=field)
            return document
        value = parsed
    try:
        updated = Document.model_validate({**document.model_dump(), field: value})
    except ValidationError:
        logger.warning("editor.invalid_value", field=field)
        return document
    return document.model_copy(update={field: getattr(updated, field)})


class DocumentEditor:
    """One editing session over a single document.

    The store and sequence number are passed in explicitly; the editor keeps
    no global state. When a ``PreviewDebouncer`` is attached every change is
    pushed to it so previews can be rendered from a trailing snapshot.
    """

    def __init__(
        self,
        store: DocumentStore,
        document: Optional[Document] = None,
        *,
        next_number: int = 1,
        debouncer: Optional["PreviewDebouncer"] = None,
    ) -> None:
        self._store = store
        self._next_number = next_number
        self._debouncer = debouncer
        self._document = recalculate(document) if document is not None else blank_document(sequence=next_number)
        if self._debouncer is not None:
            self._debouncer.push(self._document)

    @classmethod
    def open(
        cls,
        store: DocumentStore,
        document_id: Optional[str] = None,
        *,
        user_id: Optional[str] = None,
        profile_id: str = "default",
        currency: str = DEFAULT_CURRENCY,
        due_days: int = DEFAULT_DUE_DAYS,
        today: Optional[date] = None,
        debouncer: Optional["PreviewDebouncer"] = None,
    ) -> "DocumentEditor":
        """Load ``document_id`` or start a blank document when it is absent."""
        next_number = next_sequence(store.latest_document_number(user_id))
        document = store.load_document(document_id) if document_id else None
        if document is None:
            if document_id:
                logger.info("editor.document_not_found", document_id=document_id)
            document = blank_document(
                store.get_profile(profile_id),
                next_number,
                currency=currency,
                today=today,
                due_days=due_days,
            ).model_copy(update={"user_id": user_id})
        return cls(store, document, next_number=next_number, debouncer=debouncer)

    @property
    def document(self) -> Document:
        return self._document

    @property
    def next_number(self) -> int:
        return self._next_number

    def add_item(self) -> Document:
        return self._commit(add_item(self._document))

    def update_item(self, item_id: str, field: str, value: NumericInput) -> Document:
        return self._commit(update_item(self._document, item_id, field, value))

    def remove_item(self, item_id: str) -> Document:
        return self._commit(remove_item(self._document, item_id))

    def set_document_type(self, new_type: Union[DocumentType, str]) -> Document:
        return self._commit(set_document_type(self._document, new_type, self._next_number))

    def set_field(self, field: str, value: object) -> Document:
        return self._commit(set_field(self._document, field, value))

    def apply_record(self, record: LibraryRecord) -> Document:
        return self._commit(apply_record(self._document, record))

    def save(self) -> SaveResult:
        """Persist the current snapshot; on failure the document is left untouched."""
        try:
            document_id = self._store.save_document(self._document)
        except StoreError as exc:
            logger.error("editor.save_failed", document_id=self._document.id, error=str(exc))
            return SaveResult(ok=False, document_id=self._document.id, error=str(exc))
        self._document = self._document.model_copy(update={"id": document_id})
        return SaveResult(ok=True, document_id=document_id)

    def _commit(self, document: Document) -> Document:
        self._document = document
        if self._debouncer is not None:
            self._debouncer.push(document)
        return document
