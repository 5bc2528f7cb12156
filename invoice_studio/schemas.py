"""Data models used across the editor, totals engine, stores, CLI, and API."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Raw user input for quantity, unit price and tax rate. Kept as entered
# (possibly an empty or half-typed string) and coerced by the totals engine.
NumericInput = Union[int, float, Decimal, str, None]


def new_id() -> str:
    return uuid4().hex


class DocumentType(str, Enum):
    INVOICE = "invoice"
    QUOTATION = "quotation"

    @property
    def prefix(self) -> str:
        return "INV" if self is DocumentType.INVOICE else "QT"


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class LineItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id)
    description: str = ""
    quantity: NumericInput = 1
    unit_price: NumericInput = 0
    tax_rate: NumericInput = 0
    amount: Decimal = Decimal("0")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value

    @field_validator("description", mode="before")
    @classmethod
    def _blank_description(cls, value: object) -> object:
        return "" if value is None else value


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = Decimal("0.00")
    tax_total: Decimal = Decimal("0.00")
    grand_total: Decimal = Decimal("0.00")


class Document(BaseModel):
    """An invoice or quotation with its line items and derived totals."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    user_id: Optional[str] = None
    document_number: str = ""
    type: DocumentType = DocumentType.QUOTATION
    status: DocumentStatus = DocumentStatus.DRAFT
    currency: str = "AED"
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    sender_name: str = ""
    sender_address: str = ""
    sender_email: str = ""
    sender_tax_id: Optional[str] = None
    payment_details: Optional[str] = None
    client_name: str = ""
    client_address: str = ""
    client_email: str = ""
    notes: str = ""
    logo_url: Optional[str] = None
    items: List[LineItem] = Field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
    tax_total: Decimal = Decimal("0.00")
    grand_total: Decimal = Decimal("0.00")
    created_at: Optional[datetime] = None

    @field_validator(
        "sender_name",
        "sender_address",
        "sender_email",
        "client_name",
        "client_address",
        "client_email",
        "notes",
        mode="before",
    )
    @classmethod
    def _blank_text(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def totals(self) -> Totals:
        return Totals(subtotal=self.subtotal, tax_total=self.tax_total, grand_total=self.grand_total)

    @property
    def display_id(self) -> str:
        """Fallback identifier for messages and file names."""
        return self.document_number or self.id or "document"

    def find_item(self, item_id: str) -> Optional[LineItem]:
        return next((item for item in self.items if item.id == item_id), None)


class BusinessProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = "default"
    business_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    address_line_1: str = ""
    tax_id: Optional[str] = None
    bank_account_no: Optional[str] = None
    logo_url: Optional[str] = None
    updated_at: Optional[datetime] = None


class LibraryKind(str, Enum):
    CLIENT = "client"
    ITEM = "item"
    TERM = "term"


class ClientRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["client"] = "client"
    id: Optional[str] = None
    user_id: Optional[str] = None
    name: str
    email: str = ""
    address: str = ""


class ItemRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["item"] = "item"
    id: Optional[str] = None
    user_id: Optional[str] = None
    name: str
    description: str = ""
    unit_price: NumericInput = 0
    tax_rate: NumericInput = 0


class TermRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["term"] = "term"
    id: Optional[str] = None
    user_id: Optional[str] = None
    title: str = ""
    content: str = ""


LibraryRecord = Annotated[Union[ClientRecord, ItemRecord, TermRecord], Field(discriminator="kind")]


class LibrarySuggestions(BaseModel):
    """Library entries a save could offer to create."""

    client: Optional[ClientRecord] = None
    items: List[ItemRecord] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.client is None and not self.items


class SaveResult(BaseModel):
    ok: bool
    document_id: Optional[str] = None
    error: Optional[str] = None


class DashboardStats(BaseModel):
    total_revenue: Decimal = Decimal("0.00")
    document_count: int = 0
    client_count: int = 0


class DashboardResponse(BaseModel):
    stats: DashboardStats
    documents: List[Document]


class ItemUpdateRequest(BaseModel):
    document: Document
    item_id: str
    field: str
    value: NumericInput = None


class ItemRemoveRequest(BaseModel):
    document: Document
    item_id: str


class TypeChangeRequest(BaseModel):
    document: Document
    type: DocumentType
    next_number: Optional[int] = None


class ApplyRecordRequest(BaseModel):
    document: Document
    record: LibraryRecord


class SaveRecordRequest(BaseModel):
    record: LibraryRecord


class StatusUpdate(BaseModel):
    status: DocumentStatus
