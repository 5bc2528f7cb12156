"""Saved clients, items and terms, and how they are copied into documents."""
from __future__ import annotations

from typing import List, Optional

from .schemas import (
    ClientRecord,
    Document,
    ItemRecord,
    LibraryKind,
    LibraryRecord,
    LibrarySuggestions,
    LineItem,
    TermRecord,
)
from .store import DocumentStore
from .totals import line_amount

# Minimum lengths before a typed-in client or line is worth offering as a library entry.
MIN_CLIENT_NAME = 3
MIN_ITEM_DESCRIPTION = 4
ITEM_NAME_SEPARATOR = " - "


def item_description(record: ItemRecord) -> str:
    if record.description:
        return f"{record.name}{ITEM_NAME_SEPARATOR}{record.description}"
    return record.name


def apply_library_record(document: Document, record: LibraryRecord) -> Document:
    """Copy a library record's values into ``document``.

    The copy is one-off: later edits to either side do not propagate. Totals
    are not recomputed here; editor callers do that.
    """
    if isinstance(record, ClientRecord):
        return document.model_copy(
            update={
                "client_name": record.name,
                "client_email": record.email,
                "client_address": record.address,
            }
        )
    if isinstance(record, ItemRecord):
        item = LineItem(
            description=item_description(record),
            quantity=1,
            unit_price=record.unit_price,
            tax_rate=record.tax_rate,
        )
        item = item.model_copy(update={"amount": line_amount(item)})
        return document.model_copy(update={"items": [*document.items, item]})
    if isinstance(record, TermRecord):
        return document.model_copy(update={"notes": record.content})
    raise TypeError(f"unsupported library record: {type(record).__name__}")


def suggest_library_additions(document: Document, store: DocumentStore, user_id: Optional[str] = None) -> LibrarySuggestions:
    """Client and items typed into ``document`` that the library does not know yet."""
    client: Optional[ClientRecord] = None
    if len(document.client_name) >= MIN_CLIENT_NAME:
        known_clients = {record.name for record in store.list_records(LibraryKind.CLIENT, user_id)}
        if document.client_name not in known_clients:
            client = ClientRecord(
                name=document.client_name,
                email=document.client_email,
                address=document.client_address,
            )

    known_items = {record.name.lower() for record in store.list_records(LibraryKind.ITEM, user_id)}
    items: List[ItemRecord] = []
    seen = set()
    for line in document.items:
        if len(line.description) < MIN_ITEM_DESCRIPTION:
            continue
        name = line.description.split(ITEM_NAME_SEPARATOR)[0]
        if name.lower() in known_items or name in seen:
            continue
        seen.add(name)
        items.append(
            ItemRecord(
                name=name,
                description=line.description,
                unit_price=line.unit_price,
                tax_rate=line.tax_rate,
            )
        )
    return LibrarySuggestions(client=client, items=items)
