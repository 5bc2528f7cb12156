"""Shared fixtures."""
from __future__ import annotations

from datetime import date

import pytest

from invoice_studio.schemas import BusinessProfile, Document, DocumentType, LineItem
from invoice_studio.store import InMemoryStore


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def profile() -> BusinessProfile:
    return BusinessProfile(
        business_name="Northwind Studio",
        email="billing@northwind.test",
        address_line_1="12 Harbour Road, Dubai",
        tax_id="TRN-100200300",
        logo_url=None,
    )


@pytest.fixture
def invoice() -> Document:
    return Document(
        document_number="INV-0001",
        type=DocumentType.INVOICE,
        currency="USD",
        issue_date=date(2025, 1, 10),
        due_date=date(2025, 1, 17),
        sender_name="Northwind Studio",
        client_name="Acme Corp",
        client_email="ap@acme.test",
        notes="Net 7",
        items=[
            LineItem(id="a", description="Design - Logo", quantity=1, unit_price=100, tax_rate=0),
            LineItem(id="b", description="Hosting - yearly", quantity=2, unit_price=50, tax_rate=10),
        ],
    )
