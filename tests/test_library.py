from decimal import Decimal

import pytest

from invoice_studio.library import apply_library_record, item_description, suggest_library_additions
from invoice_studio.schemas import ClientRecord, Document, ItemRecord, LineItem, TermRecord


def test_client_record_copies_client_fields(invoice):
    record = ClientRecord(name="Globex", email="ap@globex.test", address="1 Main St")
    updated = apply_library_record(invoice, record)
    assert (updated.client_name, updated.client_email, updated.client_address) == (
        "Globex",
        "ap@globex.test",
        "1 Main St",
    )
    assert invoice.client_name == "Acme Corp"


def test_item_record_appends_line_with_amount(invoice):
    updated = apply_library_record(invoice, ItemRecord(name="Audit", unit_price="80", tax_rate="10"))
    line = updated.items[-1]
    assert line.description == "Audit"
    assert line.quantity == 1
    assert line.amount == Decimal("88.00")
    assert len(updated.items) == len(invoice.items) + 1


def test_item_description_joins_name_and_description():
    assert item_description(ItemRecord(name="Design", description="Logo")) == "Design - Logo"
    assert item_description(ItemRecord(name="Design")) == "Design"


def test_term_record_overwrites_notes(invoice):
    updated = apply_library_record(invoice, TermRecord(title="30 days", content="Payment due in 30 days."))
    assert updated.notes == "Payment due in 30 days."


def test_unknown_record_type_is_rejected(invoice):
    with pytest.raises(TypeError):
        apply_library_record(invoice, object())


def test_suggests_new_client_and_unknown_items(store):
    store.save_record(ClientRecord(name="Acme Corp"))
    store.save_record(ItemRecord(name="Design", unit_price=100))
    document = Document(
        client_name="Beta LLC",
        client_email="hello@beta.test",
        items=[
            LineItem(description="design - Logo", unit_price=100),
            LineItem(description="Hosting - yearly", unit_price=50, tax_rate=10),
            LineItem(description="Hosting - monthly", unit_price=5),
            LineItem(description="abc", unit_price=1),
        ],
    )
    suggestions = suggest_library_additions(document, store)
    assert suggestions.client == ClientRecord(name="Beta LLC", email="hello@beta.test")
    assert [item.name for item in suggestions.items] == ["Hosting"]
    assert suggestions.items[0].description == "Hosting - yearly"
    assert suggestions.items[0].tax_rate == 10


def test_no_suggestions_for_known_or_short_entries(store):
    store.save_record(ClientRecord(name="Acme Corp"))
    document = Document(client_name="Acme Corp", items=[LineItem(description="fee")])
    assert suggest_library_additions(document, store).is_empty
    assert suggest_library_additions(Document(client_name="AB"), store).client is None
