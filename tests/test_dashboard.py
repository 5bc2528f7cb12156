from decimal import Decimal

from invoice_studio.dashboard import dashboard_stats, search_documents
from invoice_studio.schemas import Document, DocumentStatus


def documents():
    return [
        Document(document_number="INV-0001", client_name="Acme Corp", grand_total=Decimal("210.00"), status=DocumentStatus.PAID),
        Document(document_number="QT-0002", client_name="Globex", grand_total=Decimal("99.50")),
        Document(document_number="INV-0003", client_name="Acme Corp", grand_total=Decimal("40.00"), status=DocumentStatus.OVERDUE),
        Document(document_number="QT-0004", client_name="", grand_total=Decimal("0.00")),
    ]


def test_dashboard_stats():
    stats = dashboard_stats(documents())
    assert stats.total_revenue == Decimal("349.50")
    assert stats.document_count == 4
    assert stats.client_count == 2


def test_dashboard_stats_empty():
    stats = dashboard_stats([])
    assert stats.total_revenue == 0
    assert stats.document_count == 0


def test_search_matches_client_number_status_and_total():
    docs = documents()
    assert [d.document_number for d in search_documents(docs, "acme")] == ["INV-0001", "INV-0003"]
    assert [d.document_number for d in search_documents(docs, "qt-")] == ["QT-0002", "QT-0004"]
    assert [d.document_number for d in search_documents(docs, "overdue")] == ["INV-0003"]
    assert [d.document_number for d in search_documents(docs, "99.5")] == ["QT-0002"]
    assert len(search_documents(docs, "  ")) == 4
