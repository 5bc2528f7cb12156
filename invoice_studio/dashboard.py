"""Summary figures and search over saved documents."""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List

from .schemas import DashboardStats, Document
from .utils import round_money


def dashboard_stats(documents: Iterable[Document]) -> DashboardStats:
    documents = list(documents)
    revenue = sum((document.grand_total or Decimal(0) for document in documents), Decimal(0))
    clients = {document.client_name for document in documents if document.client_name}
    return DashboardStats(
        total_revenue=round_money(revenue),
        document_count=len(documents),
        client_count=len(clients),
    )


def search_documents(documents: Iterable[Document], query: str) -> List[Document]:
    """Case-insensitive match on client name, number, status or grand total."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(documents)
    return [
        document
        for document in documents
        if needle in document.client_name.lower()
        or needle in document.document_number.lower()
        or needle in document.status.value
        or needle in str(document.grand_total)
    ]
