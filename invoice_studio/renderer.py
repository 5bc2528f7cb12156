"""PDF rendering of invoices and quotations with ReportLab."""
from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO, Union

import structlog
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from .schemas import Document
from .utils import coerce_number, format_currency

logger = structlog.get_logger(__name__)

MARGIN = 20 * mm
BOTTOM = 30 * mm
LINE = 5 * mm
FOOTER = "Thank you for your business."


def render_pdf(document: Document, target: Union[str, Path, BinaryIO]) -> None:
    """Render ``document`` to a file path or a binary file object.

    The document is drawn as given; callers pass a snapshot whose totals are
    already consistent with its items.
    """
    if isinstance(target, Path):
        target = str(target)
    c = canvas.Canvas(target, pagesize=A4)
    c.setTitle(f"{document.type.value.title()} {document.document_number}")
    draw_document(c, document)
    c.showPage()
    c.save()
    logger.info("pdf.rendered", document_number=document.document_number, items=len(document.items))


def render_pdf_bytes(document: Document) -> bytes:
    buffer = io.BytesIO()
    render_pdf(document, buffer)
    return buffer.getvalue()


def pdf_filename(document: Document) -> str:
    return f"{document.document_number or 'document'}.pdf"


def _quantity_text(value: object) -> str:
    number = coerce_number(value)
    return format(number.normalize(), "f") if number else "0"


def _rate_text(value: object) -> str:
    return f"{_quantity_text(value)}%"


def _draw_logo(c: canvas.Canvas, logo_url: str, x: float, y: float) -> bool:
    path = Path(logo_url)
    if not path.is_file():
        logger.debug("pdf.logo_skipped", logo_url=logo_url)
        return False
    try:
        c.drawImage(ImageReader(str(path)), x, y, width=30 * mm, height=15 * mm, preserveAspectRatio=True, mask="auto")
    except (OSError, ValueError) as exc:
        logger.warning("pdf.logo_failed", logo_url=logo_url, error=str(exc))
        return False
    return True


def draw_document(c: canvas.Canvas, document: Document) -> None:
    width, height = A4
    right = width - MARGIN
    currency = document.currency
    y = height - MARGIN

    if document.logo_url and _draw_logo(c, document.logo_url, MARGIN, y - 15 * mm):
        y -= 20 * mm

    c.setFont("Helvetica-Bold", 14)
    c.drawString(MARGIN, y, document.sender_name or "COMPANY NAME")
    c.setFont("Helvetica", 9)
    for text in (document.sender_email, document.sender_address):
        if text:
            y -= LINE
            c.drawString(MARGIN, y, text)

    c.setFont("Helvetica-Bold", 16)
    c.drawRightString(right, height - MARGIN, document.type.value.upper())
    c.setFont("Helvetica", 9)
    c.drawRightString(right, height - MARGIN - 7 * mm, f"Ref #: {document.document_number}")
    c.drawRightString(right, height - MARGIN - 12 * mm, f"Issue Date: {document.issue_date or ''}")
    c.drawRightString(right, height - MARGIN - 17 * mm, f"Due Date: {document.due_date or ''}")

    y = min(y, height - MARGIN - 17 * mm) - 14 * mm
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN, y, "Bill To")
    c.setFont("Helvetica", 9)
    for text in (document.client_name, document.client_email, document.client_address):
        if text:
            y -= LINE
            c.drawString(MARGIN, y, text)

    y -= 10 * mm
    y = _draw_item_table(c, document, y)

    y -= 10 * mm
    if y < BOTTOM + 20 * mm:
        c.showPage()
        y = height - MARGIN
    c.setFont("Helvetica", 9)
    c.drawRightString(right - 40 * mm, y, "Subtotal")
    c.drawRightString(right, y, format_currency(document.subtotal, currency))
    y -= LINE
    c.drawRightString(right - 40 * mm, y, "Tax Amount")
    c.drawRightString(right, y, format_currency(document.tax_total, currency))
    y -= 6 * mm
    c.setFont("Helvetica-Bold", 11)
    c.drawRightString(right - 40 * mm, y, "Total Due")
    c.drawRightString(right, y, format_currency(document.grand_total, currency))

    if document.sender_tax_id or document.payment_details:
        y -= 12 * mm
        c.setFont("Helvetica-Bold", 9)
        c.drawString(MARGIN, y, "Payment Info")
        c.setFont("Helvetica", 9)
        if document.sender_tax_id:
            y -= LINE
            c.drawString(MARGIN, y, f"Tax ID / TRN: {document.sender_tax_id}")
        if document.payment_details:
            y -= LINE
            c.drawString(MARGIN, y, f"Bank Details: {document.payment_details}")

    if document.notes:
        y -= 12 * mm
        c.setFont("Helvetica-Bold", 9)
        c.drawString(MARGIN, y, "Notes & Payment Terms")
        c.setFont("Helvetica", 9)
        for text in simpleSplit(document.notes, "Helvetica", 9, right - MARGIN):
            y -= LINE
            if y < BOTTOM:
                c.showPage()
                c.setFont("Helvetica", 9)
                y = height - MARGIN
            c.drawString(MARGIN, y, text)

    c.setFont("Helvetica", 8)
    c.drawCentredString(width / 2, 15 * mm, FOOTER)


def _draw_table_header(c: canvas.Canvas, y: float) -> None:
    right = A4[0] - MARGIN
    c.setFont("Helvetica-Bold", 9)
    c.drawString(MARGIN, y, "Description")
    c.drawRightString(right - 75 * mm, y, "Qty")
    c.drawRightString(right - 50 * mm, y, "Price")
    c.drawRightString(right - 30 * mm, y, "Tax")
    c.drawRightString(right, y, "Amount")
    c.setFont("Helvetica", 9)


def _draw_item_table(c: canvas.Canvas, document: Document, y: float) -> float:
    width, height = A4
    right = width - MARGIN
    _draw_table_header(c, y)
    for item in document.items:
        y -= LINE
        if y < BOTTOM:
            c.showPage()
            y = height - MARGIN
            _draw_table_header(c, y)
            y -= LINE
        c.drawString(MARGIN, y, item.description[:60])
        c.drawRightString(right - 75 * mm, y, _quantity_text(item.quantity))
        c.drawRightString(right - 50 * mm, y, format_currency(item.unit_price, document.currency))
        c.drawRightString(right - 30 * mm, y, _rate_text(item.tax_rate))
        c.drawRightString(right, y, format_currency(item.amount, document.currency))
    return y
