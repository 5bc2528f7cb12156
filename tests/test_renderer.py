import io
from decimal import Decimal

import pdfplumber

from invoice_studio.editor import recalculate
from invoice_studio.renderer import pdf_filename, render_pdf, render_pdf_bytes
from invoice_studio.schemas import LineItem


def pdf_text(data: bytes) -> str:
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        return "\n".join(page.extract_text() or "" for page in pdf.pages)


def test_rendered_pdf_shows_document_and_totals(invoice):
    document = recalculate(invoice)
    data = render_pdf_bytes(document)
    assert data.startswith(b"%PDF")

    text = pdf_text(data)
    assert "INVOICE" in text
    assert "INV-0001" in text
    assert "Acme Corp" in text
    assert "Hosting - yearly" in text
    assert "$200.00" in text
    assert "$10.00" in text
    assert "$210.00" in text
    assert "Total Due" in text
    assert "Net 7" in text


def test_long_item_tables_continue_on_new_pages(invoice):
    items = [LineItem(description=f"Line {n}", quantity=1, unit_price=1) for n in range(80)]
    document = recalculate(invoice.model_copy(update={"items": items}))
    assert document.grand_total == Decimal("80.00")

    with pdfplumber.open(io.BytesIO(render_pdf_bytes(document))) as pdf:
        assert len(pdf.pages) >= 2
        text = "\n".join(page.extract_text() or "" for page in pdf.pages)
    assert "Line 79" in text
    assert "$80.00" in text


def test_render_to_path(tmp_path, invoice):
    target = tmp_path / pdf_filename(invoice)
    render_pdf(recalculate(invoice), target)
    assert target.name == "INV-0001.pdf"
    assert target.read_bytes().startswith(b"%PDF")


def test_missing_logo_is_skipped(invoice):
    document = recalculate(invoice.model_copy(update={"logo_url": "https://example.invalid/logo.png"}))
    assert render_pdf_bytes(document).startswith(b"%PDF")
