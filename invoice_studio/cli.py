"""Command-line entrypoints for totals, new documents, storage and PDF export."""
from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.table import Table

from . import editor
from .config import get_settings
from .dashboard import dashboard_stats, search_documents
from .logging_config import configure_logging
from .numbering import next_sequence
from .renderer import render_pdf
from .schemas import Document, DocumentType, LineItem
from .store import JsonFileStore, StoreError
from .utils import CURRENCIES, format_currency

app = typer.Typer(add_completion=False, help="Invoice Studio CLI")


@app.callback()
def main_options(log_level: Optional[str] = typer.Option(None, help="Log level (defaults to INVOICE_STUDIO_LOG_LEVEL)")) -> None:
    configure_logging(log_level or get_settings().log_level)


def _load_document(json_path: Path) -> Document:
    """Read a document, or a bare list of line items, and recompute its totals."""
    try:
        data = json.loads(json_path.read_text(encoding="utf-8"))
        if isinstance(data, list):
            document = Document(items=[LineItem.model_validate(item) for item in data])
        else:
            document = Document.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        print(f"[red]Cannot read {json_path}:[/red] {exc}")
        raise typer.Exit(code=1)
    return editor.recalculate(document)


def _store(data_dir: Optional[Path]) -> JsonFileStore:
    try:
        return JsonFileStore(data_dir or get_settings().data_dir)
    except StoreError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


def _print_totals(document: Document) -> None:
    table = Table(title=f"{document.type.value.title()} {document.document_number}".strip())
    table.add_column("Description")
    table.add_column("Qty", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Tax %", justify="right")
    table.add_column("Amount", justify="right")
    for item in document.items:
        table.add_row(
            item.description,
            str(item.quantity),
            format_currency(item.unit_price, document.currency),
            str(item.tax_rate),
            format_currency(item.amount, document.currency),
        )
    print(table)
    print(f"[bold]Subtotal:[/bold] {format_currency(document.subtotal, document.currency)}")
    print(f"[bold]Tax:[/bold] {format_currency(document.tax_total, document.currency)}")
    print(f"[bold green]Total due:[/bold green] {format_currency(document.grand_total, document.currency)}")


@app.command()
def totals(input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON document or list of line items")) -> None:
    """Compute subtotal, tax and grand total."""
    _print_totals(_load_document(input))


@app.command()
def new(
    output: Path = typer.Option(..., help="Path to write the blank document JSON"),
    doc_type: DocumentType = typer.Option(DocumentType.QUOTATION, "--type", help="invoice or quotation"),
    data_dir: Optional[Path] = typer.Option(None, help="Store directory used for numbering and the business profile"),
) -> None:
    """Write a blank document numbered after the latest saved one."""
    settings = get_settings()
    store = _store(data_dir)
    document = editor.blank_document(
        store.get_profile(),
        next_sequence(store.latest_document_number()),
        doc_type=doc_type,
        currency=settings.default_currency,
        today=date.today(),
        due_days=settings.due_days,
    )
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(document.model_dump_json(indent=2), encoding="utf-8")
    print(f"Created {document.document_number} -> {output}")


@app.command()
def save(
    input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON document to store"),
    data_dir: Optional[Path] = typer.Option(None, help="Store directory"),
) -> None:
    """Store a document (create, or replace an existing one with the same id)."""
    document = _load_document(input)
    session = editor.DocumentEditor(_store(data_dir), document)
    result = session.save()
    if not result.ok:
        print(f"[red]Save failed:[/red] {result.error}")
        raise typer.Exit(code=1)
    print(f"Saved {document.display_id} as {result.document_id}")


@app.command()
def render(
    input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON document to render"),
    output: Path = typer.Option(..., help="Path to write the PDF"),
) -> None:
    """Render a document to PDF."""
    document = _load_document(input)
    output.parent.mkdir(parents=True, exist_ok=True)
    render_pdf(document, output)
    print(f"PDF written to {output}")


@app.command("list")
def list_documents(
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Filter by client, number, status or total"),
    data_dir: Optional[Path] = typer.Option(None, help="Store directory"),
) -> None:
    """List stored documents with dashboard figures."""
    documents = _store(data_dir).list_documents()
    stats = dashboard_stats(documents)
    table = Table()
    table.add_column("Number")
    table.add_column("Type")
    table.add_column("Client")
    table.add_column("Status")
    table.add_column("Total", justify="right")
    for document in search_documents(documents, query or ""):
        table.add_row(
            document.document_number,
            document.type.value,
            document.client_name,
            document.status.value,
            format_currency(document.grand_total, document.currency),
        )
    print(table)
    print(f"[bold]Documents:[/bold] {stats.document_count}  [bold]Clients:[/bold] {stats.client_count}  [bold]Revenue:[/bold] {stats.total_revenue:,.2f}")


@app.command()
def currencies() -> None:
    """List the supported currencies."""
    table = Table()
    table.add_column("Code")
    table.add_column("Currency")
    table.add_column("Symbol")
    for code, (name, symbol) in CURRENCIES.items():
        table.add_row(code, name, symbol)
    print(table)


def main():
    app()


if __name__ == "__main__":
    main()
