"""CLI entry point for finance-extract."""

from __future__ import annotations

import json
import logging
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING

import click

from finance_extract.errors import ExtractionError
from finance_extract.extraction import create_receipt_extractor
from finance_extract.models import UploadedDocument

if TYPE_CHECKING:
    from finance_extract.extraction import ReceiptExtractor

_DOCUMENT = click.Path(exists=True, dir_okay=False, path_type=Path)
_CONTENT_TYPE = click.option(
    "--content-type",
    help="MIME type to declare for the file (guessed from its name by default).",
)


def _load_document(path: Path, content_type: str | None) -> UploadedDocument:
    if content_type is None:
        content_type, _encoding = mimetypes.guess_type(path.name)
    return UploadedDocument(
        filename=path.name,
        content_type=content_type or "application/octet-stream",
        data=path.read_bytes(),
    )


def _build_extractor() -> ReceiptExtractor:
    try:
        return create_receipt_extractor()
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log pipeline details to stderr.")
def cli(verbose: bool) -> None:
    """Finance Extract: read receipts and statements into transactions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("path", type=_DOCUMENT)
@_CONTENT_TYPE
def receipt(path: Path, content_type: str | None) -> None:
    """Extract a single expense from a receipt image or PDF."""
    doc = _load_document(path, content_type)
    extractor = _build_extractor()
    try:
        transaction = extractor.extract_single_receipt(doc)
    except ExtractionError as exc:
        msg = f"Failed to process receipt: {exc}"
        raise click.ClickException(msg) from exc

    if transaction.is_placeholder():
        click.echo("Warning: nothing useful could be read from this receipt.", err=True)
    click.echo(transaction.model_dump_json(indent=2))


@cli.command()
@click.argument("path", type=_DOCUMENT)
@_CONTENT_TYPE
def history(path: Path, content_type: str | None) -> None:
    """Extract every transaction from a transaction-history document."""
    doc = _load_document(path, content_type)
    extractor = _build_extractor()
    try:
        transactions = extractor.extract_history_batch(doc)
    except ExtractionError as exc:
        msg = f"Failed to process transaction history: {exc}"
        raise click.ClickException(msg) from exc

    payload = {"transactions": [t.model_dump(mode="json") for t in transactions]}
    click.echo(json.dumps(payload, indent=2))
