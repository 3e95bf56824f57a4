"""Tests for finance_extract.cli."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from finance_extract import cli as cli_module
from finance_extract.cli import cli
from finance_extract.extraction import ReceiptExtractor

if TYPE_CHECKING:
    from datetime import date
    from pathlib import Path

    from conftest import ScriptedModel

    from finance_extract.gateway import DocumentGateway


@pytest.fixture
def receipt_file(tmp_path: Path) -> Path:
    path = tmp_path / "lunch.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
    return path


@pytest.fixture
def statement_file(tmp_path: Path) -> Path:
    path = tmp_path / "statement.pdf"
    path.write_bytes(b"%PDF-1.4 fake statement")
    return path


@pytest.fixture
def use_reply(
    monkeypatch: pytest.MonkeyPatch,
    scripted_model: type[ScriptedModel],
    gateway: DocumentGateway,
    processing_date: date,
):
    """Make the CLI build an extractor around a scripted model reply."""

    def _install(reply: str) -> ScriptedModel:
        model = scripted_model(reply)
        extractor = ReceiptExtractor(model, gateway, today=lambda: processing_date)
        monkeypatch.setattr(cli_module, "create_receipt_extractor", lambda: extractor)
        return model

    return _install


class TestReceiptCommand:
    """Tests for the receipt command."""

    def test_prints_transaction_json(self, use_reply, receipt_file: Path) -> None:
        model = use_reply(
            '```json\n{"vendor": "Acme", "amount": "12.50", "date": "2024-03-01",'
            ' "category": "food", "title": "Lunch", "description": "Sandwich"}\n```'
        )

        result = CliRunner().invoke(cli, ["receipt", str(receipt_file)])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "title": "Lunch",
            "amount": "12.50",
            "date": "2024-03-01",
            "category": "Food",
            "type": "expense",
            "description": "Sandwich",
        }
        assert model.calls[0][2] == "image/jpeg"

    def test_content_type_override(self, use_reply, tmp_path: Path) -> None:
        path = tmp_path / "scan.bin"
        path.write_bytes(b"%PDF-1.4")
        model = use_reply('{"vendor": "Acme", "amount": 3}')

        result = CliRunner().invoke(
            cli, ["receipt", str(path), "--content-type", "application/pdf"]
        )

        assert result.exit_code == 0, result.output
        assert model.calls[0][2] == "application/pdf"

    def test_placeholder_warns(self, use_reply, receipt_file: Path) -> None:
        use_reply('{"vendor": null, "category": "Others", "date": "2024-01-01"}')

        result = CliRunner().invoke(cli, ["receipt", str(receipt_file)])

        assert result.exit_code == 0, result.output
        assert "Warning" in result.output

    def test_no_structure_fails(self, use_reply, receipt_file: Path) -> None:
        use_reply("I could not read anything on this receipt.")

        result = CliRunner().invoke(cli, ["receipt", str(receipt_file)])

        assert result.exit_code == 1
        assert "Failed to process receipt" in result.output
        assert "Could not extract structured data" in result.output

    def test_unknown_file_type_rejected(self, use_reply, tmp_path: Path) -> None:
        path = tmp_path / "notes"
        path.write_bytes(b"hello")
        model = use_reply("{}")

        result = CliRunner().invoke(cli, ["receipt", str(path)])

        assert result.exit_code == 1
        assert "application/octet-stream" in result.output
        assert model.calls == []

    def test_missing_api_key(
        self, monkeypatch: pytest.MonkeyPatch, receipt_file: Path
    ) -> None:
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        result = CliRunner().invoke(cli, ["receipt", str(receipt_file)])

        assert result.exit_code == 1
        assert "GEMINI_API_KEY" in result.output

    def test_missing_file(self) -> None:
        result = CliRunner().invoke(cli, ["receipt", "does-not-exist.jpg"])
        assert result.exit_code == 2


class TestHistoryCommand:
    """Tests for the history command."""

    def test_prints_transactions(self, use_reply, statement_file: Path) -> None:
        rows = [
            {"title": "Salary", "amount": 5000, "type": "income", "date": "2024-06-01"},
            {"title": "Rent", "amount": "1,200.00", "category": "Housing"},
        ]
        use_reply(f"```json\n{json.dumps(rows)}\n```")

        result = CliRunner().invoke(cli, ["history", str(statement_file)])

        assert result.exit_code == 0, result.output
        transactions = json.loads(result.output)["transactions"]
        assert [t["title"] for t in transactions] == ["Salary", "Rent"]
        assert [t["type"] for t in transactions] == ["income", "expense"]
        assert transactions[1]["amount"] == "1200.00"
        assert transactions[1]["date"] == "2025-06-15"

    def test_empty_history_fails(self, use_reply, statement_file: Path) -> None:
        use_reply("```json\n[]\n```")

        result = CliRunner().invoke(cli, ["history", str(statement_file)])

        assert result.exit_code == 1
        assert "Failed to process transaction history" in result.output
        assert "Failed to extract transactions" in result.output
