"""Receipt and transaction-history extraction pipeline."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from finance_extract.gateway import DocumentGateway, media_type_of
from finance_extract.models import ExtractionMode
from finance_extract.normalization import normalize_all, normalize_transaction
from finance_extract.prompts import build_prompt
from finance_extract.recovery import recover_batch, recover_single

if TYPE_CHECKING:
    from collections.abc import Callable

    from finance_extract.adapters.base import ModelAdapter
    from finance_extract.models import UploadedDocument, ValidatedTransaction

logger = logging.getLogger(__name__)


class ReceiptExtractor:
    """Turn uploaded receipts and statements into validated transactions.

    Collaborators are injected: ``model`` is any ModelAdapter (a scripted
    fake in tests), ``gateway`` owns validation and the transient file, and
    ``today`` supplies the processing date used for missing dates.

    Every request is independent; nothing is shared between calls except the
    injected collaborators, which hold no per-request state.
    """

    def __init__(
        self,
        model: ModelAdapter,
        gateway: DocumentGateway,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.model = model
        self.gateway = gateway
        self.today = today

    def extract_single_receipt(self, doc: UploadedDocument) -> ValidatedTransaction:
        """Extract the one expense a receipt describes."""
        mode = ExtractionMode.SINGLE_RECEIPT
        text = self._ask_model(doc, mode)
        candidate = recover_single(text)
        transaction = normalize_transaction(candidate, mode, self.today())
        logger.info(
            "Receipt extracted: %s %s (%s)",
            transaction.title,
            transaction.amount,
            transaction.category.value,
        )
        return transaction

    def extract_history_batch(
        self, doc: UploadedDocument
    ) -> list[ValidatedTransaction]:
        """Extract every transaction row from a history document."""
        mode = ExtractionMode.HISTORY_BATCH
        text = self._ask_model(doc, mode)
        candidates = recover_batch(text)
        transactions = normalize_all(candidates, mode, self.today())
        logger.info("History extracted: %d transaction(s)", len(transactions))
        return transactions

    def _ask_model(self, doc: UploadedDocument, mode: ExtractionMode) -> str:
        """Validate, store, read back and send the document; always clean up."""
        with self.gateway.admit(doc, mode) as path:
            data = path.read_bytes()
            return self.model.generate(build_prompt(mode), data, media_type_of(doc))


def create_receipt_extractor() -> ReceiptExtractor:
    """Wire the production Gemini adapter and local upload store from config."""
    from finance_extract.adapters.gemini import GeminiAdapter
    from finance_extract.config import get_upload_config
    from finance_extract.store import LocalUploadStore

    upload_config = get_upload_config()
    gateway = DocumentGateway(
        LocalUploadStore(upload_config.upload_dir), upload_config.max_bytes
    )
    return ReceiptExtractor(GeminiAdapter(), gateway)
