"""Domain and extraction models for receipt and history parsing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

RECEIPT_PLACEHOLDER_TITLE = "Scanned receipt"
HISTORY_PLACEHOLDER_TITLE = "Imported transaction"

TITLE_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 200

# Text values a model uses to mean "no value".
NULL_WORDS = frozenset({"", "null", "none", "n/a"})


@dataclass
class UploadedDocument:
    """A single uploaded file, held only for the lifetime of one request."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class ExtractionMode(StrEnum):
    """Which kind of document is being extracted."""

    SINGLE_RECEIPT = "single_receipt"
    HISTORY_BATCH = "history_batch"


class Category(StrEnum):
    """Closed set of spending categories; OTHERS is the catch-all."""

    FOOD = "Food"
    TRAVEL = "Travel"
    SHOPPING = "Shopping"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    ENTERTAINMENT = "Entertainment"
    UTILITIES = "Utilities"
    HOUSING = "Housing"
    TRANSPORTATION = "Transportation"
    OTHERS = "Others"


class TransactionType(StrEnum):
    INCOME = "income"
    EXPENSE = "expense"


def _scalar_to_text(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, int | float | Decimal):
        return str(value)
    return None


class CandidateTransaction(BaseModel):
    """Best-effort record recovered from model output, not yet validated.

    Every field is optional and loosely typed. Values of the wrong shape
    (nested objects where text was expected, booleans for amounts) are
    dropped rather than rejected so recovery never fails on validation.
    """

    model_config = ConfigDict(extra="ignore")

    vendor: str | None = None
    title: str | None = None
    date: str | None = None
    amount: str | int | float | Decimal | None = None
    category: str | None = None
    items: list[str] | None = None
    description: str | None = None
    type: str | None = None

    @field_validator(
        "vendor", "title", "date", "category", "description", "type", mode="before"
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _scalar_to_text(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return None
        if isinstance(value, str | int | float | Decimal):
            return value
        return None

    @field_validator("items", mode="before")
    @classmethod
    def _coerce_items(cls, value: Any) -> list[str] | None:
        if isinstance(value, str):
            return [value]
        if not isinstance(value, list):
            return None
        items = [text for text in map(_scalar_to_text, value) if text]
        return items or None

    def is_empty(self) -> bool:
        """Return True when no field carries a value."""
        return all(value is None for value in self.model_dump().values())


class ValidatedTransaction(BaseModel):
    """Normalized transaction, safe to hand to the persistence layer."""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    amount: Decimal = Field(ge=0)
    date: date
    category: Category
    type: TransactionType
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LENGTH)

    def as_candidate(self) -> CandidateTransaction:
        """Re-express this record as a candidate, e.g. to re-normalize it."""
        return CandidateTransaction.model_validate(self.model_dump(mode="json"))

    def is_placeholder(self) -> bool:
        """Return True when every display field still holds its default.

        Callers should treat such a record as a failed extraction.
        """
        return (
            self.title in (RECEIPT_PLACEHOLDER_TITLE, HISTORY_PLACEHOLDER_TITLE)
            and self.amount == 0
            and self.category is Category.OTHERS
            and not self.description
        )
