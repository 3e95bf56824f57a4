"""Coerce candidate transactions into validated, persistable records.

Everything here is a pure function of its inputs and never raises: a
non-empty candidate always yields a best-effort ``ValidatedTransaction``.
Deciding whether a mostly-default record is worth keeping is left to the
caller (see ``ValidatedTransaction.is_placeholder``).
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from finance_extract.models import (
    DESCRIPTION_MAX_LENGTH,
    HISTORY_PLACEHOLDER_TITLE,
    NULL_WORDS,
    RECEIPT_PLACEHOLDER_TITLE,
    TITLE_MAX_LENGTH,
    Category,
    ExtractionMode,
    TransactionType,
    ValidatedTransaction,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from finance_extract.models import CandidateTransaction

_ZERO = Decimal(0)
_AMOUNT_NOISE_RE = re.compile(r"[^0-9.]")
# A minus sign or accounting parenthesis ahead of the first digit.
_NEGATIVE_PREFIX_RE = re.compile(r"^\D*?[-\u2212(]\W*\d")
_CATEGORY_LOOKUP = {category.value.lower(): category for category in Category}


def _parse_decimal(text: str) -> Decimal | None:
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def normalize_amount(value: Any) -> Decimal:
    """Return a finite, non-negative amount, or zero when none can be read.

    Strings such as ``"$1,234.56"`` are parsed directly when possible, and
    otherwise stripped down to digits and the decimal point. A sign or
    opening parenthesis before the first digit marks a negative amount.
    """
    if isinstance(value, bool) or value is None:
        return _ZERO
    if isinstance(value, Decimal):
        amount: Decimal | None = value
    elif isinstance(value, int | float):
        amount = _parse_decimal(str(value))
    elif isinstance(value, str):
        amount = _parse_decimal(value.strip())
        if amount is None:
            if _NEGATIVE_PREFIX_RE.match(value):
                return _ZERO
            amount = _parse_decimal(_AMOUNT_NOISE_RE.sub("", value))
    else:
        return _ZERO

    if amount is None or not amount.is_finite() or amount <= 0:
        return _ZERO
    return amount


def normalize_category(value: str | None) -> Category:
    """Map to the canonical category, ignoring case; unknown -> Others."""
    if not value:
        return Category.OTHERS
    return _CATEGORY_LOOKUP.get(value.strip().lower(), Category.OTHERS)


def normalize_date(value: str | None, today: date) -> date:
    """Parse an ISO date (or ISO datetime); fall back to ``today``."""
    if not value:
        return today
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return today


def normalize_type(value: str | None, mode: ExtractionMode) -> TransactionType:
    """Receipts are always expenses; history rows are income only if they say so."""
    if mode is ExtractionMode.SINGLE_RECEIPT:
        return TransactionType.EXPENSE
    if value and value.strip().lower() == TransactionType.INCOME.value:
        return TransactionType.INCOME
    return TransactionType.EXPENSE


def _clean_text(value: str | None) -> str:
    if not value:
        return ""
    text = value.strip()
    if text.lower() in NULL_WORDS:
        return ""
    return text


def _truncate(text: str, limit: int) -> str:
    return text[:limit].rstrip()


def _placeholder_title(mode: ExtractionMode) -> str:
    if mode is ExtractionMode.SINGLE_RECEIPT:
        return RECEIPT_PLACEHOLDER_TITLE
    return HISTORY_PLACEHOLDER_TITLE


def normalize_transaction(
    candidate: CandidateTransaction, mode: ExtractionMode, today: date
) -> ValidatedTransaction:
    """Coerce one candidate into a validated transaction."""
    vendor = _clean_text(candidate.vendor)
    title = _clean_text(candidate.title) or vendor or _placeholder_title(mode)

    description = _clean_text(candidate.description)
    if not description and candidate.items:
        description = ", ".join(filter(None, (i.strip() for i in candidate.items)))
    if not description and vendor and mode is ExtractionMode.SINGLE_RECEIPT:
        description = f"Purchase at {vendor}"

    return ValidatedTransaction(
        title=_truncate(title, TITLE_MAX_LENGTH),
        amount=normalize_amount(candidate.amount),
        date=normalize_date(candidate.date, today),
        category=normalize_category(candidate.category),
        type=normalize_type(candidate.type, mode),
        description=_truncate(description, DESCRIPTION_MAX_LENGTH),
    )


def normalize_all(
    candidates: Iterable[CandidateTransaction], mode: ExtractionMode, today: date
) -> list[ValidatedTransaction]:
    return [normalize_transaction(c, mode, today) for c in candidates]
