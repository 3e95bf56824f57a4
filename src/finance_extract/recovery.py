"""Recover structured transactions from free-form model output.

The model is asked for JSON but nothing guarantees it: replies may wrap the
payload in prose or Markdown, or abandon JSON altogether. Recovery runs an
ordered cascade of pure strategies, strictest first, and keeps the first
structurally valid result:

1. ``reject_blank`` - an empty reply is unrecoverable, stop immediately
2. ``fenced_block`` - parse the body of a ```` ``` ```` / ```` ```json ```` block
3. ``bracket_scan`` - parse the first balanced ``{...}`` or ``[...]`` span
4. ``field_regex`` - scrape labelled fields (single receipts only)

Results are never merged across strategies.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from finance_extract.errors import NoStructuredDataFound, NoTransactionsExtracted
from finance_extract.models import NULL_WORDS, CandidateTransaction, ExtractionMode

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StructuredOk:
    """A strategy produced a value of the expected shape."""

    value: dict[str, Any] | list[Any]
    strategy: str


@dataclass(frozen=True)
class NeedsFallback:
    """A strategy found nothing usable; the next one should run."""

    reason: str


@dataclass(frozen=True)
class Unrecoverable:
    """No strategy can help; the cascade stops."""

    reason: str


ParseOutcome = StructuredOk | NeedsFallback | Unrecoverable
Strategy = Callable[[str, ExtractionMode], ParseOutcome]

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)

# Field name -> labels that may introduce its value, in priority order.
_FIELD_LABELS: dict[str, tuple[str, ...]] = {
    "vendor": ("vendor", "store", "merchant"),
    "title": ("title",),
    "date": ("date",),
    "amount": ("amount", "total"),
    "category": ("category",),
    "description": ("description", "summary"),
}


def _label_pattern(label: str) -> re.Pattern[str]:
    # Tolerates markdown emphasis around the label, as in "**Total:** 12.50".
    return re.compile(
        rf"\b{label}\b[*_]*[\"']?\s*[:=][*_]*\s*[\"']?([^\"',\n{{}}]+)",
        re.IGNORECASE,
    )


_LABEL_PATTERNS = {
    field: tuple(_label_pattern(label) for label in labels)
    for field, labels in _FIELD_LABELS.items()
}


def _expects_array(mode: ExtractionMode) -> bool:
    return mode is ExtractionMode.HISTORY_BATCH


def _parse_shaped(
    text: str, mode: ExtractionMode
) -> dict[str, Any] | list[Any] | None:
    """Parse JSON text, returning it only if it has the shape the mode expects."""
    try:
        value = json.loads(text)
    except ValueError:
        return None
    expected = list if _expects_array(mode) else dict
    if isinstance(value, expected):
        return value  # type: ignore[no-any-return]
    return None


def reject_blank(text: str, mode: ExtractionMode) -> ParseOutcome:
    if not text.strip():
        return Unrecoverable("model reply is empty")
    return NeedsFallback("reply is not blank")


def fenced_block(text: str, mode: ExtractionMode) -> ParseOutcome:
    """Parse the first fenced code block whose body has the expected shape."""
    blocks = 0
    for match in _FENCE_RE.finditer(text):
        blocks += 1
        value = _parse_shaped(match.group(1), mode)
        if value is not None:
            return StructuredOk(value, "fenced_block")
    if blocks:
        return NeedsFallback(f"{blocks} fenced block(s) did not parse")
    return NeedsFallback("no fenced block")


def _bracket_pairs(text: str, opener: str, closer: str) -> dict[int, int]:
    """Map each closed opener's index to its closer's, in one pass.

    Quotes are only tracked inside an open bracket, so stray quotes in the
    surrounding prose do not hide brackets. Unclosed openers stay unmatched.
    """
    pairs: dict[int, int] = {}
    stack: list[int] = []
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = bool(stack)
        elif char == opener:
            stack.append(index)
        elif char == closer and stack:
            pairs[stack.pop()] = index
    return pairs


def _balanced_spans(text: str, opener: str, closer: str) -> Iterator[str]:
    """Yield top-level balanced spans, earliest opener first."""
    pairs = _bracket_pairs(text, opener, closer)
    covered_until = -1
    for start in sorted(pairs):
        if start > covered_until:
            covered_until = pairs[start]
            yield text[start : covered_until + 1]


def bracket_scan(text: str, mode: ExtractionMode) -> ParseOutcome:
    """Parse the earliest balanced object (or array) span in the raw text."""
    opener, closer = ("[", "]") if _expects_array(mode) else ("{", "}")
    spans = 0
    for span in _balanced_spans(text, opener, closer):
        spans += 1
        value = _parse_shaped(span, mode)
        if value is not None:
            return StructuredOk(value, "bracket_scan")
    if spans:
        return NeedsFallback(f"{spans} bracketed span(s) did not parse")
    return NeedsFallback(f"no balanced {opener}{closer} span")


def scrape_fields(text: str) -> dict[str, str]:
    """Collect ``label: value`` pairs for every known field found in text."""
    found: dict[str, str] = {}
    for field, patterns in _LABEL_PATTERNS.items():
        for pattern in patterns:
            match = pattern.search(text)
            if match is None:
                continue
            value = match.group(1).strip(" \t*_")
            if value.lower() in NULL_WORDS:
                continue
            found[field] = value
            break
    return found


def field_regex(text: str, mode: ExtractionMode) -> ParseOutcome:
    """Last resort for single receipts: scrape whatever labelled fields exist."""
    if _expects_array(mode):
        return NeedsFallback("field scraping does not apply to history batches")
    fields = scrape_fields(text)
    if not fields:
        return NeedsFallback("no labelled fields")
    return StructuredOk(fields, "field_regex")


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    reject_blank,
    fenced_block,
    bracket_scan,
    field_regex,
)


def run_cascade(
    text: str,
    mode: ExtractionMode,
    strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
) -> ParseOutcome:
    """Run strategies in order; return the first success or the final failure."""
    for strategy in strategies:
        outcome: ParseOutcome = strategy(text, mode)
        if isinstance(outcome, StructuredOk):
            logger.info("Recovered %s output via %s", mode.value, outcome.strategy)
            return outcome
        if isinstance(outcome, Unrecoverable):
            logger.debug(
                "Recovery stopped at %s: %s", strategy.__name__, outcome.reason
            )
            return outcome
        logger.debug(
            "Recovery fell through %s: %s", strategy.__name__, outcome.reason
        )
    return NeedsFallback("all recovery strategies exhausted")


def recover_single(text: str) -> CandidateTransaction:
    """Recover one candidate transaction from a single-receipt reply."""
    outcome = run_cascade(text, ExtractionMode.SINGLE_RECEIPT)
    if not isinstance(outcome, StructuredOk):
        msg = f"Could not extract structured data: {outcome.reason}"
        raise NoStructuredDataFound(msg)

    candidate = CandidateTransaction.model_validate(outcome.value)
    if candidate.is_empty():
        msg = "Could not extract structured data: no fields recovered"
        raise NoStructuredDataFound(msg)
    return candidate


def recover_batch(text: str) -> list[CandidateTransaction]:
    """Recover every candidate transaction from a history-batch reply."""
    outcome = run_cascade(text, ExtractionMode.HISTORY_BATCH)
    if not isinstance(outcome, StructuredOk):
        msg = f"Could not extract a transaction array: {outcome.reason}"
        raise NoStructuredDataFound(msg)

    candidates: list[CandidateTransaction] = []
    for index, row in enumerate(outcome.value):
        if not isinstance(row, dict):
            logger.debug("Skipping non-object row %d: %r", index, row)
            continue
        candidates.append(CandidateTransaction.model_validate(row))

    if not candidates:
        msg = "Failed to extract transactions from the document"
        raise NoTransactionsExtracted(msg)
    return candidates
