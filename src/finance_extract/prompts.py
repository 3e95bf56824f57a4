"""Static extraction instructions, one per extraction mode."""

from __future__ import annotations

from finance_extract.models import Category, ExtractionMode

_CATEGORIES = ", ".join(category.value for category in Category)

RECEIPT_PROMPT = f"""\
Extract the following information from this receipt:
1. vendor: the store or business name (string)
2. date: the date of purchase (string, YYYY-MM-DD)
3. amount: the total amount paid (number)
4. items: the items purchased (list of strings)
5. category: exactly one of {_CATEGORIES}
6. title: a short descriptive title for this expense (string)
7. description: a brief summary of the purchase (string)

Format the response as a single JSON object with these fields:
{{
  "vendor": "Store name",
  "date": "YYYY-MM-DD",
  "amount": number,
  "items": ["item1", "item2"],
  "category": "category name",
  "title": "Short title",
  "description": "Brief summary"
}}

If you cannot determine a field, use null for that field. Do not omit \
fields and do not guess values that are not on the receipt.\
"""

HISTORY_PROMPT = f"""\
The uploaded document contains a table of financial transactions. Extract \
each row as a transaction object with the following fields:
- title: string (short description or merchant name)
- amount: number
- type: "income" or "expense"
- date: string (YYYY-MM-DD)
- category: string, exactly one of {_CATEGORIES}
- description: string (details about the transaction)

Return a JSON array with one object per row, in the order the rows appear. \
If a field is missing for a row, use null for that field. Example:
[
  {{"title": "Starbucks", "amount": 250, "type": "expense", "date": "2024-06-01", \
"category": "Food", "description": "Coffee"}}
]\
"""

_PROMPTS = {
    ExtractionMode.SINGLE_RECEIPT: RECEIPT_PROMPT,
    ExtractionMode.HISTORY_BATCH: HISTORY_PROMPT,
}


def build_prompt(mode: ExtractionMode) -> str:
    """Return the instruction for the given extraction mode."""
    return _PROMPTS[mode]
