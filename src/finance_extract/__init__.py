"""Receipt and transaction-history extraction for the finance tracker."""

from __future__ import annotations

__version__ = "0.1.0"
