"""Store/platform drift detection and correction."""

from __future__ import annotations

from .gate import ReconciliationGate
from .report import Discrepancy, DiscrepancyKind, ReconciliationReport, ReconciliationResult
from .service import ReconciliationService

__all__ = [
    "Discrepancy",
    "DiscrepancyKind",
    "ReconciliationGate",
    "ReconciliationReport",
    "ReconciliationResult",
    "ReconciliationService",
]
