"""Job summary generation services."""

from .exceptions import SummaryServiceError
from .orchestrator import SummaryOrchestrator, get_summary_orchestrator


__all__ = [
    "SummaryOrchestrator",
    "SummaryServiceError",
    "get_summary_orchestrator",
]
