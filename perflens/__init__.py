"""perflens: LLM-driven performance review for frontend code bases."""

from .audit import AuditContext
from .config import AnalysisLimits
from .models import AnalysisResult, Issue, Severity
from .orchestrator import Orchestrator, analyze
from .scheduling import CancellationToken

__all__ = [
    "AnalysisLimits",
    "AnalysisResult",
    "AuditContext",
    "CancellationToken",
    "Issue",
    "Orchestrator",
    "Severity",
    "analyze",
]

__version__ = "0.1.0"
