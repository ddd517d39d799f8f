"""AI-backed security audits of source code snippets."""

from .config import AuditConfig
from .models import AuditResult, Finding, Severity
from .orchestrator import AuditOrchestrator

__all__ = ["AuditConfig", "AuditOrchestrator", "AuditResult", "Finding", "Severity"]
