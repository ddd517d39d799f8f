from .base import AuditOracle
from .mock import MockOracle
from .gemini import GeminiOracle

__all__ = ["AuditOracle", "MockOracle", "GeminiOracle"]
