from abc import ABC, abstractmethod
from typing import Any, Optional


class AuditOracle(ABC):
    """Abstract base class for the remote reasoning service."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        response_schema: Optional[dict[str, Any]] = None,
    ) -> str:
        """Send a prompt to the engine and return its raw text answer.

        When response_schema is given the engine is asked for JSON matching it.
        """
        pass
