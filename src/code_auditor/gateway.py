"""Remote audit gateway: calls the audit engine under a timeout."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Optional, Sequence

import httpx
from google.genai import errors as genai_errors

from .config import AuditConfig
from .errors import (
    AuditError,
    InvalidCredential,
    MissingCredential,
    Timeout,
    UpstreamRateLimited,
    UpstreamUnavailable,
)
from .llm import AuditOracle, GeminiOracle, MockOracle
from .models import Finding
from .prompts import (
    AUDIT_RESPONSE_SCHEMA,
    AUDIT_SYSTEM_INSTRUCTION,
    FIX_SYSTEM_INSTRUCTION,
    build_audit_prompt,
    build_fix_prompt,
)

logger = logging.getLogger(__name__)


def _status_of(exc: BaseException) -> Optional[int]:
    """Best-effort HTTP status of an engine or transport error."""
    if isinstance(exc, genai_errors.APIError):
        return exc.code
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def classify_upstream_error(exc: BaseException) -> AuditError:
    """Map an exception raised by the engine client onto the error taxonomy."""
    status = _status_of(exc)
    if status == 429:
        return UpstreamRateLimited()
    if status in (401, 403):
        return InvalidCredential()
    # Gemini answers 400 INVALID_ARGUMENT for a malformed key
    if status == 400 and "api key" in str(exc).lower():
        return InvalidCredential()
    return UpstreamUnavailable(cause=f"{type(exc).__name__}: {exc}")


def _discard(task: "asyncio.Future[str]") -> None:
    # Retrieve the abandoned call's outcome so asyncio does not warn about it
    if not task.cancelled():
        task.exception()


class AuditGateway:
    """Invokes the audit engine for scan and fix requests.

    Every call is raced against the configured timeout. The gateway makes a
    single attempt; retry policy belongs to the caller.
    """

    def __init__(self, config: AuditConfig, oracle: Optional[AuditOracle] = None):
        """
        Args:
            config: Limits and credentials.
            oracle: Engine to call. When omitted, one is built from config on
                first use, which requires a configured API key.
        """
        self.config = config
        self._oracle = oracle

    def _get_oracle(self) -> AuditOracle:
        if self._oracle is not None:
            return self._oracle
        if self.config.oracle_provider == "mock":
            self._oracle = MockOracle()
        else:
            if not self.config.api_key:
                raise MissingCredential()
            self._oracle = GeminiOracle(api_key=self.config.api_key, model=self.config.model_id)
        return self._oracle

    async def scan(self, code: str, file_name: str) -> str:
        """Ask the engine to audit code. Returns the raw JSON text."""
        oracle = self._get_oracle()
        prompt = build_audit_prompt(code, file_name, datetime.now(timezone.utc).isoformat())
        return await self._call(
            oracle.generate(prompt, AUDIT_SYSTEM_INSTRUCTION, AUDIT_RESPONSE_SCHEMA),
            operation="scan",
        )

    async def fix(self, code: str, file_name: str, findings: Sequence[Finding]) -> str:
        """Ask the engine to remediate findings. Returns the raw text."""
        oracle = self._get_oracle()
        prompt = build_fix_prompt(code, file_name, findings)
        return await self._call(
            oracle.generate(prompt, FIX_SYSTEM_INSTRUCTION),
            operation="fix",
        )

    async def _call(self, call: Awaitable[str], operation: str) -> str:
        try:
            return await self._race(call, operation)
        except AuditError:
            raise
        except Exception as e:
            error = classify_upstream_error(e)
            logger.error(f"Audit engine {operation} failed: {error.code} ({e})")
            raise error from e

    async def _race(self, call: Awaitable[str], operation: str) -> str:
        """Return the engine's answer, or raise Timeout if the timer wins.

        On timeout the engine task is cancelled and left to finish on its own;
        it is never awaited again.
        """
        timeout = self.config.timeout_seconds
        task = asyncio.ensure_future(call)
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task not in done:
            task.cancel()
            task.add_done_callback(_discard)
            logger.warning(f"Audit engine {operation} timed out after {timeout:g}s")
            raise Timeout(timeout_seconds=timeout, operation=operation)

        return task.result()
