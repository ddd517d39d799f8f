"""Audit request orchestration.

Composes validation, rate limiting, caching, the remote gateway and response
normalization into the scan and fix pipelines, and owns the error taxonomy
surfaced to callers.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence

from .cache import ResultCache, fingerprint_of
from .config import AuditConfig
from .errors import AuditError, NoFindings, TransientError
from .gateway import AuditGateway
from .llm import AuditOracle
from .models import AuditResult, AuditStats, Finding
from .normalizer import normalize_fix, normalize_scan
from .rate_limiter import SlidingWindowRateLimiter
from .validation import validate_input

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_ID = "default"


class PipelineState(str, Enum):
    """Stages a request moves through. FAILED and DONE are terminal."""

    VALIDATING = "validating"
    RATE_CHECKING = "rate_checking"
    CACHE_LOOKUP = "cache_lookup"
    CHECKING_FINDINGS = "checking_findings"
    CALLING = "calling"
    NORMALIZING = "normalizing"
    CACHING = "caching"
    DONE = "done"
    FAILED = "failed"


class _Pipeline:
    """Tracks the current state of one request for logging."""

    def __init__(self, name: str, file_name: str):
        self.name = name
        self.file_name = file_name
        self.state = PipelineState.VALIDATING

    def enter(self, state: PipelineState) -> None:
        logger.debug(f"{self.name} {self.file_name}: {self.state.value} -> {state.value}")
        self.state = state

    def fail(self, error: AuditError) -> None:
        logger.warning(
            f"{self.name} {self.file_name} failed while {self.state.value}: "
            f"{error.code} ({error.message})"
        )
        self.state = PipelineState.FAILED


class AuditOrchestrator:
    """Runs scan and fix requests against the audit engine.

    The cache and rate limiter are owned by the instance: they start empty and
    are emptied by clear(). Pass them in to share or inspect them.
    """

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        oracle: Optional[AuditOracle] = None,
        cache: Optional[ResultCache] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        gateway: Optional[AuditGateway] = None,
    ):
        self.config = config or AuditConfig()
        self.cache = cache or ResultCache(ttl_seconds=self.config.cache_ttl_seconds)
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            max_requests=self.config.rate_limit_per_minute,
            window_seconds=self.config.rate_limit_window_seconds,
        )
        self.gateway = gateway or AuditGateway(self.config, oracle=oracle)

    async def scan(
        self,
        code: str,
        file_name: str,
        client_id: Optional[str] = None,
        skip_cache: bool = False,
    ) -> AuditResult:
        """
        Audit a code snippet.

        Args:
            code: Source code to audit.
            file_name: Name of the file, passed to the engine as context.
            client_id: Caller identity for rate limiting.
            skip_cache: Bypass both cache lookup and cache store.

        Returns:
            The normalized audit result. Identical inputs within the cache TTL
            return the same result without calling the engine.

        Raises:
            AuditError: Any failure, classified by kind.
        """
        started = time.perf_counter()
        client_id = client_id or DEFAULT_CLIENT_ID
        use_cache = self.config.cache_enabled and not skip_cache
        pipeline = _Pipeline("scan", file_name)

        try:
            validate_input(code, file_name, self.config.max_code_size)

            pipeline.enter(PipelineState.RATE_CHECKING)
            if self.config.rate_limit_enabled:
                self.rate_limiter.check_and_record(client_id)

            cache_key = fingerprint_of(code, file_name) if use_cache else None
            if cache_key is not None:
                pipeline.enter(PipelineState.CACHE_LOOKUP)
                cached = self.cache.get(cache_key)
                if cached is not None:
                    logger.info(f"Returning cached result for {file_name}")
                    pipeline.enter(PipelineState.DONE)
                    return cached

            pipeline.enter(PipelineState.CALLING)
            raw = await self._with_retry("scan", lambda: self.gateway.scan(code, file_name))

            pipeline.enter(PipelineState.NORMALIZING)
            result = normalize_scan(raw, code, file_name)

            if cache_key is not None:
                pipeline.enter(PipelineState.CACHING)
                self.cache.put(cache_key, result)

            pipeline.enter(PipelineState.DONE)
        except AuditError as e:
            pipeline.fail(e)
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Analysis of {file_name} completed in {elapsed_ms:.0f}ms "
            f"(score {result.score}, {len(result.findings)} findings)"
        )
        return result

    async def fix(self, code: str, file_name: str, findings: Sequence[Finding]) -> str:
        """
        Ask the engine to remediate findings in code.

        The fix pipeline never touches the cache or the rate limiter.

        Returns:
            The remediated source code.

        Raises:
            NoFindings: If findings is empty; raised before any remote call.
            AuditError: Any other failure, classified by kind.
        """
        pipeline = _Pipeline("fix", file_name)

        try:
            validate_input(code, file_name, self.config.max_code_size)

            pipeline.enter(PipelineState.CHECKING_FINDINGS)
            if not findings:
                raise NoFindings()

            pipeline.enter(PipelineState.CALLING)
            raw = await self._with_retry(
                "fix", lambda: self.gateway.fix(code, file_name, findings)
            )

            pipeline.enter(PipelineState.NORMALIZING)
            fixed = normalize_fix(raw, code)

            pipeline.enter(PipelineState.DONE)
        except AuditError as e:
            pipeline.fail(e)
            raise

        logger.info(f"Generated fix for {file_name} ({len(findings)} findings)")
        return fixed

    async def _with_retry(self, operation: str, call: Callable[[], Awaitable[str]]) -> str:
        """Run call, retrying transient failures up to config.max_retries times."""
        attempt = 0
        while True:
            try:
                return await call()
            except TransientError as e:
                if attempt >= self.config.max_retries:
                    raise
                delay = (self.config.retry_backoff_ms / 1000.0) * (2 ** attempt)
                attempt += 1
                logger.warning(
                    f"{operation} attempt {attempt} failed with {e.code}; "
                    f"retrying in {delay:.2f}s ({attempt}/{self.config.max_retries})"
                )
                await asyncio.sleep(delay)

    def stats(self) -> AuditStats:
        """Snapshot of cache and rate limiter sizes plus the effective config."""
        return AuditStats(
            cache_size=self.cache.size(),
            rate_limit_entries=self.rate_limiter.size(),
            config=self.config.public_dict(),
        )

    def clear(self) -> None:
        """Empty the cache and every rate limit window."""
        self.cache.clear()
        self.rate_limiter.clear()
