"""Runtime configuration for the code auditor.

All limits are read from environment variables so they can be tuned per
deployment without code changes.
"""

import logging
import os
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


class AuditConfig(BaseModel):
    """Limits and credentials for the audit pipeline."""

    model_config = ConfigDict(frozen=True)

    api_key: str | None = Field(default=None, description="Gemini API key", repr=False)
    model_id: str = Field(default="gemini-2.5-flash", description="Gemini model used for audits")
    oracle_provider: Literal["gemini", "mock"] = Field(
        default="gemini", description="Audit engine backend; mock runs offline"
    )
    max_code_size: int = Field(default=50_000, gt=0, description="Maximum code length in characters")
    rate_limit_per_minute: int = Field(default=10, gt=0, description="Requests allowed per client per window")
    rate_limit_window_seconds: float = Field(default=60.0, gt=0, description="Sliding window length")
    cache_ttl_ms: int = Field(default=5 * 60 * 1000, gt=0, description="Cached result lifetime")
    timeout_ms: int = Field(default=30_000, gt=0, description="Remote call timeout")
    max_retries: int = Field(default=0, ge=0, description="Extra attempts for transient upstream failures")
    retry_backoff_ms: int = Field(default=500, ge=0, description="Initial backoff between retries")
    cache_enabled: bool = Field(default=True, description="Serve and store results in the cache")
    rate_limit_enabled: bool = Field(default=True, description="Enforce the per-client request budget")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_ms / 1000.0

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "AuditConfig":
        """Build a config from environment variables.

        Args:
            env: Mapping to read from. Defaults to os.environ.

        Raises:
            ValueError: If a variable is set to something unparseable.
        """
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            api_key=env.get("GEMINI_API_KEY") or None,
            model_id=env.get("GEMINI_MODEL_ID") or defaults.model_id,
            oracle_provider=env.get("AUDIT_ORACLE_PROVIDER") or defaults.oracle_provider,
            max_code_size=_env_int(env, "AUDIT_MAX_CODE_SIZE", defaults.max_code_size),
            rate_limit_per_minute=_env_int(
                env, "AUDIT_RATE_LIMIT_PER_MINUTE", defaults.rate_limit_per_minute
            ),
            rate_limit_window_seconds=_env_int(
                env, "AUDIT_RATE_LIMIT_WINDOW_SECONDS", int(defaults.rate_limit_window_seconds)
            ),
            cache_ttl_ms=_env_int(env, "AUDIT_CACHE_TTL_MS", defaults.cache_ttl_ms),
            timeout_ms=_env_int(env, "AUDIT_TIMEOUT_MS", defaults.timeout_ms),
            max_retries=_env_int(env, "AUDIT_MAX_RETRIES", defaults.max_retries),
            retry_backoff_ms=_env_int(env, "AUDIT_RETRY_BACKOFF_MS", defaults.retry_backoff_ms),
            cache_enabled=_env_bool(env, "AUDIT_CACHE_ENABLED", defaults.cache_enabled),
            rate_limit_enabled=_env_bool(
                env, "AUDIT_RATE_LIMIT_ENABLED", defaults.rate_limit_enabled
            ),
        )

    def public_dict(self) -> dict[str, Any]:
        """Config values safe to expose (no credentials)."""
        data = self.model_dump(exclude={"api_key"})
        data["api_key_configured"] = bool(self.api_key)
        return data

    def validate_environment(self) -> list[str]:
        """Return a list of configuration problems, empty if none."""
        errors = []
        if self.oracle_provider == "mock":
            return errors
        if not self.api_key:
            errors.append("GEMINI_API_KEY is required but not set in environment variables")
        elif not self.api_key.startswith("AI"):
            # Gemini keys are issued with an "AI" prefix
            errors.append('GEMINI_API_KEY appears to have invalid format (should start with "AI")')
        return errors

    def log_config_status(self) -> None:
        """Log a startup summary of the effective configuration."""
        logger.info(
            "Code auditor configuration: provider=%s model=%s api_key=%s caching=%s rate_limit=%s",
            self.oracle_provider,
            self.model_id,
            "configured" if self.api_key else "missing",
            "enabled" if self.cache_enabled else "disabled",
            "enabled" if self.rate_limit_enabled else "disabled",
        )
        for problem in self.validate_environment():
            logger.warning(f"Configuration issue: {problem}")
