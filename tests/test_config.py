"""Tests for configuration and the error taxonomy."""

import pytest

from code_auditor.config import AuditConfig
from code_auditor.errors import (
    AuditError,
    CodeTooLarge,
    ErrorCategory,
    InvalidSeverity,
    RateLimitExceeded,
    Timeout,
    UpstreamUnavailable,
)


class TestAuditConfig:
    """Test AuditConfig.from_env."""

    def test_defaults(self):
        config = AuditConfig.from_env({})

        assert config.api_key is None
        assert config.max_code_size == 50_000
        assert config.rate_limit_per_minute == 10
        assert config.rate_limit_window_seconds == 60.0
        assert config.cache_ttl_ms == 300_000
        assert config.timeout_ms == 30_000
        assert config.max_retries == 0
        assert config.timeout_seconds == 30.0
        assert config.cache_ttl_seconds == 300.0

    def test_reads_environment(self):
        config = AuditConfig.from_env({
            "GEMINI_API_KEY": "AI-secret",
            "GEMINI_MODEL_ID": "gemini-2.5-pro",
            "AUDIT_MAX_CODE_SIZE": "1000",
            "AUDIT_RATE_LIMIT_PER_MINUTE": "3",
            "AUDIT_RATE_LIMIT_WINDOW_SECONDS": "30",
            "AUDIT_CACHE_TTL_MS": "60000",
            "AUDIT_TIMEOUT_MS": "5000",
            "AUDIT_MAX_RETRIES": "2",
            "AUDIT_CACHE_ENABLED": "false",
            "AUDIT_ORACLE_PROVIDER": "mock",
        })

        assert config.api_key == "AI-secret"
        assert config.model_id == "gemini-2.5-pro"
        assert config.max_code_size == 1000
        assert config.rate_limit_per_minute == 3
        assert config.rate_limit_window_seconds == 30.0
        assert config.cache_ttl_ms == 60_000
        assert config.timeout_ms == 5000
        assert config.max_retries == 2
        assert config.cache_enabled is False
        assert config.rate_limit_enabled is True
        assert config.oracle_provider == "mock"

    def test_rejects_bad_integer(self):
        with pytest.raises(ValueError, match="AUDIT_TIMEOUT_MS"):
            AuditConfig.from_env({"AUDIT_TIMEOUT_MS": "soon"})

    def test_rejects_bad_boolean(self):
        with pytest.raises(ValueError, match="AUDIT_CACHE_ENABLED"):
            AuditConfig.from_env({"AUDIT_CACHE_ENABLED": "maybe"})

    def test_rejects_non_positive_limits(self):
        with pytest.raises(ValueError):
            AuditConfig.from_env({"AUDIT_MAX_CODE_SIZE": "0"})

    def test_public_dict_hides_key(self):
        data = AuditConfig(api_key="AI-secret").public_dict()

        assert "api_key" not in data
        assert data["api_key_configured"] is True
        assert "AI-secret" not in repr(AuditConfig(api_key="AI-secret"))

    def test_validate_environment(self):
        assert AuditConfig(api_key="AI-ok").validate_environment() == []
        assert len(AuditConfig().validate_environment()) == 1
        assert "invalid format" in AuditConfig(api_key="sk-wrong").validate_environment()[0]
        assert AuditConfig(oracle_provider="mock").validate_environment() == []


class TestErrors:
    """Test the error taxonomy."""

    def test_to_dict(self):
        error = CodeTooLarge(size=60_000, limit=50_000)

        assert error.to_dict() == {
            "code": "CODE_TOO_LARGE",
            "message": "Code size 60000 exceeds limit of 50000 characters",
            "category": "input",
            "retryable": False,
            "details": {"size": 60_000, "limit": 50_000},
        }

    def test_only_transient_errors_are_retryable(self):
        assert Timeout(timeout_seconds=30).to_dict()["retryable"] is True
        assert Timeout(timeout_seconds=30).retryable
        assert UpstreamUnavailable(cause="down").retryable
        assert not RateLimitExceeded(limit=10, window_seconds=60).retryable
        assert not InvalidSeverity("Info").retryable

    def test_errors_support_pattern_matching(self):
        def describe(error: AuditError) -> str:
            match error:
                case CodeTooLarge(size, limit):
                    return f"too large: {size}/{limit}"
                case RateLimitExceeded(limit, window):
                    return f"slow down: {limit} per {window:g}s"
                case _:
                    return error.code

        assert describe(CodeTooLarge(size=11, limit=10)) == "too large: 11/10"
        assert describe(RateLimitExceeded(limit=10, window_seconds=60)) == "slow down: 10 per 60s"
        assert describe(Timeout(timeout_seconds=1)) == "TIMEOUT"

    def test_categories(self):
        assert Timeout(timeout_seconds=1).category is ErrorCategory.transient
        assert InvalidSeverity("x").category is ErrorCategory.engine
