"""Pydantic models for the code auditor.

Models serialize with camelCase keys, which is the shape the oracle returns
and the shape API clients send, while Python code uses snake_case names.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    """Severity levels for findings."""

    critical = "Critical"
    high = "High"
    medium = "Medium"
    low = "Low"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Finding(CamelModel):
    """A single vulnerability reported by the audit engine."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique identifier for this finding")
    name: str = Field(description="Short name of the vulnerability")
    severity: Severity = Field(description="Severity level")
    line_start: int = Field(ge=1, description="First affected line (1-indexed)")
    line_end: int = Field(ge=1, description="Last affected line (1-indexed)")
    description: str = Field(description="What is wrong")
    risk: str = Field(description="Impact if exploited")
    attack_scenario: str = Field(description="How an attacker would exploit it")
    fix: str = Field(description="How to remediate")
    confidence: int = Field(ge=0, le=100, description="Engine certainty, 0-100")
    cwe_id: Optional[str] = Field(default=None, description="CWE identifier, e.g. CWE-79")
    owasp_category: Optional[str] = Field(default=None, description="OWASP Top 10 category")

    @model_validator(mode="after")
    def _check_line_range(self) -> "Finding":
        if self.line_end < self.line_start:
            raise ValueError(
                f"lineEnd ({self.line_end}) must not be before lineStart ({self.line_start})"
            )
        return self


class ScanMetadata(CamelModel):
    """Optional bookkeeping the engine may attach to an audit."""

    model_config = ConfigDict(frozen=True)

    lines_analyzed: Optional[int] = None
    analysis_time_ms: Optional[int] = None
    rules_applied: tuple[str, ...] = ()


class AuditResult(CamelModel):
    """Result of auditing one file."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique identifier for this audit")
    file_name: str = Field(description="Name of the audited file")
    code: str = Field(description="The audited code, verbatim, for later fix requests")
    score: int = Field(ge=0, le=100, description="Overall security score 0-100")
    summary: str = Field(default="", description="Executive summary of the audit")
    timestamp: str = Field(description="ISO-8601 time the result was produced")
    findings: tuple[Finding, ...] = Field(default=(), description="Findings in engine order")
    scan_metadata: Optional[ScanMetadata] = Field(default=None, description="Engine metadata")


class AuditRequest(CamelModel):
    """Request body for auditing a code snippet."""

    code: str = Field(description="Source code to audit")
    file_name: str = Field(description="File name, used as context for the engine")
    client_id: Optional[str] = Field(default=None, description="Caller identity for rate limiting")
    skip_cache: bool = Field(default=False, description="Always call the engine, never the cache")


class FixRequest(CamelModel):
    """Request body for remediating previously reported findings."""

    code: str = Field(description="Source code to remediate")
    file_name: str = Field(description="File name, used as context for the engine")
    findings: list[Finding] = Field(default_factory=list, description="Findings to fix")


class FixResponse(CamelModel):
    """Remediated code returned by the fix pipeline."""

    fixed_code: str = Field(description="Remediated source code")


class AuditStats(CamelModel):
    """Read-only snapshot of orchestrator state."""

    cache_size: int = Field(description="Number of cached results")
    rate_limit_entries: int = Field(description="Number of clients with a rate window")
    config: dict[str, Any] = Field(default_factory=dict, description="Effective configuration")
