"""Shared fixtures for code-auditor tests."""

import asyncio
import json
from typing import Any, Optional

import pytest

from code_auditor.config import AuditConfig
from code_auditor.llm import AuditOracle
from code_auditor.orchestrator import AuditOrchestrator


SAMPLE_CODE = """const express = require('express');
const app = express();
app.get('/user', (req, res) => {
  db.query("SELECT * FROM users WHERE id = " + req.query.id);
});
"""


def sample_vulnerability(**overrides: Any) -> dict[str, Any]:
    vulnerability = {
        "name": "SQL Injection",
        "severity": "Critical",
        "lineStart": 4,
        "lineEnd": 4,
        "description": "User input is concatenated into a SQL query",
        "risk": "Full database compromise",
        "attackScenario": "GET /user?id=1 OR 1=1",
        "fix": "Use parameterized queries",
        "confidence": 95,
        "cweId": "CWE-89",
        "owaspCategory": "A03:2021-Injection",
    }
    vulnerability.update(overrides)
    return vulnerability


def engine_response(score: Any = 40, vulnerabilities: Optional[list] = None, **extra: Any) -> str:
    data = {
        "score": score,
        "summary": "One critical injection flaw",
        "vulnerabilities": [sample_vulnerability()] if vulnerabilities is None else vulnerabilities,
    }
    data.update(extra)
    return json.dumps(data)


class FakeOracle(AuditOracle):
    """Scripted engine: returns (or raises) queued responses in order."""

    def __init__(self, *responses: Any, delay: float = 0.0):
        self.responses = list(responses)
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def generate(self, prompt, system_instruction, response_schema=None) -> str:
        self.calls.append({
            "prompt": prompt,
            "system_instruction": system_instruction,
            "response_schema": response_schema,
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return response


class FakeClock:
    """Manually advanced clock for TTL and window tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config():
    return AuditConfig(api_key="AI-test-key", timeout_ms=1000)


@pytest.fixture
def oracle():
    return FakeOracle(engine_response())


@pytest.fixture
def orchestrator(config, oracle):
    return AuditOrchestrator(config, oracle=oracle)


@pytest.fixture
def clock():
    return FakeClock()
