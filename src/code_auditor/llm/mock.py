import json
import re
from typing import Any, Optional

from ..validation import SUSPICIOUS_PATTERNS
from .base import AuditOracle

_CODE_SECTION_RE = re.compile(
    r"(?:ORIGINAL SOURCE CODE|CODE):\n(.*?)(?:\n\nPlease provide the secure|\Z)", re.DOTALL
)


class MockOracle(AuditOracle):
    """Offline engine for development and testing."""

    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        response_schema: Optional[dict[str, Any]] = None,
    ) -> str:
        match = _CODE_SECTION_RE.search(prompt)
        code = match.group(1) if match else ""

        if response_schema is None:
            # Fix requests: hand the code back unchanged
            return code

        # Simple pattern-based mock analysis
        vulnerabilities = []
        for line_no, line in enumerate(code.splitlines(), start=1):
            for name, pattern in SUSPICIOUS_PATTERNS.items():
                if pattern.search(line):
                    vulnerabilities.append({
                        "name": name.replace("_", " ").title(),
                        "severity": "High",
                        "lineStart": line_no,
                        "lineEnd": line_no,
                        "description": f"Mock detection of {name}",
                        "risk": "Untrusted input may reach a dangerous sink",
                        "attackScenario": "Attacker-controlled data is evaluated or rendered",
                        "fix": "Avoid dynamic evaluation and raw HTML injection",
                        "confidence": 50,
                        "cweId": "CWE-95" if name == "eval_call" else "CWE-79",
                    })

        return json.dumps({
            "score": max(0, 100 - 20 * len(vulnerabilities)),
            "summary": f"Mock analysis ({len(code)} chars, {len(vulnerabilities)} findings)",
            "vulnerabilities": vulnerabilities,
        })
