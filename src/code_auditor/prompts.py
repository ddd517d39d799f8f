"""Instructions and response schema sent to the audit engine."""

from typing import Any, Sequence

from .models import Finding

AUDIT_SYSTEM_INSTRUCTION = """You are a deep security audit engine. You use a formal 4-pass algorithm for every file:

ALGORITHM STEPS:
1. AST & SCOPE MAPPING: Identify all variables, function scopes, and external dependencies.
2. SOURCE-TO-SINK DATAFLOW: Trace every untrusted input (API params, file reads) to see if it reaches a sensitive sink (DB query, HTML render, system command) without validation.
3. RULE VALIDATION: Apply OWASP Top 10 and SANS 25 rules. Check for hardcoded secrets, insecure crypto, and logical flaws.
4. FALSE POSITIVE FILTER: Discard any finding that isn't exploitable in a real environment.

SCORING LOGIC:
- 100: No exploitable vulnerabilities.
- 80-99: Minor hygiene or best practice issues.
- 50-79: Moderate risks (High/Medium).
- 0-49: Critical exploitable flaws (RCE, SQLi, auth bypass).

REQUIREMENTS:
- Be extremely precise with line numbers (1-indexed).
- Include CWE IDs and OWASP categories where applicable.
- Confidence scores must reflect actual certainty (avoid 100 unless absolutely certain).
- Focus on exploitable vulnerabilities, not style issues.
- Consider the file context and language-specific security patterns.

If you fix a file, the resulting code MUST score 100 on a subsequent scan.
"""

FIX_SYSTEM_INSTRUCTION = """You are a senior security architect with expertise in secure coding practices.

YOUR MISSION:
1. Rewrite the code to ELIMINATE the vulnerabilities listed.
2. USE INDUSTRY STANDARDS (parameterized queries, CSRF tokens, input sanitization, proper authentication).
3. DO NOT BREAK FUNCTIONALITY: the business logic must remain identical.
4. MAINTAIN CODE STYLE: keep the original coding style and patterns where possible.
5. ADD SECURITY COMMENTS: include brief comments explaining security improvements.
6. VERIFICATION PASS: mentally scan your output. If an audit would find any new issue in your fix, restart the rewrite.
7. OUTPUT: return ONLY the remediated source code. No conversational text, no markdown formatting.
"""

AUDIT_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "score": {"type": "INTEGER", "description": "Overall security score 0-100."},
        "summary": {"type": "STRING", "description": "Executive summary of the audit (max 500 chars)."},
        "scanMetadata": {
            "type": "OBJECT",
            "properties": {
                "linesAnalyzed": {"type": "INTEGER"},
                "analysisTimeMs": {"type": "INTEGER"},
                "rulesApplied": {"type": "ARRAY", "items": {"type": "STRING"}},
            },
        },
        "vulnerabilities": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "severity": {"type": "STRING", "enum": ["Critical", "High", "Medium", "Low"]},
                    "lineStart": {"type": "INTEGER"},
                    "lineEnd": {"type": "INTEGER"},
                    "description": {"type": "STRING"},
                    "risk": {"type": "STRING"},
                    "attackScenario": {"type": "STRING"},
                    "fix": {"type": "STRING"},
                    "confidence": {"type": "INTEGER"},
                    "cweId": {"type": "STRING"},
                    "owaspCategory": {"type": "STRING"},
                },
                "required": [
                    "name",
                    "severity",
                    "lineStart",
                    "lineEnd",
                    "description",
                    "risk",
                    "attackScenario",
                    "fix",
                    "confidence",
                ],
            },
        },
    },
    "required": ["score", "summary", "vulnerabilities"],
}


def build_audit_prompt(code: str, file_name: str, timestamp: str) -> str:
    return (
        f'Perform a Deep Security Audit on file: "{file_name}"\n\n'
        f"File size: {len(code)} characters\n"
        f"Analysis timestamp: {timestamp}\n\n"
        f"CODE:\n{code}"
    )


def summarize_findings(findings: Sequence[Finding]) -> str:
    """One line per finding, in the form the fix instruction expects."""
    return "\n".join(
        f"- [{f.severity.value}] {f.name} (Lines {f.line_start}-{f.line_end}): {f.description}"
        for f in findings
    )


def build_fix_prompt(code: str, file_name: str, findings: Sequence[Finding]) -> str:
    return (
        f"FILE: {file_name}\n"
        f"VULNERABILITIES TO REMEDIATE:\n{summarize_findings(findings)}\n\n"
        f"ORIGINAL SOURCE CODE:\n{code}\n\n"
        "Please provide the secure, remediated version of this code."
    )
