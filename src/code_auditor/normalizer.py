"""Validation and reshaping of raw audit engine output.

The engine is untrusted for shape: everything it returns is checked before
it becomes an AuditResult or a remediated file.
"""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from .errors import EmptyFix, IncompleteFix, InvalidScore, InvalidSeverity, MalformedResponse
from .models import AuditResult, Finding, ScanMetadata, Severity

logger = logging.getLogger(__name__)

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.IGNORECASE | re.DOTALL)
_FENCE = "```"
_LANGUAGE_TAG_RE = re.compile(r"^[A-Za-z][\w+#.-]*[ \t]*\n")
_SEVERITY_BY_NAME = {s.value.lower(): s for s in Severity}


def _extract_json_payload(text: str) -> str | None:
    candidate = text.strip()
    if not candidate:
        return None

    try:
        if isinstance(json.loads(candidate), dict):
            return candidate
    except json.JSONDecodeError:
        pass

    # A fenced block may be the whole payload or just code quoted inside it
    scopes = [candidate]
    fenced_match = _FENCED_JSON_RE.search(candidate)
    if fenced_match:
        scopes.insert(0, fenced_match.group(1).strip())

    decoder = json.JSONDecoder()
    for scope in scopes:
        for match in re.finditer(r"\{", scope):
            snippet = scope[match.start():]
            try:
                data, end = decoder.raw_decode(snippet)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                return snippet[:end]

    return None


def parse_engine_json(raw: str) -> dict[str, Any]:
    """Extract the JSON object from an engine response.

    Raises:
        MalformedResponse: If no JSON object can be found.
    """
    if not raw or not raw.strip():
        raise MalformedResponse("empty response")

    payload = _extract_json_payload(raw)
    if payload is None:
        logger.error("No JSON object in engine response: %s", raw[:500])
        raise MalformedResponse("no JSON object found")

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(str(exc)) from exc

    if not isinstance(data, dict):
        raise MalformedResponse("response JSON must be an object")
    return data


def coerce_severity(value: Any) -> Severity:
    """Map a severity string onto the enum, ignoring case.

    Raises:
        InvalidSeverity: For anything that is not one of the four levels.
    """
    if isinstance(value, str):
        severity = _SEVERITY_BY_NAME.get(value.strip().lower())
        if severity is not None:
            return severity
    raise InvalidSeverity(value)


def _check_score(data: dict[str, Any]) -> int:
    score = data.get("score")
    # bool is an int subclass; true/false is not a score
    if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100:
        raise InvalidScore(score)
    return score


def _normalize_finding(item: Any, index: int) -> Finding:
    if not isinstance(item, dict):
        raise MalformedResponse(f"finding {index} is not an object")

    severity = coerce_severity(item.get("severity"))
    try:
        return Finding.model_validate(
            {**item, "id": str(uuid.uuid4()), "severity": severity}
        )
    except ValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in error["loc"]) or "finding"
        raise MalformedResponse(f"finding {index}: {location}: {error['msg']}") from e


def _normalize_metadata(value: Any) -> Optional[ScanMetadata]:
    if value is None:
        return None
    try:
        return ScanMetadata.model_validate(value)
    except ValidationError as e:
        logger.warning(f"Dropping unusable scanMetadata from engine response: {e}")
        return None


def normalize_scan(raw: str, code: str, file_name: str) -> AuditResult:
    """Turn the engine's audit JSON into an AuditResult.

    Args:
        raw: Raw engine response text.
        code: The audited code, echoed into the result.
        file_name: The audited file name.

    Raises:
        MalformedResponse: If the response is not a well-formed audit object.
        InvalidScore: If score is not an integer in [0, 100].
        InvalidSeverity: If a finding has an unknown severity.
    """
    data = parse_engine_json(raw)
    score = _check_score(data)

    raw_findings = data.get("vulnerabilities")
    if raw_findings is None:
        raw_findings = []
    if not isinstance(raw_findings, list):
        raise MalformedResponse("vulnerabilities must be a list")

    summary = data.get("summary")
    if summary is None:
        summary = ""
    if not isinstance(summary, str):
        raise MalformedResponse("summary must be a string")

    findings = tuple(_normalize_finding(item, i) for i, item in enumerate(raw_findings))

    return AuditResult(
        id=str(uuid.uuid4()),
        file_name=file_name,
        code=code,
        score=score,
        summary=summary,
        timestamp=datetime.now(timezone.utc).isoformat(),
        findings=findings,
        scan_metadata=_normalize_metadata(data.get("scanMetadata")),
    )


def strip_code_fence(text: str) -> str:
    """Return the contents of the first fenced block, without its language tag.

    Text without a complete fenced block is returned unchanged.
    """
    if _FENCE not in text:
        return text
    blocks = text.split(_FENCE)
    if len(blocks) < 3:
        return text
    return _LANGUAGE_TAG_RE.sub("", blocks[1], count=1)


def normalize_fix(raw: str, original_code: str) -> str:
    """Clean up remediated code returned by the engine.

    Raises:
        EmptyFix: If nothing is left after trimming.
        IncompleteFix: If the fix is less than half the original length.
    """
    cleaned = strip_code_fence(raw or "").strip()
    if not cleaned:
        raise EmptyFix()

    # Heuristic guard against truncated answers
    if len(cleaned) < len(original_code) * 0.5:
        raise IncompleteFix(length=len(cleaned), original_length=len(original_code))

    return cleaned
