"""Input validation for audit and fix requests."""

import logging
import re

from .errors import CodeTooLarge, EmptyCode, EmptyFileName

logger = logging.getLogger(__name__)

# Markers for dynamic evaluation and raw HTML injection. Matches are logged
# for the audit trail and never block a request.
SUSPICIOUS_PATTERNS: dict[str, re.Pattern[str]] = {
    "eval_call": re.compile(r"eval\s*\(", re.IGNORECASE),
    "document_write": re.compile(r"document\.write\s*\(", re.IGNORECASE),
    "inner_html_assignment": re.compile(r"innerHTML\s*=", re.IGNORECASE),
    "dangerously_set_inner_html": re.compile(r"dangerouslySetInnerHTML", re.IGNORECASE),
}


def find_suspicious_markers(code: str) -> list[str]:
    """Return the names of suspicious markers present in the code."""
    return [name for name, pattern in SUSPICIOUS_PATTERNS.items() if pattern.search(code)]


def validate_input(code: str, file_name: str, max_code_size: int) -> None:
    """Reject malformed requests before any resource is consumed.

    Args:
        code: Source code submitted for analysis.
        file_name: Name of the submitted file.
        max_code_size: Maximum allowed code length in characters.

    Raises:
        EmptyCode: If code is empty or whitespace only.
        CodeTooLarge: If code is longer than max_code_size.
        EmptyFileName: If file_name is empty.
    """
    if not code or not code.strip():
        raise EmptyCode()

    if len(code) > max_code_size:
        raise CodeTooLarge(size=len(code), limit=max_code_size)

    if not file_name or not file_name.strip():
        raise EmptyFileName()

    markers = find_suspicious_markers(code)
    if markers:
        logger.warning(f"Suspicious content detected in {file_name}: {', '.join(markers)}")
