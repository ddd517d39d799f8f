#!/usr/bin/env python3
"""
Sandbox entrypoint for code-auditor.
Reads a scan or fix request from stdin JSON, runs it, outputs JSON to stdout.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from pydantic import ValidationError

from code_auditor.config import AuditConfig
from code_auditor.errors import AuditError
from code_auditor.models import AuditRequest, FixRequest, FixResponse
from code_auditor.orchestrator import AuditOrchestrator

logging.basicConfig(level=logging.INFO, stream=sys.stderr)
logger = logging.getLogger(__name__)

VALID_ACTIONS = {"scan", "fix"}


async def _run(action: str, input_data: dict, orchestrator: AuditOrchestrator) -> dict:
    if action == "fix":
        request = FixRequest.model_validate(input_data)
        fixed = await orchestrator.fix(request.code, request.file_name, request.findings)
        return FixResponse(fixed_code=fixed).model_dump(by_alias=True)

    request = AuditRequest.model_validate(input_data)
    result = await orchestrator.scan(
        request.code,
        request.file_name,
        client_id=request.client_id,
        skip_cache=request.skip_cache,
    )
    return result.model_dump(by_alias=True)


def main() -> None:
    try:
        input_data = json.load(sys.stdin)
    except json.JSONDecodeError as e:
        print(json.dumps({"error": f"Invalid JSON input: {e}"}))
        sys.exit(1)

    if not isinstance(input_data, dict):
        print(json.dumps({"error": "Input must be a JSON object"}))
        sys.exit(1)

    action = input_data.pop("action", "scan")
    if action not in VALID_ACTIONS:
        print(
            json.dumps(
                {
                    "error": f"Invalid action '{action}'",
                    "valid_actions": sorted(VALID_ACTIONS),
                }
            )
        )
        sys.exit(1)

    try:
        config = AuditConfig.from_env()
        config.log_config_status()
        output = asyncio.run(_run(action, input_data, AuditOrchestrator(config)))
        print(json.dumps(output))
    except AuditError as e:
        print(json.dumps({"error": e.to_dict()}))
        sys.exit(1)
    except (ValidationError, ValueError) as e:
        print(json.dumps({"error": str(e)}))
        sys.exit(1)


if __name__ == "__main__":
    main()
