"""FastAPI application for the code auditor."""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import AuditConfig
from .errors import (
    AuditError,
    ErrorCategory,
    RateLimitExceeded,
    Timeout,
    UpstreamRateLimited,
)
from .models import AuditRequest, AuditResult, AuditStats, FixRequest, FixResponse
from .orchestrator import DEFAULT_CLIENT_ID, AuditOrchestrator

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Code Auditor",
    description="AI security audit and remediation of source code snippets",
    version="0.1.0",
)

# CORS - allow common development origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://localhost:8000",
    ],
    allow_methods=["POST", "GET"],
    allow_headers=["*"],
)

_STATUS_BY_CATEGORY = {
    ErrorCategory.input: 400,
    ErrorCategory.rate_limit: 429,
    ErrorCategory.configuration: 500,
    ErrorCategory.transient: 502,
    ErrorCategory.engine: 502,
    ErrorCategory.fix: 422,
}


def status_for(error: AuditError) -> int:
    """HTTP status code for an audit error."""
    if isinstance(error, Timeout):
        return 504
    if isinstance(error, UpstreamRateLimited):
        return 503
    return _STATUS_BY_CATEGORY.get(error.category, 500)


@lru_cache
def get_orchestrator() -> AuditOrchestrator:
    """Process-wide orchestrator built from the environment."""
    config = AuditConfig.from_env()
    config.log_config_status()
    return AuditOrchestrator(config)


@app.exception_handler(AuditError)
async def audit_error_handler(request: Request, exc: AuditError) -> JSONResponse:
    headers = {}
    if isinstance(exc, RateLimitExceeded):
        headers["Retry-After"] = str(int(exc.window_seconds))
    return JSONResponse(
        status_code=status_for(exc),
        content={"error": exc.to_dict()},
        headers=headers,
    )


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/scan", response_model=AuditResult)
async def scan(
    request: AuditRequest,
    http_request: Request,
    response: Response,
    x_client_id: Optional[str] = Header(default=None),
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> AuditResult:
    """
    Audit a code snippet for security vulnerabilities.

    - **code**: Source code to audit
    - **fileName**: Name of the file
    - **clientId**: Optional caller identity (falls back to X-Client-Id, then client address)
    - **skipCache**: Always run a fresh analysis
    """
    client_id = request.client_id or x_client_id
    if not client_id and http_request.client:
        client_id = http_request.client.host
    client_id = client_id or DEFAULT_CLIENT_ID

    logger.info(f"Scanning {request.file_name} for client {client_id}")
    result = await orchestrator.scan(
        request.code,
        request.file_name,
        client_id=client_id,
        skip_cache=request.skip_cache,
    )
    if orchestrator.config.rate_limit_enabled:
        response.headers["X-RateLimit-Remaining"] = str(
            orchestrator.rate_limiter.remaining(client_id)
        )
    return result


@app.post("/fix", response_model=FixResponse)
async def fix(
    request: FixRequest,
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> FixResponse:
    """
    Generate remediated code for previously reported findings.

    - **code**: Source code to remediate
    - **fileName**: Name of the file
    - **findings**: Findings from a previous scan
    """
    fixed = await orchestrator.fix(request.code, request.file_name, request.findings)
    return FixResponse(fixed_code=fixed)


@app.get("/stats", response_model=AuditStats)
async def stats(orchestrator: AuditOrchestrator = Depends(get_orchestrator)) -> AuditStats:
    """Cache and rate limiter sizes plus the effective configuration."""
    return orchestrator.stats()


@app.post("/clear")
async def clear(orchestrator: AuditOrchestrator = Depends(get_orchestrator)):
    """Empty the result cache and rate limiter state."""
    orchestrator.clear()
    return {"status": "cleared"}
