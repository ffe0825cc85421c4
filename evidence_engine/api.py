"""
Evidence Report Service API
===========================

FastAPI endpoints that turn a case's stored evidence into a PDF report.

Endpoints:
- POST /api/pdf/checkin-report - Check-in report (move-in photos by room)
- POST /api/pdf/deposit-pack   - Deposit recovery pack (before/after by room)
- POST /api/pdf/short-stay     - Short-stay report (arrival/departure)
- GET  /files/{token}          - Signed download (local storage backend only)
- GET  /health                 - Health check

Request body: {"caseId": "...", "forPreview": false, "customSections": {...}, "timeoutSeconds": 30}
Success: {"url": "<time-limited link>"}
Failure: {"error": {"code", "message", "details"}}

Run with:
    uvicorn evidence_engine.api:app --host 0.0.0.0 --port 8000
"""

import asyncio
import logging
import os
import threading
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from .auth import get_caller
from .config import get_settings
from .db.session import get_db, init_db
from .errors import ErrorKind, NotFoundError, ReportError
from .models import Caller, ReportType
from .publisher import SqlManifestWriter
from .repository import SqlCaseRepository
from .schemas import ErrorResponse, GenerateReportRequest, HealthResponse, ReportResponse
from .service import ReportService
from .storage import LocalStorage, ObjectStorage, StorageError, content_disposition, get_storage

# Configure logging
logging.basicConfig(level=get_settings().log_level.upper())
logger = logging.getLogger(__name__)

# How often a running generation checks whether the client went away
DISCONNECT_POLL_SECONDS = 0.5


# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(
    title="Evidence Report Service",
    description="Court-presentable PDF reports from timestamped rental evidence",
    version=get_settings().service_version,
    docs_url="/docs",
    redoc_url="/redoc",
)


def _parse_cors_origins(raw: str) -> List[str]:
    origins: List[str] = []
    for item in raw.split(","):
        origin = item.strip().strip('"').strip("'").rstrip("/")
        if origin:
            origins.append(origin)
    return origins


_cors_raw = os.environ.get(
    "CORS_ALLOW_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8000,http://127.0.0.1:8000"
)
CORS_ALLOW_ORIGINS = _parse_cors_origins(_cors_raw)
logger.info(f"CORS allow origins: {CORS_ALLOW_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

from .middleware.security import SecurityHeadersMiddleware
app.add_middleware(SecurityHeadersMiddleware)


# =============================================================================
# Dependencies
# =============================================================================

@lru_cache()
def _configured_storage() -> ObjectStorage:
    return get_storage(get_settings())


def get_object_storage() -> ObjectStorage:
    """Storage backend shared by all requests"""
    return _configured_storage()


def get_report_service(
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
) -> ReportService:
    """Report service bound to this request's database session"""
    return ReportService(
        repository=SqlCaseRepository(db),
        storage=storage,
        manifest=SqlManifestWriter(db),
        settings=get_settings(),
    )


async def _generate(
    request: Request,
    service: ReportService,
    report_type: ReportType,
    body: GenerateReportRequest,
    caller: Optional[Caller],
) -> ReportResponse:
    """
    Run a generation in the threadpool, cancelling it if the client disconnects.
    """
    cancel_event = threading.Event()
    custom = body.custom_sections.to_sections() if body.custom_sections else None
    task = asyncio.ensure_future(run_in_threadpool(
        service.generate,
        report_type,
        body.case_id,
        caller,
        for_preview=body.for_preview,
        custom_sections=custom,
        cancel_event=cancel_event,
        timeout=body.timeout_seconds,
    ))

    while not task.done():
        done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
        if not done and not cancel_event.is_set() and await request.is_disconnected():
            logger.info(f"Client disconnected, cancelling {report_type.value} for case {body.case_id}")
            cancel_event.set()

    result = task.result()
    return ReportResponse(url=result.url)


_ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Missing case ID or wrong stay type"},
    401: {"model": ErrorResponse, "description": "No verified caller"},
    403: {"model": ErrorResponse, "description": "Purchase required for a final download"},
    404: {"model": ErrorResponse, "description": "Case not found for this caller"},
    422: {"model": ErrorResponse, "description": "Evidence files missing integrity hashes"},
    500: {"model": ErrorResponse, "description": "Generation failed"},
}


# =============================================================================
# PDF Endpoints
# =============================================================================

router = APIRouter(prefix="/api/pdf", tags=["Reports"])


@router.post("/checkin-report", response_model=ReportResponse, responses=_ERROR_RESPONSES)
async def generate_checkin_report(
    request: Request,
    body: GenerateReportRequest,
    caller: Optional[Caller] = Depends(get_caller),
    service: ReportService = Depends(get_report_service),
):
    """Check-in report: move-in photos grouped by room. Hash-verified."""
    return await _generate(request, service, ReportType.CHECKIN_REPORT, body, caller)


@router.post("/deposit-pack", response_model=ReportResponse, responses=_ERROR_RESPONSES)
async def generate_deposit_pack(
    request: Request,
    body: GenerateReportRequest,
    caller: Optional[Caller] = Depends(get_caller),
    service: ReportService = Depends(get_report_service),
):
    """Deposit recovery pack: check-in vs handover, side by side per room."""
    return await _generate(request, service, ReportType.DEPOSIT_PACK, body, caller)


@router.post("/short-stay", response_model=ReportResponse, responses=_ERROR_RESPONSES)
async def generate_short_stay_report(
    request: Request,
    body: GenerateReportRequest,
    caller: Optional[Caller] = Depends(get_caller),
    service: ReportService = Depends(get_report_service),
):
    """Short-stay report: arrival and departure evidence. Hash-verified."""
    return await _generate(request, service, ReportType.SHORT_STAY_REPORT, body, caller)


app.include_router(router)


# =============================================================================
# Downloads & Health
# =============================================================================

@app.get("/files/{token}", tags=["Downloads"], include_in_schema=False)
def download_file(token: str, storage: ObjectStorage = Depends(get_object_storage)):
    """Serve a signed download issued by the local storage backend"""
    if not isinstance(storage, LocalStorage):
        raise NotFoundError("Not found")
    try:
        stored = storage.open_signed(token)
    except StorageError as e:
        logger.info(f"Rejected download link: {e}")
        raise NotFoundError("Link is invalid or has expired")

    headers = {}
    disposition = content_disposition(stored.download_name)
    if disposition:
        headers["Content-Disposition"] = disposition
    return Response(content=stored.data, media_type=stored.content_type, headers=headers)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        version=settings.service_version,
        storage_backend=settings.storage_backend,
        timestamp=datetime.now(timezone.utc),
    )


@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    settings = get_settings()
    logger.info(f"Starting Evidence Report Service v{settings.service_version}")
    logger.info(f"Storage backend: {settings.storage_backend} (bucket={settings.storage_bucket})")

    for warning in settings.validate_storage_config():
        logger.warning(warning)

    try:
        await asyncio.to_thread(init_db)  # Creates tables if they don't exist
    except Exception as e:
        logger.warning(f"Database initialization failed: {e}")


# =============================================================================
# Error Handling
# =============================================================================

def _build_error_payload(code: str, message: str, details: Any = None) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
        }
    }


@app.exception_handler(ReportError)
async def report_error_handler(request: Request, exc: ReportError):
    """Structured error for every refused or failed request"""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return structured validation errors without echoing inputs."""
    sanitized_errors = [
        {"loc": err.get("loc"), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=_build_error_payload(
            ErrorKind.VALIDATION.value,
            "Invalid request body",
            {"errors": sanitized_errors},
        ),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler - always return valid JSON"""
    logger.error("Unhandled exception on %s: %s", request.url.path, exc.__class__.__name__)
    return JSONResponse(
        status_code=500,
        content=_build_error_payload(ErrorKind.GENERATION_FAILED.value, "Internal server error"),
    )
