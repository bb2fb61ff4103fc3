"""
Educational platform GDPR lifecycle - FastAPI Application
Consent requests, data export, data erasure and the audit trail
"""

from fastapi import FastAPI, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional
import logging
import structlog

from .audit.models import ActorContext, AuditAction
from .config import get_gdpr_config
from .constants import ErrorCodes, SERVICE_NAME, SERVICE_VERSION
from .exceptions import ConsentInvalidError, GDPRError, StorageUnavailableError
from .export.models import ExportFormat
from .export.tabular import render_export
from .lifecycle.coordinator import LifecycleCoordinator, create_coordinator
from .schemas import (
    AuditEntryOut,
    AuditLogOut,
    ConsentRequestCreated,
    ConsentRequestIn,
    ConsentRequestView,
    ErasureOut,
    ErasureRequestIn,
    Pagination,
    SweepOut,
)
from .storage.database import Database
from .utils.ids import generate_trace_id

# Global settings
settings = get_gdpr_config()

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Initialized in lifespan unless injected beforehand
coordinator: Optional[LifecycleCoordinator] = None

HTTP_STATUS_BY_CODE = {
    ErrorCodes.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.INVALID_SUBJECT: status.HTTP_404_NOT_FOUND,
    ErrorCodes.SUBJECT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.CONSENT_INVALID: status.HTTP_403_FORBIDDEN,
    ErrorCodes.ERASURE_INCOMPLETE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCodes.AUDIT_WRITE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCodes.STORAGE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCodes.OPERATION_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global coordinator

    logger.info("Starting GDPR lifecycle service", version=SERVICE_VERSION)
    database = None

    try:
        if coordinator is None:
            database = Database(settings.database_url)
            database.create_all()
            coordinator = create_coordinator(database, settings)

        logger.info("GDPR lifecycle services initialized")

    except Exception as e:
        logger.error("Failed to initialize GDPR lifecycle services", error=str(e))
        # Routes answer 503 until the coordinator exists

    yield

    logger.info("Shutting down GDPR lifecycle service")
    if database is not None:
        database.dispose()


# Create FastAPI app
app = FastAPI(
    title="Educational Platform GDPR Lifecycle",
    description="Consent, export, erasure and audit trail for student data",
    version=SERVICE_VERSION,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _envelope(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def _error_response(error: GDPRError, status_code: Optional[int] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code or HTTP_STATUS_BY_CODE.get(
            error.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR
        ),
        content={"success": False, "error": error.to_dict()},
    )


def _require_coordinator() -> LifecycleCoordinator:
    if coordinator is None:
        raise StorageUnavailableError("GDPR lifecycle services not initialized")
    return coordinator


def _actor_context(request: Request) -> ActorContext:
    return ActorContext(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        request_id=request.headers.get("x-request-id") or generate_trace_id(),
    )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(GDPRError)
async def gdpr_error_handler(request: Request, exc: GDPRError):
    """Map lifecycle errors onto the error envelope"""
    logger.warning("Request failed", path=request.url.path, error_code=exc.error_code)
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Never echo request input back; it may carry consent tokens"""
    sanitized_errors = [
        {k: v for k, v in err.items() if k not in ("input", "ctx")}
        for err in exc.errors()
    ]
    logger.warning("Request validation failed", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": {
                "code": ErrorCodes.VALIDATION_ERROR,
                "message": "Invalid request",
                "details": {"errors": sanitized_errors},
            },
        },
    )


# =============================================================================
# CONSENT
# =============================================================================

@app.post("/gdpr/consent/request", status_code=status.HTTP_201_CREATED)
async def submit_consent_request(body: ConsentRequestIn, request: Request):
    """Create a consent request and return its token"""
    service = _require_coordinator()
    consent = await run_in_threadpool(
        service.submit_consent_request,
        body.subject_id,
        body.request_type,
        body.contact_email,
        body.details,
        _actor_context(request),
    )
    created = ConsentRequestCreated(
        request_id=consent.id,
        token=consent.token,
        status=consent.status.value,
        expires_at=consent.expires_at,
    )
    return _envelope(created.model_dump(mode="json"), "Consent request created")


@app.get("/gdpr/consent/verify/{token}")
async def verify_consent(token: str, request: Request):
    """Verify a consent token"""
    service = _require_coordinator()
    consent = await run_in_threadpool(service.verify_consent, token, _actor_context(request))
    if consent is None:
        return _error_response(ConsentInvalidError(), status.HTTP_404_NOT_FOUND)

    view = ConsentRequestView(**consent.public_view())
    return _envelope(view.model_dump(mode="json"), "Consent request verified")


@app.post("/gdpr/consent/sweep")
async def sweep_expired_requests(request: Request):
    """Remove expired pending consent requests"""
    service = _require_coordinator()
    removed = await run_in_threadpool(service.sweep_expired_requests, _actor_context(request))
    return _envelope(SweepOut(removed=removed).model_dump())


# =============================================================================
# DATA EXPORT AND ERASURE
# =============================================================================

@app.get("/gdpr/data/export/{subject_id}")
async def export_data(
    subject_id: int,
    request: Request,
    format: ExportFormat = Query(ExportFormat.JSON),
    token: Optional[str] = Query(None),
):
    """Export a subject's data as a JSON or CSV attachment"""
    service = _require_coordinator()
    bundle = await run_in_threadpool(
        service.request_export, subject_id, token, format, _actor_context(request)
    )
    document = render_export(bundle, format)
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f"attachment; filename={document.filename}"},
    )


@app.delete("/gdpr/data/delete/{subject_id}")
async def delete_data(subject_id: int, body: ErasureRequestIn, request: Request):
    """Erase a subject's data under a deletion token"""
    service = _require_coordinator()
    result = await run_in_threadpool(
        service.request_erasure, subject_id, body.token, body.mode, _actor_context(request)
    )
    out = ErasureOut(
        mode=result.mode,
        deleted_at=result.completed_at,
        affected_records=result.affected_records,
        table_counts=result.table_counts,
    )
    return _envelope(out.model_dump(mode="json"), "Subject data erased")


# =============================================================================
# AUDIT TRAIL
# =============================================================================

@app.get("/gdpr/audit/log/{subject_id}")
async def get_audit_log(
    subject_id: int,
    limit: Optional[int] = Query(None),
    offset: int = Query(0),
    action: Optional[AuditAction] = Query(None),
):
    """Audit entries for a subject, newest first"""
    service = _require_coordinator()
    page = await run_in_threadpool(service.get_audit_log, subject_id, action, limit, offset)
    out = AuditLogOut(
        entries=[AuditEntryOut.from_entry(entry) for entry in page.entries],
        pagination=Pagination(**page.pagination()),
    )
    return _envelope(out.model_dump(mode="json"))


# =============================================================================
# HEALTH
# =============================================================================

@app.get("/gdpr/health")
async def health_check():
    """Health check endpoint"""
    if coordinator is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "success": False,
                "data": {"service": SERVICE_NAME, "version": SERVICE_VERSION,
                         "status": "unavailable"},
            },
        )

    health = await run_in_threadpool(coordinator.health)
    return _envelope(health)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Educational Platform GDPR Lifecycle",
        "version": SERVICE_VERSION,
        "status": "operational",
        "features": {
            "consent_requests": True,
            "data_export": True,
            "data_erasure": True,
            "audit_trail": True,
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
