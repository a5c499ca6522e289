import json
import time

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import get_settings
from .context import set_request_context
from .auth import AuthedUser, lookup_user, optional_user, require_user
from .errors import GovernanceError, InvalidRequest, Unauthenticated
from .http import ok, fail
from .logging import configure_logging, log_event
from .models import Decision
from .pipeline import persist_outcome
from .schemas import SubmissionRequest, ReportRequest
from .utils import gen_request_id
from .ext.registry import get_storage, get_pipeline, get_report_ledger

app = FastAPI(title="Content Governance", version="0.1.0")

# request-shape problems on these routes answer in the governance vocabulary, not 422
_GOVERNED_ROUTES = ("/content/submit", "/content/report")


@app.on_event("startup")
def _startup() -> None:
    configure_logging()
    get_storage()


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or gen_request_id()
    set_request_context(request_id, user_id=None)
    start = time.time()
    try:
        response = await call_next(request)
    except Exception:
        duration_ms = int((time.time() - start) * 1000)
        log_event("api.request", path=request.url.path, status=500, duration_ms=duration_ms, request_id=request_id)
        raise
    duration_ms = int((time.time() - start) * 1000)
    log_event("api.request", path=request.url.path, status=response.status_code, duration_ms=duration_ms, request_id=request_id)
    response.headers["X-Request-Id"] = request_id
    return response


@app.exception_handler(GovernanceError)
async def governance_error(request: Request, exc: GovernanceError):
    log_event("api.rejected", code=exc.code, status=exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=fail(exc.code, exc.message, detail=exc.data),
    )


@app.exception_handler(HTTPException)
async def http_error(request: Request, exc: HTTPException):
    log_event("api.error", status=exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=fail("http_error", "Request error", detail=exc.detail),
    )


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = json.loads(json.dumps(exc.errors(), default=str))
    if request.url.path == "/content/report" and lookup_user(request.headers.get("X-API-Key")) is None:
        return await governance_error(request, Unauthenticated())
    if request.url.path in _GOVERNED_ROUTES:
        return await governance_error(request, InvalidRequest(errors))
    log_event("api.error", status=422)
    return JSONResponse(
        status_code=422,
        content=fail("validation_error", "Request validation failed", detail=errors),
    )


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    log_event("api.error", level="error", status=500, exc_info=exc)
    return JSONResponse(status_code=500, content=fail("internal_error", "Internal error", detail=None))


@app.get("/health", response_model=None)
def health():
    settings = get_settings()
    return ok({"status": "ok", "backend": settings.backend})


@app.get("/capabilities", response_model=None)
def capabilities():
    settings = get_settings()
    return ok({
        "backend": settings.backend,
        "scorer": settings.scorer,
        "sensitive": settings.sensitive,
        "events": settings.events,
        "content_field": settings.content_field,
        "max_length": settings.max_length,
        "rate_limit": settings.rate_limit,
        "rate_window_seconds": settings.rate_window_seconds,
        "flag_confidence_threshold": settings.flag_confidence_threshold,
        "report_statuses": ["pending", "reviewed", "dismissed"],
    })


@app.get("/metrics", response_model=None)
def metrics():
    storage = get_storage()
    return ok(storage.metrics())


@app.post("/content/submit", response_model=None)
def content_submit(payload: SubmissionRequest, user: AuthedUser | None = Depends(optional_user)):
    settings = get_settings()
    raw = (payload.model_extra or {}).get(settings.content_field)
    outcome = get_pipeline().process(raw, user.user_id if user else None, payload.metadata)
    persisted = persist_outcome(get_storage(), outcome)
    if outcome.error is not None:
        raise outcome.error
    data = {
        "allowed": True,
        "decision": outcome.decision.value,
        "post_id": persisted,
        "content": outcome.submission.content,
        "scored": outcome.scored,
    }
    if outcome.moderation is not None and outcome.decision is Decision.FLAG:
        data["moderationFlag"] = outcome.moderation.to_dict()
    return ok(data)


@app.post("/content/report", response_model=None)
def content_report(payload: ReportRequest, user: AuthedUser | None = Depends(optional_user)):
    report = get_report_ledger().submit_report(
        payload.content_id,
        user.user_id if user else None,
        payload.reason,
        payload.category,
    )
    return ok({
        "message": "Content report submitted successfully",
        "reportId": report.report_id,
        "status": report.status.value,
    })


@app.get("/reports/{report_id}", response_model=None)
def report_get(report_id: str, user: AuthedUser = Depends(require_user)):
    report = get_report_ledger().get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return ok(report.to_dict())


@app.post("/_test/boom", response_model=None)
def _test_boom(user: AuthedUser = Depends(require_user)):
    raise RuntimeError("boom")
