import logging
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.routes.aliases import router as aliases_router
from app.api.routes.citations import router as citations_router
from app.api.routes.documents import router as documents_router
from app.api.routes.health import router as health_router
from app.core.config import get_settings
from app.core.logging import configure_logging, reset_request_id, set_request_id
from app.core.metrics import observe_http_request
from app.db.store import reconcile_schema
from app.services.citations import close_resolver

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.include_router(health_router)
app.include_router(documents_router)
app.include_router(aliases_router)
app.include_router(citations_router)


def _error_payload(code: str, message: str, request_id: str) -> dict:
    return {
        "error": {"code": code, "message": message},
        "request_id": request_id,
    }


def _error_code(detail: object) -> str:
    if isinstance(detail, str) and detail.isidentifier():
        return detail
    return "http_error"


@app.middleware("http")
async def attach_request_id(request: Request, call_next):
    started_at = perf_counter()
    route_key = request.url.path
    method = request.method
    status_code = 500
    request_id = request.headers.get("x-request-id") or str(uuid4())
    token = set_request_id(request_id)
    request.state.request_id = request_id
    try:
        response = await call_next(request)
        status_code = response.status_code
    except Exception:
        logger.exception("unhandled_server_exception")
        status_code = 500
        response = JSONResponse(
            status_code=500,
            content=_error_payload("internal_error", "Internal server error", request_id),
        )
    finally:
        duration = perf_counter() - started_at
        observe_http_request(method, route_key, status_code, duration)
        reset_request_id(token)
    response.headers["x-request-id"] = request_id
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    request_id = getattr(request.state, "request_id", "-")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(_error_code(exc.detail), str(exc.detail), request_id),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, "request_id", "-")
    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": "validation_error",
                "message": "Request validation failed",
                "details": exc.errors(),
            },
            "request_id": request_id,
        },
    )


@app.on_event("startup")
def startup() -> None:
    if settings.auto_ensure_schema_on_startup:
        applied = reconcile_schema()
        logger.info("startup_schema_reconciled:%s", applied)
    else:
        logger.info("auto_ensure_schema_disabled")


@app.on_event("shutdown")
def shutdown() -> None:
    close_resolver()
