from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.metrics import render_metrics
from app.db.store import check_ready

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "service": get_settings().app_name}


@router.get("/ready")
def ready() -> JSONResponse:
    backend = get_settings().storage_backend
    if check_ready():
        return JSONResponse(content={"status": "ready", "storage_backend": backend})
    return JSONResponse(status_code=503, content={"status": "not_ready", "storage_backend": backend})


@router.get("/metrics")
def metrics() -> Response:
    payload, content_type = render_metrics()
    return Response(content=payload, media_type=content_type)
