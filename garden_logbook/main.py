import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from garden_logbook.api.v1.router import api_router
from garden_logbook.core.config import settings
from garden_logbook.db.session import AsyncSessionLocal
from garden_logbook.models.logs import ApiRequestLog

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Garden Logbook API starting (%s)", settings.ENVIRONMENT)
    yield


app = FastAPI(
    title="Garden Logbook API",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation failed", "issues": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.middleware("http")
async def log_requests(request: Request, call_next) -> Response:
    start = time.monotonic()
    response = await call_next(request)
    if not settings.REQUEST_LOG_ENABLED:
        return response
    latency_ms = int((time.monotonic() - start) * 1000)

    # Best-effort: a failed write never fails the request
    try:
        async with AsyncSessionLocal() as db:
            db.add(ApiRequestLog(
                timestamp=datetime.now(timezone.utc),
                method=request.method,
                endpoint=str(request.url.path),
                status_code=response.status_code,
                latency_ms=latency_ms,
                ip_address=request.client.host if request.client else None,
            ))
            await db.commit()
    except Exception:
        logger.warning("Failed to write request log for %s %s", request.method, request.url.path, exc_info=True)

    return response


@app.get("/api/health", tags=["health"])
async def health():
    return {"status": "ok"}


app.include_router(api_router, prefix="/api/v1")
