"""FastAPI application entrypoint for the Domain Registry service.

Mounts the domain routes under API_PREFIX (default ``/domain``) and exposes
liveness and readiness probes.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import time
import uuid

from app.api.routes import router
from app.core.logging import get_logger, setup_logging
from app.core.config import settings
from app.infrastructure.mongo import close_mongo_client, ping

# Initialize structured logging
log_format = settings.environment == "production"
setup_logging(level=settings.log_level, json_format=log_format)
logger = get_logger(__name__)

# Application metadata
APP_VERSION = "1.0.0"
APP_NAME = "Domain Registry"

app = FastAPI(
    title=APP_NAME,
    description="Register domains with their mapper spreadsheets and images",
    version=APP_VERSION,
    docs_url="/docs" if settings.environment != "production" else None,  # Disable in prod
    redoc_url="/redoc" if settings.environment != "production" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Middleware to log all requests with timing and status code."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path}",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
    )

    try:
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000

        logger.info(
            f"Request completed: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            }
        )

        response.headers["X-Request-ID"] = request_id
        return response

    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"Request failed: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "duration_ms": round(duration_ms, 2),
            },
            exc_info=True
        )
        return JSONResponse(
            status_code=500,
            content={"status": "failed", "message": "Server error", "error": str(e)}
        )


@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    settings.upload_path.mkdir(parents=True, exist_ok=True)
    logger.info("Application starting up", extra={"path": str(settings.upload_path)})


@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    close_mongo_client()
    logger.info("Application shutting down")


app.include_router(router)


@app.get("/")
def root():
    """Root endpoint with basic service info."""
    return {
        "service": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
        "environment": settings.environment
    }


@app.get("/health")
def health_check():
    """Liveness probe: the process is up and serving."""
    return {"status": "healthy", "version": APP_VERSION}


@app.get("/ready")
def readiness_check():
    """Readiness probe: MongoDB answers and the upload directory exists."""
    checks = {
        "mongo": "ok" if ping() else "error",
        "uploads": "ok" if settings.upload_path.is_dir() else "missing",
    }
    all_ok = all(value == "ok" for value in checks.values())

    return {
        "status": "ready" if all_ok else "degraded",
        "checks": checks
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.port, reload=settings.debug)
