"""
QuizHub API application
Educators publish quizzes behind enrollment codes; students enroll, attempt and get scored
"""
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import time

from quizhub.config import settings
from quizhub.database import get_db, init_db
from quizhub.api import admin, attempts, auth, educator, enrollments, quizzes
from quizhub.exceptions import QuizHubError
from quizhub.utils.cache import cache_service
from quizhub.utils.rate_limiter import rate_limiter

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Quiz platform for educators and students with enrollment codes and scored attempts",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Reject clients over their per-minute or per-hour budget with 429"""
    if settings.RATE_LIMIT_ENABLED:
        try:
            await rate_limiter.check_rate_limit(request)
        except QuizHubError as e:
            return JSONResponse(status_code=e.status_code, content=e.to_dict())

    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """One line per request: method, path, status, client and timing"""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    client = request.client.host if request.client else "-"
    line = f"{request.method} {request.url.path} -> {response.status_code} ({elapsed * 1000:.1f}ms, {client})"
    if response.status_code >= 500:
        logger.warning(line)
    else:
        logger.info(line)

    return response


@app.exception_handler(QuizHubError)
async def quizhub_exception_handler(request: Request, exc: QuizHubError):
    """Expected failures raised by services, rendered with their error kind"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies, paths or queries; no service has run yet"""
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "message": "Invalid request data",
            "status_code": 422,
            "details": jsonable_encoder(exc.errors()),
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Routing errors (unknown path, wrong method) in the common error shape"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "http_error",
            "message": exc.detail,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Anything unexpected: log the traceback, answer with an opaque 500"""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
            "status_code": 500,
            "detail": str(exc) if settings.DEBUG else None
        }
    )


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    Health check for monitoring

    Runs a trivial query so a lost database shows up as "degraded".
    """
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check could not reach the database: {str(e)}")
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": database,
        "cache": "enabled" if cache_service.redis_client else "disabled",
        "timestamp": time.time()
    }


@app.get("/")
async def root():
    return {
        "message": f"{settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


for module in (auth, enrollments, attempts, quizzes, educator, admin):
    app.include_router(module.router)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        init_db()
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    logger.info(
        f"Ready: rate limiting {'on' if settings.RATE_LIMIT_ENABLED else 'off'}, "
        f"cache {'on' if cache_service.redis_client else 'off'}"
    )


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "quizhub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
