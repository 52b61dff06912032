import os
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from vfxhub.api.exceptions import (
    GatewayError,
    InvalidRequestError,
    MethodNotAllowedError,
    VfxHubException,
)
from vfxhub.api.limiter import limiter
from vfxhub.api.logging_config import logger, setup_logging
from vfxhub.api.routes import ai, assets, milestones, projects
from vfxhub.config import config

# Logging first so startup messages are captured
setup_logging()

AI_PREFIX = "/ai"

app = FastAPI(
    title="VFX Hub API",
    description="VFX studio projects, assets and milestone timelines, plus an AI proxy gateway",
    version="0.3.0",
)

# Gzip compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# Prometheus metrics (not in tests)
if os.getenv("APP_ENV") != "test":
    Instrumentator().instrument(app).expose(app)
    logger.info("Prometheus Instrumentator initialized")


def _is_gateway_path(request: Request) -> bool:
    return request.url.path.startswith(AI_PREFIX)


def _envelope(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def _problem(request: Request, status_code: int, title: str, detail, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "type": f"https://vfxhub.dev/errors/{title.lower().replace(' ', '-')}",
            "title": title,
            "status": status_code,
            "detail": detail,
            "instance": str(request.url),
            "code": code,
            "extensions": {
                "timestamp": datetime.utcnow().isoformat() + "Z"
            }
        },
    )


@app.exception_handler(GatewayError)
async def gateway_exception_handler(request: Request, exc: GatewayError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


@app.exception_handler(VfxHubException)
async def vfxhub_exception_handler(request: Request, exc: VfxHubException):
    error_code = exc.__class__.__name__.replace("Error", "").upper()
    if error_code == "VFXHUBEXCEPTION":
        error_code = "INTERNAL_ERROR"
    return _problem(request, exc.status_code, exc.__class__.__name__, exc.detail, error_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if _is_gateway_path(request):
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            error = MethodNotAllowedError()
            return JSONResponse(status_code=error.status_code, content=error.to_envelope())
        return _envelope(exc.status_code, str(exc.detail))
    return _problem(request, exc.status_code, "HTTP Exception", exc.detail, f"HTTP_{exc.status_code}")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    if not _is_gateway_path(request):
        return await request_validation_exception_handler(request, exc)
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    error = InvalidRequestError("Invalid request", status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, details=details)
    return JSONResponse(status_code=error.status_code, content=error.to_envelope())


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for {request.url.path}")
    return _envelope(status.HTTP_429_TOO_MANY_REQUESTS, f"Rate limit exceeded: {exc.detail}")


# Routers
app.include_router(projects.router, prefix="/projects", tags=["projects"])
app.include_router(assets.router, prefix="/assets", tags=["assets"])
app.include_router(milestones.router, prefix="/milestones", tags=["milestones"])
app.include_router(ai.router)  # /ai

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("cors", "allowed_origins"),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# HTTPS redirect (production only)
@app.middleware("http")
async def enforce_https_redirect(request: Request, call_next):
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        # Cloud providers usually terminate TLS and set X-Forwarded-Proto
        if request.headers.get("x-forwarded-proto") != "https":
            url = request.url.replace(scheme="https")
            return RedirectResponse(url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
    return await call_next(request)


@app.middleware("http")
async def log_requests(request, call_next):
    logger.info(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(f"Response: {response.status_code}")
    return response


@app.get("/")
def read_root():
    return {"message": "VFX Hub API is running"}


@app.get("/health")
def health_check():
    return {"status": "ok"}
