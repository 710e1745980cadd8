"""
FastAPI application entry point.

Configures logging, middleware, routes, the storage mount, the translation
functions sub-application and exception handlers.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from utsav.core.config import settings
from utsav.core.logging_config import configure_logging
from utsav.core.middleware import RequestContextMiddleware, ScopedCORSMiddleware
from utsav.routers import auth, donations, festivals, functions, images, org_settings, organizations, voting

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    logger.info("startup", environment=settings.ENVIRONMENT)
    yield
    logger.info("shutdown")


app = FastAPI(
    title="Utsav API",
    description="Multi-tenant festival management platform",
    version="1.0.0",
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    ScopedCORSMiddleware,
    exclude_prefixes=("/functions",),
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    if settings.DEBUG:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": str(exc),
                    "type": type(exc).__name__,
                }
            },
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "version": "1.0.0",
    }


app.include_router(auth.router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(organizations.router, prefix="/api/v1/organizations", tags=["Organizations"])
app.include_router(festivals.router, prefix="/api/v1", tags=["Festivals"])
app.include_router(donations.router, prefix="/api/v1", tags=["Donations"])
app.include_router(images.router, prefix="/api/v1", tags=["Images"])
app.include_router(org_settings.router, prefix="/api/v1", tags=["Settings"])
app.include_router(voting.router, prefix="/api/v1", tags=["Voting"])

# ---------------------------------------------------------------------------
# Storage buckets
# ---------------------------------------------------------------------------

Path(settings.STORAGE_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/storage", StaticFiles(directory=settings.STORAGE_DIR), name="storage")

# ---------------------------------------------------------------------------
# Translation functions (open CORS, no auth)
# ---------------------------------------------------------------------------

functions_app = FastAPI(title="Utsav functions", docs_url=None, redoc_url=None, openapi_url=None)
functions_app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)
functions_app.include_router(functions.router)
app.mount("/functions", functions_app, name="functions")
