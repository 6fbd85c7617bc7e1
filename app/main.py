# Application entrypoint: configures middleware, error rendering, startup routines, and API routers.
from datetime import datetime, timezone
import logging
import os
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import Base, engine, ping_database
from . import models  # noqa: F401  (registers tables on Base.metadata)
from .routes.auth import router as auth_router
from .routes.users import router as users_router
from .routes.properties import router as properties_router
from .routes.wishlist import router as wishlist_router
from .routes.offers import router as offers_router
from .routes.reviews import router as reviews_router
from .routes.reports import router as reports_router
from .payments import router as payments_router

logger = logging.getLogger("estatehub")
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

APP_VERSION = "1.0.0"


# Parse CORS origins from a comma-separated env var.
# Note: '*' cannot be used with allow_credentials=True; we fall back to explicit localhost origins for dev.
def _parse_cors_origins(env_value: str | None) -> list[str]:
    default_dev_origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    if not env_value:
        return default_dev_origins

    origins = [o.strip() for o in env_value.split(",") if o.strip()]
    if "*" in origins:
        return default_dev_origins

    return origins


app = FastAPI(title="EstateHub API", version=APP_VERSION)
allow_list = _parse_cors_origins(os.getenv("CORS_ORIGINS"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Process start, reported as uptime by /health
_started_at = time.monotonic()


def _error_body(detail) -> dict:
    # Structured details ({"error": "busy", "retry_after": 1}) keep their extra fields next to the message
    if isinstance(detail, dict):
        extra = {k: v for k, v in detail.items() if k != "error"}
        return {"error": True, "message": detail.get("error", "error"), **extra}
    return {"error": True, "message": detail}


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Every API error renders as {"error": true, "message": ...}
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        problems.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": True, "message": "; ".join(problems) or "Invalid request"},
    )


@app.on_event("startup")
def on_startup() -> None:
    # For local SQLite, auto-create tables; production DBs rely on Alembic migrations.
    if os.getenv("DATABASE_URL", "sqlite:///./data.db").startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    logger.info("EstateHub API %s started (CORS origins: %s)", APP_VERSION, ", ".join(allow_list))


@app.get("/")
def root() -> dict:
    return {"message": "Real Estate Platform API", "version": APP_VERSION, "status": "running"}


# Liveness endpoint for uptime checks
@app.get("/health")
def health() -> dict:
    return {
        "status": "OK",
        "uptime": round(time.monotonic() - _started_at, 3),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "Connected" if ping_database() else "Unavailable",
    }


app.include_router(auth_router, tags=["auth"])
app.include_router(users_router, tags=["users"])
app.include_router(properties_router, tags=["properties"])
app.include_router(wishlist_router, tags=["wishlist"])
app.include_router(offers_router, tags=["offers"])
app.include_router(reviews_router, tags=["reviews"])
app.include_router(reports_router, tags=["reports"])
app.include_router(payments_router, tags=["payments"])
