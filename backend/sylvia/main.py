from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
from datetime import datetime

from sylvia.core.config import settings
from sylvia.routers import (
    books,
    feed,
    goals,
    imports,
    library,
    lists,
    profile,
    recommendations,
    stats,
    user_books,
)
from sylvia.database import init_db
from sylvia.scheduler import start_scheduler, stop_scheduler
from sylvia.services.catalog import GoogleBooksClient

# ----------------------------
# Logging
# ----------------------------
logger = logging.getLogger("sylvia")
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

SERVER_BOOT_ID = f"sylvia-backend::{os.getpid()}::{datetime.utcnow().isoformat()}"

app = FastAPI(title="Sylvia", debug=settings.DEBUG)

# One catalog client (and search cache) per process
app.state.catalog = GoogleBooksClient.from_settings(settings)


# ----------------------------
# CORS
# ----------------------------
cors_origins = settings.cors_origins_list
logger.info("[CORS] allow_origins=%s", cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("[UNHANDLED] %s %s", request.method, request.url.path)

    response = JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"}
    )

    # Error responses bypass the CORS middleware
    origin = request.headers.get("origin")
    if origin and origin in cors_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"

    return response


# ----------------------------
# Routers
# ----------------------------
app.include_router(profile.router, prefix="/api")
app.include_router(books.router, prefix="/api")
app.include_router(user_books.router, prefix="/api")
app.include_router(library.router, prefix="/api")
app.include_router(recommendations.router, prefix="/api")
app.include_router(stats.router, prefix="/api")
app.include_router(goals.router, prefix="/api")
app.include_router(lists.router, prefix="/api")
app.include_router(feed.router, prefix="/api")
app.include_router(imports.router, prefix="/api")


@app.on_event("startup")
def on_startup() -> None:
    logger.info("[BOOT] %s", SERVER_BOOT_ID)
    init_db()
    if settings.BACKFILL_SCHEDULE_ENABLED:
        start_scheduler(app.state.catalog, hour=settings.BACKFILL_CRON_HOUR)


@app.on_event("shutdown")
def on_shutdown() -> None:
    stop_scheduler()


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/api/health")
def api_health_check():
    return {"status": "ok"}
