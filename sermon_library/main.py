"""
Sermon Library - Main Application

FastAPI application that serves:
- REST API endpoints for item CRUD (metadata in MongoDB, files on Google Drive)
- The prebuilt frontend bundle (static files + SPA catch-all)
- Health check endpoint

The MongoDB client and the Google Drive client are created once in the
lifespan handler, handed to the ItemManager, and closed on shutdown.
"""

import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger

from sermon_library.config import (
    APP_ENV,
    APP_HOST,
    APP_PORT,
    APP_VERSION,
    CORS_METHODS,
    CORS_ORIGINS,
    DEBUG,
    FRONTEND_DIST_DIR,
    LOG_LEVEL,
    MONGO_COLLECTION,
    MONGO_DB_NAME,
    MONGO_URI,
)
from sermon_library.database import ItemRepository, connect, get_collection, ping
from sermon_library.drive import DriveClient, load_credentials
from sermon_library.errors import register_exception_handlers
from sermon_library.routes.api import router as api_router
from sermon_library.routes.pages import router as pages_router
from sermon_library.services.item_manager import ItemManager

# ---------------------------------------------------------------------------
# Logging setup — stdout only
# ---------------------------------------------------------------------------
logger.remove()

logger.add(
    sys.stdout,
    level="DEBUG" if DEBUG else LOG_LEVEL,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    colorize=True,
)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    On startup:
        1. Create the MongoDB client and check it answers
        2. Load Google Drive credentials and check the connection
        3. Build the ItemManager used by the API routes

    On shutdown:
        4. Close the Drive HTTP client and the MongoDB client

    If an ItemManager was injected through create_app(), no clients are
    created here.
    """
    if getattr(app.state, "item_manager", None) is not None:
        yield
        return

    # --- Startup ---
    logger.info("🚀 Starting Sermon Library v{}", APP_VERSION)
    logger.info("📋 Environment: {} | Debug: {}", APP_ENV, DEBUG)

    # Step 1: MongoDB
    mongo_client = connect(MONGO_URI)
    if await ping(mongo_client):
        logger.success("✅ MongoDB connected successfully")
    else:
        logger.warning("⚠️ MongoDB is not reachable yet — requests will fail until it is")

    # Step 2: Google Drive
    credentials = load_credentials()
    if credentials is None:
        logger.warning("⚠️ Google Drive credentials not configured — uploads will fail")
    drive = DriveClient(credentials)
    if drive.is_configured:
        await drive.check_connection()

    # Step 3: Orchestrator
    repository = ItemRepository(get_collection(mongo_client, MONGO_DB_NAME, MONGO_COLLECTION))
    app.state.mongo_client = mongo_client
    app.state.drive = drive
    app.state.item_manager = ItemManager(repository, drive)

    logger.success("✅ Application ready — listening on {}:{}", APP_HOST, APP_PORT)

    try:
        yield
    finally:
        # --- Shutdown ---
        logger.info("🛑 Shutting down Sermon Library …")
        await drive.close()
        mongo_client.close()
        logger.info("👋 Shutdown complete")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
def create_app(item_manager: Optional[ItemManager] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Sermon Library",
        description=(
            "Stores sermon metadata in MongoDB and the thumbnail and audio "
            "files on Google Drive."
        ),
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if DEBUG else None,
        redoc_url="/redoc" if DEBUG else None,
    )
    if item_manager is not None:
        app.state.item_manager = item_manager

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=CORS_METHODS,
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------
    # Request logging middleware
    # ------------------------------------------------------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every incoming HTTP request with timing information."""
        start = time.time()
        try:
            response = await call_next(request)
        except Exception as exc:
            duration = round(time.time() - start, 3)
            logger.error(
                "❌ {method} {path} — unhandled error after {duration}s: {exc}",
                method=request.method,
                path=request.url.path,
                duration=duration,
                exc=exc,
            )
            raise

        duration = round(time.time() - start, 3)
        status = response.status_code

        if status >= 500:
            logger.error(
                "📤 {method} {path} — {status} [{duration}s]",
                method=request.method,
                path=request.url.path,
                status=status,
                duration=duration,
            )
        elif status >= 400:
            logger.warning(
                "📤 {method} {path} — {status} [{duration}s]",
                method=request.method,
                path=request.url.path,
                status=status,
                duration=duration,
            )
        elif not request.url.path.startswith("/assets"):
            logger.info(
                "📤 {method} {path} — {status} [{duration}s]",
                method=request.method,
                path=request.url.path,
                status=status,
                duration=duration,
            )

        return response

    # ------------------------------------------------------------------
    # Static files (frontend bundle assets)
    # ------------------------------------------------------------------
    assets_dir = FRONTEND_DIST_DIR / "assets"
    if assets_dir.is_dir():
        app.mount("/assets", StaticFiles(directory=str(assets_dir)), name="assets")

    # ------------------------------------------------------------------
    # Register routers
    # ------------------------------------------------------------------
    app.include_router(api_router)  # JSON endpoints
    app.include_router(pages_router)  # frontend catch-all (must be last)

    return app


# ---------------------------------------------------------------------------
# Create the app instance (used by Uvicorn)
# ---------------------------------------------------------------------------
app = create_app()


# ---------------------------------------------------------------------------
# Direct execution (development)
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sermon_library.main:app",
        host=APP_HOST,
        port=APP_PORT,
        reload=DEBUG,
        log_level="debug" if DEBUG else "info",
    )
