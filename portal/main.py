"""
Realty Portal - main application.

Serves the home, search and detail pages, the htmx fragments behind the
search controller and a small JSON API over the remote listings service.
"""
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from realty.client import ListingsClient

from .config import config
from .routes import api_router, pages_router, ui_router
from .sessions import PageRegistry

STATIC_DIR = Path(__file__).parent / "static"

handlers = [logging.StreamHandler(sys.stdout)]
if config.LOG_FILE:
    handlers.append(logging.FileHandler(config.LOG_FILE))

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=handlers
)

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    logger.info("Starting Realty Portal...")
    try:
        config.validate()
        app.state.listings_client = ListingsClient(
            config.API_BASE_URL,
            api_key=config.RAPIDAPI_KEY,
            api_host=config.RAPIDAPI_HOST,
            timeout=config.REQUEST_TIMEOUT,
        )
        app.state.page_registry = PageRegistry(max_pages=config.MAX_LIVE_PAGES)
        logger.info(f"Listings API: {config.API_BASE_URL}")
        if not config.RAPIDAPI_KEY:
            logger.warning("RAPIDAPI_KEY is not set; listings requests will likely be rejected")
        yield
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise
    finally:
        logger.info("Shutting down Realty Portal...")
        registry = getattr(app.state, "page_registry", None)
        if registry is not None:
            registry.close_all()
        client = getattr(app.state, "listings_client", None)
        if client is not None:
            await client.close()

# Create FastAPI application
app = FastAPI(
    title=config.API_TITLE,
    version=config.API_VERSION,
    description=config.API_DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ALLOW_CREDENTIALS,
    allow_methods=config.CORS_ALLOW_METHODS,
    allow_headers=config.CORS_ALLOW_HEADERS,
)

# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    registry = getattr(app.state, "page_registry", None)
    return {
        "status": "healthy",
        "version": config.API_VERSION,
        "live_pages": len(registry) if registry is not None else 0,
    }

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

# Include routers
app.include_router(pages_router)
app.include_router(ui_router)
app.include_router(api_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "portal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=config.LOG_LEVEL.lower()
    )
