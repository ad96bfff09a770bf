"""FastAPI application for the watchlist and news sentiment tracker."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentiment_tracker.core.config import settings
from sentiment_tracker.core.database import init_db, mask_db_url
from sentiment_tracker.core.errors import install_error_handlers
import logging
import time
import sys

# Import routers
from sentiment_tracker.api.routes import articles, auth, health, public, tickers, users

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Sentiment Tracker API", version="1.0.0")


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    logger.info("Application starting up...")
    logger.info(f"Database: {mask_db_url(settings.database_url)}")

    if settings.create_tables_on_startup:
        logger.info("Creating database tables (CREATE_TABLES_ON_STARTUP is set)")
        await init_db()
    else:
        logger.info("Skipping table creation; run 'alembic upgrade head' to migrate")

    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Release the OIDC HTTP client if it was ever created."""
    if auth.get_oidc_provider.cache_info().currsize:
        await auth.get_oidc_provider().close()
    logger.info("Application shutdown complete")


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests and responses."""
    start_time = time.time()

    logger.info(f"→ {request.method} {request.url.path}")
    logger.debug(f"  Query params: {dict(request.query_params)}")

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(f"← {request.method} {request.url.path} - Status: {response.status_code} - Time: {process_time:.3f}s")

        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(f"← {request.method} {request.url.path} - ERROR after {process_time:.3f}s: {str(e)}")
        raise


# Add global exception handler to ensure CORS headers are sent even on errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and ensure CORS headers are sent."""
    logger.error(f"Unhandled exception in {request.method} {request.url.path}")
    logger.error(f"Exception type: {type(exc).__name__}")
    logger.error(f"Exception message: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc) if settings.log_level == "DEBUG" else "Internal server error",
            "code": "internal_error"
        },
        headers={
            "Access-Control-Allow-Origin": request.headers.get("origin", "*"),
            "Access-Control-Allow-Credentials": "true",
        }
    )


install_error_handlers(app)

# Configure CORS
logger.info(f"Configuring CORS with origins: {settings.cors_origins_list}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(tickers.router)
app.include_router(articles.router)
app.include_router(public.router)


@app.get("/")
async def root():
    """Service banner."""
    return {"status": "ok", "service": "sentiment-tracker-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.backend_port)
