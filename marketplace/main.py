from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime

from marketplace.utils.logging_config import configure_for_environment, get_logger

# Configure logging first
configure_for_environment()

from marketplace.routers import engagements, teams, verification  # noqa: E402
from marketplace.middleware.error_handlers import (  # noqa: E402
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    PerformanceMiddleware,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("Marketplace API starting up...")

    try:
        from marketplace.services.db import init_indexes
        await init_indexes()
        logger.info("Database indexes initialized successfully")
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - some operations may be slower without indexes")

    logger.info("Marketplace API startup completed")

    yield

    logger.info("Marketplace API shutting down...")


app = FastAPI(title="Talent Marketplace API", version="1.0.0", lifespan=lifespan)

# Add middleware in order (LIFO - Last In, First Out)
# Exception handler should be the outermost middleware
# Suggestion runs score the whole candidate pool: 5s before flagging
app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0, route_thresholds={"/api/teams": 5.0})
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ExceptionHandlerMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
@app.head("/")
async def root():
    """Root endpoint - handles both GET and HEAD requests for health checks"""
    logger.debug("Root endpoint accessed")
    return {"message": "Welcome to the Talent Marketplace API", "version": "1.0.0", "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    """Health check endpoint - handles both GET and HEAD requests"""
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


app.include_router(teams.router, prefix="/api/teams", tags=["teams"])
app.include_router(engagements.router, prefix="/api/engagements", tags=["engagements"])
app.include_router(verification.router, prefix="/api/users", tags=["verification"])

logger.info("Marketplace API initialized successfully")
