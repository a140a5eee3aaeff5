"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.db.database import init_db, close_db
from app.api.routes import router
from app.pipeline.analysis import build_analysis_backend
from app.services.status_broker import StatusBroker
from app.workers.coordinator import PipelineCoordinator
from app.workers.job_runner import TaskRunner

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.app_name}...")

    await init_db()
    logger.info("Database initialized")

    broker = StatusBroker()
    runner = TaskRunner()
    app.state.broker = broker
    app.state.runner = runner
    app.state.analysis_backend = build_analysis_backend(settings)
    app.state.coordinator = PipelineCoordinator.from_settings(broker, runner, settings)
    logger.info("Processing pipeline ready")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await runner.shutdown()
    await close_db()
    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Turns long videos into vertical short clips with styled subtitles",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.frontend_url,
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router, prefix="/api")


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok", "app": settings.app_name}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": "1.0.0",
        "api": "/api",
        "docs": "/docs"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
