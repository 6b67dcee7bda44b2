"""
Memory Insights Backend - Main Application
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api import insights
from app.utils.logger import init_logging, LogColors


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    init_logging()

    import logging
    logger = logging.getLogger("main")

    # Startup
    logger.info(f"{LogColors.bold('🚀 Memory Insights Backend starting...')}")
    logger.info(f"🔧 Debug mode: {settings.debug}")

    # Initialize database
    from app.services.db import db_service
    try:
        db_service.initialize()
        logger.info("✅ Database initialized successfully")
    except Exception as e:
        logger.error(f"❌ Database initialization failed: {e}")

    if not settings.openai_api_key:
        logger.warning("⚠️ OPENAI_API_KEY not set, primary provider disabled")
    if not settings.huggingface_api_key:
        logger.warning("⚠️ HUGGINGFACE_API_KEY not set, secondary provider disabled")

    logger.info(f"🌐 API listening on http://{settings.api_host}:{settings.api_port}")

    yield

    # Shutdown
    logger.info("🛑 Memory Insights Backend shutting down...")
    from app.agents.insight_orchestrator import insight_orchestrator
    await insight_orchestrator.close()


# Create FastAPI application
app = FastAPI(
    title="Memory Insights API",
    description="Personalized insights from journal memories",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(insights.router, prefix="/api/v1", tags=["Insights"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": "Memory Insights Backend",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
