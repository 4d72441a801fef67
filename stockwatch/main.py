"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging
from stockwatch.config import settings
from stockwatch.routers import stock

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Stock monitor service starting: data_file={settings.products_data_file}, "
        f"source_timeout={settings.source_timeout}s, source_retries={settings.source_retries}"
    )
    yield
    logger.info("Stock monitor service stopped")


# Initialize FastAPI app
app = FastAPI(
    title="Stock Level Monitoring Service",
    version="1.0.0",
    docs_url="/docs",
    lifespan=lifespan
)

# Include routers
app.include_router(stock.router)


@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": "Stock Level Monitoring Service",
        "version": "1.0.0",
        "endpoints": {
            "ingest": "/stock/ingest",
            "alerts": "/stock/alerts",
            "status": "/stock/status/{product_id}",
            "reset": "/stock/reset",
            "refresh_branch": "/stock/branches/{branch_id}/refresh",
            "notifications": "/stock/notifications",
            "docs": "/docs"
        }
    }


@app.get("/health")
async def health_check():
    """
    Health check endpoint.
    """
    return {
        "status": "healthy",
        "service": "stock-monitor-service",
        "tracked_products": len(stock.controller.service.monitor)
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "stockwatch.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
