"""
FastAPI application entry point.

Read, refresh and compare endpoints over the quality ratings.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fundscope.core.config import settings
from fundscope.core.logging import setup_logging
from fundscope.core.database import close_db

# Setup logging
setup_logging()

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Quality scores for listed securities and mutual funds",
    debug=settings.DEBUG,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("shutdown")
async def shutdown() -> None:
    """Run on application shutdown."""
    await close_db()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


from fundscope.api.stock_ratings import router as stock_ratings_router
from fundscope.api.fund_ratings import router as fund_ratings_router
from fundscope.api.portfolio_overlap import router as portfolio_overlap_router
from fundscope.api.metrics import router as metrics_router

app.include_router(stock_ratings_router, prefix="/api/v1/stock-ratings", tags=["stock-ratings"])
app.include_router(fund_ratings_router, prefix="/api/v1/fund-ratings", tags=["fund-ratings"])
app.include_router(portfolio_overlap_router, prefix="/api/v1/portfolio-overlap", tags=["portfolio-overlap"])
app.include_router(metrics_router, prefix="/api/v1/metrics", tags=["metrics"])
