from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import health, tools
from .api.middleware import RequestLoggingMiddleware
from .config import settings
from .core.factory import build_toolkit
from .logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if getattr(app.state, "toolkit", None) is None:
        app.state.toolkit = build_toolkit(settings)
    app.state.toolkit.start()
    try:
        yield
    finally:
        await app.state.toolkit.close()


# Create FastAPI app
app = FastAPI(
    title="Quoteflow API",
    description="Quote lifecycle and multi-provider execution engine for swaps, bridges, staking and transfers",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(tools.router, tags=["Tools"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Quoteflow API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/healthz",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "quoteflow.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
