"""
FastAPI application entry point.
Sets up the API with lifespan events for the pipeline context.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from chatgenius.config import settings
from chatgenius.context import open_pipeline_context
from chatgenius.api.router import api_router
from chatgenius.middleware.metrics_middleware import MetricsMiddleware
from chatgenius.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: Initialize Firebase, LLM provider and vector indexes
    - Shutdown: Close provider clients and database engine
    """
    configure_logging('chatgenius-api', settings.log_level)

    async with open_pipeline_context(settings) as ctx:
        app.state.pipeline = ctx
        logger.info(f"Pipeline ready (vector backend: {settings.vector_backend})")
        yield
        app.state.pipeline = None


# Create FastAPI app
app = FastAPI(
    title="ChatGenius Vector API",
    description="Embedding, retrieval and persona backend for ChatGenius",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware (must be after CORS to track all requests)
app.add_middleware(MetricsMiddleware)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "ChatGenius Vector API",
        "version": "0.1.0",
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
