"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from chatgenius.api import health, vectordb, search, assistant, agent, admin

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(vectordb.router, prefix="/vectordb", tags=["vectordb"])
api_router.include_router(search.router, prefix="/search", tags=["search"])
api_router.include_router(assistant.router, prefix="/assistant", tags=["assistant"])
api_router.include_router(agent.router, prefix="/ai-agent", tags=["ai-agent"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
