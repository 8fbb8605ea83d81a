"""
API Router — Combines all endpoint groups.

EDA (7 endpoints):  /api/v1/eda/{analyze,runs,runs/{id},runs/{id}/charts,runs/{id}/export/*,health}
"""

from fastapi import APIRouter

from app.api.v1.eda_endpoints import router as eda_router

api_router = APIRouter()

api_router.include_router(eda_router)
