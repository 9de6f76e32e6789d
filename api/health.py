"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from config.settings import get_settings

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health() -> dict:
    settings = get_settings()
    return {"status": "healthy", "documentStore": settings.document_store_type}
