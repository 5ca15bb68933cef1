"""Health check endpoints."""

from fastapi import APIRouter

from app.core.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Check if the API is running."""
    return {"success": True, "message": f"{get_settings().app_name} is running"}
