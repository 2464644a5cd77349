"""Health check route handler."""

from fastapi import APIRouter

from sessionbook.models.schemas import HealthResponse

router = APIRouter()


@router.get("/api/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Service status
    """
    return {"status": "ok", "message": "API is running"}
