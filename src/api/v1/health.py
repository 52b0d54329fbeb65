from fastapi import APIRouter

from schemas.api import ApiResponse
from services.ai.model_factory import is_generation_configured


router = APIRouter()


@router.get("/health", response_model=ApiResponse[dict[str, str]])
def health_check() -> ApiResponse[dict[str, str]]:
    """Liveness check; also reports whether AI summarization is available."""
    return ApiResponse(
        success=True,
        data={
            "status": "healthy",
            "message": "JobFinder API is running",
            "ai_summaries": "enabled" if is_generation_configured() else "disabled",
        },
        message="Health check successful",
    )
