from fastapi import APIRouter, Depends

from dependencies.auth import get_current_user

from .health import router as health_router
from .profile import router as profile_router
from .summaries import router as summaries_router


# Public API router (health)
api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])

# Protected routers: a router-level dependency makes every route require a
# bearer token and surfaces the OAuth2 scheme in OpenAPI.
protected_deps = [Depends(get_current_user)]
api_router.include_router(summaries_router, dependencies=protected_deps)
api_router.include_router(profile_router, dependencies=protected_deps)
