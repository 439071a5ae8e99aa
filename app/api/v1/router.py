"""API v1 router aggregator.

URL structure with /api/v1 prefix. All v1 endpoint routers are included here.
"""

from fastapi import APIRouter

from app.api.v1 import auth, projects, subscription, usage

router = APIRouter()

# =============================================================================
# Authentication & email verification
# =============================================================================

router.include_router(auth.router, prefix="/auth", tags=["auth"])

# =============================================================================
# Usage & quota
# =============================================================================

router.include_router(usage.router, prefix="/usage", tags=["usage"])
router.include_router(projects.router, prefix="/projects", tags=["projects"])

# =============================================================================
# Subscription
# =============================================================================

router.include_router(
    subscription.router, prefix="/subscription", tags=["subscription"]
)
