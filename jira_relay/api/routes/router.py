from fastapi import APIRouter

from .auth import router as auth_router
from .jira import router as jira_router
from .utils.health import router as health_router

router = APIRouter()
router.include_router(health_router, prefix="/utils", tags=["utils"])
router.include_router(auth_router)
router.include_router(jira_router)
