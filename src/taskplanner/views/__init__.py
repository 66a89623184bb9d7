from __future__ import annotations

from fastapi import APIRouter

from . import auth, pages, profile, projects, tags, tasks

router = APIRouter()
router.include_router(pages.router)
router.include_router(auth.router, prefix="/auth")
router.include_router(tasks.router, prefix="/app")
router.include_router(projects.router, prefix="/app/projects")
router.include_router(tags.router, prefix="/app/tags")
router.include_router(profile.router, prefix="/app/profile")

__all__ = ["router"]
