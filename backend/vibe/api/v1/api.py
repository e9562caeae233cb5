"""API v1 — aggregates all routers under a single prefix."""

from fastapi import APIRouter

from vibe.api.v1.routers import jobs, messages, projects, usage

router = APIRouter()
router.include_router(projects.router)
router.include_router(messages.router)
router.include_router(usage.router)
router.include_router(jobs.router)
