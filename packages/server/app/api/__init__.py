"""
API Router

All endpoints are mounted under /api.
"""

from fastapi import APIRouter

from . import admin, auth, contributions, events, polls, profile, reminders, tasks

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(profile.router, prefix="/profile", tags=["Profile"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])
router.include_router(events.router, prefix="/events", tags=["Events"])
router.include_router(polls.router, prefix="/polls", tags=["Polls"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(contributions.router, prefix="/contributions", tags=["Contributions"])
router.include_router(reminders.router, prefix="/reminders", tags=["Reminders"])
