"""FastAPI API endpoints under /api.

Endpoint groups: health + settings, and the run (state, reset, ad-hoc runs,
dungeon generation, per-encounter obstacle/cards/resolve/reset, advance,
summary).
"""

from fastapi import APIRouter

from .run import router as run_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(run_router)
