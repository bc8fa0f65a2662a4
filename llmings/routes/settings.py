"""Health check and settings endpoints."""

from fastapi import APIRouter, HTTPException, Request

from llmings import config

from .models import UpdateSettings

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings(request: Request):
    """Get app settings (LLM connection, card strategy)."""
    try:
        return config.get_config(request.app.state.storage)
    except ValueError as e:
        raise HTTPException(500, str(e))


@router.patch("/settings")
async def update_settings(request: Request, body: UpdateSettings):
    """Update app settings (partial merge)."""
    try:
        return config.update_config(request.app.state.storage, body.model_dump(exclude_none=True))
    except ValueError as e:
        raise HTTPException(400, str(e))
