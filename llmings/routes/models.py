"""Pydantic request models for API endpoints."""

from pydantic import BaseModel


class ResolveBody(BaseModel):
    owner_id: int


class LLMSettings(BaseModel):
    provider_url: str | None = None
    api_key: str | None = None
    provider_format: str | None = None
    model: str | None = None
    timeout: float | None = None


class UpdateSettings(BaseModel):
    llm: LLMSettings | None = None
    card_strategy: str | None = None
