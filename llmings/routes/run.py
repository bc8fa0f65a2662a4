"""Run endpoints: state, reset, obstacles, cards, resolve, advance, summary.

Every endpoint takes an optional `mode` query parameter ("daily" by
default, or "ad-hoc") selecting which of today's runs it acts on. LLM-backed
steps hold the app's run lock, so at most one call to the model is in
flight and no two requests race to write the run.

Error mapping:
  RequestFailure → 502   model backend unreachable or erroring
  ParseFailure   → 422   model output unusable; detail carries the raw text
  IndexError     → 404   no such encounter
  ValueError     → 400   step not allowed in the current state
  PromptError    → 500
"""

import logging

from fastapi import APIRouter, HTTPException, Request

from llmings import config, pipeline
from llmings.llm import RequestFailure
from llmings.models import GameMode, RunState
from llmings.parsers import ParseFailure
from llmings.prompts import PromptError
from llmings.run_state import RunStore
from llmings.sequencer import Sequencer
from llmings.summary import summarize_run

from .models import ResolveBody

logger = logging.getLogger(__name__)

router = APIRouter()


def _sequencer(request: Request, mode: GameMode) -> Sequencer:
    store: RunStore = request.app.state.store
    return Sequencer(store, store.load_or_create(mode))


def _view(state: RunState) -> dict:
    return {
        **state.model_dump(mode="json"),
        "complete": state.is_complete,
        "survivors": state.survivors,
    }


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, RequestFailure):
        return HTTPException(502, str(e))
    if isinstance(e, ParseFailure):
        return HTTPException(422, {"error": str(e), "raw": e.raw})
    if isinstance(e, IndexError):
        return HTTPException(404, str(e))
    if isinstance(e, PromptError):
        return HTTPException(500, str(e))
    return HTTPException(400, str(e))


_STEP_ERRORS = (RequestFailure, ParseFailure, PromptError, IndexError, ValueError)


@router.get("/run")
async def get_run(request: Request, mode: GameMode = "daily"):
    """Get today's run for the mode, creating it if needed."""
    async with request.app.state.run_lock:
        return _view(_sequencer(request, mode).state)


@router.post("/run/reset")
async def reset_run(request: Request, mode: GameMode = "daily"):
    """Throw away today's run for the mode and start a fresh one."""
    async with request.app.state.run_lock:
        return _view(request.app.state.store.reset(mode))


@router.post("/run/ad-hoc")
async def new_ad_hoc_run(request: Request):
    """Start an ad-hoc run with a random seed."""
    async with request.app.state.run_lock:
        return _view(request.app.state.store.create("ad-hoc"))


@router.post("/run/dungeon")
async def generate_dungeon(request: Request, mode: GameMode = "daily"):
    """Generate obstacles for every encounter still missing one."""
    async with request.app.state.run_lock:
        seq = _sequencer(request, mode)
        llm = config.build_llm(config.get_config(request.app.state.storage))
        try:
            state = await pipeline.generate_dungeon(seq, llm)
        except _STEP_ERRORS as e:
            logger.warning("dungeon generation failed: %s", e)
            raise _http_error(e) from e
        return _view(state)


@router.post("/run/encounters/{index}/obstacle")
async def prepare_obstacle(request: Request, index: int, mode: GameMode = "daily"):
    """Generate a single obstacle for an encounter that has none."""
    async with request.app.state.run_lock:
        seq = _sequencer(request, mode)
        llm = config.build_llm(config.get_config(request.app.state.storage))
        try:
            obstacle = await pipeline.prepare_obstacle(seq, llm, index)
        except _STEP_ERRORS as e:
            logger.warning("obstacle %d failed: %s", index, e)
            raise _http_error(e) from e
        return obstacle


@router.post("/run/encounters/{index}/cards")
async def draw_cards(request: Request, index: int, mode: GameMode = "daily"):
    """Draw one action card per living member."""
    async with request.app.state.run_lock:
        seq = _sequencer(request, mode)
        settings = config.get_config(request.app.state.storage)
        llm = config.build_llm(settings)
        try:
            cards = await pipeline.draw_cards(seq, llm, settings["card_strategy"], index)
        except _STEP_ERRORS as e:
            logger.warning("cards for encounter %d failed: %s", index, e)
            raise _http_error(e) from e
        return {"cards": cards}


@router.post("/run/encounters/{index}/resolve")
async def resolve_card(request: Request, index: int, body: ResolveBody, mode: GameMode = "daily"):
    """Play the chosen member's card and record the verdict."""
    async with request.app.state.run_lock:
        seq = _sequencer(request, mode)
        llm = config.build_llm(config.get_config(request.app.state.storage))
        try:
            result = await pipeline.resolve_card(seq, llm, body.owner_id, index)
        except _STEP_ERRORS as e:
            logger.warning("resolve for encounter %d failed: %s", index, e)
            raise _http_error(e) from e
        return {"result": result, "run": _view(seq.state)}


@router.post("/run/encounters/{index}/reset")
async def reset_encounter(request: Request, index: int, mode: GameMode = "daily"):
    """Clear an encounter back to pending so its steps can be retried."""
    async with request.app.state.run_lock:
        seq = _sequencer(request, mode)
        try:
            state = seq.reset_encounter(index)
        except IndexError as e:
            raise _http_error(e) from e
        return _view(state)


@router.post("/run/advance")
async def advance(request: Request, mode: GameMode = "daily"):
    """Move on to the next encounter."""
    async with request.app.state.run_lock:
        return _view(_sequencer(request, mode).advance())


@router.get("/run/summary")
async def run_summary(request: Request, mode: GameMode = "daily"):
    """End-of-run tally."""
    async with request.app.state.run_lock:
        return summarize_run(_sequencer(request, mode).state)
