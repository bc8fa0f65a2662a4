import asyncio
import os
from collections.abc import Callable
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from llmings.routes import router
from llmings.run_state import RunStore, today_key
from llmings.storage import Storage

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def create_app(
    data_dir: Path | None = None,
    today: Callable[[], str] = today_key,
) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage = Storage(resolved)

    app = FastAPI(title="LLMings Dungeon")
    app.state.storage = storage
    app.state.store = RunStore(storage, today=today)
    # One run, one writer: every run operation holds this lock end to end.
    app.state.run_lock = asyncio.Lock()
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
