import pytest

from llmings.run_state import RunStore, create_run
from llmings.sequencer import Sequencer
from llmings.storage import Storage

TODAY = "2026-10-19"


class StubLLM:
    """Deterministic LLM stand-in for tests.

    Provide a dict mapping stage name → list of responses (in call order).
    A response that is an exception instance is raised instead of returned.
    Raises if a stage is called more times than responses were provided.
    """

    def __init__(self, responses: dict[str, list]) -> None:
        self._queues: dict[str, list] = {k: list(v) for k, v in responses.items()}
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, stage: str, prompt: str) -> str:
        self.calls.append((stage, prompt))
        queue = self._queues.get(stage)
        if not queue:
            raise AssertionError(
                f"StubLLM: unexpected call to stage={stage!r} "
                f"(no responses queued). calls so far: {self.calls}"
            )
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def assert_exhausted(self) -> None:
        """Assert every queued response was consumed — catches missing LLM calls."""
        leftover = {k: v for k, v in self._queues.items() if v}
        if leftover:
            raise AssertionError(f"StubLLM: unused responses remain: {leftover}")


@pytest.fixture
def stub_llm():
    """Factory fixture: stub_llm({"stage": [responses...]}) → StubLLM."""
    return StubLLM


@pytest.fixture(autouse=True)
def clean_llm_env(monkeypatch):
    """Keep a developer's .env from leaking LLM settings into tests."""
    for key in ("LLM_PROVIDER_URL", "LLM_API_KEY", "LLM_PROVIDER_FORMAT",
                "LLM_MODEL", "LLM_TIMEOUT", "CARD_STRATEGY"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def storage(tmp_path) -> Storage:
    return Storage(tmp_path)


@pytest.fixture
def store(storage) -> RunStore:
    return RunStore(storage, today=lambda: TODAY)


@pytest.fixture
def state():
    return create_run("daily", TODAY, TODAY)


@pytest.fixture
def seq(store) -> Sequencer:
    return Sequencer(store, store.create("daily"))
