"""Shared fixtures: a throwaway SQLite database per test, a scripted LLM
and an HTTP client bound to the FastAPI app."""

from collections.abc import AsyncIterator

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobos.database import create_engine_for, get_db, get_session_factory, init_db
from jobos.routers.deps import get_llm_client
from jobos.services.llm_client import MISSING_KEY_MESSAGE, ConfigurationError, OpenRouterClient


class ScriptedLLM:
    """Stand-in for OpenRouterClient that replays queued responses.

    ``responses`` feeds ``complete`` in order; an Exception entry is raised
    instead of returned. ``stream_fragments`` feeds ``stream``, which raises
    ``stream_error`` after the last fragment when set.
    """

    def __init__(self, responses=None, stream_fragments=None, stream_error=None, api_key="test-key"):
        self.responses = list(responses or [])
        self.stream_fragments = list(stream_fragments or [])
        self.stream_error = stream_error
        self.api_key = api_key
        self.calls = []

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(MISSING_KEY_MESSAGE)
        return self.api_key

    async def complete(self, messages, model=None, temperature=None, json_mode=False):
        self.require_api_key()
        self.calls.append(
            {"kind": "complete", "messages": messages, "temperature": temperature, "json_mode": json_mode}
        )
        if not self.responses:
            raise AssertionError("complete() called more times than scripted")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def stream(self, messages, model=None, temperature=None, json_mode=False) -> AsyncIterator[str]:
        self.require_api_key()
        self.calls.append(
            {"kind": "stream", "messages": messages, "temperature": temperature, "json_mode": json_mode}
        )
        for fragment in self.stream_fragments:
            yield fragment
        if self.stream_error is not None:
            raise self.stream_error

    def calls_of(self, kind: str) -> list[dict]:
        return [call for call in self.calls if call["kind"] == kind]


class ChunkedBody(httpx.AsyncByteStream):
    """Response body delivered in the given chunks, optionally failing after them."""

    def __init__(self, chunks, error: Exception | None = None):
        self.chunks = chunks
        self.error = error

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk.encode() if isinstance(chunk, str) else chunk
        if self.error is not None:
            raise self.error


def openrouter_client(handler, api_key: str | None = "test-key") -> OpenRouterClient:
    """Real client wired to an in-process handler."""
    return OpenRouterClient(api_key=api_key, transport=httpx.MockTransport(handler))


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'jobos-test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
async def client(session_factory, llm):
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_llm_client] = lambda: llm

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()
