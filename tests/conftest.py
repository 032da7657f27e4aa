from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend import llm_service
from backend.db import Base, get_db
from backend.main import app
from backend import models  # noqa: F401


def make_chunk(content):
    """Shape of an OpenAI streaming chunk, reduced to what the relay reads."""
    delta = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


class FakeStream:
    def __init__(self, contents, fail_after=None):
        self.contents = contents
        self.fail_after = fail_after
        self.closed = False

    def __iter__(self):
        for i, content in enumerate(self.contents):
            if self.fail_after is not None and i >= self.fail_after:
                raise RuntimeError("upstream connection reset")
            yield make_chunk(content)

    def close(self):
        self.closed = True


class FakeLLMClient:
    """Stands in for openai.OpenAI; records every create() call."""

    def __init__(self, contents=("Hello", ", ", "world"), fail_on_open=False, fail_after=None):
        self.contents = list(contents)
        self.fail_on_open = fail_on_open
        self.fail_after = fail_after
        self.calls = []
        self.streams = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.fail_on_open:
            raise RuntimeError("401 invalid api key")
        stream = FakeStream(self.contents, self.fail_after)
        self.streams.append(stream)
        return stream


@pytest.fixture
def db_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_session_factory):
    session = db_session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def llm():
    return FakeLLMClient()


@pytest.fixture
def client(db_session_factory, llm):
    def override_get_db():
        session = db_session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[llm_service.get_llm_client] = lambda: llm
    # no context manager: the startup hook would create the default database file
    yield TestClient(app)
    app.dependency_overrides.clear()
