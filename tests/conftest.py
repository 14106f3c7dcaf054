"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
Environment overrides are applied before any project module is imported so
the cached settings, the module-level engine and the upload directory all
point at a throwaway location.
"""
import os
import sys
import tempfile
from pathlib import Path

import pytest

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="memory-recall-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT / 'test.db'}"
os.environ["LOG_FILE"] = ""
os.environ["UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")
os.environ["QUESTION_INTER_CALL_DELAY"] = "0"

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from recall.generation import MemorySnapshot  # noqa: E402
from recall.llm import ServiceStatus, ServiceUnavailableError  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeGenerator:
    """
    Scripted stand-in for OllamaClient.

    ``responses`` are returned (or raised, for exception instances) in
    order; once they run out every call raises ``error``, which defaults to
    "Ollama not running".
    """

    def __init__(self, responses=None, error=None, models=None):
        self.responses = list(responses or [])
        self.error = error
        self.model = "gpt-oss:20b"
        self.models = ["gpt-oss:20b"] if models is None else models
        self.prompts = []
        self.options = []

    def generate(self, prompt, options=None):
        self.prompts.append(prompt)
        self.options.append(options)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        raise self.error or ServiceUnavailableError("Cannot connect to Ollama")

    def check_status(self, timeout=None):
        if self.error is not None:
            return ServiceStatus(
                running=False, model_available=False, model=self.model, error=str(self.error)
            )
        return ServiceStatus(
            running=True,
            model_available=self.model in self.models,
            model=self.model,
            models=list(self.models),
        )


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def engine():
    """Private in-memory SQLite database with all tables created."""
    from recall.db.database import init_db

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(session):
    from recall.db.memory_store import MemoryStore

    return MemoryStore(session)


@pytest.fixture
def fake_llm():
    """A FakeGenerator with no scripted responses (behaves as unreachable)."""
    return FakeGenerator()


@pytest.fixture
def sample_memories():
    """Three memories, each matching a different fallback rule."""
    return [
        MemorySnapshot(id=1, title="Our new puppy", description="We got a dog and his name is Max", category="pets"),
        MemorySnapshot(id=2, title="Trip to Paris", description="We went to Paris in May", category="travel"),
        MemorySnapshot(id=3, title="Pancakes", description="We had pancakes for breakfast", category="food"),
    ]
