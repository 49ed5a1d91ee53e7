import pytest
from starlette.testclient import TestClient

import services.builder.core.shared as shared


@pytest.fixture(autouse=True)
def isolate_env_and_cache(monkeypatch, tmp_path):
    # Ensure env vars do not leak into tests
    for k in (
        "REPO_ROOT", "DATABASE_URL", "LLM_MODEL", "LLM_TIMEOUT", "LLM_BASE_URL",
        "OPENAI_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY", "STARTUP_DEBUG", "LOG_LEVEL",
    ):
        monkeypatch.delenv(k, raising=False)

    # Every test gets its own state dir, hence its own SQLite database
    monkeypatch.setenv("APP_STATE_DIR", str(tmp_path))
    # Offline drafter for all tests
    monkeypatch.setenv("LLM_PROVIDER", "mock")

    shared._reset_repo_root_cache_for_tests()
    yield
    shared._reset_repo_root_cache_for_tests()


@pytest.fixture
def client():
    from services.builder.app import app

    app.dependency_overrides.clear()
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def plan_doc():
    from services.builder.llm import sample_plan

    return sample_plan("A todo app with dark mode")
