from sqlalchemy import inspect
from starlette.testclient import TestClient

import services.builder.core.shared as shared
from services.builder.app import app
from services.builder.llm import LLMClient
from services.builder.routes.plans import get_llm


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_health_with_startup_debug(client, monkeypatch):
    monkeypatch.setenv("STARTUP_DEBUG", "1")
    assert client.get("/health").status_code == 200


def test_lifespan_creates_projects_table():
    with TestClient(app) as c:
        assert c.get("/health").status_code == 200
    assert "projects" in inspect(shared._engine()).get_table_names()


def test_unknown_route_uses_error_body(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json() == {"error": "Not Found"}


def test_unhandled_exception_is_generic_500(client):
    class _Broken(LLMClient):
        provider = "broken"

        def generate_structured(self, system_prompt, prompt, schema, schema_name):
            raise RuntimeError("secret internals")

    app.dependency_overrides[get_llm] = lambda: _Broken()
    r = client.post("/plans", json={"userRequest": "A todo app"})
    assert r.status_code == 500
    assert r.json() == {"error": "Unexpected error."}
    assert "secret" not in r.text


def test_openapi_lists_plan_routes(client):
    paths = client.get("/openapi.json").json()["paths"]
    assert "/plans" in paths
    assert "/plans/{project_id}" in paths
