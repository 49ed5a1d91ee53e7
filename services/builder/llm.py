"""
LLM provider clients used by the planner.

Every client exposes one operation, `generate_structured`, which sends a
system prompt plus a user prompt with a JSON schema attached and returns the
raw JSON text of the answer. Decoding and validation are the planner's job.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

import openai
from openai import OpenAI

from services.builder.core.errors import GenerationError
from services.builder.core.settings import load_settings
import services.builder.core.shared as shared

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class LLMClient:
    """Interface for structured plan drafting."""

    provider = "base"
    model = ""

    def generate_structured(
        self,
        system_prompt: str,
        prompt: str,
        schema: Dict[str, Any],
        schema_name: str,
    ) -> str:
        raise NotImplementedError


class OpenAIChatLLM(LLMClient):
    provider = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_OPENAI_MODEL,
        *,
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self.timeout = timeout
        # max_retries=0: a single attempt either succeeds or fails.
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout,
            max_retries=0,
        )

    def generate_structured(self, system_prompt, prompt, schema, schema_name):
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": schema_name,
                        "description": schema.get("description", ""),
                        "schema": schema,
                        "strict": True,
                    },
                },
            )
        except openai.APITimeoutError as e:
            raise GenerationError(f"{self.provider} request timed out after {self.timeout:g}s") from e
        except openai.RateLimitError as e:
            raise GenerationError(f"{self.provider} rate limit exceeded") from e
        except openai.APIConnectionError as e:
            raise GenerationError(f"{self.provider} is unreachable: {e}") from e
        except openai.APIStatusError as e:
            raise GenerationError(f"{self.provider} returned HTTP {e.status_code}") from e
        except openai.OpenAIError as e:
            raise GenerationError(f"{self.provider} request failed: {e}") from e

        if not completion.choices:
            raise GenerationError(f"{self.provider} returned no choices")
        message = completion.choices[0].message
        if getattr(message, "refusal", None):
            raise GenerationError(f"{self.provider} refused the request: {message.refusal}")
        content = (message.content or "").strip()
        if not content:
            raise GenerationError(f"{self.provider} returned an empty plan")
        return content


class GeminiLLM(OpenAIChatLLM):
    """Google Gemini through its OpenAI-compatible endpoint."""

    provider = "gemini"

    def __init__(self, api_key: str, model: str = DEFAULT_GEMINI_MODEL, **kwargs):
        kwargs.setdefault("base_url", GEMINI_OPENAI_BASE_URL)
        super().__init__(api_key, model, **kwargs)


class MockLLM(LLMClient):
    """Deterministic offline drafter for local development and tests."""

    provider = "mock"
    model = "mock"

    def __init__(self, plan: Optional[Dict[str, Any]] = None):
        self._plan = plan
        self.calls: list[Dict[str, Any]] = []

    def generate_structured(self, system_prompt, prompt, schema, schema_name):
        self.calls.append(
            {"system_prompt": system_prompt, "prompt": prompt, "schema": schema, "schema_name": schema_name}
        )
        plan = self._plan if self._plan is not None else sample_plan(_request_from_prompt(prompt))
        return json.dumps(plan)


def _request_from_prompt(prompt: str) -> str:
    marker = "user request:"
    idx = prompt.lower().find(marker)
    return prompt[idx + len(marker):].strip() if idx >= 0 else prompt.strip()


def _project_name(request_text: str) -> str:
    words = [w for w in request_text.replace("\n", " ").split(" ") if w][:5]
    if not words:
        return "Untitled Project"
    return " ".join(w.capitalize() for w in words)


def _task(name: str, target: str, complexity: str, depends: str = "None") -> Dict[str, str]:
    return {
        "taskName": name,
        "fileOrAction": target,
        "description": f"{name} for the application",
        "purpose": f"Required so that later work on {target} can build on it",
        "dependencies": depends,
        "complexity": complexity,
        "technicalNotes": "Keep the change scoped to this single file or action",
    }


def sample_plan(request_text: str) -> Dict[str, Any]:
    """A complete, schema-valid plan derived only from the request text."""
    name = _project_name(request_text)
    return {
        "projectOverview": {
            "projectName": name,
            "description": f"A web application for: {request_text}",
            "targetUsers": "Individuals and small teams",
            "coreValueProposition": "Turns the described idea into a focused, easy-to-use product",
        },
        "technicalStack": {
            "frontend": ["React", "React Router", "TypeScript", "Tailwind CSS", "shadcn/ui"],
            "backend": ["Node.js", "Fastify", "TypeScript"],
            "database": "PostgreSQL",
            "authentication": "Session-based auth library",
            "additionalTools": ["Bun", "Vitest", "Prettier"],
        },
        "developmentPhases": {
            "phase1": {
                "name": "Foundation & Setup",
                "description": "Project initialization, configuration and core structure",
                "tasks": [
                    _task("Initialize Project", "Create Vite React App", "Low"),
                    _task("Install Core Dependencies", "Install Dependencies", "Low", "Initialize Project"),
                    _task("Create Main App Component", "src/App.tsx", "Medium", "Install Core Dependencies"),
                ],
            },
            "phase2": {
                "name": "Core Features",
                "description": "Primary functionality and data operations",
                "tasks": [
                    _task("Define Data Model", "src/db/schema.ts", "Medium"),
                    _task("Implement CRUD API", "src/api/items.ts", "High", "Define Data Model"),
                ],
            },
            "phase3": {
                "name": "Enhanced Features",
                "description": "Secondary features and refinements",
                "tasks": [
                    _task("Add Theme Toggle", "src/components/ThemeToggle.tsx", "Low"),
                ],
            },
            "phase4": {
                "name": "Polish & Production",
                "description": "Testing, hardening and deployment",
                "tasks": [
                    _task("Write Integration Tests", "tests/app.test.ts", "Medium"),
                    _task("Configure Deployment", "Configure CI Pipeline", "Medium", "Write Integration Tests"),
                ],
            },
        },
        "databaseSchema": {
            "entities": ["User", "Item"],
            "relationships": ["User has many Items"],
            "keyFields": ["User.id", "Item.id", "Item.userId"],
            "indexes": ["Item.userId"],
        },
        "apiEndpoints": [
            {
                "route": "GET /api/items",
                "purpose": "List the current user's items",
                "request": "None",
                "response": "Array of items",
                "authentication": True,
            },
            {
                "route": "POST /api/items",
                "purpose": "Create an item",
                "request": "Item fields as JSON",
                "response": "The created item",
                "authentication": True,
            },
        ],
        "componentStructure": {
            "pages": ["HomePage", "ItemsPage"],
            "sharedComponents": ["Button", "Layout"],
            "featureComponents": ["ItemList", "ItemForm"],
            "hooks": ["useItems"],
            "utils": ["formatDate"],
        },
        "priorityAssessment": {
            "mustHave": ["Item CRUD"],
            "shouldHave": ["Dark mode"],
            "couldHave": ["Sharing"],
            "wontHave": ["Native mobile apps"],
        },
        "riskAssessment": {
            "technicalRisks": ["Schema changes after launch"],
            "timelineRisks": ["Underestimated UI polish"],
            "dependencyRisks": ["Third-party auth outages"],
            "mitigationStrategies": ["Ship migrations early", "Keep scope to the MVP"],
        },
    }


def get_llm_from_env() -> Optional[LLMClient]:
    """
    Build the client selected by LLM_PROVIDER (settings.json may supply it too).
    Returns None when no provider is configured or its API key is missing.
    """
    cfg = load_settings(shared._repo_root())
    provider = cfg["llm_provider"]
    model = cfg["llm_model"]
    timeout = cfg["llm_timeout"]
    base_url = cfg["llm_base_url"] or None

    if provider == "mock":
        return MockLLM()

    if provider == "openai":
        api_key = os.getenv("OPENAI_API_KEY", "").strip()
        if not api_key:
            logger.warning("[llm] LLM_PROVIDER=openai but OPENAI_API_KEY is not set")
            return None
        return OpenAIChatLLM(api_key, model or DEFAULT_OPENAI_MODEL, base_url=base_url, timeout=timeout)

    if provider == "gemini":
        api_key = (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or "").strip()
        if not api_key:
            logger.warning("[llm] LLM_PROVIDER=gemini but GEMINI_API_KEY/GOOGLE_API_KEY is not set")
            return None
        return GeminiLLM(api_key, model or DEFAULT_GEMINI_MODEL, base_url=base_url or GEMINI_OPENAI_BASE_URL, timeout=timeout)

    if provider:
        logger.warning("[llm] unknown LLM_PROVIDER %r", provider)
    return None
