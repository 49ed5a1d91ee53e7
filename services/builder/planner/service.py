# services/builder/planner/service.py
from __future__ import annotations

import json
import logging
from typing import Optional

from services.builder.core.errors import GenerationError, SchemaValidationError, ValidationError
from services.builder.llm import LLMClient, get_llm_from_env
from services.builder.planner.prompt_templates import plan_system_prompt, plan_user_prompt
from services.builder.planner.schema import (
    SCHEMA_NAME,
    ProjectPlanDraft,
    plan_json_schema,
    validate_plan,
)

logger = logging.getLogger(__name__)


class PlanGenerator:
    """
    Turns a free-text request into a schema-valid plan with one structured
    LLM call. Does not persist anything.
    """

    def __init__(self, llm: LLMClient):
        self.llm = llm

    def build_request(self, user_request: str) -> tuple[str, str]:
        return plan_system_prompt(), plan_user_prompt(user_request)

    def generate(self, user_request: str) -> ProjectPlanDraft:
        text = (user_request or "").strip() if isinstance(user_request, str) else ""
        if not text:
            raise ValidationError("userRequest is required")

        system_prompt, prompt = self.build_request(user_request)
        logger.info(
            "[planner] requesting plan provider=%s model=%s request_chars=%d",
            self.llm.provider, self.llm.model, len(user_request),
        )
        raw = self.llm.generate_structured(system_prompt, prompt, plan_json_schema(), SCHEMA_NAME)

        try:
            document = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("[planner] provider returned non-JSON content (%d chars)", len(raw or ""))
            raise GenerationError("LLM returned invalid JSON") from e

        try:
            plan = validate_plan(document)
        except SchemaValidationError as e:
            logger.warning("[planner] plan rejected: %d schema violation(s)", len(e.violations))
            raise
        logger.info(
            "[planner] plan accepted name=%r tasks=%d",
            plan.project_overview.project_name,
            sum(len(p.tasks) for p in plan.development_phases.ordered()),
        )
        return plan


def generate_plan(user_request: str, llm: Optional[LLMClient] = None) -> ProjectPlanDraft:
    """Convenience wrapper resolving the provider from the environment."""
    if llm is None:
        llm = get_llm_from_env()
    if llm is None:
        raise GenerationError(
            "LLM service is not configured. Set LLM_PROVIDER (openai, gemini or mock) "
            "and the corresponding API key.",
            status_code=503,
        )
    return PlanGenerator(llm).generate(user_request)
