# services/builder/planner/schema.py
"""
Structural contract for generated plans.

Every facet is its own pydantic model so it can be validated, serialized and
stored on its own. Field names on the wire are camelCase (what the provider
is asked to produce and what the HTTP API returns); attribute names are
snake_case.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from services.builder.core.errors import SchemaValidationError

Complexity = Literal["Low", "Medium", "High"]
ProjectStatus = Literal["planning", "in-progress", "completed", "paused"]

PROJECT_STATUSES = ("planning", "in-progress", "completed", "paused")
PHASE_KEYS = ("phase1", "phase2", "phase3", "phase4")

SCHEMA_NAME = "WebAppDevelopmentPlan"
SCHEMA_DESCRIPTION = "A comprehensive development plan for building a web application"


class _Facet(BaseModel):
    # Wire names only; snake_case keys from a provider are unknown fields.
    model_config = ConfigDict(alias_generator=to_camel, extra="forbid")

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Task(_Facet):
    task_name: str
    file_or_action: str
    description: str
    purpose: str
    dependencies: str
    complexity: Complexity
    technical_notes: str


class Phase(_Facet):
    name: str
    description: str
    tasks: List[Task] = Field(min_length=1)


class DevelopmentPhases(_Facet):
    phase1: Phase
    phase2: Phase
    phase3: Phase
    phase4: Phase

    def ordered(self) -> List[Phase]:
        return [getattr(self, k) for k in PHASE_KEYS]


class ProjectOverview(_Facet):
    project_name: str
    description: str
    target_users: str
    core_value_proposition: str


class TechnicalStack(_Facet):
    frontend: List[str]
    backend: List[str]
    database: str
    authentication: str
    additional_tools: List[str]


class DatabaseSchema(_Facet):
    entities: List[str]
    relationships: List[str]
    key_fields: List[str]
    indexes: List[str]


class ApiEndpoint(_Facet):
    route: str
    purpose: str
    request: str
    response: str
    authentication: StrictBool


class ComponentStructure(_Facet):
    pages: List[str]
    shared_components: List[str]
    feature_components: List[str]
    hooks: List[str]
    utils: List[str]


class PriorityAssessment(_Facet):
    must_have: List[str]
    should_have: List[str]
    could_have: List[str]
    wont_have: List[str]


class RiskAssessment(_Facet):
    technical_risks: List[str]
    timeline_risks: List[str]
    dependency_risks: List[str]
    mitigation_strategies: List[str]


class ProjectPlanDraft(_Facet):
    """A schema-valid plan as returned by the generator (no id/status/timestamps yet)."""

    project_overview: ProjectOverview
    technical_stack: TechnicalStack
    development_phases: DevelopmentPhases
    database_schema: DatabaseSchema
    api_endpoints: List[ApiEndpoint]
    component_structure: ComponentStructure
    priority_assessment: PriorityAssessment
    risk_assessment: RiskAssessment


def _path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def _violations(exc: PydanticValidationError) -> List[Dict[str, str]]:
    out = []
    for err in exc.errors(include_url=False):
        out.append({"path": _path(err.get("loc", ())), "reason": err.get("msg", "invalid")})
    return out


def validate_plan(document: Any) -> ProjectPlanDraft:
    """
    Validate a decoded JSON value against the plan shape.

    Returns the typed plan, or raises SchemaValidationError listing every
    violation found anywhere in the document (missing field, wrong type,
    value outside an enum, bad array element). Nothing is partially accepted.
    """
    if not isinstance(document, Mapping):
        raise SchemaValidationError(
            [{"path": "<root>", "reason": f"expected an object, got {type(document).__name__}"}]
        )
    try:
        return ProjectPlanDraft.model_validate(dict(document))
    except PydanticValidationError as exc:
        raise SchemaValidationError(_violations(exc)) from exc


# Keywords the strict structured-output mode of the providers does not accept.
_UNSUPPORTED_KEYWORDS = ("minItems", "maxItems", "title", "default")


def _strip(node: Any) -> Any:
    if isinstance(node, dict):
        out = {}
        for key, value in node.items():
            if key in _UNSUPPORTED_KEYWORDS and not isinstance(value, dict):
                continue
            out[key] = _strip(value)
        return out
    if isinstance(node, list):
        return [_strip(item) for item in node]
    return node


def plan_json_schema() -> Dict[str, Any]:
    """JSON Schema sent to the provider with strict conformance requested."""
    schema = ProjectPlanDraft.model_json_schema(by_alias=True)
    schema = _strip(copy.deepcopy(schema))
    schema["description"] = SCHEMA_DESCRIPTION
    return schema
