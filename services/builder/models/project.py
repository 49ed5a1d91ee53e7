from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from services.builder.planner.schema import (
    ApiEndpoint,
    ComponentStructure,
    DatabaseSchema,
    DevelopmentPhases,
    PriorityAssessment,
    ProjectPlanDraft,
    RiskAssessment,
    TechnicalStack,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PlanRequest(_CamelModel):
    user_request: str = Field(description="Free-text description of the project idea")


class PlanCreated(_CamelModel):
    """Body of a successful POST /plans. Keys are prefixed with `project`."""

    project_id: str
    project_name: str
    project_description: str
    project_user_request: str
    project_target_users: str
    project_core_value_proposition: str
    project_technical_stack: TechnicalStack
    project_development_phases: DevelopmentPhases
    project_priority_assessment: PriorityAssessment
    project_risk_assessment: RiskAssessment
    project_database_schema: DatabaseSchema
    project_api_endpoints: List[ApiEndpoint]
    project_component_structure: ComponentStructure

    @classmethod
    def from_plan(cls, project_id: str, user_request: str, plan: ProjectPlanDraft) -> "PlanCreated":
        overview = plan.project_overview
        return cls(
            project_id=project_id,
            project_name=overview.project_name,
            project_description=overview.description,
            project_user_request=user_request,
            project_target_users=overview.target_users,
            project_core_value_proposition=overview.core_value_proposition,
            project_technical_stack=plan.technical_stack,
            project_development_phases=plan.development_phases,
            project_priority_assessment=plan.priority_assessment,
            project_risk_assessment=plan.risk_assessment,
            project_database_schema=plan.database_schema,
            project_api_endpoints=plan.api_endpoints,
            project_component_structure=plan.component_structure,
        )


class Project(_CamelModel):
    """
    A persisted plan row. Facet columns are echoed as stored: rows written by
    other tools may leave them out or hold partial documents.
    """

    id: str
    name: str
    description: Optional[str] = None
    user_request: str
    target_users: Optional[str] = None
    core_value_proposition: Optional[str] = None
    technical_stack: Optional[Any] = None
    development_phases: Optional[Any] = None
    database_schema: Optional[Any] = None
    api_endpoints: Optional[Any] = None
    component_structure: Optional[Any] = None
    priority_assessment: Optional[Any] = None
    risk_assessment: Optional[Any] = None
    status: str = "planning"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ProjectSummary(_CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    user_request: str
    status: str = "planning"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ProjectList(_CamelModel):
    projects: List[ProjectSummary] = []
    total: int = 0
