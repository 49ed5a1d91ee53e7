import logging

from fastapi import APIRouter, Depends, Query, status

import services.builder.core.shared as shared
from services.builder.core.errors import GenerationError, ValidationError
from services.builder.core.repos import ProjectsRepoDB
from services.builder.llm import LLMClient, get_llm_from_env
from services.builder.models.project import PlanCreated, PlanRequest, Project, ProjectList
from services.builder.planner.service import PlanGenerator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plans", tags=["plans"])

_ID_REQUIRED = "Project ID is required"


# Input checks are declared ahead of get_llm/get_repo in each route, so an
# empty request or id is answered before any provider or storage work.
def require_user_request(body: PlanRequest) -> str:
    if not body.user_request.strip():
        raise ValidationError("userRequest is required")
    return body.user_request


def require_project_id(project_id: str) -> str:
    pid = (project_id or "").strip()
    if not pid:
        raise ValidationError(_ID_REQUIRED)
    return pid


def get_repo() -> ProjectsRepoDB:
    """Repository bound to the shared engine."""
    return ProjectsRepoDB(shared._engine())


def get_llm() -> LLMClient:
    llm = get_llm_from_env()
    if llm is None:
        raise GenerationError(
            "LLM service is not configured. Set LLM_PROVIDER (openai, gemini or mock) "
            "and the corresponding API key.",
            status_code=503,
        )
    return llm


@router.post("", response_model=PlanCreated, status_code=status.HTTP_201_CREATED)
def create_plan(
    user_request: str = Depends(require_user_request),
    llm: LLMClient = Depends(get_llm),
    repo: ProjectsRepoDB = Depends(get_repo),
):
    """Generate a plan for the request, store it and return it with its id."""
    plan = PlanGenerator(llm).generate(user_request)
    project_id = repo.create(user_request, plan)
    return PlanCreated.from_plan(project_id, user_request, plan)


@router.get("", response_model=ProjectList)
def list_plans(
    limit: int = Query(20, ge=0, le=200),
    offset: int = Query(0, ge=0),
    repo: ProjectsRepoDB = Depends(get_repo),
):
    rows, total = repo.list(limit=limit, offset=offset)
    return ProjectList(projects=rows, total=total)


@router.get("/", include_in_schema=False)
def get_plan_without_id():
    raise ValidationError(_ID_REQUIRED)


@router.delete("/", include_in_schema=False)
def delete_plan_without_id():
    raise ValidationError(_ID_REQUIRED)


@router.get("/{project_id}", response_model=Project)
def get_plan(
    pid: str = Depends(require_project_id),
    repo: ProjectsRepoDB = Depends(get_repo),
):
    return repo.get(pid)


@router.delete("/{project_id}")
def delete_plan(
    pid: str = Depends(require_project_id),
    repo: ProjectsRepoDB = Depends(get_repo),
):
    repo.delete(pid)
    return {"message": "Project deleted"}
