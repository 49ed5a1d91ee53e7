# services/builder/core/repos.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import (
    CheckConstraint, Column, DateTime, MetaData, String, Table, Text, JSON,
    delete as sa_delete, desc, func, insert, select, text,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from services.builder.core.errors import NotFound, StorageError, ValidationError
from services.builder.core.shared import _new_id
from services.builder.planner.schema import PROJECT_STATUSES, ProjectPlanDraft

logger = logging.getLogger(__name__)

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests/dev)
_JSONType = JSON().with_variant(postgresql.JSONB(), "postgresql")

_PROJECTS_METADATA = MetaData()
_PROJECTS_TABLE = Table(
    "projects",
    _PROJECTS_METADATA,
    Column("id", String, primary_key=True),
    Column("name", Text, nullable=False),
    Column("description", Text, nullable=True),
    Column("user_request", Text, nullable=False),
    Column("target_users", Text, nullable=True),
    Column("core_value_proposition", Text, nullable=True),
    Column("technical_stack", _JSONType, nullable=True),
    Column("development_phases", _JSONType, nullable=True),
    Column("database_schema", _JSONType, nullable=True),
    Column("api_endpoints", _JSONType, nullable=True),
    Column("component_structure", _JSONType, nullable=True),
    Column("priority_assessment", _JSONType, nullable=True),
    Column("risk_assessment", _JSONType, nullable=True),
    Column("status", String(50), nullable=False, server_default="planning"),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    CheckConstraint(
        "status IN (" + ", ".join(f"'{s}'" for s in PROJECT_STATUSES) + ")",
        name="ck_projects_status",
    ),
)

# Structured facets stored as independent JSON columns, in row order.
FACET_COLUMNS = (
    "technical_stack",
    "development_phases",
    "database_schema",
    "api_endpoints",
    "component_structure",
    "priority_assessment",
    "risk_assessment",
)


def ensure_projects_schema(engine: Engine) -> None:
    _PROJECTS_METADATA.create_all(engine)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _row_to_dict(row: Any) -> Dict[str, Any]:
    data = dict(row)
    data["created_at"] = _iso(data.get("created_at"))
    data["updated_at"] = _iso(data.get("updated_at"))
    data["status"] = data.get("status") or "planning"
    return data


def plan_to_row(user_request: str, plan: ProjectPlanDraft) -> Dict[str, Any]:
    """Flatten the overview into scalar columns; keep every facet as JSON."""
    overview = plan.project_overview
    return {
        "name": overview.project_name,
        "description": overview.description,
        "user_request": user_request,
        "target_users": overview.target_users,
        "core_value_proposition": overview.core_value_proposition,
        "technical_stack": plan.technical_stack.to_json(),
        "development_phases": plan.development_phases.to_json(),
        "database_schema": plan.database_schema.to_json(),
        "api_endpoints": [e.to_json() for e in plan.api_endpoints],
        "component_structure": plan.component_structure.to_json(),
        "priority_assessment": plan.priority_assessment.to_json(),
        "risk_assessment": plan.risk_assessment.to_json(),
    }


class ProjectsRepoDB:
    """One row per generated plan. Each operation is a single statement."""

    def __init__(self, engine: Engine):
        self.engine = engine
        try:
            ensure_projects_schema(engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not prepare project store: {e.__class__.__name__}") from e

    def create(self, user_request: str, plan: ProjectPlanDraft, status: str = "planning") -> str:
        """Insert the plan and return the store-assigned id."""
        if not (user_request or "").strip():
            raise ValidationError("userRequest is required")
        if not (plan.project_overview.project_name or "").strip():
            raise ValidationError("Project name is required")
        status = status or "planning"
        if status not in PROJECT_STATUSES:
            raise ValidationError(f"Invalid status: {status!r}")

        now = datetime.now(timezone.utc)
        row = plan_to_row(user_request, plan)
        row.update({"id": _new_id(), "status": status, "created_at": now, "updated_at": now})
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(_PROJECTS_TABLE).values(**row))
        except SQLAlchemyError as e:
            logger.error("[projects] insert failed: %s", e.__class__.__name__)
            raise StorageError("Could not store project") from e
        logger.info("[projects] created id=%s name=%r", row["id"], row["name"])
        return row["id"]

    def get(self, project_id: str) -> Dict[str, Any]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(_PROJECTS_TABLE).where(_PROJECTS_TABLE.c.id == project_id)
                ).mappings().first()
        except SQLAlchemyError as e:
            logger.error("[projects] get failed id=%s: %s", project_id, e.__class__.__name__)
            raise StorageError("Could not read project") from e
        if not row:
            raise NotFound()
        return _row_to_dict(row)

    def delete(self, project_id: str) -> None:
        # Hard delete; a missing row is not an error.
        try:
            with self.engine.begin() as conn:
                res = conn.execute(sa_delete(_PROJECTS_TABLE).where(_PROJECTS_TABLE.c.id == project_id))
        except SQLAlchemyError as e:
            logger.error("[projects] delete failed id=%s: %s", project_id, e.__class__.__name__)
            raise StorageError("Could not delete project") from e
        logger.info("[projects] delete id=%s rows=%s", project_id, res.rowcount)

    def list(self, limit: int = 20, offset: int = 0) -> Tuple[List[Dict[str, Any]], int]:
        """Newest-first summaries (no facets) and the total row count."""
        limit = max(0, min(int(limit), 200))
        offset = max(0, int(offset))
        t = _PROJECTS_TABLE
        stmt = (
            select(t.c.id, t.c.name, t.c.description, t.c.user_request, t.c.status, t.c.created_at, t.c.updated_at)
            .order_by(desc(t.c.created_at), t.c.id)
            .limit(limit)
            .offset(offset)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
                total = conn.execute(select(func.count()).select_from(t)).scalar_one()
        except SQLAlchemyError as e:
            logger.error("[projects] list failed: %s", e.__class__.__name__)
            raise StorageError("Could not list projects") from e
        return [_row_to_dict(r) for r in rows], int(total)
