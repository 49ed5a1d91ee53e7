import copy

import pytest

from services.builder.core.errors import SchemaValidationError
from services.builder.planner.schema import (
    PHASE_KEYS,
    DevelopmentPhases,
    ProjectPlanDraft,
    TechnicalStack,
    plan_json_schema,
    validate_plan,
)


def _paths(exc_info):
    return {v["path"] for v in exc_info.value.violations}


def test_valid_document_returns_typed_plan(plan_doc):
    plan = validate_plan(plan_doc)
    assert isinstance(plan, ProjectPlanDraft)
    assert plan.project_overview.project_name == "A Todo App With Dark"
    assert [p.name for p in plan.development_phases.ordered()][0] == "Foundation & Setup"
    for key in PHASE_KEYS:
        phase = getattr(plan.development_phases, key)
        assert phase.tasks
        assert all(t.complexity in ("Low", "Medium", "High") for t in phase.tasks)


def test_task_order_is_preserved(plan_doc):
    plan = validate_plan(plan_doc)
    names = [t.task_name for t in plan.development_phases.phase1.tasks]
    assert names == [t["taskName"] for t in plan_doc["developmentPhases"]["phase1"]["tasks"]]


def test_missing_technical_stack_is_rejected(plan_doc):
    del plan_doc["technicalStack"]
    with pytest.raises(SchemaValidationError) as ei:
        validate_plan(plan_doc)
    assert "technicalStack" in _paths(ei)


def test_out_of_enum_complexity_is_rejected(plan_doc):
    plan_doc["developmentPhases"]["phase3"]["tasks"][0]["complexity"] = "Extreme"
    with pytest.raises(SchemaValidationError) as ei:
        validate_plan(plan_doc)
    assert "developmentPhases.phase3.tasks.0.complexity" in _paths(ei)


def test_every_violation_is_reported(plan_doc):
    plan_doc["developmentPhases"]["phase1"]["tasks"][1]["complexity"] = "Trivial"
    del plan_doc["developmentPhases"]["phase4"]["tasks"][0]["purpose"]
    plan_doc["technicalStack"]["frontend"] = ["React", 42]
    plan_doc["apiEndpoints"][0]["authentication"] = "yes"
    del plan_doc["riskAssessment"]

    with pytest.raises(SchemaValidationError) as ei:
        validate_plan(plan_doc)

    paths = _paths(ei)
    assert "developmentPhases.phase1.tasks.1.complexity" in paths
    assert "developmentPhases.phase4.tasks.0.purpose" in paths
    assert "technicalStack.frontend.1" in paths
    assert "apiEndpoints.0.authentication" in paths
    assert "riskAssessment" in paths
    assert len(ei.value.violations) == 5
    assert all(v["reason"] for v in ei.value.violations)


def test_missing_phase_is_rejected(plan_doc):
    del plan_doc["developmentPhases"]["phase4"]
    with pytest.raises(SchemaValidationError) as ei:
        validate_plan(plan_doc)
    assert "developmentPhases.phase4" in _paths(ei)


def test_empty_task_list_is_rejected(plan_doc):
    plan_doc["developmentPhases"]["phase2"]["tasks"] = []
    with pytest.raises(SchemaValidationError) as ei:
        validate_plan(plan_doc)
    assert "developmentPhases.phase2.tasks" in _paths(ei)


def test_unknown_field_is_rejected(plan_doc):
    plan_doc["technicalStack"]["hosting"] = "Vercel"
    with pytest.raises(SchemaValidationError) as ei:
        validate_plan(plan_doc)
    assert "technicalStack.hosting" in _paths(ei)


def test_snake_case_keys_are_not_accepted(plan_doc):
    plan_doc["project_overview"] = plan_doc.pop("projectOverview")
    task = plan_doc["developmentPhases"]["phase1"]["tasks"][0]
    task["task_name"] = task.pop("taskName")
    with pytest.raises(SchemaValidationError) as ei:
        validate_plan(plan_doc)
    paths = _paths(ei)
    assert {"projectOverview", "project_overview"} <= paths
    assert "developmentPhases.phase1.tasks.0.taskName" in paths


@pytest.mark.parametrize("value", [None, [], "plan", 3])
def test_non_object_document_is_rejected(value):
    with pytest.raises(SchemaValidationError) as ei:
        validate_plan(value)
    assert _paths(ei) == {"<root>"}


def test_facets_serialize_back_to_camel_case(plan_doc):
    plan = validate_plan(copy.deepcopy(plan_doc))
    assert plan.technical_stack.to_json() == plan_doc["technicalStack"]
    assert plan.development_phases.to_json() == plan_doc["developmentPhases"]
    assert plan.to_json() == plan_doc


def test_facets_validate_on_their_own(plan_doc):
    stack = TechnicalStack.model_validate(plan_doc["technicalStack"])
    assert stack.additional_tools == plan_doc["technicalStack"]["additionalTools"]
    phases = DevelopmentPhases.model_validate(plan_doc["developmentPhases"])
    assert len(phases.ordered()) == 4


def _walk(node):
    yield node
    if isinstance(node, dict):
        for v in node.values():
            yield from _walk(v)
    elif isinstance(node, list):
        for v in node:
            yield from _walk(v)


def test_provider_schema_is_strict():
    schema = plan_json_schema()
    assert schema["type"] == "object"
    assert set(schema["required"]) == {
        "projectOverview", "technicalStack", "developmentPhases", "databaseSchema",
        "apiEndpoints", "componentStructure", "priorityAssessment", "riskAssessment",
    }
    objects = [n for n in _walk(schema) if isinstance(n, dict) and n.get("type") == "object"]
    assert objects
    for obj in objects:
        assert obj.get("additionalProperties") is False
        assert set(obj["required"]) == set(obj["properties"])
    for node in _walk(schema):
        if isinstance(node, dict):
            assert "minItems" not in node
    task = schema["$defs"]["Task"]
    assert task["properties"]["complexity"]["enum"] == ["Low", "Medium", "High"]
