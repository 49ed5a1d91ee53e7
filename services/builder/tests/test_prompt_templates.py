import pytest

from services.builder.planner import prompt_templates as pt


def test_user_prompt_embeds_request_verbatim():
    text = "A CRM with $100 budget and {curly} braces"
    assert pt.plan_user_prompt(text) == (
        "Create a detailed development plan for the following user request: " + text
    )


def test_system_prompt_describes_four_phases():
    prompt = pt.plan_system_prompt()
    assert "phase1" in prompt
    assert "phase4" in prompt


def test_identity_prompt_renders():
    assert pt.identity_prompt().startswith("You are Blueprint Builder")


def test_missing_key_fails_loudly():
    with pytest.raises(KeyError):
        pt.render_template(pt.PLAN_REQUEST_TEMPLATE)


def test_unknown_template():
    with pytest.raises(FileNotFoundError):
        pt.render_template("nope.md")
