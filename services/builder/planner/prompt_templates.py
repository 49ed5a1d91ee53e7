# services/builder/planner/prompt_templates.py
from pathlib import Path
from string import Template
from typing import Any, Mapping

# Directory that contains the .md templates
_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

# Identity prompt: describes the assistant persona. Not sent with plan requests.
IDENTITY_TEMPLATE = "identity.md"
# Planning instructions: the system prompt for every plan request.
PLAN_TEMPLATE = "plan.md"
# User turn wrapping the caller's request text.
PLAN_REQUEST_TEMPLATE = "plan_request.md"


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set)):
        return "\n".join(f"{x}" for x in value)
    return str(value)


def render_template(name: str, data: Mapping[str, Any] | None = None) -> str:
    """Load a template by name and render; raise if a key is missing."""
    path = _TEMPLATES_DIR / name
    if not path.exists():
        raise FileNotFoundError(f"Template not found: {path}")
    text = path.read_text(encoding="utf-8")
    normalized = {k: _stringify(v) for k, v in dict(data or {}).items()}
    # .substitute (not .safe_substitute) so a missing key fails loudly
    return Template(text).substitute(**normalized).strip()


def identity_prompt() -> str:
    return render_template(IDENTITY_TEMPLATE)


def plan_system_prompt() -> str:
    return render_template(PLAN_TEMPLATE)


def plan_user_prompt(user_request: str) -> str:
    return render_template(PLAN_REQUEST_TEMPLATE, {"user_request": user_request})
