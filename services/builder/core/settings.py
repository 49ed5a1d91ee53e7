from __future__ import annotations
import json
import os
from pathlib import Path
from typing import Any, Dict

# Defaults live here. Keep keys stable; env var names are derived from them.
_DEFAULTS: Dict[str, Any] = {
    "llm_provider": "",          # "openai" | "gemini" | "mock"
    "llm_model": "",             # empty -> provider default
    "llm_timeout": 120.0,        # seconds, applied at the provider boundary
    "llm_base_url": "",          # optional override (proxies, self-hosted gateways)
    "log_level": "INFO",
}

_ENV_KEYS: Dict[str, str] = {
    "llm_provider": "LLM_PROVIDER",
    "llm_model": "LLM_MODEL",
    "llm_timeout": "LLM_TIMEOUT",
    "llm_base_url": "LLM_BASE_URL",
    "log_level": "LOG_LEVEL",
}


def _settings_path(state_dir: Path) -> Path:
    return state_dir / "settings.json"


def _coerce(key: str, value: Any) -> Any:
    default = _DEFAULTS[key]
    if isinstance(default, float):
        try:
            return float(value)
        except (TypeError, ValueError):
            return default
    return str(value).strip() if value is not None else default


def load_settings(state_dir: Path) -> Dict[str, Any]:
    """
    Defaults, overlaid with <state_dir>/settings.json, overlaid with env vars.
    Unknown keys are ignored; a corrupt or non-object file falls back to defaults.
    """
    out = _DEFAULTS.copy()
    p = _settings_path(state_dir)
    if p.exists():
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                out.update({k: _coerce(k, v) for k, v in data.items() if k in _DEFAULTS})
        except (OSError, ValueError):
            # corrupted file → defaults (fail-safe)
            pass

    for key, env_name in _ENV_KEYS.items():
        raw = os.getenv(env_name)
        if raw is not None and raw.strip() != "":
            out[key] = _coerce(key, raw)

    out["llm_provider"] = (out["llm_provider"] or "").lower()
    return out

