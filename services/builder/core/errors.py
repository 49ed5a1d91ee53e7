# services/builder/core/errors.py
from __future__ import annotations

from typing import Dict, List, Optional


class BuilderError(Exception):
    """Base class for every failure the plan service reports to callers."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__

    def to_body(self) -> Dict[str, object]:
        return {"error": self.message}


class ValidationError(BuilderError):
    """Caller input missing or empty. Raised before any I/O happens."""

    status_code = 400


class GenerationError(BuilderError):
    """Provider unreachable, rate-limited, misconfigured or returned unusable output."""

    status_code = 502

    def __init__(self, message: str = "", *, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class SchemaValidationError(BuilderError):
    """
    The decoded provider answer does not match the plan shape.
    `violations` holds every offending path, not just the first one.
    """

    status_code = 502

    def __init__(self, violations: List[Dict[str, str]], message: str = ""):
        self.violations = list(violations)
        if not message:
            message = f"Generated plan failed schema validation ({len(self.violations)} violation(s))"
        super().__init__(message)

    def to_body(self) -> Dict[str, object]:
        return {"error": self.message, "violations": self.violations}


class NotFound(BuilderError):
    status_code = 404

    def __init__(self, message: str = "Project not found"):
        super().__init__(message)


class StorageError(BuilderError):
    """Connectivity or constraint failure in the project store."""

    status_code = 503
