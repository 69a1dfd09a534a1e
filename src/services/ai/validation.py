"""Validation boundary for AI extraction payloads.

Anything the model returns passes through one of these functions before it
enters the conversation. They check shape and ranges only; no inference is
applied (a missing session type stays missing).
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ValidationError

from schemas.extraction import (
    ExtractionResult,
    MistakeExtractionResult,
    SessionExtractionResult,
)
from services.ai.exceptions import ExtractionValidationFailure, ValidationIssue


ModelT = TypeVar("ModelT", bound=BaseModel)

ROOT_PATH = "<root>"


def issues_from_error(exc: ValidationError) -> tuple[ValidationIssue, ...]:
    """Flatten a pydantic ValidationError into path/reason pairs."""
    issues: list[ValidationIssue] = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        path = ".".join(str(part) for part in loc) or ROOT_PATH
        issues.append(ValidationIssue(path=path, reason=err.get("msg", "invalid")))
    return tuple(issues)


def _validate(model: type[ModelT], raw: object) -> ModelT:
    try:
        if isinstance(raw, str | bytes | bytearray):
            return model.model_validate_json(raw)
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ExtractionValidationFailure(issues_from_error(exc)) from exc


def validate_extraction(raw: object) -> ExtractionResult:
    """Validate a combined extraction payload (mapping or JSON text).

    Raises:
        ExtractionValidationFailure: with one issue per violated field.
    """
    return _validate(ExtractionResult, raw)


def validate_session_extraction(raw: object) -> SessionExtractionResult:
    return _validate(SessionExtractionResult, raw)


def validate_mistake_extraction(raw: object) -> MistakeExtractionResult:
    return _validate(MistakeExtractionResult, raw)
