"""Schema validation that reports every failing field at once."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from app.shared.exceptions import ValidationFailedException

ModelT = TypeVar("ModelT", bound=BaseModel)

_VALUE_ERROR_PREFIXES = ("Value error, ", "Assertion failed, ")


@dataclass(frozen=True, slots=True)
class ValidationResult(Generic[ModelT]):
    """Either ``data`` (ok) or a field path to message mapping."""

    ok: bool
    data: ModelT | None = None
    field_errors: dict[str, str] = field(default_factory=dict)

    def unwrap(self) -> ModelT:
        """Return data or raise ``ValidationFailedException``."""
        if not self.ok or self.data is None:
            raise ValidationFailedException(self.field_errors)
        return self.data


def _field_path(location: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in location) or "general"


def _clean_message(message: str) -> str:
    for prefix in _VALUE_ERROR_PREFIXES:
        if message.startswith(prefix):
            return message[len(prefix):]
    return message


def collect_field_errors(
    exc: ValidationError,
    messages: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Flatten a pydantic error into ``{field path: message}``.

    ``messages`` overrides pydantic's wording, keyed by
    ``"<field path>.<error type>"``. The first error per field wins.
    """
    messages = messages or {}
    field_errors: dict[str, str] = {}
    for error in exc.errors():
        path = _field_path(tuple(error.get("loc", ())))
        if path in field_errors:
            continue
        override = messages.get(f"{path}.{error.get('type')}")
        field_errors[path] = override or _clean_message(str(error.get("msg", "Invalid value")))
    return field_errors


def validate_model(model: type[ModelT], raw: Any) -> ValidationResult[ModelT]:
    """Validate raw input against model; never raises for bad data."""
    if not isinstance(raw, Mapping):
        return ValidationResult(ok=False, field_errors={"general": "Expected an object"})
    try:
        data = model.model_validate(dict(raw))
    except ValidationError as exc:
        messages = getattr(model, "error_messages", None)
        return ValidationResult(ok=False, field_errors=collect_field_errors(exc, messages))
    return ValidationResult(ok=True, data=data)
