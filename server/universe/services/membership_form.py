from __future__ import annotations

from typing import Any, List, Mapping

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from universe.schemas.membership import APPLICATION_FIELDS, FIELD_LABELS, FieldError, MembershipApplication

_ALIASES = {to_camel(field): field for field in APPLICATION_FIELDS}


class ApplicationValidationError(Exception):
    """Raised when a membership application fails local validation.

    ``field`` is the first failing field in form order, in its camelCase
    wire name so clients can move focus to it.
    """

    def __init__(self, errors: List[FieldError]):
        self.errors = errors
        first = errors[0]
        self.field = first.field
        self.message = first.message
        super().__init__(self.message)


def _field_name(loc: tuple) -> str:
    if not loc:
        return APPLICATION_FIELDS[-1]
    head = str(loc[0])
    return _ALIASES.get(head, head)


def _message(error: Mapping[str, Any], field: str) -> str:
    if error.get("type") == "missing":
        if field == "skills":
            return "Please select at least one skill"
        return f"{FIELD_LABELS.get(field, field)} is required"
    ctx = error.get("ctx") or {}
    if "error" in ctx:
        return str(ctx["error"])
    return str(error.get("msg", "Invalid value"))


def _order(field: str) -> int:
    try:
        return APPLICATION_FIELDS.index(field)
    except ValueError:
        return len(APPLICATION_FIELDS)


def validate_application(data: Mapping[str, Any]) -> MembershipApplication:
    """Validate and normalise a membership application without side effects."""
    try:
        return MembershipApplication.model_validate(dict(data))
    except ValidationError as exc:
        collected: dict[str, FieldError] = {}
        for error in exc.errors():
            field = _field_name(tuple(error.get("loc", ())))
            if field in collected:
                continue
            collected[field] = FieldError(field=to_camel(field), message=_message(error, field))
        ordered = sorted(collected.items(), key=lambda item: _order(item[0]))
        raise ApplicationValidationError([error for _, error in ordered]) from exc
