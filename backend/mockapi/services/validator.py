"""
Payload validation against registered Model Schemas.
"""
import math
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from mockapi.models.schema import BOOKKEEPING_FIELDS, FieldSchema, FieldType, ModelSchema

_int = TypeAdapter(int)
_float = TypeAdapter(float)
_bool = TypeAdapter(bool)
_datetime = TypeAdapter(datetime)


class IssueKind(str, Enum):
    """Categories of validation failure."""
    UNKNOWN_RESOURCE = "UnknownResource"
    MISSING_FIELD = "MissingField"
    TYPE_MISMATCH = "TypeMismatch"
    OUT_OF_RANGE = "OutOfRange"
    READ_ONLY_FIELD = "ReadOnlyFieldViolation"
    UNKNOWN_FIELD = "UnknownField"


class ValidationIssue(BaseModel):
    """A single violation, tied to the offending field."""
    field: Optional[str] = Field(None, description="Offending field (None for the whole payload)")
    kind: IssueKind = Field(..., description="Violation category")
    message: str = Field(..., description="Human-readable message")


class InvalidValue(ValueError):
    """Raised by coerce_value when a value cannot be read as the field type."""


def format_bound(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def coerce_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise InvalidValue("booleans are not numbers")
    # Integers and integer strings are kept exact
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return _int.validate_python(value)
        except PydanticValidationError:
            pass
    try:
        number = _float.validate_python(value)
    except PydanticValidationError as e:
        raise InvalidValue(str(e)) from e
    if not math.isfinite(number):
        raise InvalidValue("number must be finite")
    if isinstance(value, float):
        return number
    return int(number) if number.is_integer() else number


def coerce_value(field_type: FieldType, value: Any) -> Any:
    """
    Read a raw value as the given field type.

    Numbers come back as int when integral, dates as ISO-8601 strings.

    Raises:
        InvalidValue: If the value does not parse as the field type
    """
    if field_type == FieldType.NUMBER:
        return coerce_number(value)
    if field_type == FieldType.STRING:
        if not isinstance(value, str):
            raise InvalidValue("not a string")
        return value
    try:
        if field_type == FieldType.BOOLEAN:
            return _bool.validate_python(value)
        if isinstance(value, bool):
            raise InvalidValue("booleans are not dates")
        return _datetime.validate_python(value).isoformat()
    except PydanticValidationError as e:
        raise InvalidValue(str(e)) from e


_TYPE_MESSAGES = {
    FieldType.NUMBER: "must be a number",
    FieldType.STRING: "must be a string",
    FieldType.BOOLEAN: "must be a boolean",
    FieldType.DATE: "must be a valid date",
}


class Validator:
    """Checks candidate records against the Model Schema of their resource."""

    def __init__(self, schemas: Iterable[ModelSchema] = (), strict: bool = False):
        self.strict = strict
        self._schemas: dict[str, ModelSchema] = {}
        for schema in schemas:
            self.add_schema(schema)

    def add_schema(self, schema: ModelSchema) -> None:
        """Register (or replace) the schema for schema.resource_name."""
        self._schemas[schema.resource_name] = schema

    def get_schema(self, resource: str) -> Optional[ModelSchema]:
        return self._schemas.get(resource)

    def validate(
        self,
        resource: str,
        data: Any,
        partial: bool = False,
        insert: bool = True,
    ) -> tuple[list[ValidationIssue], dict[str, Any]]:
        """
        Validate a payload for a resource.

        Args:
            resource: Resource name
            data: Candidate record (not modified)
            partial: Skip required-field checks (PATCH semantics)
            insert: Reject caller-supplied auto-increment values (POST semantics)

        Returns:
            (issues, normalized value). Issues list every violation found;
            the value holds coerced declared fields plus passthrough extras.
        """
        schema = self._schemas.get(resource)
        if schema is None:
            return [
                ValidationIssue(
                    kind=IssueKind.UNKNOWN_RESOURCE,
                    message=f"Unknown resource {resource}",
                )
            ], {}

        if not isinstance(data, dict):
            return [
                ValidationIssue(
                    kind=IssueKind.TYPE_MISMATCH,
                    message="body must be a JSON object",
                )
            ], {}

        issues: list[ValidationIssue] = []
        value = dict(data)

        for field in schema.fields:
            raw = data.get(field.name)
            if field.auto_increment:
                if insert and raw is not None:
                    issues.append(ValidationIssue(
                        field=field.name,
                        kind=IssueKind.READ_ONLY_FIELD,
                        message=f"{field.name} is assigned automatically and cannot be set",
                    ))
                continue

            if raw is None:
                if field.required and not partial:
                    issues.append(ValidationIssue(
                        field=field.name,
                        kind=IssueKind.MISSING_FIELD,
                        message=f"{field.name} is required",
                    ))
                continue

            issue, normalized = self._check_field(field, raw)
            if issue is not None:
                issues.append(issue)
            else:
                value[field.name] = normalized

        if self.strict or schema.strict:
            declared = {f.name for f in schema.fields} | {schema.primary_key, *BOOKKEEPING_FIELDS}
            for name in sorted(set(data) - declared):
                issues.append(ValidationIssue(
                    field=name,
                    kind=IssueKind.UNKNOWN_FIELD,
                    message=f"{name} is not a known field",
                ))

        return issues, value

    def _check_field(
        self, field: FieldSchema, raw: Any
    ) -> tuple[Optional[ValidationIssue], Any]:
        try:
            normalized = coerce_value(field.type, raw)
        except InvalidValue:
            return ValidationIssue(
                field=field.name,
                kind=IssueKind.TYPE_MISMATCH,
                message=f"{field.name} {_TYPE_MESSAGES[field.type]}",
            ), None

        # String bounds apply to length
        measured = len(normalized) if field.type == FieldType.STRING else normalized
        suffix = " characters" if field.type == FieldType.STRING else ""

        if field.min is not None and measured < field.min:
            return ValidationIssue(
                field=field.name,
                kind=IssueKind.OUT_OF_RANGE,
                message=f"{field.name} must be at least {format_bound(field.min)}{suffix}",
            ), None
        if field.max is not None and measured > field.max:
            return ValidationIssue(
                field=field.name,
                kind=IssueKind.OUT_OF_RANGE,
                message=f"{field.name} must be at most {format_bound(field.max)}{suffix}",
            ), None

        return None, normalized
