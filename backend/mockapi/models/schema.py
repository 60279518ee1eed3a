"""
Field and Model Schema declarations for mock resources.

A Model Schema is declared explicitly, either in Python::

    ModelSchema(
        resource_name="users",
        fields=[
            FieldSchema(name="id", type=FieldType.NUMBER, auto_increment=True),
            FieldSchema(name="name", type=FieldType.STRING, required=True, min=2, max=50),
            FieldSchema(name="age", type=FieldType.NUMBER, min=0, max=150),
        ],
    )

or as JSON, where ``fields`` may also be an object keyed by field name::

    {"resource": "users", "fields": {"id": {"type": "number", "autoIncrement": true}}}
"""
import re
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

BOOKKEEPING_FIELDS = ("createdBy", "createdAt", "updatedAt")
DEFAULT_PRIMARY_KEY = "id"

_RESOURCE_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


class FieldType(str, Enum):
    """Supported field value types."""
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    DATE = "date"


class FieldSchema(BaseModel):
    """One attribute of a resource."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Field name")
    type: FieldType = Field(..., description="Value type")
    required: bool = Field(default=False, description="Reject inserts lacking the field")
    min: Optional[float] = Field(None, description="Inclusive lower bound (value or length)")
    max: Optional[float] = Field(None, description="Inclusive upper bound (value or length)")
    auto_increment: bool = Field(
        default=False,
        alias="autoIncrement",
        description="Value assigned by the store from a monotonic counter",
    )

    @model_validator(mode="after")
    def check_constraints(self) -> "FieldSchema":
        if self.name in BOOKKEEPING_FIELDS:
            raise ValueError(f"{self.name} is a reserved field name")
        has_bounds = self.min is not None or self.max is not None
        if has_bounds and self.type not in (FieldType.NUMBER, FieldType.STRING):
            raise ValueError(f"{self.name}: min/max only apply to number and string fields")
        if self.type == FieldType.STRING and any(
            bound is not None and bound < 0 for bound in (self.min, self.max)
        ):
            raise ValueError(f"{self.name}: string length bounds must not be negative")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"{self.name}: min must not exceed max")
        if self.auto_increment and self.type != FieldType.NUMBER:
            raise ValueError(f"{self.name}: auto-increment fields must be numbers")
        return self


class ModelSchema(BaseModel):
    """Ordered field declarations for one resource."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    resource_name: str = Field(
        ...,
        validation_alias=AliasChoices("resource_name", "resourceName", "resource"),
        description="Resource name, unique across the store",
    )
    fields: tuple[FieldSchema, ...] = Field(default=(), description="Ordered field declarations")
    strict: bool = Field(default=False, description="Reject undeclared fields")
    seed: tuple[dict[str, Any], ...] = Field(
        default=(),
        description="Records inserted when no snapshot exists for the resource",
    )

    @field_validator("resource_name")
    @classmethod
    def check_resource_name(cls, value: str) -> str:
        if not _RESOURCE_NAME.match(value):
            raise ValueError(f"invalid resource name {value!r}")
        return value

    @field_validator("fields", mode="before")
    @classmethod
    def fields_from_mapping(cls, value: Any) -> Any:
        # {"name": {"type": "string"}} -> [{"name": "name", "type": "string"}]
        if isinstance(value, dict):
            return [{"name": name, **options} for name, options in value.items()]
        return value

    @model_validator(mode="after")
    def check_fields(self) -> "ModelSchema":
        names = [f.name for f in self.fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"{self.resource_name}: duplicate fields {', '.join(duplicates)}")
        auto = [f.name for f in self.fields if f.auto_increment]
        if len(auto) > 1:
            raise ValueError(
                f"{self.resource_name}: only one auto-increment field allowed, got {', '.join(auto)}"
            )
        return self

    @property
    def auto_increment_field(self) -> Optional[FieldSchema]:
        return next((f for f in self.fields if f.auto_increment), None)

    @property
    def primary_key(self) -> str:
        auto = self.auto_increment_field
        return auto.name if auto else DEFAULT_PRIMARY_KEY

    def get_field(self, name: str) -> Optional[FieldSchema]:
        return next((f for f in self.fields if f.name == name), None)
