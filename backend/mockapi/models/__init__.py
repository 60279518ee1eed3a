"""
Pydantic models for resource schema declarations.
"""
from mockapi.models.schema import (
    BOOKKEEPING_FIELDS,
    FieldSchema,
    FieldType,
    ModelSchema,
)

__all__ = [
    "BOOKKEEPING_FIELDS",
    "FieldSchema",
    "FieldType",
    "ModelSchema",
]
