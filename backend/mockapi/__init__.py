"""
Mock REST backend: CRUD endpoints over an embedded, file-persisted document store.
"""
__version__ = "0.1.0"

from mockapi.config import Settings, get_settings
from mockapi.core.security import AuthGuard, can_modify
from mockapi.database import Collection, Query, Store
from mockapi.models import FieldSchema, FieldType, ModelSchema
from mockapi.server import MockServer
from mockapi.services import Validator, paginate

__all__ = [
    "__version__",
    "Settings",
    "get_settings",
    "AuthGuard",
    "can_modify",
    "Collection",
    "Query",
    "Store",
    "FieldSchema",
    "FieldType",
    "ModelSchema",
    "MockServer",
    "Validator",
    "paginate",
]
