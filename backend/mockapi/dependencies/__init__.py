"""
Dependencies for dependency injection in routes.
"""
from mockapi.dependencies.auth import Principal, get_current_principal
from mockapi.dependencies.store import (
    CollectionDep,
    StoreDep,
    ValidatorDep,
    get_auth_guard,
    get_collection,
    get_store,
    get_validator,
)

__all__ = [
    "Principal",
    "get_current_principal",
    "CollectionDep",
    "StoreDep",
    "ValidatorDep",
    "get_auth_guard",
    "get_collection",
    "get_store",
    "get_validator",
]
