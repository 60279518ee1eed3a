"""
Dependencies exposing the app-scoped store, validator and auth guard.
"""
from typing import Annotated

from fastapi import Depends, Request

from mockapi.core.errors import UnknownResourceError
from mockapi.core.security import AuthGuard
from mockapi.database.collection import Collection
from mockapi.database.store import Store
from mockapi.services.validator import Validator


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_validator(request: Request) -> Validator:
    return request.app.state.validator


def get_auth_guard(request: Request) -> AuthGuard:
    return request.app.state.auth_guard


def get_collection(resource: str, store: Annotated[Store, Depends(get_store)]) -> Collection:
    """
    Resolve the {resource} path segment to its Collection.

    Raises:
        UnknownResourceError: If no Model Schema declares the resource
    """
    collection = store.get_collection(resource)
    if collection is None:
        raise UnknownResourceError()
    return collection


# Type aliases for cleaner route signatures
StoreDep = Annotated[Store, Depends(get_store)]
ValidatorDep = Annotated[Validator, Depends(get_validator)]
CollectionDep = Annotated[Collection, Depends(get_collection)]
