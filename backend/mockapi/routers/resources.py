"""
Generic CRUD router serving every declared resource.

Mutations follow: authenticate -> validate -> ownership -> apply. Any failed
step raises before the collection is touched.
"""
from typing import Any, Literal, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status

from mockapi.core.errors import (
    ForbiddenError,
    RecordNotFoundError,
    UnknownResourceError,
    ValidationError,
)
from mockapi.core.security import can_modify
from mockapi.database.collection import Collection, Operator
from mockapi.dependencies.auth import Principal, get_current_principal
from mockapi.dependencies.store import CollectionDep, ValidatorDep, get_auth_guard
from mockapi.schemas.responses import ErrorResponse, PaginatedResponse, RecordResponse
from mockapi.services.pagination import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, paginate
from mockapi.services.validator import IssueKind, Validator

router = APIRouter(
    tags=["Resources"],
    dependencies=[Depends(get_current_principal)],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Validation error"},
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse, "description": "Missing or invalid token"},
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse, "description": "Not the record owner"},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Unknown resource or record"},
    },
)

RESERVED_PARAMS = {"current_page", "page_size", "_sort", "_order", "token"}

# ?age__gt=10 style suffixes
FILTER_SUFFIXES = {
    "ne": Operator.NE,
    "gt": Operator.GT,
    "gte": Operator.GTE,
    "lt": Operator.LT,
    "lte": Operator.LTE,
    "contains": Operator.CONTAINS,
}


def parse_filter_key(key: str) -> tuple[str, Operator]:
    """Split "age__gt" into ("age", Operator.GT); plain keys mean equality."""
    name, sep, suffix = key.rpartition("__")
    if sep and name and suffix in FILTER_SUFFIXES:
        return name, FILTER_SUFFIXES[suffix]
    return key, Operator.EQ


def validated(
    validator: Validator,
    resource: str,
    body: Any,
    partial: bool = False,
    insert: bool = True,
) -> dict[str, Any]:
    issues, value = validator.validate(resource, body, partial=partial, insert=insert)
    if any(issue.kind == IssueKind.UNKNOWN_RESOURCE for issue in issues):
        raise UnknownResourceError()
    if issues:
        raise ValidationError(issues)
    return value


def ensure_owner(request: Request, principal: Optional[str], record: dict[str, Any]) -> None:
    auth_guard = get_auth_guard(request)
    if not can_modify(principal, record, auth_guard.enabled):
        raise ForbiddenError()


@router.get(
    "/{resource}",
    response_model=PaginatedResponse,
    summary="List records",
)
async def list_records(
    request: Request,
    collection: CollectionDep,
    current_page: int = Query(DEFAULT_PAGE, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    sort: Optional[str] = Query(None, alias="_sort"),
    order: Literal["asc", "desc"] = Query("asc", alias="_order"),
):
    """
    List records of a resource.

    - Every non-reserved query parameter is an equality filter (`?name=Ann`)
    - `field__op=value` picks another operator: ne, gt, gte, lt, lte, contains
    - `_sort` / `_order` sort the result; insertion order otherwise
    - `current_page` / `page_size` select the window (defaults 1 / 10)
    """
    query = collection.query()
    for key, value in request.query_params.multi_items():
        if key in RESERVED_PARAMS:
            continue
        name, operator = parse_filter_key(key)
        query = query.where(name, operator, value)

    if sort:
        query = query.order_by(sort, descending=order == "desc")

    return paginate(query.find(), current_page, page_size)


@router.get(
    "/{resource}/{record_id}",
    summary="Get one record",
)
async def get_record(record_id: str, collection: CollectionDep):
    """Get a single record by primary key."""
    record = collection.find_by_id(record_id)
    if record is None:
        raise RecordNotFoundError()
    return record


@router.post(
    "/{resource}",
    response_model=RecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create record",
)
async def create_record(
    collection: CollectionDep,
    validator: ValidatorDep,
    principal: Principal,
    body: Any = Body(...),
):
    """
    Create a record. Auto-increment fields are assigned by the store and
    createdBy is set to the authenticated principal.
    """
    value = validated(validator, collection.name, body)
    record = collection.insert(value, created_by=principal)
    return RecordResponse(data=record, message="Resource created successfully")


def _update(
    request: Request,
    record_id: str,
    collection: Collection,
    validator: Validator,
    principal: Optional[str],
    body: Any,
    partial: bool,
) -> RecordResponse:
    value = validated(validator, collection.name, body, partial=partial, insert=False)

    existing = collection.find_by_id(record_id)
    if existing is None:
        raise RecordNotFoundError()
    ensure_owner(request, principal, existing)

    record = collection.update_by_id(record_id, value)
    return RecordResponse(data=record, message="Resource updated successfully")


@router.put(
    "/{resource}/{record_id}",
    response_model=RecordResponse,
    summary="Update record",
)
async def replace_record(
    request: Request,
    record_id: str,
    collection: CollectionDep,
    validator: ValidatorDep,
    principal: Principal,
    body: Any = Body(...),
):
    """Validate the full payload and merge it into the record (owner only)."""
    return _update(request, record_id, collection, validator, principal, body, partial=False)


@router.patch(
    "/{resource}/{record_id}",
    response_model=RecordResponse,
    summary="Partially update record",
)
async def patch_record(
    request: Request,
    record_id: str,
    collection: CollectionDep,
    validator: ValidatorDep,
    principal: Principal,
    body: Any = Body(...),
):
    """Validate only the supplied fields and merge them (owner only)."""
    return _update(request, record_id, collection, validator, principal, body, partial=True)


@router.delete(
    "/{resource}/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete record",
)
async def delete_record(
    request: Request,
    record_id: str,
    collection: CollectionDep,
    principal: Principal,
):
    """
    Delete a record (owner only).

    **Warning**: This action cannot be undone.
    """
    existing = collection.find_by_id(record_id)
    if existing is None:
        raise RecordNotFoundError()
    ensure_owner(request, principal, existing)

    collection.delete_by_id(record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
