"""
Mock REST API - FastAPI Application

Serves CRUD endpoints for every resource declared in the model source,
backed by the embedded, file-persisted document store.
"""
import asyncio
import inspect
import logging
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Optional, Union

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mockapi import __version__
from mockapi.config import Settings, get_settings
from mockapi.core.errors import AuthError, MockAPIError, PersistenceError, ValidationError
from mockapi.core.security import AuthGuard
from mockapi.database.store import Store
from mockapi.routers import health, resources
from mockapi.services.validator import IssueKind, ValidationIssue, Validator

logger = logging.getLogger(__name__)

PreHook = Callable[[Request], Union[Optional[Response], Awaitable[Optional[Response]]]]
PostHook = Callable[[Request, Response], Union[Optional[Response], Awaitable[Optional[Response]]]]


async def _call_hook(hook: Callable, *args: Any) -> Any:
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def request_issue(error: dict[str, Any]) -> ValidationIssue:
    """Translate one FastAPI request error into a ValidationIssue."""
    location = [str(part) for part in error.get("loc", ())]
    field = location[-1] if len(location) > 1 else None
    kind = IssueKind.MISSING_FIELD if error.get("type") == "missing" else IssueKind.TYPE_MISMATCH
    return ValidationIssue(field=field, kind=kind, message=f"{'.'.join(location)}: {error.get('msg')}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Load model schemas and the snapshot
    - Register schemas with the validator (explicit add_validation schemas win)

    Shutdown:
    - Flush any pending snapshot write
    """
    store: Store = app.state.store
    validator: Validator = app.state.validator

    logger.info("Starting up mock API...")
    store.initialize()
    for schema in store.schemas:
        if validator.get_schema(schema.resource_name) is None:
            validator.add_schema(schema)
    logger.info(f"Serving {len(store.resources)} resource(s) under {app.state.settings.prefix}")

    yield

    logger.info("Shutting down mock API...")
    try:
        store.close()
    except PersistenceError as e:
        logger.error(f"Final snapshot flush failed: {e}")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[Store] = None,
    custom_routes: Optional[APIRouter] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings (defaults to get_settings())
        store: Pre-built store (defaults to one built from settings)
        custom_routes: Extra routes mounted under the prefix ahead of the
            resource catch-all routes

    Returns:
        FastAPI app; hooks can be appended to app.state.pre_hooks/post_hooks
    """
    settings = settings or get_settings()
    if store is None:
        store = Store(
            storage_path=settings.db_storage_path or None,
            model_path=settings.db_model_path or None,
        )

    app = FastAPI(
        title="Mock REST API",
        description="""
## Mock REST backend

CRUD endpoints generated from declarative model schemas.

### Endpoints
- `GET {prefix}/{resource}`: list with filters and pagination
- `GET {prefix}/{resource}/{id}`: one record
- `POST {prefix}/{resource}`: create
- `PUT|PATCH {prefix}/{resource}/{id}`: update (owner only with auth)
- `DELETE {prefix}/{resource}/{id}`: delete (owner only with auth)

### Authentication
When enabled, pass a JWT as `Authorization: Bearer <token>` or `?token=<token>`.
        """,
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.validator = Validator(strict=settings.strict_fields)
    app.state.auth_guard = AuthGuard.from_settings(settings)
    app.state.pre_hooks = []
    app.state.post_hooks = []

    @app.exception_handler(MockAPIError)
    async def mock_api_error_handler(request: Request, exc: MockAPIError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        error = ValidationError([request_issue(e) for e in exc.errors()])
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.middleware("http")
    async def request_hooks(request: Request, call_next):
        for hook in app.state.pre_hooks:
            early = await _call_hook(hook, request)
            if early is not None:
                return early

        response = await call_next(request)

        for hook in app.state.post_hooks:
            replacement = await _call_hook(hook, request, response)
            if replacement is not None:
                response = replacement
        return response

    if settings.delay > 0:
        @app.middleware("http")
        async def response_delay(request: Request, call_next):
            await asyncio.sleep(settings.delay / 1000)
            return await call_next(request)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers; custom routes first so the {resource} catch-all cannot shadow them
    app.include_router(health.router)
    if custom_routes is not None:
        app.include_router(custom_routes, prefix=settings.prefix)
    app.include_router(resources.router, prefix=settings.prefix)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Mock REST API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "prefix": settings.prefix,
            "resources": store.resources,
        }

    return app
