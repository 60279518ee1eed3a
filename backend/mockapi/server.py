"""
Programmatic facade over the mock API application.
"""
import logging
from datetime import timedelta
from typing import Any, Callable, Literal, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI

from mockapi.config import Settings, get_settings
from mockapi.core.security import AuthGuard
from mockapi.database.store import Store
from mockapi.dependencies.auth import get_current_principal
from mockapi.main import PostHook, PreHook, create_app
from mockapi.models.schema import ModelSchema

logger = logging.getLogger(__name__)

HttpMethod = Literal["get", "post", "put", "delete", "patch", "options", "head", "all"]

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


class MockServer:
    """
    Mock REST server.

    Usage:
        server = MockServer(Settings(db_model_path="models/", db_storage_path="db.json"))
        server.pre(log_request).add_custom_route("get", "/stats", stats_handler)
        server.start()

    Hooks, custom routes and extra validation schemas must be registered
    before get_app() / start() builds the application.
    """

    def __init__(self, settings: Optional[Settings] = None, store: Optional[Store] = None):
        self.settings = settings or get_settings()
        self.store = store or Store(
            storage_path=self.settings.db_storage_path or None,
            model_path=self.settings.db_model_path or None,
        )
        self.auth = AuthGuard.from_settings(self.settings)
        self._custom_routes = APIRouter(dependencies=[Depends(get_current_principal)])
        self._pre_hooks: list[PreHook] = []
        self._post_hooks: list[PostHook] = []
        self._schemas: list[ModelSchema] = []
        self._app: Optional[FastAPI] = None

    def pre(self, hook: PreHook) -> "MockServer":
        """
        Add a hook run before every request.

        A hook returning a Response short-circuits the request.
        """
        self._ensure_not_built()
        self._pre_hooks.append(hook)
        return self

    def post(self, hook: PostHook) -> "MockServer":
        """
        Add a hook run after every request.

        A hook returning a Response replaces the outgoing one.
        """
        self._ensure_not_built()
        self._post_hooks.append(hook)
        return self

    def add_custom_route(
        self,
        method: HttpMethod,
        path: str,
        handler: Callable[..., Any],
    ) -> "MockServer":
        """Mount a handler at {prefix}{path}, behind authentication."""
        self._ensure_not_built()
        methods = _ALL_METHODS if method == "all" else [method.upper()]
        self._custom_routes.add_api_route(path, handler, methods=methods)
        return self

    def add_validation(self, schema: ModelSchema) -> "MockServer":
        """Register a validation schema, replacing the declared one for that resource."""
        self._ensure_not_built()
        self._schemas.append(schema)
        return self

    def generate_token(self, claims: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        return self.auth.generate_token(claims, expires_delta)

    def get_app(self) -> FastAPI:
        """Build (once) and return the FastAPI application."""
        if self._app is None:
            app = create_app(self.settings, self.store, custom_routes=self._custom_routes)
            app.state.pre_hooks.extend(self._pre_hooks)
            app.state.post_hooks.extend(self._post_hooks)
            for schema in self._schemas:
                app.state.validator.add_schema(schema)
            self._app = app
        return self._app

    def start(self) -> None:
        """Serve the application with uvicorn (blocking)."""
        logger.info(f"Mock server is running on {self.settings.host}:{self.settings.port}")
        uvicorn.run(
            self.get_app(),
            host=self.settings.host,
            port=self.settings.port,
            log_config=None,
        )

    def stop(self) -> None:
        """Flush pending store writes."""
        self.store.close()

    def _ensure_not_built(self) -> None:
        if self._app is not None:
            raise RuntimeError("MockServer is already built; register hooks and routes before get_app()")
