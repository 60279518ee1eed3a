"""
Global test fixtures for the mock API.

This module provides shared fixtures for all tests including:
- Model Schemas mirroring typical mock resources
- Temporary snapshot storage
- Initialized stores and collections
"""

import json
import sys
from pathlib import Path

import pytest

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from mockapi.config import Settings  # noqa: E402
from mockapi.database.store import Store  # noqa: E402
from mockapi.models.schema import FieldSchema, FieldType, ModelSchema  # noqa: E402


# =============================================================================
# Schema Fixtures
# =============================================================================

@pytest.fixture
def users_schema() -> ModelSchema:
    """users{id: autoincrement number, name: string required 2..50, age: number 0..150}"""
    return ModelSchema(
        resource_name="users",
        fields=[
            FieldSchema(name="id", type=FieldType.NUMBER, auto_increment=True),
            FieldSchema(name="name", type=FieldType.STRING, required=True, min=2, max=50),
            FieldSchema(name="age", type=FieldType.NUMBER, min=0, max=150),
        ],
    )


@pytest.fixture
def posts_schema() -> ModelSchema:
    """Resource without auto-increment, exercising boolean and date fields."""
    return ModelSchema.model_validate({
        "resource": "posts",
        "fields": {
            "title": {"type": "string", "required": True},
            "published": {"type": "boolean"},
            "publishedAt": {"type": "date"},
        },
    })


@pytest.fixture
def users_declaration() -> dict:
    """JSON declaration of the users resource as found in a model file."""
    return {
        "resourceName": "users",
        "fields": [
            {"name": "id", "type": "number", "autoIncrement": True},
            {"name": "name", "type": "string", "required": True, "min": 2, "max": 50},
            {"name": "age", "type": "number", "min": 0, "max": 150},
        ],
    }


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def storage_path(tmp_path) -> Path:
    """Snapshot file location inside the test's temporary directory."""
    return tmp_path / "db.json"


@pytest.fixture
def read_snapshot(storage_path):
    """Read the snapshot file as written on disk."""
    def _read() -> dict:
        with open(storage_path, encoding="utf-8") as f:
            return json.load(f)
    return _read


@pytest.fixture
def store(users_schema, posts_schema, storage_path):
    """Initialized, file-backed store with users and posts."""
    store = Store(schemas=[users_schema, posts_schema], storage_path=storage_path)
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def users(store):
    """The users collection of the store fixture."""
    return store.get_collection("users")


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def settings(storage_path) -> Settings:
    """Settings isolated from the environment and config files."""
    return Settings(
        _env_file=None,
        db_storage_path=str(storage_path),
        jwt_secret_key="test-secret",
    )


@pytest.fixture
def auth_settings(settings) -> Settings:
    """Settings with the auth guard enabled."""
    return settings.model_copy(update={"auth_enabled": True})
