"""
Document store owning every Collection and the persisted snapshot file.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from mockapi.core.errors import ConflictError, PersistenceError, SchemaError, ValidationError
from mockapi.database.collection import Collection
from mockapi.database.loader import load_model_schemas
from mockapi.models.schema import ModelSchema
from mockapi.services.validator import Validator

logger = logging.getLogger(__name__)


class Store:
    """
    Embedded, file-persisted document store.

    Usage:
        store = Store(model_path="models/", storage_path="db.json")
        store.initialize()
        users = store.get_collection("users")
        users.insert({"name": "Ann"})   # snapshot rewritten
        store.close()

    Every mutation rewrites the whole snapshot synchronously. Without a
    storage path the store is purely in-memory.
    """

    def __init__(
        self,
        schemas: Iterable[ModelSchema] = (),
        storage_path: Optional[Union[str, Path]] = None,
        model_path: Optional[Union[str, Path]] = None,
    ):
        self.storage_path = Path(storage_path) if storage_path else None
        self.model_path = Path(model_path) if model_path else None
        self._schemas: dict[str, ModelSchema] = {}
        self._collections: dict[str, Collection] = {}
        self._initialized = False
        self._loading = False
        self._dirty = False

        for schema in schemas:
            self._add_schema(schema)

    def __enter__(self) -> "Store":
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def dirty(self) -> bool:
        """True while the last snapshot write has not succeeded."""
        return self._dirty

    @property
    def resources(self) -> list[str]:
        return list(self._collections)

    @property
    def schemas(self) -> list[ModelSchema]:
        return list(self._schemas.values())

    def _add_schema(self, schema: ModelSchema) -> None:
        if schema.resource_name in self._schemas:
            raise SchemaError(f"Resource {schema.resource_name} declared more than once")
        self._schemas[schema.resource_name] = schema

    # ==================== Lifecycle ====================

    def initialize(self) -> None:
        """
        Load schemas and the snapshot, then build every Collection.

        Resources absent from the snapshot start empty (or from their seed
        records) with the counter at zero. Calling twice is a no-op.

        Raises:
            SchemaError: Invalid model source or seed data
            PersistenceError: Unreadable snapshot
        """
        if self._initialized:
            return

        if self.model_path is not None:
            for schema in load_model_schemas(self.model_path):
                self._add_schema(schema)

        snapshot = self._read_snapshot()
        for name in sorted(set(snapshot) - set(self._schemas)):
            logger.warning(f"Dropping snapshot data for undeclared resource {name}")

        seeded = False
        self._loading = True
        try:
            for name, schema in self._schemas.items():
                entry = snapshot.get(name)
                if entry is not None:
                    collection = self._collection_from_snapshot(schema, entry)
                else:
                    collection = Collection(schema, on_change=self._on_change)
                    seeded = self._seed(collection) or seeded
                self._collections[name] = collection
        finally:
            self._loading = False

        self._initialized = True
        logger.info(
            f"Store initialized with {len(self._collections)} resource(s): "
            f"{', '.join(self._collections) or '-'}"
        )

        if self.storage_path is not None and (seeded or not self.storage_path.exists()):
            self.persist()

    def close(self) -> None:
        """Flush a pending write left behind by an earlier failure."""
        if self._dirty:
            self.persist()

    # ==================== Access ====================

    def get_collection(self, resource: str) -> Optional[Collection]:
        """The sole accessor for a resource's data; None if undeclared."""
        return self._collections.get(resource)

    # ==================== Persistence ====================

    def snapshot(self) -> dict[str, Any]:
        """Full serializable state: resource -> {autoIncrement, records}."""
        return {name: c.to_snapshot() for name, c in self._collections.items()}

    def persist(self) -> None:
        """
        Write the full snapshot to storage_path.

        The in-memory state stays authoritative if the write fails; the
        store remembers it is dirty and retries on the next write or close().

        Raises:
            PersistenceError: If the snapshot cannot be written
        """
        if self.storage_path is None:
            return

        path = self.storage_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self.snapshot(), f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as e:
            self._dirty = True
            logger.error(f"Failed to write snapshot {path}: {e}")
            raise PersistenceError(f"Failed to persist data: {e}") from e

        self._dirty = False

    def _on_change(self, collection: Collection) -> None:
        if not self._loading:
            self.persist()

    def _read_snapshot(self) -> dict[str, Any]:
        path = self.storage_path
        if path is None or not path.exists():
            if path is not None:
                logger.info(f"No snapshot at {path}, starting empty")
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                text = f.read()
            data = json.loads(text) if text.strip() else {}
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read snapshot {path}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(f"Snapshot {path} must contain a JSON object")
        logger.info(f"Loaded snapshot from {path}")
        return data

    def _collection_from_snapshot(self, schema: ModelSchema, entry: Any) -> Collection:
        name = schema.resource_name
        if not isinstance(entry, dict) or not isinstance(entry.get("records", []), list):
            raise PersistenceError(f"Malformed snapshot entry for {name}")

        records = entry.get("records", [])
        key = schema.primary_key
        if any(not isinstance(r, dict) or key not in r for r in records):
            raise PersistenceError(f"Snapshot records for {name} must be objects with {key!r}")

        seen: set[str] = set()
        for record in records:
            record_id = str(record[key])
            if record_id in seen:
                raise PersistenceError(f"Duplicate {key} {record_id} in snapshot for {name}")
            seen.add(record_id)

        counter = entry.get("autoIncrement", 0)
        if not isinstance(counter, int) or isinstance(counter, bool):
            raise PersistenceError(f"Malformed autoIncrement counter for {name}")

        return Collection(
            schema,
            records=records,
            auto_increment=counter,
            on_change=self._on_change,
        )

    def _seed(self, collection: Collection) -> bool:
        schema = collection.schema
        if not schema.seed:
            return False

        validator = Validator([schema])
        for index, record in enumerate(schema.seed):
            issues, value = validator.validate(schema.resource_name, record)
            if issues:
                messages = "; ".join(issue.message for issue in issues)
                raise SchemaError(f"Invalid seed record {index} for {schema.resource_name}: {messages}")
            try:
                collection.insert(value)
            except ValidationError as e:
                messages = "; ".join(e.details)
                raise SchemaError(f"Invalid seed record {index} for {schema.resource_name}: {messages}") from e
            except ConflictError as e:
                raise SchemaError(f"Invalid seed record {index} for {schema.resource_name}: {e}") from e
        return True
