"""
Model Schema source loading.

A source is either a single JSON file or a directory of *.json files.
Each file holds one declaration or a list of declarations.
"""
import json
import logging
from pathlib import Path
from typing import Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from mockapi.core.errors import SchemaError
from mockapi.models.schema import ModelSchema

logger = logging.getLogger(__name__)

_declarations = TypeAdapter(list[ModelSchema])


def _load_file(path: Path) -> list[ModelSchema]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SchemaError(f"Cannot read model file {path}: {e}") from e

    if isinstance(data, dict):
        data = [data]
    try:
        return _declarations.validate_python(data)
    except PydanticValidationError as e:
        raise SchemaError(f"Invalid model declaration in {path}: {e}") from e


def load_model_schemas(path: Union[str, Path]) -> list[ModelSchema]:
    """
    Load every Model Schema declared under path.

    Raises:
        SchemaError: If the source is missing, unreadable, invalid, or
            declares the same resource twice
    """
    source = Path(path)
    if source.is_dir():
        files = sorted(source.glob("*.json"))
    elif source.is_file():
        files = [source]
    else:
        raise SchemaError(f"Model source not found: {source}")

    schemas: list[ModelSchema] = []
    seen: dict[str, Path] = {}
    for file in files:
        for schema in _load_file(file):
            if schema.resource_name in seen:
                raise SchemaError(
                    f"Resource {schema.resource_name} declared in both "
                    f"{seen[schema.resource_name]} and {file}"
                )
            seen[schema.resource_name] = file
            schemas.append(schema)

    logger.info(f"Loaded {len(schemas)} model schema(s) from {source}")
    return schemas
