"""
In-memory record collections with chained, immutable query views.
"""
import copy
import json
import time
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from mockapi.core.errors import ConflictError, ValidationError
from mockapi.models.schema import BOOKKEEPING_FIELDS, FieldType, ModelSchema
from mockapi.services.validator import IssueKind, InvalidValue, ValidationIssue, coerce_value

Record = dict[str, Any]

# Timestamp bookkeeping fields are epoch milliseconds
_NUMERIC_BOOKKEEPING = ("createdAt", "updatedAt")


def now_ms() -> int:
    return int(time.time() * 1000)


def ensure_serializable(values: Record) -> None:
    """
    Reject values the snapshot cannot encode, before anything is stored.

    Raises:
        ValidationError: One issue per field whose value is not JSON-encodable
    """
    issues = []
    for name, value in values.items():
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            issues.append(ValidationIssue(
                field=name,
                kind=IssueKind.TYPE_MISMATCH,
                message=f"{name} must be JSON serializable",
            ))
    if issues:
        raise ValidationError(issues)


class Operator(str, Enum):
    """Filter operators accepted by where()."""
    EQ = "="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    CONTAINS = "contains"

    @classmethod
    def parse(cls, value: "str | Operator") -> "Operator":
        if isinstance(value, Operator):
            return value
        try:
            return _OPERATOR_ALIASES[value.lower()]
        except KeyError:
            raise ValueError(f"Unsupported operator: {value}")


_OPERATOR_ALIASES = {
    "=": Operator.EQ, "==": Operator.EQ, "eq": Operator.EQ,
    "!=": Operator.NE, "ne": Operator.NE,
    ">": Operator.GT, "gt": Operator.GT,
    ">=": Operator.GTE, "gte": Operator.GTE,
    "<": Operator.LT, "lt": Operator.LT,
    "<=": Operator.LTE, "lte": Operator.LTE,
    "contains": Operator.CONTAINS,
}

_MISSING = object()


def _infer_type(value: Any) -> Optional[FieldType]:
    if isinstance(value, bool):
        return FieldType.BOOLEAN
    if isinstance(value, (int, float)):
        return FieldType.NUMBER
    if isinstance(value, str):
        return FieldType.STRING
    return None


def _comparable(field_type: Optional[FieldType], value: Any) -> Any:
    """Value in a form that orders correctly for its type, or _MISSING."""
    if field_type is None:
        return value
    try:
        coerced = coerce_value(field_type, value)
    except InvalidValue:
        return _MISSING
    if field_type == FieldType.DATE:
        parsed = datetime.fromisoformat(coerced)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return coerced


@dataclass(frozen=True)
class Filter:
    """A single predicate: record[field] <op> value."""
    field: str
    operator: Operator
    value: Any

    def matches(self, record: Record, schema: ModelSchema) -> bool:
        stored = record.get(self.field, _MISSING)
        if stored is _MISSING or stored is None:
            return self.operator == Operator.NE

        field_type = self._field_type(schema, stored)
        left = _comparable(field_type, stored)
        right = _comparable(field_type, self.value)
        if left is _MISSING or right is _MISSING:
            return self.operator == Operator.NE

        if self.operator == Operator.EQ:
            return left == right
        if self.operator == Operator.NE:
            return left != right
        if self.operator == Operator.CONTAINS:
            return isinstance(left, str) and isinstance(right, str) and right in left
        if field_type == FieldType.BOOLEAN:
            return False
        try:
            if self.operator == Operator.GT:
                return left > right
            if self.operator == Operator.GTE:
                return left >= right
            if self.operator == Operator.LT:
                return left < right
            return left <= right
        except TypeError:
            return False

    def _field_type(self, schema: ModelSchema, stored: Any) -> Optional[FieldType]:
        declared = schema.get_field(self.field)
        if declared is not None:
            return declared.type
        if self.field in _NUMERIC_BOOKKEEPING:
            return FieldType.NUMBER
        return _infer_type(stored)


@dataclass(frozen=True)
class Query:
    """Immutable filtered (and optionally sorted) view over a Collection."""
    collection: "Collection"
    filters: tuple[Filter, ...] = ()
    sort_field: Optional[str] = None
    descending: bool = False

    def where(self, field_name: str, operator: "str | Operator", value: Any) -> "Query":
        """Return a new view with an extra predicate ANDed in."""
        predicate = Filter(field_name, Operator.parse(operator), value)
        return replace(self, filters=self.filters + (predicate,))

    def order_by(self, field_name: str, descending: bool = False) -> "Query":
        return replace(self, sort_field=field_name, descending=descending)

    def find(self) -> list[Record]:
        """Materialize matching records, in insertion order unless sorted."""
        matched = self._matching()
        if self.sort_field is not None:
            matched = self._sorted(matched)
        return copy.deepcopy(matched)

    def count(self) -> int:
        return len(self._matching())

    def _matching(self) -> list[Record]:
        schema = self.collection.schema
        return [
            record
            for record in self.collection.records()
            if all(f.matches(record, schema) for f in self.filters)
        ]

    def _sorted(self, records: list[Record]) -> list[Record]:
        name = self.sort_field
        present = [r for r in records if r.get(name) is not None]
        absent = [r for r in records if r.get(name) is None]
        declared = self.collection.schema.get_field(name)

        def key(record: Record) -> Any:
            value = record[name]
            field_type = declared.type if declared else _infer_type(value)
            comparable = _comparable(field_type, value)
            # Mixed types fall back to their string form
            return (0, comparable) if isinstance(comparable, (int, float, datetime)) else (1, str(value))

        try:
            present.sort(key=key, reverse=self.descending)
        except TypeError:
            present.sort(key=lambda r: str(r[name]), reverse=self.descending)
        return present + absent


class Collection:
    """
    The mutable record set for one resource.

    Records live in an insertion-ordered dict keyed by str(primary key),
    which doubles as the id index.
    """

    def __init__(
        self,
        schema: ModelSchema,
        records: Optional[list[Record]] = None,
        auto_increment: int = 0,
        on_change: Optional[Callable[["Collection"], None]] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.schema = schema
        self.name = schema.resource_name
        self.primary_key = schema.primary_key
        self._on_change = on_change
        self._clock = clock
        self._records: dict[str, Record] = {}
        self._auto_increment = auto_increment

        for record in records or []:
            self._records[str(record[self.primary_key])] = copy.deepcopy(record)

        # Never hand out an id below one already stored
        if schema.auto_increment_field is not None:
            stored = [
                r[self.primary_key]
                for r in self._records.values()
                if isinstance(r.get(self.primary_key), (int, float))
                and not isinstance(r.get(self.primary_key), bool)
            ]
            self._auto_increment = max([self._auto_increment, *(int(i) for i in stored)])

    def __len__(self) -> int:
        return len(self._records)

    def records(self):
        """Live (uncopied) records in insertion order; for query evaluation only."""
        return self._records.values()

    @property
    def auto_increment(self) -> int:
        """Last value handed out by the auto-increment counter."""
        return self._auto_increment

    # ==================== Queries ====================

    def query(self) -> Query:
        return Query(self)

    def where(self, field_name: str, operator: "str | Operator", value: Any) -> Query:
        return Query(self).where(field_name, operator, value)

    def find(self) -> list[Record]:
        return Query(self).find()

    def find_by_id(self, record_id: Any) -> Optional[Record]:
        record = self._records.get(str(record_id))
        return copy.deepcopy(record) if record is not None else None

    # ==================== Mutations ====================

    def insert(self, data: Record, created_by: Optional[str] = None) -> Record:
        """
        Append a new record.

        Assigns the primary key (auto-increment or caller/UUID id), stamps
        createdAt/updatedAt and createdBy, then triggers persistence.

        Raises:
            ConflictError: If a caller-supplied id is already taken
            ValidationError: If a value cannot be written to the snapshot
        """
        record = {k: copy.deepcopy(v) for k, v in data.items() if k not in BOOKKEEPING_FIELDS}
        ensure_serializable(record)

        if self.schema.auto_increment_field is not None:
            record[self.primary_key] = self._auto_increment + 1
        elif record.get(self.primary_key) is None:
            record[self.primary_key] = uuid.uuid4().hex

        key = str(record[self.primary_key])
        if key in self._records:
            raise ConflictError(f"{self.primary_key} {key} already exists")

        if self.schema.auto_increment_field is not None:
            self._auto_increment += 1

        timestamp = self._clock()
        if created_by is not None:
            record["createdBy"] = created_by
        record["createdAt"] = timestamp
        record["updatedAt"] = timestamp

        self._records[key] = record
        self._changed()
        return copy.deepcopy(record)

    def update_by_id(self, record_id: Any, changes: Record) -> Optional[Record]:
        """
        Merge changes into an existing record.

        The primary key and bookkeeping fields are immutable and ignored if
        present in changes. updatedAt always advances.

        Returns:
            The merged record, or None if the id is unknown

        Raises:
            ValidationError: If a value cannot be written to the snapshot
        """
        key = str(record_id)
        record = self._records.get(key)
        if record is None:
            return None

        immutable = (self.primary_key, *BOOKKEEPING_FIELDS)
        applied = {k: v for k, v in changes.items() if k not in immutable}
        ensure_serializable(applied)
        for name, value in applied.items():
            record[name] = copy.deepcopy(value)

        previous = record.get("updatedAt", record.get("createdAt", 0))
        record["updatedAt"] = max(self._clock(), int(previous) + 1)

        self._changed()
        return copy.deepcopy(record)

    def delete_by_id(self, record_id: Any) -> bool:
        """Remove a record. Returns whether one was removed."""
        removed = self._records.pop(str(record_id), None)
        if removed is None:
            return False
        self._changed()
        return True

    # ==================== Snapshot ====================

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "autoIncrement": self._auto_increment,
            "records": copy.deepcopy(list(self._records.values())),
        }

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
