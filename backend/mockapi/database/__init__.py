"""
Database module - embedded document store, collections and schema loading.
"""
from mockapi.database.collection import Collection, Filter, Operator, Query
from mockapi.database.loader import load_model_schemas
from mockapi.database.store import Store

__all__ = [
    "Collection",
    "Filter",
    "Operator",
    "Query",
    "Store",
    "load_model_schemas",
]
