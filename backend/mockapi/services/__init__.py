"""
Service layer for validation and pagination.
"""
from mockapi.services.pagination import paginate
from mockapi.services.validator import IssueKind, ValidationIssue, Validator

__all__ = [
    "IssueKind",
    "ValidationIssue",
    "Validator",
    "paginate",
]
