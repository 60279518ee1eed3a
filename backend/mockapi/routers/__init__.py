"""
API Routers module.
"""
from mockapi.routers import health, resources

__all__ = ["health", "resources"]
