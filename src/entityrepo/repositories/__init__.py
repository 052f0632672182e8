"""
Repository layer.

    from entityrepo.repositories import EntityRepository, QueryParam
"""

from .base_repository import EntityRepository
from .query_param import QueryParam

__all__ = [
    "EntityRepository",
    "QueryParam",
]
