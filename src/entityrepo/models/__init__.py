r"""
Entity base classes.

Importing this package registers the ORM lifecycle listeners (persisted flag,
audit stamping), so application models should import their bases from here:

    from entityrepo.models import Persistent, PersistentTraceable
"""

from .persistent import Persistent
from .traceable import PersistentTraceable
from .graphs import FetchGraphError, resolve_fetch_graph, resolve_named_query

__all__ = [
    "Persistent",
    "PersistentTraceable",
    "FetchGraphError",
    "resolve_fetch_graph",
    "resolve_named_query",
]
