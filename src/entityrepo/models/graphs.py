"""
Named fetch graphs.

An entity may declare which relationships should be eagerly loaded together
with it, keyed by graph name:

    class Order(Persistent):
        __fetch_graphs__ = {
            "Order.load": ("lines", "lines.product"),
        }

Each entry is a dotted relationship path. `resolve_fetch_graph()` turns the
paths into chained `selectinload()` options that can be handed straight to
`select(...).options(*opts)`.

The repository looks up the graph named "<entityName>.load" once at
construction; a missing graph means "no extra loader options".
"""

from typing import Any

from sqlalchemy.orm import Load, RelationshipProperty, selectinload

FetchGraph = tuple[Load, ...]


class FetchGraphError(ValueError):
    """Raised when a fetch graph names an attribute that is not a relationship."""


def _path_option(entity_class: type, path: str) -> Load:
    option = None
    owner = entity_class
    for part in path.split("."):
        attr = getattr(owner, part, None)
        prop = getattr(attr, "property", None)
        if not isinstance(prop, RelationshipProperty):
            raise FetchGraphError(
                f"{owner.__name__}.{part} is not a relationship (graph path '{path}')"
            )
        option = selectinload(attr) if option is None else option.selectinload(attr)
        owner = prop.mapper.class_
    return option


def resolve_fetch_graph(entity_class: type, name: str) -> FetchGraph | None:
    """
    Return loader options for the graph `name` declared on `entity_class`,
    or None when the entity does not declare it.
    """
    graphs: dict[str, Any] = getattr(entity_class, "__fetch_graphs__", None) or {}
    paths = graphs.get(name)
    if paths is None:
        return None
    if isinstance(paths, str):
        paths = (paths,)
    return tuple(_path_option(entity_class, p) for p in paths)


def resolve_named_query(entity_class: type, name: str) -> str | None:
    queries: dict[str, str] = getattr(entity_class, "__named_queries__", None) or {}
    return queries.get(name)
