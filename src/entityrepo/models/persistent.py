"""
Persistent entity base.

Every repository-managed entity derives from `Persistent`, which provides:

  - `guid`: string surrogate key, generated with uuid4 when the instance is
    constructed without one.
  - `version`: optimistic-lock counter registered as the mapper's
    `version_id_col`. SQLAlchemy writes 1 on INSERT, bumps it on every
    UPDATE and rejects UPDATEs / merges carrying a stale value.
  - `persisted`: transient flag (not a column) that becomes True once the
    instance has been inserted, updated, loaded or refreshed from storage.

Identity is the guid: two instances of the same concrete class with the same
guid compare equal, whatever their other field values are.

Optional class-level hooks read by `EntityRepository`:

  - `__entity_name__`: display name (defaults to the class name).
  - `__fetch_graphs__`: named fetch graphs, see `models.graphs`.
  - `__named_queries__`: named query fragments for `find_named()`.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import Integer, String, event
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from entityrepo.database.base import Base

logger = logging.getLogger(__name__)


class Persistent(Base):
    __abstract__ = True

    guid: Mapped[str] = mapped_column(String(255), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # not mapped; flipped by the ORM events registered below
    persisted = False

    @declared_attr.directive
    def __mapper_args__(cls) -> dict[str, Any]:
        # evaluated by declarative after the table exists
        return {"version_id_col": cls.__table__.c.version}

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if self.guid is None:
            self.guid = str(uuid.uuid4())

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Persistent):
            return NotImplemented
        return type(self) is type(other) and self.guid == other.guid

    def __hash__(self) -> int:
        return hash((type(self), self.guid))

    def __repr__(self) -> str:
        return f"{type(self).__name__}:{self.guid}"


def _mark_persisted(target: Persistent) -> None:
    target.persisted = True


@event.listens_for(Persistent, "load", propagate=True)
def _on_load(target, context):
    _mark_persisted(target)


@event.listens_for(Persistent, "refresh", propagate=True)
def _on_refresh(target, context, attrs):
    _mark_persisted(target)


@event.listens_for(Persistent, "after_insert", propagate=True)
def _after_insert(mapper, connection, target):
    _mark_persisted(target)
    logger.debug("entity.inserted", extra={"entity": repr(target)})


@event.listens_for(Persistent, "after_update", propagate=True)
def _after_update(mapper, connection, target):
    _mark_persisted(target)
