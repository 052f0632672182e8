"""
Declarative base shared by every mapped entity.

All entity modules import `Base` (usually indirectly through `Persistent`)
so that their tables register on a single `MetaData` with a stable naming
convention. Constraint names are part of the error contract: the repository
reports violated constraints by name and callers match on them.
"""

from datetime import datetime

from sqlalchemy import DateTime, MetaData, String
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    # plain `Mapped[str]` / `Mapped[datetime]` annotations resolve to these
    type_annotation_map = {
        str: String(255),
        datetime: DateTime(timezone=True),
    }
