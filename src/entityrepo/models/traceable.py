"""
Traceable entities: audit columns stamped by ORM lifecycle hooks.

Nobody sets these fields by hand. `before_insert` and `before_update` mapper
events fill them in during flush:

| Event           | creation_date / creation_user | modification_date / modification_user      |
| --------------- | ----------------------------- | ------------------------------------------ |
| before_insert   | now / current principal       | copied from the creation values            |
| before_update   | untouched                     | now / current principal (user kept if none) |

The principal name comes from `entityrepo.core.principal`.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.orm import Mapped, mapped_column

from entityrepo.core.principal import get_principal
from entityrepo.models.persistent import Persistent

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PersistentTraceable(Persistent):
    __abstract__ = True

    creation_date: Mapped[datetime | None] = mapped_column(nullable=True)
    creation_user: Mapped[str | None] = mapped_column(nullable=True)
    modification_date: Mapped[datetime | None] = mapped_column(nullable=True)
    modification_user: Mapped[str | None] = mapped_column(nullable=True)


@event.listens_for(PersistentTraceable, "before_insert", propagate=True)
def _stamp_creation(mapper, connection, target: PersistentTraceable) -> None:
    principal = get_principal()
    now = _now()
    target.creation_date = now
    target.creation_user = principal
    target.modification_date = now
    target.modification_user = principal


@event.listens_for(PersistentTraceable, "before_update", propagate=True)
def _stamp_modification(mapper, connection, target: PersistentTraceable) -> None:
    principal = get_principal()
    target.modification_date = _now()
    if principal is not None:
        target.modification_user = principal
    logger.debug(
        "entity.modification_stamped",
        extra={"entity": repr(target), "modification_user": target.modification_user},
    )
