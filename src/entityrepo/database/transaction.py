"""
Transaction semantics for repository operations.

Repository methods declare what they need from the caller's transaction:

| TxType          | Session in a transaction            | Session idle                          |
| --------------- | ----------------------------------- | ------------------------------------- |
| REQUIRED        | join it (caller commits)            | begin one, commit / roll back on exit |
| SUPPORTS        | join it                             | run, then end the autobegun transaction |
| NOT_SUPPORTED   | run on a separate short-lived session | same as SUPPORTS                    |

"In a transaction" means `session.in_transaction()`. AsyncSession autobegins on
first use, so a read on an idle session opens a transaction; the scope commits
it on exit (rolls it back on error) and the session is idle again. Otherwise a
later REQUIRED write would join that leftover transaction and never commit.
"""

import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class TxType(str, Enum):
    REQUIRED = "required"
    SUPPORTS = "supports"
    NOT_SUPPORTED = "not_supported"


@asynccontextmanager
async def transaction_scope(
    session: AsyncSession, tx_type: TxType
) -> AsyncIterator[AsyncSession]:
    """
    Yield the session an operation must run on, honouring `tx_type`.
    """
    if tx_type is TxType.REQUIRED and not session.in_transaction():
        async with session.begin():
            yield session
        return

    if tx_type is TxType.NOT_SUPPORTED and session.in_transaction():
        bind = session.bind
        if bind is not None:
            logger.debug("tx.suspended", extra={"tx_type": tx_type.value})
            async with AsyncSession(bind=bind, expire_on_commit=False) as side:
                yield side
                await side.rollback()
            return

        # multi-bind sessions have no single engine to open a side session on
        logger.debug("tx.not_suspended_no_bind", extra={"tx_type": tx_type.value})

    if session.in_transaction():
        yield session
        return

    # idle on entry: end whatever transaction autobegin opens for this call
    try:
        yield session
    except BaseException:
        if session.in_transaction():
            await session.rollback()
        raise
    if session.in_transaction():
        await session.commit()
