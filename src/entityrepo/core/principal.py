"""
Current principal accessor.

The audit hook on traceable entities needs the name of whoever is performing
the write. The name lives in a `contextvars.ContextVar` so it follows the
logical flow of a request across awaits and asyncio tasks (unlike
`threading.local()`), and it is also what the logging `PrincipalFilter`
stamps on log records.

Typical use at the edge of a unit of work:

    with principal_scope("alice"):
        await repo.update(order)
"""

import contextvars
from contextlib import contextmanager
from typing import Iterator

_principal_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "principal", default=None
)


def set_principal(name: str | None) -> contextvars.Token:
    """
    Set the principal name for the current context.

    Returns:
        token: pass it to `reset_principal(token)` to restore the previous value.
    """
    return _principal_ctx.set(name)


def reset_principal(token: contextvars.Token) -> None:
    _principal_ctx.reset(token)


def get_principal() -> str | None:
    """Return the current principal name, or None when nobody is set."""
    return _principal_ctx.get()


@contextmanager
def principal_scope(name: str | None) -> Iterator[str | None]:
    token = set_principal(name)
    try:
        yield name
    finally:
        reset_principal(token)


__all__ = ["set_principal", "reset_principal", "get_principal", "principal_scope"]
