"""Normalizers applied by `Settings` validators before type checks run."""


def to_uppercase(value: str | None) -> str | None:
    """LOG_LEVEL=" debug" -> "DEBUG"."""
    if not isinstance(value, str):
        return value
    return value.strip().upper()


def to_lowercase(value: str | None) -> str | None:
    if not isinstance(value, str):
        return value
    return value.strip().lower()


def blank_to_none(value: str | None) -> str | None:
    """
    Treat empty / whitespace-only strings as unset.

    `DB_URL=` in a .env file yields "", which should fall back to the
    POSTGRES_* parts instead of being used as a URL.
    """
    if not isinstance(value, str):
        return value
    return value.strip() or None
