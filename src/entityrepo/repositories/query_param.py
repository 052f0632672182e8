from typing import Any


class QueryParam:
    """
    Fluent builder for named bind parameters.

        params = QueryParam.with_("email", email).and_("active", True)
        await repo.find_by_query("email = :email AND active = :active", params)

    Insertion order is kept; setting a name twice keeps the last value.
    """

    def __init__(self) -> None:
        self._params: dict[str, Any] = {}

    @classmethod
    def with_(cls, name: str, value: Any) -> "QueryParam":
        return cls().and_(name, value)

    def and_(self, name: str, value: Any) -> "QueryParam":
        self._params[name] = value
        return self

    def map(self) -> dict[str, Any]:
        """Return a copy of the collected parameters."""
        return dict(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __repr__(self) -> str:
        return f"QueryParam({self._params!r})"
