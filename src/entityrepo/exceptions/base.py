"""
Typed errors raised by the repository layer.

    - RepositoryError: generic failure of a named repository operation.
    - ConstraintError: a RepositoryError caused by a storage-level constraint
      violation (unique, not-null, foreign key, check, optimistic lock). It
      additionally carries the violated constraint's name.

Both carry:

    - key: symbolic `RepositoryErrorKey` (immutable)
    - parameters: ordered positional parameters; by convention the entity
      name comes first, followed by identifiers / arguments of the call
    - named_parameters: free-form keyword parameters
    - stack_trace_log: whether the translator logs the traceback
    - the original exception as `__cause__`

The only mutation allowed after construction is appending parameters.
"""

from typing import Any, Iterable, Mapping

from .keys import RepositoryErrorKey


class RepositoryError(Exception):
    def __init__(
        self,
        key: RepositoryErrorKey,
        *parameters: Any,
        cause: BaseException | None = None,
        named_parameters: Mapping[str, Any] | None = None,
        stack_trace_log: bool = False,
    ):
        super().__init__(str(key))
        self._key = RepositoryErrorKey(key)
        self.parameters: list[Any] = list(parameters)
        self.named_parameters: dict[str, Any] = dict(named_parameters or {})
        self.stack_trace_log = stack_trace_log
        if cause is not None:
            self.__cause__ = cause

    @property
    def key(self) -> RepositoryErrorKey:
        return self._key

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    def add_parameter(self, value: Any) -> "RepositoryError":
        self.parameters.append(value)
        return self

    def add_parameters(self, values: Iterable[Any]) -> "RepositoryError":
        self.parameters.extend(values)
        return self

    def add_named_parameter(self, name: str, value: Any) -> "RepositoryError":
        self.named_parameters[name] = value
        return self

    def add_named_parameters(self, values: Mapping[str, Any]) -> "RepositoryError":
        self.named_parameters.update(values)
        return self

    def __str__(self) -> str:
        base = self._key.value
        if self.parameters:
            return f"{base} {self.parameters!r}"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict a higher layer can localize.

            {
                "key": "PERSIST_ENTITY_FAILED",
                "parameters": ["Customer"],
                "named_parameters": {"kind": "unique"},
            }

        The cause is deliberately left out: raw driver messages may contain data.
        """
        return {
            "key": self._key.value,
            "parameters": [p if isinstance(p, (str, int, float, bool)) or p is None else str(p)
                           for p in self.parameters],
            "named_parameters": {k: (v if isinstance(v, (str, int, float, bool)) or v is None else str(v))
                                 for k, v in self.named_parameters.items()},
        }


class ConstraintError(RepositoryError):
    """A storage constraint rejected the write; `constraint` names it when known."""

    def __init__(
        self,
        key: RepositoryErrorKey,
        *parameters: Any,
        constraint: str | None = None,
        cause: BaseException | None = None,
        named_parameters: Mapping[str, Any] | None = None,
        stack_trace_log: bool = False,
    ):
        super().__init__(
            key,
            *parameters,
            cause=cause,
            named_parameters=named_parameters,
            stack_trace_log=stack_trace_log,
        )
        self.constraint = constraint

    def __str__(self) -> str:
        return f"{super().__str__()} (constraint: {self.constraint})"

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["constraint"] = self.constraint
        return payload


__all__ = ["RepositoryError", "ConstraintError"]
