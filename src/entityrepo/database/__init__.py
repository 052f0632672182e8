from .base import Base
from .session import create_engine_from_settings, create_session_factory, session_scope
from .transaction import TxType, transaction_scope

__all__ = [
    "Base",
    "create_engine_from_settings",
    "create_session_factory",
    "session_scope",
    "TxType",
    "transaction_scope",
]
