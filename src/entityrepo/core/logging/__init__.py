# src/entityrepo/core/logging/
# ├─ __init__.py            # public API: setup_logging, make_dict_config, filters
# ├─ builder.py             # make_dict_config(settings) + setup_logging(settings)
# ├─ formatters.py          # JsonFormatter, ColorFormatter
# ├─ filters.py             # PrincipalFilter, RedactFilter
# └─ handlers.py            # handler config factories (console/file/error)


from .builder import setup_logging, make_dict_config
from .filters import PrincipalFilter, RedactFilter

__all__ = ["setup_logging", "make_dict_config", "PrincipalFilter", "RedactFilter"]
