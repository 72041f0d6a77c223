from dbweb_core.config import CoreConfig, load_core_config
from dbweb_core.errors import DBWebError
from dbweb_core.home import DBWebPaths, ensure_dbweb_layout, resolve_dbweb_home
from dbweb_core.session import SessionManager, WebSession

__version__ = "0.1.0"

__all__ = [
    "CoreConfig",
    "DBWebError",
    "DBWebPaths",
    "SessionManager",
    "WebSession",
    "__version__",
    "ensure_dbweb_layout",
    "load_core_config",
    "resolve_dbweb_home",
]
