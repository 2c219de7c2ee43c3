from .base import Base
from .session import (
    database_configured,
    get_db,
    get_engine,
    get_sessionmaker,
    init_db,
    reachable,
    require_db,
)

__all__ = [
    "Base",
    "database_configured",
    "get_db",
    "get_engine",
    "get_sessionmaker",
    "init_db",
    "reachable",
    "require_db",
]
