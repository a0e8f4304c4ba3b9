from sqlalchemy.orm import Session

from ..config import settings
from .base import ActivityRepository, PropertyRepository, ReportRepository, Repositories, UserRepository
from .memory import MemoryStore, memory_repositories
from .sql import sql_repositories

# Process-wide store backing the "memory" data source.
memory_store = MemoryStore()


def build_repositories(session: Session) -> Repositories:
    if settings.data_source == "memory":
        return memory_repositories(memory_store)
    return sql_repositories(session)


__all__ = [
    "ActivityRepository",
    "MemoryStore",
    "PropertyRepository",
    "ReportRepository",
    "Repositories",
    "UserRepository",
    "build_repositories",
    "memory_repositories",
    "memory_store",
    "sql_repositories",
]
