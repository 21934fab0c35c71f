"""Database layer package for all SQL and persistence boundaries."""

from .health import SQLAlchemyDatabaseHealthService
from .interfaces import DatabaseHealthPort, ResultCacheRow
from .result_cache import SQLAlchemyResultCacheStore
from .session import db_create_engine

__all__ = [
	"DatabaseHealthPort",
	"ResultCacheRow",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyResultCacheStore",
	"db_create_engine",
]
