"""SQL-backed expiring result cache store."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from vyral_workers.cache import CACHE_MISS, CacheLookup, CacheStorePort, CacheUnavailableError
from vyral_workers.domain import HealthStatus

from .health import SQLAlchemyDatabaseHealthService
from .interfaces import ResultCacheRow


class SQLAlchemyResultCacheStore(CacheStorePort):
    """Cache store persisting entries in the `result_cache` table.

    Writes are unconditional upserts; rows past `expires_at_utc` are treated as
    absent and removed by `db_result_cache_purge_expired`.
    """

    def __init__(self, engine: Engine, clock: Callable[[], datetime] | None = None):
        """Initialize SQL cache store.

        Args:
            engine: SQLAlchemy engine used for all cache operations.
            clock: Optional provider of the current timezone-aware UTC time.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when engine is invalid.
        """

        if engine is None:
            raise ValueError("engine must not be None")

        self._engine = engine
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._health_service = SQLAlchemyDatabaseHealthService(engine=engine)

    def cache_backend_label(self) -> str:
        """Return masked database target label.

        Returns:
            str: Backend label.

        Raises:
            RuntimeError: Raised if URL rendering fails.
        """

        return f"database:{self._health_service.db_connection_label()}"

    def cache_get(self, key: str) -> CacheLookup:
        """Read one live cache row.

        Args:
            key: Cache key.

        Returns:
            CacheLookup: Hit with decoded payload or `CACHE_MISS`.

        Raises:
            CacheUnavailableError: Raised when the query or payload decoding fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(
                        "SELECT cache_key, payload_json, expires_at_utc FROM result_cache "
                        "WHERE cache_key = :cache_key AND expires_at_utc > :now_utc"
                    ),
                    {"cache_key": key, "now_utc": self._clock()},
                ).mappings().fetchone()
        except SQLAlchemyError as error:
            raise CacheUnavailableError("result cache read failed") from error

        if row is None:
            return CACHE_MISS

        cache_row = ResultCacheRow(
            cache_key=str(row["cache_key"]),
            payload_json=str(row["payload_json"]),
            expires_at_utc=row["expires_at_utc"],
        )
        try:
            return CacheLookup(hit=True, value=json.loads(cache_row.payload_json))
        except json.JSONDecodeError as error:
            raise CacheUnavailableError(f"result cache row is not valid JSON: key={key}") from error

    def cache_put(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Upsert one cache row with a fresh expiry.

        Args:
            key: Cache key.
            value: JSON-serializable value.
            ttl_seconds: Entry lifetime in seconds.

        Returns:
            None: Row is written as a side effect.

        Raises:
            ValueError: Raised when ttl_seconds is not positive.
            CacheUnavailableError: Raised when serialization or the write fails.
        """

        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")

        try:
            payload_json = json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError) as error:
            raise CacheUnavailableError(f"result cache value is not JSON-serializable: key={key}") from error

        now_utc = self._clock()
        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text(
                        "INSERT INTO result_cache (cache_key, payload_json, expires_at_utc, updated_at_utc) "
                        "VALUES (:cache_key, :payload_json, :expires_at_utc, :updated_at_utc) "
                        "ON CONFLICT (cache_key) DO UPDATE SET "
                        "payload_json = excluded.payload_json, "
                        "expires_at_utc = excluded.expires_at_utc, "
                        "updated_at_utc = excluded.updated_at_utc"
                    ),
                    {
                        "cache_key": key,
                        "payload_json": payload_json,
                        "expires_at_utc": now_utc + timedelta(seconds=ttl_seconds),
                        "updated_at_utc": now_utc,
                    },
                )
        except SQLAlchemyError as error:
            raise CacheUnavailableError("result cache write failed") from error

    def cache_check_health(self) -> HealthStatus:
        """Delegate to the database health service.

        Returns:
            HealthStatus: Database health payload.

        Raises:
            ConnectionError: Raised when the database is unreachable.
        """

        return self._health_service.db_check_health()

    def db_result_cache_purge_expired(self) -> int:
        """Delete every expired cache row.

        Returns:
            int: Number of deleted rows.

        Raises:
            CacheUnavailableError: Raised when the delete fails.
        """

        try:
            with self._engine.begin() as connection:
                result = connection.execute(
                    text("DELETE FROM result_cache WHERE expires_at_utc <= :now_utc"),
                    {"now_utc": self._clock()},
                )
        except SQLAlchemyError as error:
            raise CacheUnavailableError("result cache purge failed") from error
        return max(0, int(result.rowcount or 0))
