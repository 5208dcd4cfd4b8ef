# agency_reports/tenancy/pool_manager.py
"""
Tenant connection pool registry.

Each tenant ("agency") has its own database. The TenantPoolManager keeps one
long-lived SQLAlchemy engine (and therefore one connection pool) per tenant,
evicting the least recently used pool when the registry is full. Callers
hold a connection for exactly one operation through ``connection()``, which
releases it on every exit path.
"""

import logging
import re
import threading
from collections import OrderedDict
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.sql.elements import TextClause

from agency_reports.core.config import (
    MAX_CONNECTIONS_PER_POOL,
    MAX_TENANT_POOLS,
    POOL_APPLICATION_NAME,
    POOL_TIMEOUT_SECONDS,
    STATEMENT_TIMEOUT_MS,
    TENANT_DATABASE_URL,
)
from agency_reports.core.exceptions import ConnectionUnavailable, ExecutionError
from agency_reports.query.identifiers import validate_database_name

logger = logging.getLogger(__name__)

_PLACEHOLDER_PATTERN = re.compile(r"\$(\d+)")


def bind_positional(query_text: str, parameters: Sequence[Any]) -> Tuple[TextClause, Dict[str, Any]]:
    """
    Rewrite ``$n`` placeholders as SQLAlchemy named binds.

    Compiled report text contains no '$' or ':' outside its placeholders,
    since identifiers are restricted to letters, digits and underscores.
    """
    binds = {f"p{index}": value for index, value in enumerate(parameters, start=1)}
    statement = text(_PLACEHOLDER_PATTERN.sub(lambda m: f":p{m.group(1)}", query_text))
    return statement, binds


class TenantConnection:
    """A connection checked out of a tenant pool for a single operation."""

    def __init__(self, tenant_id: str, connection: Connection):
        self.tenant_id = tenant_id
        self._connection = connection
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def execute(self, query_text: str, parameters: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a read query and return its rows as dictionaries."""
        if self._released:
            raise RuntimeError("Connection has already been released")

        statement, binds = bind_positional(query_text, parameters)
        try:
            result = self._connection.execute(statement, binds)
            return [dict(row) for row in result.mappings()]
        except DBAPIError as e:
            raise ExecutionError(str(e.orig)) from e
        except SQLAlchemyError as e:
            raise ExecutionError(str(e)) from e

    def describe_tables(self, schema: Optional[str] = None) -> List[Dict[str, Any]]:
        """List base tables and their columns."""
        if self._released:
            raise RuntimeError("Connection has already been released")

        try:
            inspector = inspect(self._connection)
            tables = []
            for table_name in sorted(inspector.get_table_names(schema=schema)):
                columns = [
                    {
                        "name": column["name"],
                        "type": str(column["type"]),
                        "nullable": bool(column.get("nullable", True)),
                    }
                    for column in inspector.get_columns(table_name, schema=schema)
                ]
                tables.append({"name": table_name, "columns": columns})
            return tables
        except DBAPIError as e:
            raise ExecutionError(str(e.orig)) from e
        except SQLAlchemyError as e:
            raise ExecutionError(str(e)) from e

    def release(self) -> None:
        """Return the connection to its pool. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        self._connection.close()


class TenantPoolManager:
    """Registry of per-tenant connection pools with LRU eviction."""

    def __init__(
        self,
        base_url: str = TENANT_DATABASE_URL,
        max_pools: int = MAX_TENANT_POOLS,
        max_connections_per_pool: int = MAX_CONNECTIONS_PER_POOL,
        pool_timeout: float = POOL_TIMEOUT_SECONDS,
        engine_factory: Optional[Callable[[str], Engine]] = None,
    ):
        self.base_url = base_url
        self.max_pools = max_pools
        self.max_connections_per_pool = max_connections_per_pool
        self.pool_timeout = pool_timeout
        self._engine_factory = engine_factory or self._create_engine
        self._pools: "OrderedDict[str, Engine]" = OrderedDict()
        self._stats: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    # ===== POOL REGISTRY =====

    def get_engine(self, tenant_id: str) -> Engine:
        """Get or create the engine for a tenant, marking it most recently used."""
        database = validate_database_name(tenant_id)
        evicted: List[Tuple[str, Engine]] = []

        with self._lock:
            engine = self._pools.get(database)
            if engine is None:
                engine = self._engine_factory(database)
                self._pools[database] = engine
                self._stats[database] = {
                    "acquisitions": 0,
                    "created_at": datetime.now(),
                    "last_used": None,
                }
                logger.info(f"Created connection pool for tenant {database}")

                while len(self._pools) > self.max_pools:
                    evicted.append(self._pools.popitem(last=False))
            else:
                self._pools.move_to_end(database)

        for name, old_engine in evicted:
            with self._lock:
                self._stats.pop(name, None)
            # Connections still checked out are closed when they are returned
            old_engine.dispose()
            logger.info(f"Evicted connection pool for tenant {name} (limit {self.max_pools})")

        return engine

    def _create_engine(self, database: str) -> Engine:
        url = make_url(self.base_url).set(database=database)
        options: Dict[str, Any] = {
            "pool_size": self.max_connections_per_pool,
            "max_overflow": 0,
            "pool_timeout": self.pool_timeout,
            "pool_pre_ping": True,
        }
        if url.get_backend_name() == "postgresql":
            options["connect_args"] = {
                "options": f"-c statement_timeout={STATEMENT_TIMEOUT_MS}",
                "application_name": POOL_APPLICATION_NAME,
            }
        return create_engine(url, **options)

    # ===== SCOPED ACQUISITION =====

    def acquire(self, tenant_id: str) -> TenantConnection:
        """
        Check out a connection for the tenant.

        Raises:
            InvalidTenant: If the tenant id is not a valid database name
            ConnectionUnavailable: If the pool is exhausted or the database
                cannot be reached
        """
        database = validate_database_name(tenant_id)
        engine = self.get_engine(database)

        try:
            connection = engine.connect()
        except PoolTimeoutError as e:
            raise ConnectionUnavailable(f"Connection pool for tenant {database} is exhausted") from e
        except DBAPIError as e:
            raise ConnectionUnavailable(f"Cannot connect to tenant database {database}: {e.orig}") from e

        with self._lock:
            stats = self._stats.get(database)
            if stats is not None:
                stats["acquisitions"] += 1
                stats["last_used"] = datetime.now()

        return TenantConnection(database, connection)

    @contextmanager
    def connection(self, tenant_id: str) -> Iterator[TenantConnection]:
        """Hold one tenant connection for the duration of the block."""
        tenant_connection = self.acquire(tenant_id)
        try:
            yield tenant_connection
        finally:
            tenant_connection.release()

    # ===== MONITORING / TEARDOWN =====

    def stats(self, tenant_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Usage of every pool, or only the given tenant's pool."""
        with self._lock:
            result = []
            for database, engine in self._pools.items():
                if tenant_id is not None and database != tenant_id:
                    continue
                stats = self._stats.get(database, {})
                pool = engine.pool
                result.append(
                    {
                        "tenant": database,
                        "acquisitions": stats.get("acquisitions", 0),
                        "created_at": stats.get("created_at"),
                        "last_used": stats.get("last_used"),
                        "checked_out": pool.checkedout() if hasattr(pool, "checkedout") else None,
                    }
                )
            return result

    def has_pool(self, tenant_id: str) -> bool:
        with self._lock:
            return tenant_id in self._pools

    def dispose(self, tenant_id: str) -> bool:
        """Close and forget a tenant's pool."""
        with self._lock:
            engine = self._pools.pop(tenant_id, None)
            self._stats.pop(tenant_id, None)
        if engine is None:
            return False
        engine.dispose()
        return True

    def dispose_all(self) -> None:
        with self._lock:
            engines = list(self._pools.values())
            self._pools.clear()
            self._stats.clear()
        for engine in engines:
            engine.dispose()
        logger.info(f"Disposed {len(engines)} tenant connection pools")

    def __len__(self) -> int:
        with self._lock:
            return len(self._pools)
