"""PostgreSQL connection pool and schema management."""

from memoria.db.pool import PostgresPool
from memoria.db.schema import ensure_schema, schema_statements

__all__ = ["PostgresPool", "ensure_schema", "schema_statements"]
