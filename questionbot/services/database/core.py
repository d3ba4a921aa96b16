"""
QuestionBot - Database Core
===========================

Small key/value-to-SQL query builder and CRUD facade over SQLite.

Rows and filters are plain (possibly nested) dicts. Nested dicts are
flattened into ``parent_child`` column names before any SQL is built, every
executed statement binds its values through ``?`` placeholders, and writes
run inside explicit transactions that either fully commit or fully roll back.

Example:
    >>> db = SqliteDatabase("data/bot.db", [TableSchema("users", [("name", "TEXT")])])
    >>> db.insert("users", {"name": "John"})
    >>> db.find_one("users", {"name": "John"})
    {'name': 'John'}
"""

import re
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import quote as _percent_encode
from urllib.parse import unquote as _percent_decode

from questionbot.core.logger import logger


# =============================================================================
# Constants
# =============================================================================

MEMORY_DATABASE: str = ":memory:"

# Seconds SQLite waits on a locked database before giving up
DATABASE_TIMEOUT: float = 5.0

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
DECLARED_TYPE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_ (),]*$")

# Characters left untouched when percent-encoding literal values
LITERAL_SAFE_CHARS: str = "@*_+-./"

FLATTEN_SEPARATOR: str = "_"


# =============================================================================
# Exceptions
# =============================================================================

class DatabaseError(Exception):
    """Base class for errors raised by the database facade itself."""
    pass


class QueryBuildError(DatabaseError, ValueError):
    """Raised when a statement cannot be built from the given input."""
    pass


class InvalidIdentifierError(QueryBuildError):
    """Raised when a table or column name is outside the allowed character set."""
    pass


class SchemaInitError(DatabaseError):
    """Raised when table creation failed and the whole batch was rolled back."""
    pass


# =============================================================================
# Data Types
# =============================================================================

Scalar = Union[str, int, float, bool, None]


@dataclass(frozen=True)
class TableSchema:
    """One entry of a schema descriptor: a table name and its columns."""
    table_name: str
    columns: Sequence[Tuple[str, str]] = field(default_factory=tuple)


@dataclass(frozen=True)
class RunResult:
    """Execution info for a write statement."""
    changes: int
    last_insert_rowid: Optional[int]


SchemaEntry = Union[TableSchema, Mapping[str, Any]]


# =============================================================================
# Quoting Helpers
# =============================================================================

def validate_identifier(name: str) -> str:
    """Return ``name`` unchanged if it is a safe table/column identifier."""
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
        raise InvalidIdentifierError(f"Invalid SQL identifier: {name!r}")
    return name


def _escape_literal(value: str) -> str:
    # urllib never escapes "~"; encode it too so every non-safe character is escaped
    return _percent_encode(value, safe=LITERAL_SAFE_CHARS).replace("~", "%7E")


def quote(value: Scalar, is_column: bool = True) -> Union[str, int, float]:
    """
    Render a single value for inline SQL.

    Identifiers get double quotes, literal strings are percent-encoded and
    single-quoted, None becomes ``null`` and booleans become 1/0 (SQLite has
    no native boolean type). Numbers pass through unchanged.

    Args:
        value: The value to render
        is_column: True to render as an identifier, False as a literal

    Returns:
        The rendered string, or the original number
    """
    if isinstance(value, str):
        if is_column:
            return f'"{validate_identifier(value)}"'
        return f"'{_escape_literal(value)}'"
    if value is None:
        return "null"
    if value is True:
        return 1
    if value is False:
        return 0
    return value


def quote_all(values: Iterable[Scalar], is_column: bool = True) -> List[Union[str, int, float]]:
    """Apply :func:`quote` to every item."""
    return [quote(v, is_column) for v in values]


def dequote_all(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Percent-decode every string field of a row written through inline literals."""
    if not row:
        return row
    return {
        k: _percent_decode(v) if isinstance(v, str) else v
        for k, v in row.items()
    }


def flatten(
    obj: Mapping[str, Any],
    parent: Optional[str] = None,
    result: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Flatten a nested dict into one level, joining keys with an underscore.

    ``{"meta": {"age": 5}, "name": "x"}`` becomes ``{"meta_age": 5, "name": "x"}``.
    Key order follows the iteration order of the input. Objects must be acyclic.
    """
    if result is None:
        result = {}
    if not obj:
        return result
    for key, value in obj.items():
        name = f"{parent}{FLATTEN_SEPARATOR}{key}" if parent else str(key)
        if isinstance(value, Mapping):
            flatten(value, name, result)
        else:
            result[name] = value
    return result


def _bind_value(value: Any) -> Any:
    """Coerce a value for placeholder binding."""
    if value is True:
        return 1
    if value is False:
        return 0
    return value


# =============================================================================
# Statement Builders
# =============================================================================

def build_key_value_string(
    params: Optional[Mapping[str, Any]],
    joiner: str = " AND ",
    kv_joiner: str = "=",
) -> str:
    """
    Join a dict into inline ``"key"=value`` pairs with literal values.

    e.g. ``{"name": "John", "age": 20}`` -> ``"name"='John' AND "age"=20``
    """
    flattened = flatten(params or {})
    return joiner.join(
        f"{quote(k)}{kv_joiner}{quote(v, False)}" for k, v in flattened.items()
    )


def build_param_string(
    params: Optional[Mapping[str, Any]],
    joiner: str = " AND ",
    kv_joiner: str = " = ?",
) -> str:
    """
    Join a dict's keys into placeholder pairs.

    e.g. ``{"name": "John", "age": 20}`` -> ``"name" = ? AND "age" = ?``
    """
    flattened = flatten(params or {})
    return joiner.join(f"{quote(k)}{kv_joiner}" for k in flattened)


def build_insert_query(table: str, params: Optional[Mapping[str, Any]]) -> str:
    """Build an INSERT statement with one placeholder per flattened field."""
    flattened = flatten(params or {})
    if not flattened:
        return f"INSERT INTO {quote(table)} DEFAULT VALUES;"
    columns = ", ".join(quote_all(flattened.keys()))
    placeholders = ", ".join("?" for _ in flattened)
    return f"INSERT INTO {quote(table)} ({columns}) VALUES ({placeholders});"


def build_select_query(table: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Build a SELECT statement; an empty filter selects every row."""
    where = build_param_string(params)
    if where:
        return f"SELECT * FROM {quote(table)} WHERE {where};"
    return f"SELECT * FROM {quote(table)};"


def build_update_query(
    table: str,
    value_params: Optional[Mapping[str, Any]],
    where_params: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Build an UPDATE statement.

    An empty ``where_params`` updates every row and emits no WHERE clause.

    Raises:
        QueryBuildError: If there is nothing to set.
    """
    values = build_param_string(value_params, ", ")
    if not values:
        raise QueryBuildError(f"UPDATE on {table!r} needs at least one value to set")
    where = build_param_string(where_params)
    if where:
        return f"UPDATE {quote(table)} SET {values} WHERE {where};"
    return f"UPDATE {quote(table)} SET {values};"


def build_create_table_query(table: TableSchema) -> str:
    """Build an idempotent CREATE TABLE statement for a schema entry."""
    columns = []
    for name, declared_type in table.columns:
        if not DECLARED_TYPE_PATTERN.match(declared_type):
            raise InvalidIdentifierError(
                f"Invalid declared type for {table.table_name}.{name}: {declared_type!r}"
            )
        columns.append(f"{quote(name)} {declared_type}")
    return f"CREATE TABLE IF NOT EXISTS {quote(table.table_name)} ({', '.join(columns)});"


def _coerce_table(entry: SchemaEntry) -> TableSchema:
    """Accept either a TableSchema or a ``{"tableName", "columns"}`` dict."""
    if isinstance(entry, TableSchema):
        table = entry
    else:
        name = entry.get("tableName", entry.get("table_name"))
        table = TableSchema(name, tuple(tuple(c) for c in entry.get("columns", ())))
    validate_identifier(table.table_name)
    if not table.columns:
        raise QueryBuildError(f"Table {table.table_name!r} declares no columns")
    for column in table.columns:
        validate_identifier(column[0])
    return table


# =============================================================================
# SQLite Facade
# =============================================================================

class SqliteDatabase:
    """
    CRUD facade over a single SQLite file.

    The connection is opened once and owned by this object until
    :meth:`close`. All calls are synchronous.
    """

    def __init__(
        self,
        filename: Union[str, Path],
        schema: Optional[Sequence[SchemaEntry]] = None,
        timeout: float = DATABASE_TIMEOUT,
    ) -> None:
        """
        Open the database and optionally create tables.

        Args:
            filename: Path to the database file (created if absent), or ":memory:"
            schema: Tables to create if they do not exist yet
            timeout: Seconds to wait on a locked database
        """
        self.filename: str = str(filename)
        self._lock: threading.RLock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = None

        self._connect(timeout)

        if schema is not None:
            try:
                self.init_tables(schema)
            except DatabaseError:
                self.close()
                raise

    # =========================================================================
    # Connection Management
    # =========================================================================

    def _connect(self, timeout: float) -> None:
        """Open the connection in autocommit mode so transactions are explicit."""
        if self.filename != MEMORY_DATABASE:
            Path(self.filename).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(
                self.filename,
                timeout=timeout,
                isolation_level=None,
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            if self.filename != MEMORY_DATABASE:
                self._conn.execute("PRAGMA journal_mode=WAL")
                self._conn.execute("PRAGMA synchronous=NORMAL")
        except sqlite3.Error as e:
            logger.error("Database Connection Failed", [
                ("Path", self.filename),
                ("Error", str(e)),
            ])
            raise

        logger.tree("Database Opened", [
            ("Path", self.filename),
        ], emoji="🗄️")

    @property
    def connection(self) -> sqlite3.Connection:
        """The open connection; raises if the database was closed."""
        if self._conn is None:
            raise DatabaseError(f"Database {self.filename} is closed")
        return self._conn

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.info("Database Closed", [
            ("Path", self.filename),
        ])

    def __enter__(self) -> "SqliteDatabase":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator["SqliteDatabase"]:
        """
        Group several CRUD calls into one transaction.

        insert/update/atomic_query calls made inside the block join it
        instead of committing on their own. Any error rolls back every
        write of the block and is re-raised.

        Example:
            with db.transaction():
                db.insert("questions", row)
                db.update("channel_info", {"next_id": 2}, {"channel": 1})
        """
        with self._transaction():
            yield self

    @contextmanager
    def _transaction(self, exclusive: bool = False) -> Iterator[sqlite3.Connection]:
        """Run the enclosed statements as one unit, rolling back on any error."""
        with self._lock:
            conn = self.connection
            if conn.in_transaction:
                # Joined an enclosing transaction; it commits or rolls back
                yield conn
                return
            conn.execute("BEGIN EXCLUSIVE TRANSACTION;" if exclusive else "BEGIN TRANSACTION;")
            try:
                yield conn
                conn.execute("COMMIT TRANSACTION;")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK TRANSACTION;")
                raise

    # =========================================================================
    # Health Check
    # =========================================================================

    @property
    def is_healthy(self) -> bool:
        """Check if the connection answers a trivial query."""
        try:
            with self._lock:
                self.connection.execute("SELECT 1")
            return True
        except (sqlite3.Error, DatabaseError):
            return False

    def health_check(self) -> dict:
        """
        Perform a health check.

        Returns:
            Dict with health status and diagnostics
        """
        result = {
            "healthy": False,
            "connected": False,
            "journal_mode": None,
            "tables": 0,
            "db_size_mb": 0.0,
            "error": None,
        }

        try:
            with self._lock:
                conn = self.connection
                conn.execute("SELECT 1")
                result["connected"] = True

                mode = conn.execute("PRAGMA journal_mode").fetchone()
                result["journal_mode"] = mode[0] if mode else None

                result["tables"] = conn.execute(
                    "SELECT COUNT(*) FROM sqlite_master WHERE type='table'"
                ).fetchone()[0]

            path = Path(self.filename)
            if self.filename != MEMORY_DATABASE and path.exists():
                result["db_size_mb"] = round(path.stat().st_size / (1024 * 1024), 2)

            result["healthy"] = result["connected"]

        except (sqlite3.Error, DatabaseError) as e:
            result["error"] = str(e)

        return result

    # =========================================================================
    # Schema
    # =========================================================================

    def init_tables(self, schema: Sequence[SchemaEntry]) -> None:
        """
        Create every table in ``schema`` inside one exclusive transaction.

        Expected schema: a list of TableSchema (or dicts with ``tableName`` and
        ``columns``), where columns are ``(name, declared type)`` pairs, e.g.::

            [TableSchema("questions", [("author", "NUMERIC"), ("question", "TEXT")])]

        Raises:
            InvalidIdentifierError: If a name or declared type is not allowed.
            SchemaInitError: If SQLite rejected a statement; nothing was created.
        """
        tables = [_coerce_table(entry) for entry in schema]
        queries = [build_create_table_query(table) for table in tables]

        try:
            with self._transaction(exclusive=True) as conn:
                for query in queries:
                    conn.execute(query)
                    logger.debug("Create Table", [
                        ("Query", query),
                    ])
        except sqlite3.Error as e:
            logger.error("Schema Initialization Failed", [
                ("Path", self.filename),
                ("Error", str(e)),
                ("Action", "Rolled back"),
            ])
            raise SchemaInitError(f"Could not initialize tables: {e}") from e

        logger.tree("Tables Initialized", [
            ("Path", self.filename),
            ("Tables", ", ".join(t.table_name for t in tables)),
        ], emoji="🗄️")

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def insert(self, table: str, params: Optional[Mapping[str, Any]] = None) -> RunResult:
        """
        Insert one row.

        Args:
            table: The name of the table to insert into
            params: Column names to values (nested dicts are flattened)

        Returns:
            RunResult with the new row id and the affected row count
        """
        query = build_insert_query(table, params)
        values = [_bind_value(v) for v in flatten(params or {}).values()]

        with self._transaction() as conn:
            cursor = conn.execute(query, values)
            info = RunResult(cursor.rowcount, cursor.lastrowid)

        logger.tree("SQL Insert", [
            ("Query", query),
            ("Changes", info.changes),
            ("Row ID", info.last_insert_rowid),
        ], emoji="🗄️")
        return info

    def find(self, table: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Select every row matching ``params`` (all rows when empty).

        Returns:
            List of rows as dicts, empty when nothing matches
        """
        query = build_select_query(table, params)
        values = [_bind_value(v) for v in flatten(params or {}).values()]

        with self._lock:
            rows = [dict(row) for row in self.connection.execute(query, values).fetchall()]

        logger.tree("SQL Find", [
            ("Query", query),
            ("Rows", len(rows)),
        ], emoji="🔎")
        return rows

    def find_one(self, table: str, params: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """
        Select the first row matching ``params``.

        Returns:
            The row as a dict, or None if nothing matches
        """
        query = build_select_query(table, params)
        values = [_bind_value(v) for v in flatten(params or {}).values()]

        with self._lock:
            row = self.connection.execute(query, values).fetchone()

        logger.tree("SQL Find One", [
            ("Query", query),
            ("Found", "Yes" if row is not None else "No"),
        ], emoji="🔎")
        return dict(row) if row is not None else None

    def update(
        self,
        table: str,
        value_params: Mapping[str, Any],
        where_params: Optional[Mapping[str, Any]] = None,
    ) -> RunResult:
        """
        Update rows matching ``where_params`` (every row when empty).

        Values are bound in clause order: SET values first, then WHERE values.

        Returns:
            RunResult with the affected row count
        """
        query = build_update_query(table, value_params, where_params)
        values = [
            _bind_value(v)
            for v in (*flatten(value_params).values(), *flatten(where_params or {}).values())
        ]

        with self._transaction() as conn:
            cursor = conn.execute(query, values)
            info = RunResult(cursor.rowcount, cursor.lastrowid)

        logger.tree("SQL Update", [
            ("Query", query),
            ("Changes", info.changes),
        ], emoji="🗄️")
        return info

    def atomic_query(self, queries: Iterable[str]) -> None:
        """
        Run fully formed statements in order inside one exclusive transaction.

        Meant for maintenance and upgrade scripts. If any statement fails,
        none of them take effect and the error is re-raised.
        """
        with self._transaction(exclusive=True) as conn:
            for query in queries:
                cursor = conn.execute(query)
                logger.tree("SQL Query", [
                    ("Query", query),
                    ("Changes", cursor.rowcount),
                ], emoji="🗄️")


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "SqliteDatabase",
    "TableSchema",
    "RunResult",
    "DatabaseError",
    "QueryBuildError",
    "InvalidIdentifierError",
    "SchemaInitError",
    "validate_identifier",
    "quote",
    "quote_all",
    "dequote_all",
    "flatten",
    "build_key_value_string",
    "build_param_string",
    "build_insert_query",
    "build_select_query",
    "build_update_query",
    "build_create_table_query",
    "DATABASE_TIMEOUT",
]
