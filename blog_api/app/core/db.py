"""
SQLite-backed document store and simple migration system.

Each collection is a table holding one JSON document per row.  The
``DocumentStore`` owns the connection and its lifecycle (``connect`` /
``close``); ``Collection`` exposes the document operations the
services need: insert, find with filter and sort, find by id, partial
update by id and delete by id.  ``init_db`` applies migrations on
application start.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import json
import logging
import os
import re
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .config import settings
from .exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

ASCENDING = "asc"
DESCENDING = "desc"

SortSpec = Sequence[Tuple[str, str]]

# Field names end up inside JSON paths and ORDER BY clauses
_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Serialise a datetime as fixed-width UTC ISO-8601.

    Microseconds are always present so that string order matches
    chronological order inside SQLite.
    """
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


def generate_id() -> str:
    return uuid.uuid4().hex


def _check_name(name: str) -> str:
    if not _FIELD_NAME.match(name):
        raise ValueError(f"Invalid field or collection name: {name!r}")
    return name


def get_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    ``:memory:`` and absolute paths are used directly.  Otherwise the
    path is resolved relative to the project root.
    """
    if database_url == ":memory:" or os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / database_url).resolve())


class DocumentStore:
    """Handle on a document database.

    The store is constructed explicitly and passed to the services that
    need it.  Nothing touches the database until ``connect`` is called,
    and every operation runs inside ``cursor``, which commits on success
    and rolls back on failure.
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        self.database_url = database_url or settings.database_url
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def connect(self) -> "DocumentStore":
        if self._conn is not None:
            return self
        db_path = get_database_path(self.database_url)
        try:
            # Async request handlers may run on a different thread than the
            # one that opened the store.
            conn = sqlite3.connect(db_path, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Cannot open document store at {db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        self._conn = conn
        logger.info("Connected to document store %s", db_path)
        return self

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("Disconnected from document store")

    def __enter__(self) -> "DocumentStore":
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextmanager
    def cursor(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor for a single unit of work."""
        if self._conn is None:
            raise StoreUnavailableError("Document store is not connected")
        conn = self._conn
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Document store operation failed: %s", exc)
            raise StoreUnavailableError(str(exc)) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()

    def collection(self, name: str, timestamps: bool = False) -> "Collection":
        return Collection(self, name, timestamps=timestamps)


class Collection:
    """A named set of JSON documents.

    Filters are ``{field: value}`` mappings combined with AND.  A field
    holding an array matches when it contains ``value``; any other field
    matches on equality, and ``None`` matches missing or null fields.

    With ``timestamps`` enabled, ``createdAt`` and ``updatedAt`` are
    stamped on insert and ``updatedAt`` is moved strictly forward on
    every update.
    """

    def __init__(self, store: DocumentStore, name: str, timestamps: bool = False) -> None:
        self.store = store
        self.name = _check_name(name)
        self.timestamps = timestamps

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Dict[str, Any]:
        document = json.loads(row["document"])
        document["id"] = row["id"]
        return document

    def _where(self, filters: Optional[Dict[str, Any]]) -> Tuple[str, List[Any]]:
        clauses: List[str] = []
        params: List[Any] = []
        for field, value in (filters or {}).items():
            path = f"$.{_check_name(field)}"
            if value is None:
                clauses.append("json_extract(document, ?) IS NULL")
                params.append(path)
                continue
            clauses.append(
                f"""
                (CASE json_type(document, ?)
                    WHEN 'array' THEN EXISTS (
                        SELECT 1 FROM json_each("{self.name}".document, ?) AS element
                        WHERE element.value = ?
                    )
                    ELSE json_extract(document, ?) = ?
                END)
                """
            )
            params.extend([path, path, value, path, value])
        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    @staticmethod
    def _order_by(sort: Optional[SortSpec]) -> str:
        parts: List[str] = []
        for field, direction in sort or ():
            direction = direction.lower()
            if direction not in {ASCENDING, DESCENDING}:
                raise ValueError(f"Invalid sort direction: {direction!r}")
            parts.append(f"json_extract(document, '$.{_check_name(field)}') {direction.upper()}")
        # Ties keep insertion order
        parts.append("rowid ASC")
        return " ORDER BY " + ", ".join(parts)

    def _next_timestamp(self, previous: Optional[str]) -> datetime:
        now = utcnow()
        if previous:
            last = parse_timestamp(previous)
            if now <= last:
                now = last + timedelta(microseconds=1)
        return now

    def insert_one(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert ``document`` and return it with its generated ``id``."""
        body = {key: value for key, value in document.items() if key != "id"}
        if self.timestamps:
            now = format_timestamp(utcnow())
            body["createdAt"] = now
            body["updatedAt"] = now
        doc_id = generate_id()
        with self.store.cursor() as cursor:
            cursor.execute(
                f'INSERT INTO "{self.name}" (id, document) VALUES (?, ?)',
                (doc_id, json.dumps(body)),
            )
        logger.debug("Inserted document %s into %s", doc_id, self.name)
        return {**body, "id": doc_id}

    def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        sort: Optional[SortSpec] = None,
    ) -> List[Dict[str, Any]]:
        where, params = self._where(filters)
        query = f'SELECT id, document FROM "{self.name}"{where}{self._order_by(sort)}'
        with self.store.cursor() as cursor:
            rows = cursor.execute(query, params).fetchall()
        return [self._row_to_document(row) for row in rows]

    def find_by_id(self, doc_id: str) -> Optional[Dict[str, Any]]:
        with self.store.cursor() as cursor:
            row = cursor.execute(
                f'SELECT id, document FROM "{self.name}" WHERE id = ?',
                (doc_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_document(row)

    def update_by_id(self, doc_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Overwrite only the fields in ``changes``.

        Returns the updated document, or ``None`` if no document has
        this id.  ``id`` and ``createdAt`` are never overwritten.
        """
        changes = {key: value for key, value in changes.items() if key not in {"id", "createdAt"}}
        with self.store.cursor() as cursor:
            row = cursor.execute(
                f'SELECT document FROM "{self.name}" WHERE id = ?',
                (doc_id,),
            ).fetchone()
            if row is None:
                return None
            document = json.loads(row["document"])
            document.update(changes)
            if self.timestamps:
                document["updatedAt"] = format_timestamp(self._next_timestamp(document.get("updatedAt")))
            cursor.execute(
                f'UPDATE "{self.name}" SET document = ? WHERE id = ?',
                (json.dumps(document), doc_id),
            )
        logger.debug("Updated document %s in %s: %s", doc_id, self.name, sorted(changes))
        return {**document, "id": doc_id}

    def delete_by_id(self, doc_id: str) -> int:
        """Delete a document and return the number of rows removed."""
        with self.store.cursor() as cursor:
            cursor.execute(f'DELETE FROM "{self.name}" WHERE id = ?', (doc_id,))
            deleted = cursor.rowcount
        logger.debug("Deleted %d document(s) with id %s from %s", deleted, doc_id, self.name)
        return deleted


MIGRATIONS: List[Tuple[int, str]] = [
    # Migration 1: posts collection
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS posts (
            id TEXT PRIMARY KEY,
            document TEXT NOT NULL CHECK (json_valid(document))
        );
        """,
    ),
    # Migration 2: indexes backing the default sort orders and the author filter
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_posts_created_at ON posts(json_extract(document, '$.createdAt'));
        CREATE INDEX IF NOT EXISTS idx_posts_updated_at ON posts(json_extract(document, '$.updatedAt'));
        CREATE INDEX IF NOT EXISTS idx_posts_author ON posts(json_extract(document, '$.author'));
        """,
    ),
]


def init_db(store: DocumentStore) -> int:
    """Apply pending migrations and return the resulting schema version.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any newer entries of
    ``MIGRATIONS``.  To change the schema, append a migration with an
    incremented version number.
    """
    with store.cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) AS version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                logger.info("Applied migration %d", version)
                current_version = version

    return current_version
