"""
Document store module
A small transactional key/document store on top of DuckDB.

Main features:
- Documents are JSON objects addressed by (collection, id)
- Per-document get/set/update/delete
- Equality and range queries evaluated against document fields
- Conditional updates (precondition on current field values)
- Atomic write batches and read-write transactions (all-or-nothing)

Every transaction runs under a re-entrant lock on a single connection, so
transactions are serialised within the process.
"""

import json
import logging
import operator
import re
import threading
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Iterable, List, Optional, Tuple

import duckdb

from .exceptions import (
    BaseApplicationError,
    CommitFailedError,
    DatabaseError,
    NotFoundError,
    PreconditionFailed,
)
from ..config.settings import settings

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
Predicate = Tuple[str, str, Any]

SCHEMA_SQL = r"""
CREATE TABLE IF NOT EXISTS documents (
  collection TEXT NOT NULL,
  doc_id TEXT NOT NULL,
  data TEXT NOT NULL,
  created_at TIMESTAMP DEFAULT now(),
  updated_at TIMESTAMP DEFAULT now(),
  PRIMARY KEY (collection, doc_id)
);
"""

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, options: value in options,
}

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def server_timestamp() -> datetime:
    """Current instant in UTC; lifecycle timestamps all come from here"""
    return datetime.now(timezone.utc)


def new_document_id() -> str:
    """Generate an opaque unique document id"""
    return uuid.uuid4().hex


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _dumps(data: Document) -> str:
    return json.dumps(data, default=_json_default, ensure_ascii=False)


def _matches(doc: Document, predicates: Iterable[Predicate]) -> bool:
    for field, op, expected in predicates:
        if field not in doc:
            return False
        try:
            if not _OPERATORS[op](doc[field], expected):
                return False
        except TypeError:
            return False
    return True


def _validate_predicates(predicates: Iterable[Predicate]) -> List[Predicate]:
    checked = []
    for predicate in predicates or []:
        field, op, value = predicate
        if op not in _OPERATORS:
            raise DatabaseError(f"Unsupported query operator: {op}")
        checked.append((field, op, value))
    return checked


def _sql_literal(value: Any) -> Optional[str]:
    """Text form json_extract_string yields for a scalar, or None if not pushed down"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return None


def _sql_prefilter(predicates: List[Predicate]) -> Tuple[Optional[List[str]], List[Any]]:
    """
    Translate `==` and `in` predicates on plain fields into SQL.

    The SQL narrows the candidate rows only; every row is still checked with
    `_matches`, so typed comparisons keep their Python semantics. Returns
    (None, []) when a predicate can match nothing.
    """
    clauses: List[str] = []
    params: List[Any] = []
    for field, op, value in predicates:
        if not _FIELD_NAME.match(field):
            continue
        column = f"json_extract_string(data, '$.{field}')"
        if op == "==":
            literal = _sql_literal(value)
            if literal is not None:
                clauses.append(f"{column} = ?")
                params.append(literal)
        elif op == "in" and isinstance(value, (list, tuple, set, frozenset)):
            options = list(value)
            if not options:
                return None, []
            literals = [_sql_literal(option) for option in options]
            if all(literal is not None for literal in literals):
                clauses.append(f"{column} IN ({', '.join('?' for _ in literals)})")
                params.extend(literals)
    return clauses, params


class Transaction:
    """Read/write handle bound to an open DuckDB transaction"""

    def __init__(self, conn: duckdb.DuckDBPyConnection):
        self._conn = conn

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        row = self._conn.execute(
            "SELECT data FROM documents WHERE collection=? AND doc_id=?",
            [collection, doc_id],
        ).fetchone()
        if not row:
            return None
        doc = json.loads(row[0])
        doc["id"] = doc_id
        return doc

    def query(self, collection: str, predicates: Optional[Iterable[Predicate]] = None) -> List[Document]:
        checked = _validate_predicates(predicates)
        clauses, params = _sql_prefilter(checked)
        if clauses is None:
            return []
        sql = "SELECT doc_id, data FROM documents WHERE collection=?"
        for clause in clauses:
            sql += f" AND {clause}"
        rows = self._conn.execute(
            sql + " ORDER BY created_at, doc_id",
            [collection, *params],
        ).fetchall()
        results = []
        for doc_id, raw in rows:
            doc = json.loads(raw)
            doc["id"] = doc_id
            if _matches(doc, checked):
                results.append(doc)
        return results

    def set(self, collection: str, doc_id: str, data: Document):
        payload = {k: v for k, v in data.items() if k != "id"}
        payload["id"] = doc_id
        exists = self._conn.execute(
            "SELECT 1 FROM documents WHERE collection=? AND doc_id=?",
            [collection, doc_id],
        ).fetchone()
        if exists:
            self._conn.execute(
                "UPDATE documents SET data=?, updated_at=now() WHERE collection=? AND doc_id=?",
                [_dumps(payload), collection, doc_id],
            )
        else:
            self._conn.execute(
                "INSERT INTO documents(collection, doc_id, data) VALUES (?,?,?)",
                [collection, doc_id, _dumps(payload)],
            )

    def update(self, collection: str, doc_id: str, data: Document,
               precondition: Optional[Dict[str, Any]] = None):
        """
        Merge fields into an existing document

        Args:
            precondition: field -> expected value; checked against the current
                document inside this transaction

        Raises:
            NotFoundError: document does not exist
            PreconditionFailed: a precondition field does not hold the expected value
        """
        current = self.get(collection, doc_id)
        if current is None:
            raise NotFoundError(
                f"Document {collection}/{doc_id} not found",
                details={"collection": collection, "id": doc_id},
            )
        for field, expected in (precondition or {}).items():
            if current.get(field) != expected:
                raise PreconditionFailed(
                    f"Precondition failed on {collection}/{doc_id}.{field}",
                    details={"field": field, "expected": expected, "actual": current.get(field)},
                )
        current.update({k: v for k, v in data.items() if k != "id"})
        self._conn.execute(
            "UPDATE documents SET data=?, updated_at=now() WHERE collection=? AND doc_id=?",
            [_dumps(current), collection, doc_id],
        )

    def delete(self, collection: str, doc_id: str):
        self._conn.execute(
            "DELETE FROM documents WHERE collection=? AND doc_id=?",
            [collection, doc_id],
        )


class WriteBatch:
    """Collects writes and applies them in one transaction on commit"""

    def __init__(self, store: "DocumentStore"):
        self._store = store
        self._ops: List[Tuple[str, tuple, dict]] = []
        self._committed = False

    def set(self, collection: str, doc_id: str, data: Document) -> "WriteBatch":
        self._ops.append(("set", (collection, doc_id, data), {}))
        return self

    def update(self, collection: str, doc_id: str, data: Document,
               precondition: Optional[Dict[str, Any]] = None) -> "WriteBatch":
        self._ops.append(("update", (collection, doc_id, data), {"precondition": precondition}))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self._ops.append(("delete", (collection, doc_id), {}))
        return self

    def __len__(self) -> int:
        return len(self._ops)

    def commit(self):
        """Apply every queued write, or none of them"""
        if self._committed:
            raise DatabaseError("Batch already committed")
        with self._store.transaction() as txn:
            for name, args, kwargs in self._ops:
                getattr(txn, name)(*args, **kwargs)
        self._committed = True


class DocumentStore:
    """DuckDB backed document store"""

    def __init__(self, db_path: Optional[str] = None):
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.RLock()
        self._local = threading.local()
        self.db_path = db_path or self._get_db_path_from_settings()

    def _get_db_path_from_settings(self) -> str:
        db_url = settings.database_url
        if db_url.startswith("duckdb://"):
            return db_url.replace("duckdb://", "", 1)
        return db_url

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        with self._lock:
            if self._connection is None:
                if self.db_path != ":memory:":
                    Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self._connection = duckdb.connect(self.db_path)
                self._init_schema()
            return self._connection

    def _init_schema(self):
        try:
            self._connection.execute(SCHEMA_SQL)
        except duckdb.Error as e:
            raise DatabaseError(f"Failed to initialize schema: {e}")

    def init_database(self):
        """Open the connection and make sure the schema exists"""
        self.connection.execute(SCHEMA_SQL)

    def close(self):
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    @contextmanager
    def transaction(self) -> Generator[Transaction, None, None]:
        """
        Read-write transaction context

        Nested use on the same thread joins the outer transaction. Application
        errors raised inside roll back and propagate unchanged; store errors
        roll back and surface as CommitFailedError.
        """
        with self._lock:
            active = getattr(self._local, "txn", None)
            if active is not None:
                yield active
                return

            conn = self.connection
            txn = Transaction(conn)
            self._local.txn = txn
            try:
                conn.execute("BEGIN TRANSACTION")
                yield txn
                conn.execute("COMMIT")
            except BaseApplicationError:
                self._rollback(conn)
                raise
            except duckdb.Error as e:
                self._rollback(conn)
                logger.error("Transaction aborted: %s", e)
                raise CommitFailedError(f"Commit failed: {e}") from e
            except Exception:
                self._rollback(conn)
                raise
            finally:
                self._local.txn = None

    def _rollback(self, conn: duckdb.DuckDBPyConnection):
        try:
            conn.execute("ROLLBACK")
        except duckdb.Error as e:
            # No open transaction left to roll back, e.g. COMMIT itself failed
            logger.debug("Rollback skipped: %s", e)

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with self.transaction() as txn:
            return txn.get(collection, doc_id)

    def query(self, collection: str, predicates: Optional[Iterable[Predicate]] = None) -> List[Document]:
        with self.transaction() as txn:
            return txn.query(collection, predicates)

    def set(self, collection: str, doc_id: str, data: Document):
        with self.transaction() as txn:
            txn.set(collection, doc_id, data)

    def update(self, collection: str, doc_id: str, data: Document,
               precondition: Optional[Dict[str, Any]] = None):
        with self.transaction() as txn:
            txn.update(collection, doc_id, data, precondition=precondition)

    def delete(self, collection: str, doc_id: str):
        with self.transaction() as txn:
            txn.delete(collection, doc_id)

    def count(self, collection: str) -> int:
        with self._lock:
            row = self.connection.execute(
                "SELECT COUNT(*) FROM documents WHERE collection=?", [collection]
            ).fetchone()
        return row[0]


# Global document store instance
document_store = DocumentStore()


def get_store() -> DocumentStore:
    """FastAPI dependency returning the global store"""
    return document_store
