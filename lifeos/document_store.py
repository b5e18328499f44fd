"""
Document Store

SQLite-backed store of schemaless JSON documents grouped into collections.
The pipeline reads entity records from it and upserts patterns, weights
and signals back.
"""

import json
import logging
import re
import sqlite3
import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from lifeos import paths

logger = logging.getLogger(__name__)

_COLLECTION_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")
KEY_SEPARATOR = "::"


class DocumentStoreError(Exception):
    """Raised for invalid collection names or document keys."""


def _validate_collection(collection: str) -> None:
    if not isinstance(collection, str) or not _COLLECTION_NAME.match(collection):
        raise DocumentStoreError(f"Invalid collection name: {collection!r}")


def _matches(doc: dict, selector: dict | None) -> bool:
    if not selector:
        return True
    return all(doc.get(k) == v for k, v in selector.items())


class DocumentStore:
    """Generic collection store: find by selector, upsert by key."""

    def __init__(self, db_path: Path | str | None = None):
        self.db_path = Path(db_path) if db_path else paths.db_path()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_table()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_table(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    doc_key TEXT NOT NULL,
                    body TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (collection, doc_key)
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def make_key(doc: dict, key_fields: Sequence[str]) -> str:
        if not key_fields:
            raise DocumentStoreError("key_fields must not be empty")
        parts = []
        for name in key_fields:
            value = doc.get(name)
            if value is None or value == "":
                raise DocumentStoreError(f"Document is missing key field {name!r}")
            parts.append(str(value))
        return KEY_SEPARATOR.join(parts)

    def _write(self, collection: str, key: str, doc: dict) -> None:
        body = json.dumps(doc, default=str)
        now = datetime.now(UTC).isoformat()
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO documents (collection, doc_key, body, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(collection, doc_key)
                DO UPDATE SET body = excluded.body, updated_at = excluded.updated_at
                """,
                (collection, key, body, now),
            )
            conn.commit()
        finally:
            conn.close()

    def find(self, collection: str, selector: dict | None = None) -> list[dict[str, Any]]:
        """All documents whose top-level fields equal the selector's, in insertion order."""
        _validate_collection(collection)
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT body FROM documents WHERE collection = ? ORDER BY rowid",
                (collection,),
            ).fetchall()
        finally:
            conn.close()

        docs = []
        for row in rows:
            doc = json.loads(row["body"])
            if _matches(doc, selector):
                docs.append(doc)
        return docs

    def find_one(self, collection: str, selector: dict | None = None) -> dict[str, Any] | None:
        docs = self.find(collection, selector)
        return docs[0] if docs else None

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        """Fetch one document by its stored key."""
        _validate_collection(collection)
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT body FROM documents WHERE collection = ? AND doc_key = ?",
                (collection, key),
            ).fetchone()
        finally:
            conn.close()
        return json.loads(row["body"]) if row else None

    def insert(self, collection: str, doc: dict) -> str:
        """Insert (or overwrite) a document keyed by ``id``; assigns one if missing."""
        _validate_collection(collection)
        doc = dict(doc)
        if not doc.get("id"):
            doc["id"] = str(uuid.uuid4())
        key = str(doc["id"])
        self._write(collection, key, doc)
        return key

    def upsert(self, collection: str, doc: dict, key_fields: Sequence[str] = ("id",)) -> str:
        """Replace any document with the same key-field values. Returns the key."""
        _validate_collection(collection)
        key = self.make_key(doc, tuple(key_fields))
        self._write(collection, key, dict(doc))
        return key

    def delete(self, collection: str, key: str) -> bool:
        _validate_collection(collection)
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND doc_key = ?",
                (collection, key),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def count(self, collection: str) -> int:
        _validate_collection(collection)
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM documents WHERE collection = ?",
                (collection,),
            ).fetchone()
        finally:
            conn.close()
        return int(row["n"])

    def collections(self) -> list[str]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT DISTINCT collection FROM documents ORDER BY collection"
            ).fetchall()
        finally:
            conn.close()
        return [row["collection"] for row in rows]
