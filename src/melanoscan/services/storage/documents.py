"""Document stores holding one scan record per id."""
from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Protocol

Document = Dict[str, Any]


class DocumentStore(Protocol):
    def set(self, doc_id: str, doc: Document) -> None:
        ...

    def query(self, field: str, value: Any) -> List[Document]:
        """Return every document whose ``field`` equals ``value``."""

    def all(self) -> List[Document]:
        ...


class MemoryDocumentStore:
    def __init__(self) -> None:
        self._docs: Dict[str, Document] = {}
        self._lock = threading.Lock()

    def set(self, doc_id: str, doc: Document) -> None:
        with self._lock:
            self._docs[doc_id] = dict(doc)

    def query(self, field: str, value: Any) -> List[Document]:
        with self._lock:
            return [dict(doc) for doc in self._docs.values() if doc.get(field) == value]

    def all(self) -> List[Document]:
        with self._lock:
            return [dict(doc) for doc in self._docs.values()]


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class SQLiteDocumentStore:
    """JSON documents in a single SQLite table; timestamps come back as ISO strings."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = str(db_path)
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with sqlite3.connect(self._db_path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    user_id TEXT,
                    body TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_user ON documents (user_id)")

    def set(self, doc_id: str, doc: Document) -> None:
        body = json.dumps(doc, default=_encode)
        with sqlite3.connect(self._db_path) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO documents (id, user_id, body) VALUES (?, ?, ?)",
                (doc_id, doc.get("userId"), body),
            )

    def query(self, field: str, value: Any) -> List[Document]:
        with sqlite3.connect(self._db_path) as conn:
            if field == "userId":
                rows = conn.execute(
                    "SELECT body FROM documents WHERE user_id = ? ORDER BY rowid", (value,)
                ).fetchall()
                return [json.loads(row[0]) for row in rows]
            rows = conn.execute("SELECT body FROM documents ORDER BY rowid").fetchall()
        docs = [json.loads(row[0]) for row in rows]
        return [doc for doc in docs if doc.get(field) == value]

    def all(self) -> List[Document]:
        with sqlite3.connect(self._db_path) as conn:
            rows = conn.execute("SELECT body FROM documents ORDER BY rowid").fetchall()
        return [json.loads(row[0]) for row in rows]


class FirestoreDocumentStore:
    def __init__(self, collection: str, client=None) -> None:
        if client is None:
            from google.cloud import firestore

            client = firestore.Client()
        self.collection = client.collection(collection)

    def set(self, doc_id: str, doc: Document) -> None:
        self.collection.document(doc_id).set(doc)

    def query(self, field: str, value: Any) -> List[Document]:
        from google.cloud.firestore_v1.base_query import FieldFilter

        snapshot = self.collection.where(filter=FieldFilter(field, "==", value)).stream()
        return [doc.to_dict() for doc in snapshot]

    def all(self) -> List[Document]:
        return [doc.to_dict() for doc in self.collection.stream()]
