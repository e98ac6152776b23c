"""SQLite persistence for inventories."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

from fileinventory.models import FileRecord, ScanResult


class SQLiteInventoryStore:
    """Stores the latest scan of each root together with its errors."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS scans (
                    id INTEGER PRIMARY KEY,
                    root TEXT NOT NULL UNIQUE,
                    file_count INTEGER NOT NULL,
                    error_count INTEGER NOT NULL,
                    complete INTEGER NOT NULL,
                    scanned_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS files (
                    id INTEGER PRIMARY KEY,
                    scan_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    directory TEXT NOT NULL,
                    modified_date TEXT NOT NULL,
                    algorithm TEXT NOT NULL,
                    digest TEXT NOT NULL,
                    FOREIGN KEY(scan_id) REFERENCES scans(id) ON DELETE CASCADE
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS scan_errors (
                    id INTEGER PRIMARY KEY,
                    scan_id INTEGER NOT NULL,
                    path TEXT NOT NULL,
                    phase TEXT NOT NULL,
                    message TEXT NOT NULL,
                    FOREIGN KEY(scan_id) REFERENCES scans(id) ON DELETE CASCADE
                )
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_files_digest
                    ON files(digest)
                """
            )

    def save_scan(self, result: ScanResult) -> int:
        """Replace any previous inventory of ``result.root``. Returns the scan id."""
        with self.transaction() as conn:
            existing = conn.execute(
                "SELECT id FROM scans WHERE root = ?", (result.root,)
            ).fetchone()
            if existing:
                conn.execute("DELETE FROM files WHERE scan_id = ?", (existing["id"],))
                conn.execute("DELETE FROM scan_errors WHERE scan_id = ?", (existing["id"],))
                conn.execute("DELETE FROM scans WHERE id = ?", (existing["id"],))

            scan_id = conn.execute(
                """
                INSERT INTO scans(root, file_count, error_count, complete)
                VALUES (?, ?, ?, ?)
                """,
                (result.root, len(result.records), result.error_count, int(result.ok)),
            ).lastrowid
            conn.executemany(
                """
                INSERT INTO files(scan_id, name, directory, modified_date, algorithm, digest)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (scan_id, r.name, r.directory, r.modified, r.algorithm, r.digest)
                    for r in result.records
                ],
            )
            conn.executemany(
                "INSERT INTO scan_errors(scan_id, path, phase, message) VALUES (?, ?, ?, ?)",
                [(scan_id, e.path, e.phase.value, str(e.cause)) for e in result.errors],
            )
        return scan_id

    def load_records(self, root: str) -> List[FileRecord]:
        rows = self._conn.execute(
            """
            SELECT f.name, f.directory, f.modified_date, f.algorithm, f.digest
            FROM files f
            JOIN scans s ON s.id = f.scan_id
            WHERE s.root = ?
            ORDER BY f.id
            """,
            (root,),
        ).fetchall()
        return [
            FileRecord(
                name=row["name"],
                directory=row["directory"],
                modified=row["modified_date"],
                algorithm=row["algorithm"],
                digest=row["digest"],
            )
            for row in rows
        ]

    def error_count(self, root: str) -> int:
        row = self._conn.execute(
            "SELECT error_count FROM scans WHERE root = ?", (root,)
        ).fetchone()
        return int(row["error_count"]) if row else 0
