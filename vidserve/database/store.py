"""Persistent store for indexed files, scan history and watch folders."""

import json
import logging
import sqlite3
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from vidserve.errors import StoreError

from .connection import Database
from .models import IndexedFile, ScanRecord, StorageKind, WatchedLocation

logger = logging.getLogger(__name__)

FILE_COLUMNS = (
    "name",
    "path",
    "size",
    "mtime",
    "parsed_name",
    "kind",
    "imdb_id",
    "season",
    "episode",
    "resolution",
    "source",
    "video_codec",
    "audio_codec",
    "audio_channels",
    "languages",
    "release_group",
    "flags",
    "edition",
    "imdb_name",
    "imdb_year",
    "imdb_type",
    "year_range",
    "image",
    "starring",
    "similarity",
    "watch_folder_id",
)

_UPSERT_FILE_SQL = f"""
    INSERT INTO files ({", ".join(FILE_COLUMNS)}, updated_at)
    VALUES ({", ".join(":" + c for c in FILE_COLUMNS)}, CURRENT_TIMESTAMP)
    ON CONFLICT(path) DO UPDATE SET
        {", ".join(f"{c} = excluded.{c}" for c in FILE_COLUMNS if c != "path")},
        updated_at = CURRENT_TIMESTAMP
    WHERE files.watch_folder_id IS NULL OR files.watch_folder_id = excluded.watch_folder_id
"""


class Store:
    """SQLite implementation of the record store used by the scanner and streamer.

    ``decrypt`` turns the stored ``password_encrypted`` value into a usable
    secret. Encryption itself is owned elsewhere; without a decryptor network
    passwords are reported as unavailable.
    """

    def __init__(self, db: Database, decrypt: Callable[[str], str] | None = None):
        self.db = db
        self._decrypt = decrypt

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self.db.lock:
            conn = self.db.conn
            try:
                with conn:
                    yield conn
            except sqlite3.Error as e:
                raise StoreError(str(e)) from e

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self.db.lock:
            try:
                return self.db.conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StoreError(str(e)) from e

    # Files

    def get_file_by_path(self, path: str) -> IndexedFile | None:
        rows = self._query("SELECT * FROM files WHERE path = ?", (path,))
        return _row_to_file(rows[0]) if rows else None

    def get_file_by_id(self, file_id: int) -> IndexedFile | None:
        rows = self._query("SELECT * FROM files WHERE id = ?", (file_id,))
        return _row_to_file(rows[0]) if rows else None

    def get_files_for_location(self, location_id: int) -> list[IndexedFile]:
        rows = self._query(
            "SELECT * FROM files WHERE watch_folder_id = ? ORDER BY path",
            (location_id,),
        )
        return [_row_to_file(row) for row in rows]

    def upsert_files_batch(self, files: list[IndexedFile]) -> None:
        """Insert or update files by path in a single transaction.

        A path already owned by another watch folder is left untouched.
        """
        if not files:
            return
        rows = [_file_to_params(f) for f in files]
        with self._transaction() as conn:
            conn.executemany(_UPSERT_FILE_SQL, rows)
        logger.debug("Upserted %d files", len(rows))

    def remove_files_not_in_list(self, paths: list[str], location_id: int) -> int:
        """Delete this location's files whose path is not in ``paths``.

        An empty ``paths`` removes every file of the location.
        """
        with self._transaction() as conn:
            if not paths:
                cursor = conn.execute("DELETE FROM files WHERE watch_folder_id = ?", (location_id,))
                return cursor.rowcount

            conn.execute("CREATE TEMP TABLE IF NOT EXISTS seen_paths (path TEXT PRIMARY KEY)")
            conn.execute("DELETE FROM seen_paths")
            conn.executemany(
                "INSERT OR IGNORE INTO seen_paths (path) VALUES (?)",
                ((p,) for p in paths),
            )
            cursor = conn.execute(
                """
                DELETE FROM files
                WHERE watch_folder_id = ?
                  AND path NOT IN (SELECT path FROM seen_paths)
                """,
                (location_id,),
            )
            removed = cursor.rowcount
            conn.execute("DELETE FROM seen_paths")
            return removed

    # Scans

    def record_scan(
        self,
        files_found: int,
        duration_ms: int,
        errors: int = 0,
        processed_count: int = 0,
        skipped_count: int = 0,
        watch_folder_id: int | None = None,
    ) -> int:
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO scans
                (files_found, duration_ms, errors, processed_count, skipped_count, watch_folder_id)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (files_found, duration_ms, errors, processed_count, skipped_count, watch_folder_id),
            )
            assert cursor.lastrowid is not None
            return cursor.lastrowid

    def get_scan_history(self, limit: int = 10) -> list[ScanRecord]:
        rows = self._query("SELECT * FROM scans ORDER BY id DESC LIMIT ?", (limit,))
        return [
            ScanRecord(
                id=row["id"],
                timestamp=row["timestamp"],
                files_found=row["files_found"],
                duration_ms=row["duration_ms"],
                errors=row["errors"],
                processed_count=row["processed_count"],
                skipped_count=row["skipped_count"],
                watch_folder_id=row["watch_folder_id"],
            )
            for row in rows
        ]

    # Watch folders

    def get_watch_folder_by_id(self, location_id: int) -> WatchedLocation | None:
        rows = self._query("SELECT * FROM watch_folders WHERE id = ?", (location_id,))
        return _row_to_location(rows[0]) if rows else None

    def get_enabled_watch_folders(self) -> list[WatchedLocation]:
        rows = self._query("SELECT * FROM watch_folders WHERE enabled = 1 ORDER BY id")
        return [_row_to_location(row) for row in rows]

    def get_decrypted_password(self, location_id: int) -> str | None:
        rows = self._query(
            "SELECT password_encrypted FROM watch_folders WHERE id = ?",
            (location_id,),
        )
        if not rows or not rows[0]["password_encrypted"]:
            return None
        if self._decrypt is None:
            logger.warning("No credential decryptor configured for watch folder %d", location_id)
            return None
        return self._decrypt(rows[0]["password_encrypted"])

    def close(self) -> None:
        self.db.close()


def _decode_list(value: str | None) -> list[str] | None:
    if not value:
        return None
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError:
        return [value]
    return decoded if isinstance(decoded, list) else [str(decoded)]


def _encode_list(value: list[str] | None) -> str | None:
    if not value:
        return None
    return json.dumps(value, ensure_ascii=False)


def _file_to_params(f: IndexedFile) -> dict:
    params = {column: getattr(f, column) for column in FILE_COLUMNS}
    params["languages"] = _encode_list(f.languages)
    params["flags"] = _encode_list(f.flags)
    return params


def _row_to_file(row: sqlite3.Row) -> IndexedFile:
    values = {column: row[column] for column in FILE_COLUMNS}
    values["languages"] = _decode_list(row["languages"])
    values["flags"] = _decode_list(row["flags"])
    return IndexedFile(id=row["id"], **values)


def _row_to_location(row: sqlite3.Row) -> WatchedLocation:
    return WatchedLocation(
        id=row["id"],
        path=row["path"],
        name=row["name"],
        enabled=bool(row["enabled"]),
        scan_interval=row["scan_interval"],
        allowed_extensions=[e.lower() for e in _decode_list(row["allowed_extensions"]) or []],
        min_video_size_mb=row["min_video_size_mb"],
        temporary_extensions=[e.lower() for e in _decode_list(row["temporary_extensions"]) or []],
        kind=StorageKind(row["type"] or StorageKind.LOCAL.value),
        username=row["username"],
        domain=row["domain"],
    )
