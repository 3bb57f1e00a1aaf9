"""Shared fixtures for vidserve tests."""

import json
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from vidserve.database import Database, Store


@pytest.fixture
def db(tmp_path: Path) -> Iterator[Database]:
    with Database(tmp_path / "media.db") as database:
        yield database


@pytest.fixture
def store(db: Database) -> Store:
    return Store(db)


@pytest.fixture
def add_watch_folder(db: Database) -> Callable[..., int]:
    """Insert a watch_folders row the way external configuration would."""

    def _add(
        path: str,
        name: str | None = None,
        enabled: bool = True,
        scan_interval: str = "*/5 * * * *",
        allowed_extensions: list[str] | None = None,
        min_video_size_mb: float = 0,
        temporary_extensions: list[str] | None = None,
        kind: str = "local",
        username: str | None = None,
        password_encrypted: str | None = None,
        domain: str | None = None,
    ) -> int:
        cursor = db.conn.execute(
            """
            INSERT INTO watch_folders
            (path, name, enabled, scan_interval, allowed_extensions, min_video_size_mb,
             temporary_extensions, type, username, password_encrypted, domain)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                path,
                name,
                int(enabled),
                scan_interval,
                json.dumps(allowed_extensions or [".mp4", ".mkv", ".avi"]),
                min_video_size_mb,
                json.dumps(temporary_extensions or [".part", ".tmp"]),
                kind,
                username,
                password_encrypted,
                domain,
            ),
        )
        db.conn.commit()
        assert cursor.lastrowid is not None
        return cursor.lastrowid

    return _add
