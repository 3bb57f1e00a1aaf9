"""Database schema definition."""

import sqlite3

SCHEMA_SQL = """
-- Indexed media files
CREATE TABLE IF NOT EXISTS files (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    path TEXT UNIQUE NOT NULL,
    size INTEGER NOT NULL,
    mtime INTEGER NOT NULL,
    parsed_name TEXT,
    kind TEXT,
    imdb_id TEXT,
    season INTEGER,
    episode INTEGER,
    resolution TEXT,
    source TEXT,
    video_codec TEXT,
    audio_codec TEXT,
    audio_channels TEXT,
    languages TEXT,
    release_group TEXT,
    flags TEXT,
    edition TEXT,
    imdb_name TEXT,
    imdb_year INTEGER,
    imdb_type TEXT,
    year_range TEXT,
    image TEXT,
    starring TEXT,
    similarity REAL,
    watch_folder_id INTEGER,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_files_imdb ON files(imdb_id);
CREATE INDEX IF NOT EXISTS idx_files_kind ON files(kind);
CREATE INDEX IF NOT EXISTS idx_files_name ON files(name);
CREATE INDEX IF NOT EXISTS idx_files_resolution ON files(resolution);
CREATE INDEX IF NOT EXISTS idx_files_release_group ON files(release_group);

-- Scan history (append-only)
CREATE TABLE IF NOT EXISTS scans (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
    files_found INTEGER NOT NULL,
    duration_ms INTEGER NOT NULL,
    errors INTEGER DEFAULT 0,
    processed_count INTEGER DEFAULT 0,
    skipped_count INTEGER DEFAULT 0,
    watch_folder_id INTEGER
);

CREATE INDEX IF NOT EXISTS idx_scans_watch_folder ON scans(watch_folder_id);

-- Watch folder configuration (managed externally, read by the core)
CREATE TABLE IF NOT EXISTS watch_folders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    path TEXT UNIQUE NOT NULL,
    name TEXT,
    enabled INTEGER NOT NULL DEFAULT 1,
    scan_interval TEXT NOT NULL,
    allowed_extensions TEXT NOT NULL,
    min_video_size_mb REAL NOT NULL DEFAULT 50,
    temporary_extensions TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'local',
    username TEXT,
    password_encrypted TEXT,
    domain TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_watch_folders_enabled ON watch_folders(enabled);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create schema and run migrations."""
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='files'")
    files_exists = cursor.fetchone() is not None

    if files_exists:
        migrate_add_watch_folder_columns(conn)

    conn.executescript(SCHEMA_SQL)
    conn.commit()


def migrate_add_watch_folder_columns(conn: sqlite3.Connection) -> None:
    """Add watch_folder_id to files and scans in databases created before multi-folder support."""
    for table in ("files", "scans"):
        cursor = conn.execute(f"PRAGMA table_info({table})")
        existing_columns = {row[1] for row in cursor.fetchall()}
        if existing_columns and "watch_folder_id" not in existing_columns:
            try:
                conn.execute(f"ALTER TABLE {table} ADD COLUMN watch_folder_id INTEGER")
            except sqlite3.OperationalError:
                pass  # Column might already exist

    conn.commit()
