"""Configuration module for vidserve."""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_TEMPORARY_EXTENSIONS = (".part", ".tmp", ".download", ".crdownload", ".!qb", ".filepart")


def _split_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip().lower() for item in value.split(",") if item.strip())


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    graceful_shutdown_seconds: int = 10


@dataclass
class CacheConfig:
    max_size: int = 1000
    identity_ttl_seconds: float = 24 * 60 * 60


@dataclass
class ScannerConfig:
    scan_on_startup: bool = True
    default_interval: str = "*/5 * * * *"
    min_video_size_mb: float = 50
    allowed_extensions: tuple[str, ...] = (".mp4", ".mkv", ".avi")
    temporary_extensions: tuple[str, ...] = DEFAULT_TEMPORARY_EXTENSIONS
    shutdown_wait_seconds: float = 300


@dataclass
class StreamConfig:
    stat_cache_ttl_seconds: float = 5 * 60
    stat_cache_max_size: int = 1000
    read_buffer_bytes: int = 512 * 1024


@dataclass
class NetworkConfig:
    mount_root: Path = Path("/mnt/network")
    uid: int = 1000
    gid: int = 1000
    password_decryptor: str | None = None


@dataclass
class IdentityConfig:
    interesting_kinds: tuple[str, ...] = ("movie", "series")
    suggest_url: str = "https://v3.sg.media-imdb.com/suggestion"
    timeout_seconds: float = 10.0
    min_similarity: float = 0.6


@dataclass
class Config:
    database_path: Path = field(default_factory=lambda: Path("storage") / "media.db")
    log_level: str = "INFO"
    server: ServerConfig = field(default_factory=ServerConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    stream: StreamConfig = field(default_factory=StreamConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Config":
        """Build a config from VIDSERVE_* environment variables over the defaults."""
        env = os.environ if environ is None else environ
        config = cls()

        if "VIDSERVE_DB_PATH" in env:
            config.database_path = Path(env["VIDSERVE_DB_PATH"])
        if "VIDSERVE_LOG_LEVEL" in env:
            config.log_level = env["VIDSERVE_LOG_LEVEL"].upper()

        if "VIDSERVE_HOST" in env:
            config.server.host = env["VIDSERVE_HOST"]
        if "VIDSERVE_PORT" in env:
            config.server.port = int(env["VIDSERVE_PORT"])

        if "VIDSERVE_CACHE_MAX_SIZE" in env:
            config.cache.max_size = int(env["VIDSERVE_CACHE_MAX_SIZE"])
        if "VIDSERVE_CACHE_IDENTITY_TTL" in env:
            config.cache.identity_ttl_seconds = float(env["VIDSERVE_CACHE_IDENTITY_TTL"])

        if "VIDSERVE_SCAN_ON_STARTUP" in env:
            config.scanner.scan_on_startup = env["VIDSERVE_SCAN_ON_STARTUP"].lower() != "false"
        if "VIDSERVE_MIN_VIDEO_SIZE_MB" in env:
            config.scanner.min_video_size_mb = float(env["VIDSERVE_MIN_VIDEO_SIZE_MB"])
        if "VIDSERVE_ALLOWED_EXTENSIONS" in env:
            config.scanner.allowed_extensions = _split_list(env["VIDSERVE_ALLOWED_EXTENSIONS"])
        if "VIDSERVE_TEMPORARY_EXTENSIONS" in env:
            config.scanner.temporary_extensions = _split_list(env["VIDSERVE_TEMPORARY_EXTENSIONS"])
        if "VIDSERVE_SCAN_SHUTDOWN_WAIT" in env:
            config.scanner.shutdown_wait_seconds = float(env["VIDSERVE_SCAN_SHUTDOWN_WAIT"])

        if "VIDSERVE_MOUNT_ROOT" in env:
            config.network.mount_root = Path(env["VIDSERVE_MOUNT_ROOT"])
        if "VIDSERVE_PASSWORD_DECRYPTOR" in env:
            config.network.password_decryptor = env["VIDSERVE_PASSWORD_DECRYPTOR"]

        return config
