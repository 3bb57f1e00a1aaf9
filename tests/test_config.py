"""Tests for configuration loading."""

from pathlib import Path

from vidserve.config import DEFAULT_TEMPORARY_EXTENSIONS, Config


class TestConfigDefaults:
    def test_defaults(self):
        config = Config()

        assert config.server.port == 3000
        assert config.server.host == "0.0.0.0"
        assert config.database_path == Path("storage") / "media.db"
        assert config.cache.max_size == 1000
        assert config.cache.identity_ttl_seconds == 86400
        assert config.stream.read_buffer_bytes == 512 * 1024
        assert config.stream.stat_cache_ttl_seconds == 300
        assert config.scanner.temporary_extensions == DEFAULT_TEMPORARY_EXTENSIONS
        assert config.network.mount_root == Path("/mnt/network")

    def test_nested_defaults_are_not_shared(self):
        a = Config()
        b = Config()
        a.server.port = 1

        assert b.server.port == 3000


class TestConfigFromEnv:
    def test_empty_environment_gives_defaults(self):
        assert Config.from_env({}) == Config()

    def test_overrides(self):
        config = Config.from_env(
            {
                "VIDSERVE_DB_PATH": "/data/index.db",
                "VIDSERVE_LOG_LEVEL": "debug",
                "VIDSERVE_PORT": "8080",
                "VIDSERVE_CACHE_MAX_SIZE": "50",
                "VIDSERVE_SCAN_ON_STARTUP": "false",
                "VIDSERVE_ALLOWED_EXTENSIONS": ".MKV, .mp4",
                "VIDSERVE_MOUNT_ROOT": "/tmp/mounts",
                "VIDSERVE_PASSWORD_DECRYPTOR": "secrets_lib:decrypt",
                "VIDSERVE_SCAN_SHUTDOWN_WAIT": "30",
            }
        )

        assert config.database_path == Path("/data/index.db")
        assert config.log_level == "DEBUG"
        assert config.server.port == 8080
        assert config.cache.max_size == 50
        assert config.scanner.scan_on_startup is False
        assert config.scanner.allowed_extensions == (".mkv", ".mp4")
        assert config.network.mount_root == Path("/tmp/mounts")
        assert config.network.password_decryptor == "secrets_lib:decrypt"
        assert config.scanner.shutdown_wait_seconds == 30

    def test_reads_os_environ_by_default(self, monkeypatch):
        monkeypatch.setenv("VIDSERVE_PORT", "4000")
        assert Config.from_env().server.port == 4000
