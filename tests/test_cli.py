"""Tests for the command line interface."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from vidserve import cli as cli_module
from vidserve.app import build_application
from vidserve.cli import cli
from vidserve.enrichment import IdentityMatch

MATRIX = "The.Matrix.1999.1080p.BluRay.x264-GRP.mkv"


class FakeResolver:
    def resolve(self, title, year, kind):
        return IdentityMatch(imdb_id="tt0133093", name=title, year=year)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def offline(monkeypatch):
    monkeypatch.setattr(
        cli_module,
        "build_application",
        lambda config: build_application(config, resolver=FakeResolver()),
    )


class TestStatus:
    def test_without_database(self, runner: CliRunner, tmp_path: Path):
        result = runner.invoke(cli, ["status", "--database", str(tmp_path / "none.db")])

        assert result.exit_code == 0
        assert "No database found" in result.output

    def test_lists_folders_and_history(self, runner, tmp_path, store, add_watch_folder):
        location_id = add_watch_folder("/media/movies", name="Movies")
        store.record_scan(files_found=1234, duration_ms=1500, watch_folder_id=location_id)

        result = runner.invoke(cli, ["status", "--database", str(tmp_path / "media.db")])

        assert result.exit_code == 0
        assert "Movies" in result.output
        assert "*/5 * * * *" in result.output
        assert "1,234" in result.output
        assert "1s" in result.output


class TestScan:
    def test_scans_folder(self, runner, tmp_path, add_watch_folder, offline):
        media = tmp_path / "media"
        media.mkdir()
        (media / MATRIX).write_bytes(b"x" * 10)
        location_id = add_watch_folder(str(media))

        result = runner.invoke(
            cli, ["scan", str(location_id), "--database", str(tmp_path / "media.db")]
        )

        assert result.exit_code == 0, result.output
        assert "Scan Complete:" in result.output
        assert "Files found: 1" in result.output
        assert "Indexed: 1" in result.output

    def test_unknown_folder(self, runner, tmp_path, offline):
        result = runner.invoke(cli, ["scan", "42", "--database", str(tmp_path / "media.db")])

        assert result.exit_code == 1
        assert "Watch folder with ID 42 not found" in result.output


class TestDecryptor:
    def test_option_reaches_application(self, runner, tmp_path, add_watch_folder, monkeypatch):
        seen = []

        def build(config):
            seen.append(config.network.password_decryptor)
            return build_application(config, resolver=FakeResolver())

        monkeypatch.setattr(cli_module, "build_application", build)
        location_id = add_watch_folder(str(tmp_path))

        result = runner.invoke(
            cli,
            [
                "--decryptor",
                "string:capwords",
                "scan",
                str(location_id),
                "--database",
                str(tmp_path / "media.db"),
            ],
        )

        assert result.exit_code == 0, result.output
        assert seen == ["string:capwords"]

    def test_unloadable_decryptor(self, runner, tmp_path):
        result = runner.invoke(
            cli,
            [
                "--decryptor",
                "no_such_module_here:decrypt",
                "scan",
                "1",
                "--database",
                str(tmp_path / "media.db"),
            ],
        )

        assert result.exit_code == 1
        assert "Cannot load password decryptor" in result.output

    def test_help_mentions_network_passwords(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert "--decryptor" in result.output
        assert "VIDSERVE_PASSWORD_DECRYPTOR" in result.output
