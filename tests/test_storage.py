"""Tests for storage providers."""

import os
import shutil
import subprocess
from pathlib import Path
from unittest.mock import Mock

import pytest

from vidserve.database import StorageKind, WatchedLocation
from vidserve.errors import MountError
from vidserve.storage import (
    CifsMounter,
    LocalStorageProvider,
    NetworkStorageProvider,
    ProviderRegistry,
    ScanOptions,
    should_skip_file,
    to_smb_path,
)

MB = 1024 * 1024


def make_sparse(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    return path


def options(**overrides) -> ScanOptions:
    values = dict(
        allowed_extensions=[".mkv", ".mp4", ".avi"],
        min_video_size_mb=0,
        temporary_extensions=[".part", ".!qb"],
    )
    values.update(overrides)
    return ScanOptions(**values)


class FakeCredentials:
    def __init__(self, password: str | None = "secret"):
        self.password = password
        self.calls: list[int] = []

    def get_decrypted_password(self, location_id: int) -> str | None:
        self.calls.append(location_id)
        return self.password


class FakeMounter:
    """Mounts by copying a source directory into the mount point."""

    def __init__(self, shares: dict[str, Path] | None = None, fail: bool = False):
        self.shares = shares or {}
        self.fail = fail
        self.mounted: set[Path] = set()
        self.mount_calls: list[tuple[str, Path, str | None, str, str | None]] = []
        self.unmount_calls: list[Path] = []

    def is_mounted(self, mount_point: Path) -> bool:
        return mount_point in self.mounted

    def mount(self, share, mount_point, username, password, domain) -> None:
        self.mount_calls.append((share, mount_point, username, password, domain))
        if self.fail:
            raise MountError(f"Failed to mount {share}: permission denied")
        source = self.shares.get(share)
        if source is not None:
            shutil.copytree(source, mount_point, dirs_exist_ok=True)
        self.mounted.add(mount_point)

    def unmount(self, mount_point: Path) -> None:
        self.unmount_calls.append(mount_point)
        self.mounted.discard(mount_point)
        for child in mount_point.iterdir():
            if child.is_dir():
                shutil.rmtree(child)
            else:
                child.unlink()


def network_location(location_id: int = 7, path: str = r"\\nas\movies") -> WatchedLocation:
    return WatchedLocation(
        id=location_id,
        path=path,
        kind=StorageKind.NETWORK,
        username="media",
        domain="HOME",
    )


class TestScanOptions:
    def test_for_location_lowercases(self):
        location = WatchedLocation(id=1, path="/m", allowed_extensions=[".MKV"])
        assert ScanOptions.for_location(location).allowed_extensions == [".mkv"]

    def test_for_location_fills_empty_lists_from_defaults(self):
        location = WatchedLocation(id=1, path="/m", allowed_extensions=[], temporary_extensions=[])
        defaults = options()

        result = ScanOptions.for_location(location, defaults)

        assert result.allowed_extensions == [".mkv", ".mp4", ".avi"]
        assert result.temporary_extensions == [".part", ".!qb"]


class TestShouldSkipFile:
    def test_temporary_extension(self):
        assert should_skip_file("Movie.mkv.part", 500 * MB, options())

    def test_temporary_extension_case_insensitive(self):
        assert should_skip_file("Movie.mkv.!QB", 500 * MB, options())

    def test_below_minimum_size(self):
        assert should_skip_file("Movie.mkv", 40 * MB, options(min_video_size_mb=50))

    def test_qualifying_file(self):
        assert not should_skip_file("Movie.mkv", 200 * MB, options(min_video_size_mb=50))


class TestLocalStorageProvider:
    def test_finds_nested_files(self, tmp_path: Path):
        make_sparse(tmp_path / "Movies" / "Heat.1995.mkv", 2 * MB)
        make_sparse(tmp_path / "Top.mp4", 2 * MB)

        files = LocalStorageProvider().scan_path(tmp_path, options())

        assert sorted(f.relative_path for f in files) == ["Movies/Heat.1995.mkv", "Top.mp4"]
        heat = next(f for f in files if f.name == "Heat.1995.mkv")
        assert heat.absolute_path == tmp_path / "Movies" / "Heat.1995.mkv"
        assert heat.size == 2 * MB
        assert heat.ext == ".mkv"
        assert heat.mtime == os.stat(heat.absolute_path).st_mtime_ns // 1_000_000

    def test_filters_extension_and_size(self, tmp_path: Path):
        make_sparse(tmp_path / "big.mkv", 200 * MB)
        make_sparse(tmp_path / "small.mkv", 40 * MB)
        make_sparse(tmp_path / "notes.txt", 200 * MB)
        make_sparse(tmp_path / "UPPER.MKV", 200 * MB)

        files = LocalStorageProvider().scan_path(tmp_path, options(min_video_size_mb=50))

        assert sorted(f.name for f in files) == ["UPPER.MKV", "big.mkv"]

    def test_skips_symlinks(self, tmp_path: Path):
        real = make_sparse(tmp_path / "real.mkv", MB)
        (tmp_path / "link.mkv").symlink_to(real)

        files = LocalStorageProvider().scan_path(tmp_path, options())

        assert [f.name for f in files] == ["real.mkv"]

    def test_missing_root_returns_empty(self, tmp_path: Path):
        assert LocalStorageProvider().scan_path(tmp_path / "gone", options()) == []

    def test_unreadable_directory_is_omitted(self, tmp_path: Path, monkeypatch):
        make_sparse(tmp_path / "ok" / "a.mkv", MB)
        make_sparse(tmp_path / "locked" / "b.mkv", MB)

        real_scandir = os.scandir

        def fake_scandir(path):
            if Path(path).name == "locked":
                raise PermissionError("denied")
            return real_scandir(path)

        monkeypatch.setattr("vidserve.storage.local.os.scandir", fake_scandir)

        files = LocalStorageProvider().scan_path(tmp_path, options())

        assert [f.relative_path for f in files] == ["ok/a.mkv"]

    def test_connect_and_disconnect_are_noops(self, tmp_path: Path):
        provider = LocalStorageProvider()
        location = WatchedLocation(id=1, path=str(tmp_path))

        provider.connect(location)
        provider.disconnect(1)

        assert provider.root_for(location) == tmp_path


class TestToSmbPath:
    @pytest.mark.parametrize(
        "path, expected",
        [
            (r"\\nas\movies", "//nas/movies"),
            ("//nas/movies", "//nas/movies"),
            ("nas/movies", "//nas/movies"),
            ("/nas/movies", "//nas/movies"),
        ],
    )
    def test_normalises(self, path: str, expected: str):
        assert to_smb_path(path) == expected


class TestNetworkStorageProvider:
    def test_mounts_and_scans_share(self, tmp_path: Path):
        share = tmp_path / "share"
        make_sparse(share / "Show" / "Show.S01E01.mkv", MB)
        mounter = FakeMounter({"//nas/movies": share})
        provider = NetworkStorageProvider(
            FakeCredentials(), mounter=mounter, mount_root=tmp_path / "mnt"
        )

        files = provider.scan(network_location(), options())

        assert [f.relative_path for f in files] == ["Show/Show.S01E01.mkv"]
        assert mounter.mount_calls == [
            ("//nas/movies", tmp_path / "mnt" / "7", "media", "secret", "HOME")
        ]
        assert provider.is_connected(7)
        assert provider.root_for(network_location()) == tmp_path / "mnt" / "7"

    def test_reuses_existing_mount(self, tmp_path: Path):
        mounter = FakeMounter()
        credentials = FakeCredentials()
        provider = NetworkStorageProvider(credentials, mounter=mounter, mount_root=tmp_path)

        provider.connect(network_location())
        provider.connect(network_location())
        provider.scan(network_location(), options())

        assert len(mounter.mount_calls) == 1
        assert credentials.calls == [7]

    def test_adopts_mount_left_by_previous_process(self, tmp_path: Path):
        mounter = FakeMounter()
        mounter.mounted.add(tmp_path / "7")
        credentials = FakeCredentials()
        provider = NetworkStorageProvider(credentials, mounter=mounter, mount_root=tmp_path)

        provider.connect(network_location())

        assert mounter.mount_calls == []
        assert credentials.calls == []
        assert provider.is_connected(7)

    def test_remounts_when_mount_disappeared(self, tmp_path: Path):
        mounter = FakeMounter()
        provider = NetworkStorageProvider(FakeCredentials(), mounter=mounter, mount_root=tmp_path)

        provider.connect(network_location())
        mounter.mounted.clear()
        provider.connect(network_location())

        assert len(mounter.mount_calls) == 2

    def test_missing_password_raises(self, tmp_path: Path):
        mounter = FakeMounter()
        provider = NetworkStorageProvider(
            FakeCredentials(password=None), mounter=mounter, mount_root=tmp_path
        )

        with pytest.raises(MountError):
            provider.connect(network_location())

        assert mounter.mount_calls == []
        assert not provider.is_connected(7)

    def test_mount_failure_raises_and_cleans_mount_point(self, tmp_path: Path):
        mounter = FakeMounter(fail=True)
        provider = NetworkStorageProvider(FakeCredentials(), mounter=mounter, mount_root=tmp_path)

        with pytest.raises(MountError):
            provider.scan(network_location(), options())

        assert not (tmp_path / "7").exists()
        assert not provider.is_connected(7)

    def test_disconnect_unmounts_and_removes_mount_point(self, tmp_path: Path):
        share = tmp_path / "share"
        make_sparse(share / "a.mkv", MB)
        mounter = FakeMounter({"//nas/movies": share})
        provider = NetworkStorageProvider(
            FakeCredentials(), mounter=mounter, mount_root=tmp_path / "mnt"
        )
        provider.connect(network_location())

        provider.disconnect(7)

        assert mounter.unmount_calls == [tmp_path / "mnt" / "7"]
        assert not (tmp_path / "mnt" / "7").exists()
        assert not provider.is_connected(7)

    def test_disconnect_unknown_location_is_noop(self, tmp_path: Path):
        mounter = FakeMounter()
        provider = NetworkStorageProvider(FakeCredentials(), mounter=mounter, mount_root=tmp_path)

        provider.disconnect(99)

        assert mounter.unmount_calls == []

    def test_location_without_id_is_rejected(self, tmp_path: Path):
        provider = NetworkStorageProvider(FakeCredentials(), FakeMounter(), mount_root=tmp_path)

        with pytest.raises(MountError):
            provider.connect(network_location(location_id=None))  # type: ignore[arg-type]


class TestCifsMounter:
    def test_is_mounted_reads_proc_mounts(self, tmp_path: Path):
        proc_mounts = tmp_path / "mounts"
        proc_mounts.write_text(
            "//nas/movies /mnt/network/7 cifs rw,relatime 0 0\n"
            "proc /proc proc rw 0 0\n"
        )
        mounter = CifsMounter(proc_mounts=proc_mounts)

        assert mounter.is_mounted(Path("/mnt/network/7"))
        assert not mounter.is_mounted(Path("/mnt/network/8"))

    def test_is_mounted_without_proc_mounts(self, tmp_path: Path):
        assert not CifsMounter(proc_mounts=tmp_path / "missing").is_mounted(tmp_path)

    def test_mount_passes_password_via_environment(self, monkeypatch):
        run = Mock(return_value=subprocess.CompletedProcess([], 0, "", ""))
        monkeypatch.setattr("vidserve.storage.network.subprocess.run", run)

        CifsMounter(uid=1000, gid=1000).mount(
            "//nas/movies", Path("/mnt/network/7"), "media", "s3cret", "HOME"
        )

        args, kwargs = run.call_args
        command = args[0]
        assert command[:5] == ["mount", "-t", "cifs", "//nas/movies", "/mnt/network/7"]
        assert "s3cret" not in " ".join(command)
        assert command[6].split(",") == [
            "username=media",
            "domain=HOME",
            "uid=1000",
            "gid=1000",
            "file_mode=0644",
            "dir_mode=0755",
            "iocharset=utf8",
            "noperm",
        ]
        assert kwargs["env"]["PASSWD"] == "s3cret"

    def test_mount_failure_raises(self, monkeypatch):
        run = Mock(return_value=subprocess.CompletedProcess([], 32, "", "mount error(13)"))
        monkeypatch.setattr("vidserve.storage.network.subprocess.run", run)

        with pytest.raises(MountError, match="mount error"):
            CifsMounter().mount("//nas/movies", Path("/mnt/x"), "u", "p", None)

    def test_missing_mount_binary_raises(self, monkeypatch):
        run = Mock(side_effect=FileNotFoundError("mount"))
        monkeypatch.setattr("vidserve.storage.network.subprocess.run", run)

        with pytest.raises(MountError):
            CifsMounter().unmount(Path("/mnt/x"))


class TestProviderRegistry:
    def test_returns_provider_for_kind(self, tmp_path: Path):
        local = LocalStorageProvider()
        network = NetworkStorageProvider(FakeCredentials(), FakeMounter(), mount_root=tmp_path)
        registry = ProviderRegistry([local, network])

        assert registry.get(network_location()) is network
        assert registry.get(WatchedLocation(id=1, path="/m")) is local

    def test_falls_back_to_local(self):
        local = LocalStorageProvider()
        registry = ProviderRegistry([local])

        assert registry.get(network_location()) is local

    def test_root_for(self, tmp_path: Path):
        network = NetworkStorageProvider(FakeCredentials(), FakeMounter(), mount_root=tmp_path)
        registry = ProviderRegistry([LocalStorageProvider(), network])

        assert registry.root_for(network_location()) == tmp_path / "7"
        assert registry.root_for(WatchedLocation(id=1, path="/media")) == Path("/media")

    def test_release_disconnects_every_provider(self):
        local = Mock(kind=StorageKind.LOCAL)
        network = Mock(kind=StorageKind.NETWORK)
        registry = ProviderRegistry([local, network])

        registry.release(7)

        local.disconnect.assert_called_once_with(7)
        network.disconnect.assert_called_once_with(7)
