"""Network (SMB/CIFS) storage provider.

Shares are mounted under ``<mount_root>/<watch folder id>`` and then listed
with the local provider. Mounts are kept between scans and released only on
explicit teardown.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from vidserve.database.models import StorageKind, WatchedLocation
from vidserve.errors import MountError

from .base import RawFile, ScanOptions
from .local import LocalStorageProvider

logger = logging.getLogger(__name__)

PROC_MOUNTS = Path("/proc/mounts")


class CredentialSource(Protocol):
    def get_decrypted_password(self, location_id: int) -> str | None:
        """Return the plaintext secret for a network watch folder, if any."""


class Mounter(Protocol):
    def is_mounted(self, mount_point: Path) -> bool: ...

    def mount(
        self,
        share: str,
        mount_point: Path,
        username: str | None,
        password: str,
        domain: str | None,
    ) -> None: ...

    def unmount(self, mount_point: Path) -> None: ...


@dataclass
class NetworkMount:
    location_id: int
    share: str
    mount_point: Path


def to_smb_path(path: str) -> str:
    r"""Convert ``\\server\share`` or ``server/share`` to ``//server/share``."""
    smb_path = path.replace("\\", "/")
    if not smb_path.startswith("//"):
        smb_path = "//" + smb_path.lstrip("/")
    return smb_path


class CifsMounter:
    """Mounts SMB shares with ``mount -t cifs``. Requires CAP_SYS_ADMIN."""

    def __init__(self, uid: int = 1000, gid: int = 1000, proc_mounts: Path = PROC_MOUNTS):
        self.uid = uid
        self.gid = gid
        self.proc_mounts = proc_mounts

    def is_mounted(self, mount_point: Path) -> bool:
        target = str(mount_point)
        try:
            with open(self.proc_mounts, encoding="utf-8") as f:
                for line in f:
                    fields = line.split()
                    if len(fields) > 1 and fields[1] == target:
                        return True
        except OSError as e:
            logger.debug("Could not read %s: %s", self.proc_mounts, e)
        return False

    def mount(
        self,
        share: str,
        mount_point: Path,
        username: str | None,
        password: str,
        domain: str | None,
    ) -> None:
        options = [f"username={username or ''}"]
        if domain:
            options.append(f"domain={domain}")
        options += [
            f"uid={self.uid}",
            f"gid={self.gid}",
            "file_mode=0644",
            "dir_mode=0755",
            "iocharset=utf8",
            "noperm",
        ]

        # mount.cifs reads the password from PASSWD so it stays out of argv.
        env = {**os.environ, "PASSWD": password}
        try:
            result = subprocess.run(
                ["mount", "-t", "cifs", share, str(mount_point), "-o", ",".join(options)],
                capture_output=True,
                text=True,
                check=False,
                env=env,
            )
        except OSError as e:
            raise MountError(f"Could not run mount for {share}: {e}") from e

        if result.returncode != 0:
            raise MountError(f"Failed to mount {share}: {result.stderr.strip()}")

    def unmount(self, mount_point: Path) -> None:
        try:
            result = subprocess.run(
                ["umount", str(mount_point)],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise MountError(f"Could not run umount for {mount_point}: {e}") from e

        if result.returncode != 0:
            raise MountError(f"Failed to unmount {mount_point}: {result.stderr.strip()}")


class NetworkStorageProvider:
    """Mounts network shares on demand and scans them through the local provider."""

    kind = StorageKind.NETWORK

    def __init__(
        self,
        credentials: CredentialSource,
        mounter: Mounter | None = None,
        mount_root: Path = Path("/mnt/network"),
        local: LocalStorageProvider | None = None,
    ):
        self.credentials = credentials
        self.mounter = mounter or CifsMounter()
        self.mount_root = mount_root
        self.local = local or LocalStorageProvider()
        self._mounts: dict[int, NetworkMount] = {}

    def mount_point_for(self, location_id: int) -> Path:
        return self.mount_root / str(location_id)

    def root_for(self, location: WatchedLocation) -> Path:
        return self.mount_point_for(_require_id(location))

    def is_connected(self, location_id: int) -> bool:
        return location_id in self._mounts

    def connect(self, location: WatchedLocation) -> None:
        location_id = _require_id(location)

        existing = self._mounts.get(location_id)
        if existing:
            if self.mounter.is_mounted(existing.mount_point):
                logger.debug(
                    "Network path already mounted for watch folder %d at %s",
                    location_id,
                    existing.mount_point,
                )
                return
            logger.warning(
                "Mount for watch folder %d disappeared from %s, remounting",
                location_id,
                existing.mount_point,
            )
            del self._mounts[location_id]

        self._mounts[location_id] = self._mount(location, location_id)

    def scan(self, location: WatchedLocation, options: ScanOptions) -> list[RawFile]:
        self.connect(location)
        mount = self._mounts[_require_id(location)]
        return self.local.scan_path(mount.mount_point, options)

    def disconnect(self, location_id: int) -> None:
        mount = self._mounts.pop(location_id, None)
        if mount is None:
            logger.debug("Network path not mounted for watch folder %d", location_id)
            return

        logger.info("Unmounting watch folder %d from %s", location_id, mount.mount_point)
        try:
            self.mounter.unmount(mount.mount_point)
        except MountError as e:
            logger.error("Failed to unmount watch folder %d: %s", location_id, e)
            return

        _remove_mount_point(mount.mount_point)
        logger.info("Network path unmounted for watch folder %d", location_id)

    def _mount(self, location: WatchedLocation, location_id: int) -> NetworkMount:
        mount_point = self.mount_point_for(location_id)
        share = to_smb_path(location.path)

        if self.mounter.is_mounted(mount_point):
            logger.debug(
                "Adopting existing mount for watch folder %d at %s", location_id, mount_point
            )
            return NetworkMount(location_id, share, mount_point)

        password = self.credentials.get_decrypted_password(location_id)
        if not password:
            raise MountError(f"Password not available for watch folder {location_id}")

        try:
            mount_point.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MountError(f"Cannot create mount point {mount_point}: {e}") from e

        logger.info("Mounting %s at %s for watch folder %d", share, mount_point, location_id)
        try:
            self.mounter.mount(share, mount_point, location.username, password, location.domain)
        except MountError:
            logger.error("Failed to mount network path for watch folder %d", location_id)
            _remove_mount_point(mount_point)
            raise

        logger.info("Network path mounted for watch folder %d", location_id)
        return NetworkMount(location_id, share, mount_point)


def _require_id(location: WatchedLocation) -> int:
    if location.id is None:
        raise MountError("Watch folder ID is required for network mounting")
    return location.id


def _remove_mount_point(mount_point: Path) -> None:
    try:
        mount_point.rmdir()
    except OSError:
        pass  # Non-empty or already gone
