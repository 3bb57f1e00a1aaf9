"""Storage providers for watched locations."""

from .base import RawFile, ScanOptions, StorageProvider
from .local import LocalStorageProvider, should_skip_file
from .network import CifsMounter, Mounter, NetworkMount, NetworkStorageProvider, to_smb_path
from .registry import ProviderRegistry

__all__ = [
    "RawFile",
    "ScanOptions",
    "StorageProvider",
    "LocalStorageProvider",
    "NetworkStorageProvider",
    "NetworkMount",
    "Mounter",
    "CifsMounter",
    "ProviderRegistry",
    "should_skip_file",
    "to_smb_path",
]
