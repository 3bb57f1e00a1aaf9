"""Error types shared across vidserve components."""


class VidserveError(Exception):
    """Base class for all vidserve errors."""


class NotFoundError(VidserveError):
    """Raised when a requested record does not exist."""


class LocationNotFoundError(NotFoundError):
    """Raised when a watch folder id is unknown."""

    def __init__(self, location_id: int):
        super().__init__(f"Watch folder with ID {location_id} not found")
        self.location_id = location_id


class FileNotFoundInIndexError(NotFoundError):
    """Raised when a file id is unknown or its file is missing on disk."""

    def __init__(self, file_id: int):
        super().__init__(f"File {file_id} not found")
        self.file_id = file_id


class ScanInProgressError(VidserveError):
    """Raised when a manual scan is requested while one is already running."""

    def __init__(self, location_id: int):
        super().__init__(f"Scan already in progress for watch folder {location_id}")
        self.location_id = location_id


class RangeNotSatisfiableError(VidserveError):
    """Raised when a Range header cannot be served for the file size."""

    def __init__(self, range_header: str, size: int):
        super().__init__(f"Range not satisfiable: {range_header} (size {size})")
        self.range_header = range_header
        self.size = size


class MountError(VidserveError):
    """Raised when a network share cannot be mounted."""


class EnrichmentError(VidserveError):
    """Raised when an external identity lookup fails; recovered by the pipeline."""


class StoreError(VidserveError):
    """Raised when the persistent store fails."""
