"""Scan orchestration: list, diff, enrich, upsert, clean up."""

import json
import logging

from vidserve.database import IndexedFile, Store, WatchedLocation
from vidserve.enrichment import EnrichedInfo, EnrichmentPipeline
from vidserve.errors import LocationNotFoundError
from vidserve.storage import ProviderRegistry, RawFile, ScanOptions

from .progress import ProgressReporter, ScanResult

logger = logging.getLogger(__name__)


class Scanner:
    """Brings the index of one watch folder in line with its storage.

    Files whose (size, mtime) match the stored record are left untouched.
    Changed or new files are enriched, and only those with a catalog identity
    are written. Records whose path no longer appears are removed.
    """

    def __init__(
        self,
        store: Store,
        providers: ProviderRegistry,
        pipeline: EnrichmentPipeline,
        default_options: ScanOptions | None = None,
        progress_interval: int = 100,
    ):
        self.store = store
        self.providers = providers
        self.pipeline = pipeline
        self.default_options = default_options
        self.progress_interval = progress_interval

    def scan(self, location_id: int) -> ScanResult:
        location = self.store.get_watch_folder_by_id(location_id)
        if location is None:
            raise LocationNotFoundError(location_id)

        logger.info("Starting scan of %s (watch folder %d)", location.display_name, location_id)
        result = ScanResult()
        try:
            self._scan_location(location, location_id, result)
        except Exception as e:
            result.finish()
            logger.error("Scan of %s failed: %s", location.display_name, e)
            self.store.record_scan(
                files_found=0,
                duration_ms=result.duration_ms,
                errors=1,
                watch_folder_id=location_id,
            )
            raise

        result.finish()
        self.store.record_scan(
            files_found=result.files_found,
            duration_ms=result.duration_ms,
            processed_count=result.processed_count,
            skipped_count=result.skipped_count,
            watch_folder_id=location_id,
        )
        ProgressReporter().report_completion(result, location.display_name)
        return result

    def release(self, location_id: int) -> None:
        """Tear down provider state (network mounts) for a watch folder.

        Works after the watch folder record itself has been deleted.
        """
        self.providers.release(location_id)

    def _scan_location(
        self, location: WatchedLocation, location_id: int, result: ScanResult
    ) -> None:
        provider = self.providers.get(location)
        provider.connect(location)

        options = ScanOptions.for_location(location, self.default_options)
        raw_files = provider.scan(location, options)
        result.files_found = len(raw_files)
        seen_paths = [f.relative_path for f in raw_files]

        progress = ProgressReporter(interval=self.progress_interval)
        queued: list[IndexedFile] = []
        for raw_file in raw_files:
            existing = self.store.get_file_by_path(raw_file.relative_path)
            if existing and existing.watch_folder_id not in (None, location_id):
                logger.warning(
                    "%s is already indexed under watch folder %d, skipping",
                    raw_file.relative_path,
                    existing.watch_folder_id,
                )
                result.skipped_count += 1
                continue
            if existing and existing.size == raw_file.size and existing.mtime == raw_file.mtime:
                result.skipped_count += 1
                continue

            result.processed_count += 1
            info = self.pipeline.process(raw_file.absolute_path, raw_file.name, raw_file.size)
            if info.imdb_id:
                queued.append(build_record(raw_file, info, location_id))
            else:
                logger.debug("No catalog identity for %s, not indexed", raw_file.relative_path)
            progress.report_if_needed(result, location.display_name)

        self.store.upsert_files_batch(queued)
        result.indexed_count = len(queued)

        result.removed_count = self.store.remove_files_not_in_list(seen_paths, location_id)
        if result.removed_count:
            logger.info(
                "Removed %d stale files from %s", result.removed_count, location.display_name
            )


def build_record(raw_file: RawFile, info: EnrichedInfo, location_id: int) -> IndexedFile:
    release = info.release
    identity = info.identity
    return IndexedFile(
        id=None,
        name=raw_file.name,
        path=raw_file.relative_path,
        size=raw_file.size,
        mtime=raw_file.mtime,
        parsed_name=release.title,
        kind=release.kind.value,
        imdb_id=info.imdb_id,
        season=release.season,
        episode=release.episode,
        resolution=release.resolution,
        source=release.source,
        video_codec=release.video_codec,
        audio_codec=release.audio_codec,
        audio_channels=release.audio_channels,
        languages=release.languages,
        release_group=release.release_group,
        flags=release.flags,
        edition=release.edition,
        imdb_name=identity.name if identity else None,
        imdb_year=identity.year if identity else None,
        imdb_type=identity.type if identity else None,
        year_range=identity.year_range if identity else None,
        image=json.dumps(identity.image) if identity and identity.image else None,
        starring=identity.starring if identity else None,
        similarity=identity.similarity if identity else None,
        watch_folder_id=location_id,
    )
