"""Process wiring: builds every component from a Config and exposes the ASGI app."""

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from apscheduler.schedulers.base import BaseScheduler
from fastapi import FastAPI
from uvicorn.importer import ImportFromStringError, import_from_string

from vidserve import __version__
from vidserve.cache import MemoryCache
from vidserve.config import Config
from vidserve.database import Database, Store
from vidserve.enrichment import EnrichmentPipeline, IdentityResolver, ImdbSuggestResolver
from vidserve.scanner import Scanner
from vidserve.scheduler import ScanScheduler
from vidserve.storage import (
    CifsMounter,
    LocalStorageProvider,
    Mounter,
    NetworkStorageProvider,
    ProviderRegistry,
    ScanOptions,
)
from vidserve.streaming import (
    FileStatCache,
    StreamService,
    create_stream_router,
    install_error_handlers,
)

logger = logging.getLogger(__name__)


def load_decryptor(reference: str) -> Callable[[str], str]:
    """Resolve a ``module:function`` reference to a credential decryptor.

    The function receives the stored ``password_encrypted`` value and returns
    the plain password used to mount network watch folders.
    """
    try:
        decrypt = import_from_string(reference)
    except ImportFromStringError as e:
        raise ValueError(f"Cannot load password decryptor: {e}") from e
    if not callable(decrypt):
        raise ValueError(f"Password decryptor {reference!r} is not callable")
    return decrypt


@dataclass
class Application:
    config: Config
    database: Database
    store: Store
    cache: MemoryCache
    providers: ProviderRegistry
    pipeline: EnrichmentPipeline
    scanner: Scanner
    scheduler: ScanScheduler
    streams: StreamService

    def start(self) -> None:
        """Schedule every enabled watch folder and queue the startup scans."""
        locations = self.store.get_enabled_watch_folders()
        self.scheduler.start(locations)

        if self.config.scanner.scan_on_startup:
            for location in locations:
                assert location.id is not None
                self.scheduler.scan_soon(location.id)
            logger.info("Queued startup scan of %d watch folders", len(locations))

    def close(self) -> None:
        """Stop the scheduler, let running scans finish, then close the store."""
        self.scheduler.shutdown(timeout=self.config.scanner.shutdown_wait_seconds)
        self.store.close()
        logger.info("Application closed")


def build_application(
    config: Config,
    resolver: IdentityResolver | None = None,
    mounter: Mounter | None = None,
    decrypt: Callable[[str], str] | None = None,
    scheduler: BaseScheduler | None = None,
) -> Application:
    if decrypt is None and config.network.password_decryptor:
        decrypt = load_decryptor(config.network.password_decryptor)

    database = Database(config.database_path)
    database.connect()
    store = Store(database, decrypt=decrypt)

    local = LocalStorageProvider()
    network = NetworkStorageProvider(
        credentials=store,
        mounter=mounter or CifsMounter(uid=config.network.uid, gid=config.network.gid),
        mount_root=config.network.mount_root,
        local=local,
    )
    providers = ProviderRegistry([local, network])

    cache = MemoryCache(max_size=config.cache.max_size)
    pipeline = EnrichmentPipeline(
        resolver=resolver
        or ImdbSuggestResolver(
            base_url=config.identity.suggest_url,
            timeout=config.identity.timeout_seconds,
            min_similarity=config.identity.min_similarity,
        ),
        cache=cache,
        ttl_seconds=config.cache.identity_ttl_seconds,
        interesting_kinds=config.identity.interesting_kinds,
    )

    default_options = ScanOptions(
        allowed_extensions=list(config.scanner.allowed_extensions),
        min_video_size_mb=config.scanner.min_video_size_mb,
        temporary_extensions=list(config.scanner.temporary_extensions),
    )
    scanner = Scanner(store, providers, pipeline, default_options=default_options)

    streams = StreamService(
        store,
        providers,
        stat_cache=FileStatCache(
            ttl_seconds=config.stream.stat_cache_ttl_seconds,
            max_size=config.stream.stat_cache_max_size,
        ),
        buffer_size=config.stream.read_buffer_bytes,
    )

    return Application(
        config=config,
        database=database,
        store=store,
        cache=cache,
        providers=providers,
        pipeline=pipeline,
        scanner=scanner,
        scheduler=ScanScheduler(scanner, scheduler),
        streams=streams,
    )


def create_app(application: Application, manage_lifecycle: bool = True) -> FastAPI:
    """ASGI app serving ``/stream/{file_id}``.

    With ``manage_lifecycle`` the scheduler starts with the server and the
    application is closed when the server shuts down.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_lifecycle:
            application.start()
        try:
            yield
        finally:
            if manage_lifecycle:
                application.close()

    app = FastAPI(title="vidserve", version=__version__, lifespan=lifespan)
    app.include_router(create_stream_router(application.streams))
    install_error_handlers(app)
    app.state.application = application
    return app
