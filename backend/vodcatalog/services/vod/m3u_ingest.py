"""Playlist ingestion: the M3U counterpart of the Xtream refresh.

Playlist entries go through the same upsert and relation machinery, so an
M3U provider's catalog obeys the same identity and cleanup rules.
"""
import logging
import re
from datetime import datetime
from typing import Callable, Optional
from urllib.parse import urlsplit

from vodcatalog.core.config import settings as default_settings
from vodcatalog.services.m3u_parser import EntryType, PlaylistEntry, fetch_m3u, parse_m3u
from vodcatalog.services.vod.errors import ProviderError, StoreError
from vodcatalog.services.vod.kinds import EntityKind
from vodcatalog.services.vod.phases import PhaseRunner, ProviderRef
from vodcatalog.services.vod.report import PHASE_PLAYLIST, PHASE_SCHEMA, RefreshReport, utcnow
from vodcatalog.services.vod.status import Severity, StatusSink
from vodcatalog.services.vod.upsert import FeedItem, derive_year, fallback_category

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r"\s+")


def series_slug(name: str) -> str:
    # Differently named series that slug identically end up as one entity.
    return WHITESPACE_RE.sub("_", name).lower()


def playlist_movie_item(entry: PlaylistEntry, settings=default_settings) -> FeedItem:
    segment = urlsplit(entry.url).path.rsplit("/", 1)[-1]
    native_id = segment.split(".", 1)[0]
    extension = segment.rpartition(".")[2] if "." in segment else None
    return FeedItem(
        native_id=native_id,
        name=entry.name,
        year=derive_year(entry.name),
        logo=entry.logo,
        category_name=entry.group_title or fallback_category(EntityKind.MOVIE, settings),
        container_extension=extension or None,
    )


def playlist_series_item(entry: PlaylistEntry, settings=default_settings) -> FeedItem:
    return FeedItem(
        native_id=series_slug(entry.name),
        name=entry.name,
        year=derive_year(entry.name),
        logo=entry.logo,
        category_name=entry.group_title or fallback_category(EntityKind.SERIES, settings),
    )


class PlaylistIngestor(PhaseRunner):
    def __init__(
        self,
        store,
        sink: Optional[StatusSink] = None,
        settings=default_settings,
        fetcher: Callable[[str], str] = None,
    ):
        super().__init__(store, sink, settings)
        self.fetcher = fetcher or fetch_m3u

    def ingest_url(self, provider, scan_started_at: Optional[datetime] = None) -> RefreshReport:
        provider = ProviderRef.of(provider)
        try:
            self.store.release()
            if not provider.m3u_url:
                raise ProviderError("Provider has no M3U URL configured.")
            self.status(f"Downloading M3U playlist for {provider.name}...", Severity.INFO)
            content = self.fetcher(provider.m3u_url)
        except (ProviderError, StoreError) as e:
            report = RefreshReport(provider_id=provider.id, provider_name=provider.name)
            self.fail(report, PHASE_PLAYLIST, provider, e)
            report.aborted = True
            return report
        return self.ingest(provider, content, scan_started_at)

    def ingest(self, provider, content: str, scan_started_at: Optional[datetime] = None) -> RefreshReport:
        provider = ProviderRef.of(provider)
        report = RefreshReport(provider_id=provider.id, provider_name=provider.name)
        logger.info(f"Starting VOD processing for M3U source: {provider.name}")

        try:
            self.store.release()
            self.store.ensure_schema()
        except StoreError as e:
            self.fail(report, PHASE_SCHEMA, provider, e)
            report.aborted = True
            return report

        scan_started_at = scan_started_at or utcnow()
        report.scan_started_at = scan_started_at

        entries = parse_m3u(content)
        movies = [playlist_movie_item(e, self.settings) for e in entries if e.entry_type == EntryType.MOVIE]
        series = [playlist_series_item(e, self.settings) for e in entries if e.entry_type == EntryType.SERIES]
        logger.info(f"Found {len(movies)} movies and {len(series)} series in M3U.")
        self.status(
            f"Processing {len(movies)} movies and {len(series)} series from {provider.name}...",
            Severity.INFO,
        )
        report.record(PHASE_PLAYLIST, ok=True, processed=len(entries))

        self.upsert_phase(report, provider, EntityKind.MOVIE, movies, scan_started_at)
        self.upsert_phase(report, provider, EntityKind.SERIES, series, scan_started_at)
        self.cleanup_phase(report, provider, scan_started_at)
        return self.finish(report, provider)
