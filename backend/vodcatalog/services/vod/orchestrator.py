"""Four-phase VOD refresh for an Xtream provider.

Categories -> Movies -> Series -> Cleanup. A category failure aborts the run
since every later phase names entities from the category map. Movie and
series failures only roll back their own phase. Feeds are always fetched
before the phase transaction opens.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from vodcatalog.core.config import settings as default_settings
from vodcatalog.services.vod.categories import CategoryMerger
from vodcatalog.services.vod.errors import CredentialError, ProviderError, StoreError
from vodcatalog.services.vod.kinds import EntityKind
from vodcatalog.services.vod.phases import PhaseRunner, ProviderRef
from vodcatalog.services.vod.report import (
    PHASE_CATEGORIES, PHASE_CREDENTIALS, PHASE_MOVIES, PHASE_SCHEMA, PHASE_SERIES,
    RefreshReport, utcnow,
)
from vodcatalog.services.vod.status import Severity, StatusSink
from vodcatalog.services.vod.upsert import movie_item, series_item
from vodcatalog.services.xtream import XtreamClient, XtreamCredentials, parse_xtream_credentials

logger = logging.getLogger(__name__)


def _require_list(payload, what: str) -> list:
    if not isinstance(payload, list):
        raise ProviderError(f"Unexpected {what} payload from provider: {type(payload).__name__}")
    return payload


class ReconciliationOrchestrator(PhaseRunner):
    def __init__(
        self,
        store,
        sink: Optional[StatusSink] = None,
        client_factory: Callable[[XtreamCredentials], XtreamClient] = None,
        settings=default_settings,
    ):
        super().__init__(store, sink, settings)
        self.client_factory = client_factory or XtreamClient.from_credentials

    def run(self, provider, scan_started_at: Optional[datetime] = None) -> RefreshReport:
        provider = ProviderRef.of(provider)
        report = RefreshReport(provider_id=provider.id, provider_name=provider.name)
        logger.info(f"Starting VOD refresh for: {provider.name}")

        try:
            client = self.client_factory(parse_xtream_credentials(provider))
        except CredentialError as e:
            logger.error(f"Failed to parse XC credentials for provider {provider.name}: {e.message}")
            self.status(f"Failed to parse XC credentials for {provider.name}", Severity.ERROR)
            report.record(PHASE_CREDENTIALS, ok=False, error=e.message)
            report.aborted = True
            return report

        try:
            self.store.release()
            self.store.ensure_schema()
        except StoreError as e:
            self.fail(report, PHASE_SCHEMA, provider, e)
            report.aborted = True
            return report

        # One watermark for every phase of this run
        scan_started_at = scan_started_at or utcnow()
        report.scan_started_at = scan_started_at

        category_map = self.process_categories(report, provider, client)
        if category_map is None:
            report.aborted = True
            return report

        self.process_movies(report, provider, client, category_map, scan_started_at)
        self.process_series(report, provider, client, category_map, scan_started_at)
        self.cleanup_phase(report, provider, scan_started_at)
        return self.finish(report, provider)

    def process_categories(self, report: RefreshReport, provider, client) -> Optional[Dict[str, str]]:
        merger = CategoryMerger(client, self.store)
        self.status(f"Fetching VOD and Series categories for {provider.name}...", Severity.INFO)
        try:
            category_map = merger.fetch()
            if category_map:
                logger.info(f"Fetched {len(category_map)} combined VOD/Series categories from provider.")
                self.status(f"Processing {len(category_map)} VOD/Series categories...", Severity.INFO)
                with self.store.transaction():
                    merger.persist(category_map)
        except Exception as e:
            self.fail(report, PHASE_CATEGORIES, provider, e)
            return None

        report.record(PHASE_CATEGORIES, ok=True, processed=len(category_map))
        return category_map

    def process_movies(self, report: RefreshReport, provider, client,
                       category_map: Dict[str, str], scan_started_at: datetime) -> bool:
        self.status(f"Fetching movies for {provider.name}...", Severity.INFO)
        try:
            rows = _require_list(client.get_vod_streams(), "movie")
            items = [movie_item(row, category_map, self.settings) for row in rows]
        except Exception as e:
            self.fail(report, PHASE_MOVIES, provider, e)
            return False
        return self.upsert_phase(report, provider, EntityKind.MOVIE, items, scan_started_at)

    def process_series(self, report: RefreshReport, provider, client,
                       category_map: Dict[str, str], scan_started_at: datetime) -> bool:
        self.status(f"Fetching series for {provider.name}...", Severity.INFO)
        try:
            rows = _require_list(client.get_series(), "series")
            items = [series_item(row, category_map, self.settings) for row in rows]
        except Exception as e:
            self.fail(report, PHASE_SERIES, provider, e)
            return False
        return self.upsert_phase(report, provider, EntityKind.SERIES, items, scan_started_at)
