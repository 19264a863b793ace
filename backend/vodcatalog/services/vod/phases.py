"""Phase execution shared by the Xtream and M3U refresh paths.

Each phase owns one transaction. Failures are reported and recorded on the
:class:`RefreshReport`; whether a failure ends the run is the caller's call.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from vodcatalog.core.config import settings as default_settings
from vodcatalog.services.vod.errors import CatalogError
from vodcatalog.services.vod.kinds import EntityKind, REAP_ORDER
from vodcatalog.services.vod.reaper import StaleRelationReaper
from vodcatalog.services.vod.report import (
    PHASE_CLEANUP, PHASE_LABELS, PHASE_MOVIES, PHASE_SERIES, RefreshReport
)
from vodcatalog.services.vod.status import Severity, StatusReporter, StatusSink
from vodcatalog.services.vod.upsert import EntityUpserter, FeedItem

logger = logging.getLogger(__name__)

KIND_PHASES = {
    EntityKind.MOVIE: PHASE_MOVIES,
    EntityKind.SERIES: PHASE_SERIES,
    EntityKind.EPISODE: PHASE_SERIES,
}


@dataclass(frozen=True)
class ProviderRef:
    """Plain copy of the provider columns a refresh reads.

    Commits expire ORM rows, and touching an expired row reopens a
    transaction. Runs work from this copy instead.
    """
    id: int
    name: str
    xc_data: Optional[str] = None
    m3u_url: Optional[str] = None

    @classmethod
    def of(cls, provider) -> "ProviderRef":
        if isinstance(provider, cls):
            return provider
        return cls(
            id=provider.id,
            name=provider.name,
            xc_data=getattr(provider, "xc_data", None),
            m3u_url=getattr(provider, "m3u_url", None),
        )


class PhaseRunner:
    def __init__(self, store, sink: Optional[StatusSink] = None, settings=default_settings):
        self.store = store
        self.status = StatusReporter(sink)
        self.settings = settings

    def fail(self, report: RefreshReport, phase: str, provider, error: Exception) -> None:
        message = error.message if isinstance(error, CatalogError) else str(error)
        label = PHASE_LABELS.get(phase, phase)
        if isinstance(error, CatalogError):
            logger.error(f"{label} FAILED for {provider.name}: {message}")
        else:
            logger.exception(f"{label} FAILED for {provider.name}")
        self.status(f"{label} FAILED for {provider.name}: {message}", Severity.ERROR)
        report.record(phase, ok=False, error=message)

    def upsert_phase(self, report: RefreshReport, provider, kind: EntityKind,
                     items: List[Optional[FeedItem]], scan_started_at: datetime) -> bool:
        phase = KIND_PHASES[kind]
        label = "movies" if kind == EntityKind.MOVIE else "series"
        logger.info(f"Fetched {len(items)} {label} for {provider.name}")
        self.status(f"Processing {len(items)} {label}...", Severity.INFO)

        upserter = EntityUpserter(
            self.store, kind, provider.id, scan_started_at,
            default_extension=self.settings.DEFAULT_CONTAINER_EXTENSION,
        )
        try:
            with self.store.transaction():
                stats = upserter.upsert_all(items)
        except Exception as e:
            self.fail(report, phase, provider, e)
            return False

        logger.info(
            f"{label.capitalize()} for {provider.name}: {stats.inserted} added, "
            f"{stats.updated} updated, {stats.skipped} skipped"
        )
        report.record(phase, ok=True, processed=stats.processed)
        return True

    def cleanup_phase(self, report: RefreshReport, provider, scan_started_at: datetime) -> bool:
        # Relations of a kind whose phase failed were not refreshed this run;
        # they are kept until a run observes that feed again.
        failed = set(report.failed_phases)
        kinds = [kind for kind in REAP_ORDER if KIND_PHASES.get(kind) not in failed]

        logger.info(f"Cleaning up stale VOD content for {provider.name}...")
        self.status(f"Cleaning up old VOD entries for {provider.name}...", Severity.INFO)
        try:
            with self.store.transaction():
                result = StaleRelationReaper(self.store).reap(provider.id, scan_started_at, kinds)
        except Exception as e:
            self.fail(report, PHASE_CLEANUP, provider, e)
            return False

        report.reap = result
        report.record(PHASE_CLEANUP, ok=True, processed=result.relations_removed + result.orphans_removed)
        logger.info(f"VOD cleanup completed for: {provider.name}")
        return True

    def finish(self, report: RefreshReport, provider) -> RefreshReport:
        if report.succeeded:
            logger.info(f"VOD refresh completed for: {provider.name}")
            self.status(f"VOD refresh successful for {provider.name}.", Severity.SUCCESS)
        else:
            failed = ", ".join(report.failed_phases)
            logger.warning(f"VOD refresh for {provider.name} completed with errors in: {failed}")
            self.status(f"VOD refresh for {provider.name} completed with errors in: {failed}", Severity.WARNING)
        return report
