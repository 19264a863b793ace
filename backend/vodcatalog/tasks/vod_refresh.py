from vodcatalog.core.celery_app import celery_app
from vodcatalog.core.config import settings
from vodcatalog.core.redis import get_redis
from vodcatalog.db.session import SessionLocal
from vodcatalog.models.provider import Provider, ProviderType
from vodcatalog.models.refresh_execution import RefreshExecution, RefreshStatus
from vodcatalog.services.vod.m3u_ingest import PlaylistIngestor
from vodcatalog.services.vod.orchestrator import ReconciliationOrchestrator
from vodcatalog.services.vod.report import RefreshReport, utcnow
from vodcatalog.services.vod.status import RedisStatusSink
from vodcatalog.services.vod.store import CatalogStore
import logging

logger = logging.getLogger(__name__)


def refresh_lock_name(provider_id: int) -> str:
    return f"vod-refresh:{provider_id}"


def run_provider_refresh(db, provider: Provider, sink=None) -> RefreshReport:
    """Run the refresh path matching the provider type."""
    store = CatalogStore(db)
    if provider.provider_type == ProviderType.M3U:
        return PlaylistIngestor(store, sink).ingest_url(provider)
    return ReconciliationOrchestrator(store, sink).run(provider)


def record_execution(db, execution: RefreshExecution, report: RefreshReport) -> RefreshExecution:
    execution.completed_at = utcnow()
    execution.status = report.status
    execution.movies_processed = report.processed("movies")
    execution.series_processed = report.processed("series")
    if report.reap:
        execution.relations_removed = report.reap.relations_removed
        execution.orphans_removed = report.reap.orphans_removed
    execution.error_message = report.error_message
    db.commit()
    return execution


@celery_app.task
def refresh_provider_task(provider_id: int):
    """Refresh one provider's VOD catalog. Runs for the same provider never overlap."""
    db = SessionLocal()
    redis_conn = get_redis()
    lock = redis_conn.lock(refresh_lock_name(provider_id), timeout=settings.REFRESH_LOCK_TIMEOUT_SECONDS)
    try:
        provider = db.query(Provider).filter(Provider.id == provider_id).first()
        if not provider:
            logger.error(f"Provider {provider_id} not found")
            return {"error": "Provider not found"}

        execution = RefreshExecution(
            provider_id=provider.id,
            source=provider.provider_type.value,
            started_at=utcnow(),
            status=RefreshStatus.RUNNING,
        )

        if not lock.acquire(blocking=False):
            logger.info(f"Refresh already running for {provider.name}, skipping")
            execution.status = RefreshStatus.SKIPPED
            execution.completed_at = utcnow()
            db.add(execution)
            db.commit()
            return {"provider_id": provider_id, "status": RefreshStatus.SKIPPED.value}

        try:
            db.add(execution)
            db.commit()

            sink = RedisStatusSink(redis_conn, settings.STATUS_CHANNEL, provider_id=provider.id)
            report = run_provider_refresh(db, provider, sink)
            record_execution(db, execution, report)
        finally:
            lock.release()

        return {
            "provider_id": provider_id,
            "provider_name": provider.name,
            "status": report.status.value,
            "movies_processed": execution.movies_processed,
            "series_processed": execution.series_processed,
            "relations_removed": execution.relations_removed,
            "orphans_removed": execution.orphans_removed,
        }
    except Exception as e:
        logger.exception(f"Error in VOD refresh task for provider {provider_id}")
        db.rollback()
        return {"error": str(e)}
    finally:
        db.close()


@celery_app.task
def refresh_all_providers_task():
    """Queue a refresh for every active provider. Providers refresh concurrently."""
    db = SessionLocal()
    try:
        providers = db.query(Provider).filter(Provider.is_active == True).all()  # noqa: E712
        for provider in providers:
            refresh_provider_task.delay(provider.id)
        logger.info(f"Queued VOD refresh for {len(providers)} providers")
        return {"queued": [p.id for p in providers]}
    finally:
        db.close()
