from celery import Celery
from vodcatalog.core.config import settings

celery_app = Celery("worker", broker=settings.REDIS_URL, backend=settings.REDIS_URL)

celery_app.conf.update(task_track_started=True)

# Configure Celery Beat schedule
celery_app.conf.beat_schedule = {
    'refresh-vod-providers': {
        'task': 'vodcatalog.tasks.vod_refresh.refresh_all_providers_task',
        'schedule': settings.VOD_REFRESH_INTERVAL_SECONDS,
    },
}
celery_app.conf.timezone = settings.TIMEZONE

# Import tasks to register them
from vodcatalog.tasks import vod_refresh  # noqa
