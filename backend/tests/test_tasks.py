import json
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker

from vodcatalog.models.catalog import Movie
from vodcatalog.models.provider import Provider, ProviderType
from vodcatalog.models.refresh_execution import RefreshExecution, RefreshStatus
from vodcatalog.services.vod import orchestrator
from vodcatalog.services.vod import m3u_ingest
from vodcatalog.tasks import vod_refresh

from tests.helpers import FakeXtreamClient


class FakeLock:
    def __init__(self, redis, name):
        self.redis = redis
        self.name = name

    def acquire(self, blocking=True):
        if self.name in self.redis.held:
            return False
        self.redis.held.add(self.name)
        return True

    def release(self):
        self.redis.held.discard(self.name)


class FakeRedis:
    def __init__(self):
        self.held = set()
        self.published = []

    def lock(self, name, timeout=None):
        return FakeLock(self, name)

    def publish(self, channel, message):
        self.published.append((channel, json.loads(message)))


@pytest.fixture
def fake_redis(monkeypatch, engine):
    redis = FakeRedis()
    monkeypatch.setattr(vod_refresh, "get_redis", lambda: redis)
    monkeypatch.setattr(vod_refresh, "SessionLocal", sessionmaker(bind=engine, autoflush=False))
    return redis


def _add_provider(db, **kwargs):
    provider = Provider(
        name=kwargs.pop("name", "Provider A"),
        provider_type=kwargs.pop("provider_type", ProviderType.XTREAM),
        xc_data=json.dumps({"server": "http://example.com", "username": "u", "password": "p"}),
        **kwargs,
    )
    db.add(provider)
    db.commit()
    return provider


def test_refresh_task_records_execution(db, fake_redis, monkeypatch):
    client = FakeXtreamClient(movies=[{"stream_id": "10", "name": "A Movie (2001)"}])
    monkeypatch.setattr(orchestrator, "XtreamClient", SimpleNamespace(from_credentials=lambda creds: client))
    provider = _add_provider(db)

    result = vod_refresh.refresh_provider_task(provider.id)

    assert result["status"] == "success"
    assert result["movies_processed"] == 1
    execution = db.query(RefreshExecution).one()
    assert execution.status == RefreshStatus.SUCCESS
    assert execution.source == "xtream"
    assert execution.completed_at is not None
    assert db.query(Movie).count() == 1
    assert fake_redis.held == set()
    assert fake_redis.published[-1][1]["severity"] == "success"
    assert all(channel == "vod:status" for channel, _ in fake_redis.published)


def test_refresh_task_skips_when_provider_is_locked(db, fake_redis):
    provider = _add_provider(db)
    fake_redis.held.add(vod_refresh.refresh_lock_name(provider.id))

    result = vod_refresh.refresh_provider_task(provider.id)

    assert result["status"] == "skipped"
    assert db.query(RefreshExecution).one().status == RefreshStatus.SKIPPED


def test_refresh_task_unknown_provider(fake_redis):
    assert vod_refresh.refresh_provider_task(999) == {"error": "Provider not found"}


def test_m3u_provider_uses_playlist_ingest(db, fake_redis, monkeypatch):
    playlist = '#EXTM3U\n#EXTINF:-1 group-title="Crime",Heat (1995)\nhttp://h/movie/u/p/1234.mkv\n'
    monkeypatch.setattr(m3u_ingest, "fetch_m3u", lambda url: playlist)
    provider = _add_provider(db, name="M3U", provider_type=ProviderType.M3U, m3u_url="http://h/list.m3u")

    result = vod_refresh.refresh_provider_task(provider.id)

    assert result["status"] == "success"
    assert db.query(RefreshExecution).one().source == "m3u"
    assert db.query(Movie).one().category_name == "Crime"


def test_refresh_all_queues_active_providers(db, fake_redis, monkeypatch):
    active = _add_provider(db, name="Active")
    _add_provider(db, name="Inactive", is_active=False)
    queued = []
    monkeypatch.setattr(vod_refresh.refresh_provider_task, "delay", lambda provider_id: queued.append(provider_id))

    result = vod_refresh.refresh_all_providers_task()

    assert queued == [active.id]
    assert result == {"queued": [active.id]}
