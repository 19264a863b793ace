import json
import logging

from vodcatalog.services.vod.status import RedisStatusSink, Severity, StatusReporter, log_status


class PublishRecorder:
    def __init__(self):
        self.messages = []

    def publish(self, channel, message):
        self.messages.append((channel, json.loads(message)))


def test_redis_sink_publishes_json():
    redis = PublishRecorder()
    RedisStatusSink(redis, "vod:status", provider_id=3)("Fetching movies...", Severity.INFO)

    channel, payload = redis.messages[0]
    assert channel == "vod:status"
    assert payload["provider_id"] == 3
    assert payload["message"] == "Fetching movies..."
    assert payload["severity"] == "info"
    assert payload["timestamp"]


def test_reporter_swallows_sink_failures(caplog):
    def broken(message, severity):
        raise ConnectionError("redis down")

    with caplog.at_level(logging.WARNING):
        StatusReporter(broken)("Processing 3 movies...", Severity.INFO)

    assert "redis down" in caplog.text


def test_log_status_maps_severity(caplog):
    with caplog.at_level(logging.INFO):
        log_status("Cleanup FAILED for A: boom", Severity.ERROR)

    assert caplog.records[-1].levelno == logging.ERROR
