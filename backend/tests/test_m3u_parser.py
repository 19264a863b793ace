import httpx
import pytest

from vodcatalog.services.m3u_parser import EntryType, fetch_m3u, parse_m3u
from vodcatalog.services.vod.errors import ProviderError

PLAYLIST = """#EXTM3U
#EXTINF:-1 tvg-id="" tvg-logo="http://img/heat.png" group-title="Action, Crime",Heat (1995)
http://example.com/movie/user/pass/1234.mkv
#EXTINF:-1 tvg-type="series" group-title="Drama",Breaking Bad S01E01
http://example.com/play/abc.ts
#EXTINF:-1 group-title="News",Live News
http://example.com/live/user/pass/55.ts
#EXTINF:-1,Orphan without url
#EXTINF:-1,Interrupted
#EXTVLCOPT:http-user-agent=VLC
http://example.com/movie/user/pass/999.mp4
#EXTINF:-1 tvg-type="movie",
http://example.com/vod/777.avi
"""


def test_parse_m3u_classifies_vod_entries():
    entries = parse_m3u(PLAYLIST)

    assert [(e.name, e.entry_type) for e in entries] == [
        ("Heat (1995)", EntryType.MOVIE),
        ("Breaking Bad S01E01", EntryType.SERIES),
        ("Untitled", EntryType.MOVIE),
    ]
    heat = entries[0]
    assert heat.url == "http://example.com/movie/user/pass/1234.mkv"
    assert heat.logo == "http://img/heat.png"
    assert heat.group_title == "Action, Crime"


def test_display_name_is_text_after_final_comma():
    entries = parse_m3u('#EXTINF:-1 group-title="A, B",Title, The\nhttp://h/movie/u/p/1.mp4\n')
    assert entries[0].name == "The"


def test_metadata_line_needs_an_immediate_url():
    entries = parse_m3u("#EXTINF:-1,Lost\n\nhttp://h/movie/u/p/1.mp4\n")
    assert entries == []


def test_url_without_metadata_is_ignored():
    assert parse_m3u("http://h/movie/u/p/1.mp4\n") == []


def test_windows_line_endings():
    entries = parse_m3u("#EXTM3U\r\n#EXTINF:-1,Film\r\nhttps://h/movie/u/p/2.mp4\r\n")
    assert [(e.name, e.url) for e in entries] == [("Film", "https://h/movie/u/p/2.mp4")]


def test_fetch_m3u_returns_text():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text=PLAYLIST))
    assert fetch_m3u("http://example.com/list.m3u", transport=transport) == PLAYLIST


@pytest.mark.parametrize(
    "response",
    [httpx.Response(404, text="not found"), httpx.Response(200, text="   ")],
)
def test_fetch_m3u_failures_raise_provider_error(response):
    transport = httpx.MockTransport(lambda request: response)
    with pytest.raises(ProviderError):
        fetch_m3u("http://example.com/list.m3u", transport=transport)


def test_fetch_m3u_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ProviderError):
        fetch_m3u("http://example.com/list.m3u", transport=httpx.MockTransport(handler))
