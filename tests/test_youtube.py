"""
Unit tests for yt-dlp track resolution.
"""

import pytest
import yt_dlp

from inspira import youtube

VIDEO_INFO = {
    "id": "dQw4w9WgXcQ",
    "title": "Never Gonna Give You Up",
    "webpage_url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
    "url": "https://rr1.googlevideo.com/videoplayback?id=1",
    "duration": 213.0,
    "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
}


def use_extractor(monkeypatch, result=None, error=None):
    calls = []

    def fake_extract(query):
        calls.append(query)
        if error is not None:
            raise error
        return result

    monkeypatch.setattr(youtube, "_extract", fake_extract)
    return calls


@pytest.mark.asyncio
class TestResolve:
    """Test resolving queries into tracks."""

    async def test_resolves_url(self, monkeypatch):
        """A URL resolves to a fully populated track."""
        calls = use_extractor(monkeypatch, VIDEO_INFO)

        track = await youtube.resolve(" https://youtu.be/dQw4w9WgXcQ ", "tester")

        assert calls == ["https://youtu.be/dQw4w9WgXcQ"]
        assert track.title == "Never Gonna Give You Up"
        assert track.source_url == VIDEO_INFO["webpage_url"]
        assert track.stream_url == VIDEO_INFO["url"]
        assert track.duration == 213
        assert track.thumbnail == VIDEO_INFO["thumbnail"]
        assert track.requested_by == "tester"

    async def test_search_takes_first_entry(self, monkeypatch):
        """Search results use the first non-empty entry."""
        use_extractor(monkeypatch, {"entries": [None, VIDEO_INFO, {"title": "other"}]})

        track = await youtube.resolve("rick astley", "tester")

        assert track.title == "Never Gonna Give You Up"

    async def test_no_search_results(self, monkeypatch):
        """An empty search raises YouTubeError."""
        use_extractor(monkeypatch, {"entries": []})

        with pytest.raises(youtube.YouTubeError, match="No results"):
            await youtube.resolve("zzzz", "tester")

    async def test_empty_query(self, monkeypatch):
        """Blank queries never reach yt-dlp."""
        calls = use_extractor(monkeypatch, VIDEO_INFO)

        with pytest.raises(youtube.YouTubeError):
            await youtube.resolve("   ", "tester")
        assert calls == []

    async def test_download_error(self, monkeypatch):
        """yt-dlp download errors are wrapped."""
        use_extractor(monkeypatch, error=yt_dlp.utils.DownloadError("Video unavailable"))

        with pytest.raises(youtube.YouTubeError, match="Failed to resolve track"):
            await youtube.resolve("https://youtu.be/gone", "tester")

    async def test_extractor_bug_is_wrapped(self, monkeypatch):
        """Unexpected extractor exceptions are wrapped too."""
        use_extractor(monkeypatch, error=KeyError("videoDetails"))

        with pytest.raises(youtube.YouTubeError, match="Failed to resolve track") as excinfo:
            await youtube.resolve("some song", "tester")
        assert isinstance(excinfo.value.__cause__, KeyError)

    async def test_dns_error(self, monkeypatch):
        """DNS failures get their own message."""
        use_extractor(monkeypatch, error=yt_dlp.utils.DownloadError("getaddrinfo failed"))

        with pytest.raises(youtube.YouTubeError, match="DNS resolution failed"):
            await youtube.resolve("https://youtu.be/x", "tester")

    async def test_missing_stream_url(self, monkeypatch):
        """Info without a stream URL is rejected."""
        info = dict(VIDEO_INFO)
        del info["url"]
        use_extractor(monkeypatch, info)

        with pytest.raises(youtube.YouTubeError, match="No stream URL"):
            await youtube.resolve("https://youtu.be/x", "tester")


class TestCreateTrack:
    """Test building tracks from info dicts."""

    def test_source_url_from_id(self):
        """The watch URL is rebuilt from the video id."""
        track = youtube._create_track({"id": "abc", "url": "https://media/x"}, "tester")
        assert track.source_url == "https://www.youtube.com/watch?v=abc"
        assert track.title == "Unknown Title"
        assert track.duration is None

    def test_live_stream_has_no_duration(self):
        """Live streams have no duration."""
        info = dict(VIDEO_INFO, duration=None)
        assert youtube._create_track(info, "tester").duration is None
