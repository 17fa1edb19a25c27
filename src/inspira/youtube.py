import asyncio
import functools
import logging
import yt_dlp
from .tracks import Track

# Suppress noise
yt_dlp.utils.bug_reports_message = lambda *args, **kwargs: ''

logger = logging.getLogger(__name__)

YTDL_OPTIONS = {
    'format': 'bestaudio/best',
    'noplaylist': True,
    'quiet': True,
    'no_warnings': True,
    # Plain words become a YouTube search, first hit wins
    'default_search': 'ytsearch',
}

DNS_ERROR_KEYWORDS = ('dns', 'nodename', 'name resolution', 'getaddrinfo')


class YouTubeError(Exception):
    pass


def _extract(query: str) -> dict:
    with yt_dlp.YoutubeDL(YTDL_OPTIONS) as ydl:
        return ydl.extract_info(query, download=False)


async def resolve(query: str, requested_by: str) -> Track:
    """
    Resolves a URL or search phrase to a single playable Track.
    yt-dlp is blocking, so extraction runs in the default executor.
    """
    query = query.strip()
    if not query:
        raise YouTubeError("Empty query.")

    loop = asyncio.get_running_loop()
    try:
        data = await loop.run_in_executor(None, functools.partial(_extract, query))
    except yt_dlp.utils.DownloadError as e:
        if any(keyword in str(e).lower() for keyword in DNS_ERROR_KEYWORDS):
            logger.error("DNS resolution failed while resolving %r: %s", query, e)
            raise YouTubeError("DNS resolution failed - the track source is unreachable.") from e
        raise YouTubeError(f"Failed to resolve track: {e}") from e
    except Exception as e:
        # Extractor bugs surface unwrapped when a site changes
        logger.exception("Unexpected yt-dlp failure while resolving %r", query)
        raise YouTubeError(f"Failed to resolve track: {e}") from e

    if not data:
        raise YouTubeError("No information found for query.")

    # Searches come back as a one-entry playlist
    if 'entries' in data:
        entries = [entry for entry in data['entries'] if entry]
        if not entries:
            raise YouTubeError(f"No results for {query!r}.")
        data = entries[0]

    track = _create_track(data, requested_by)
    logger.info("Resolved %r to %s (%s)", query, track.title, track.source_url)
    return track


def _create_track(data: dict, requested_by: str) -> Track:
    """Build a Track from a yt-dlp info dict."""
    stream_url = data.get('url')
    if not stream_url:
        raise YouTubeError("No stream URL for this track.")

    source_url = data.get('webpage_url') or data.get('original_url')
    if not source_url and data.get('id'):
        source_url = f"https://www.youtube.com/watch?v={data['id']}"

    duration = data.get('duration')
    return Track(
        title=data.get('title') or 'Unknown Title',
        source_url=source_url or stream_url,
        stream_url=stream_url,
        requested_by=requested_by,
        duration=int(duration) if duration else None,
        thumbnail=data.get('thumbnail'),
    )
