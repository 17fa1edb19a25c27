from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class Track:
    title: str
    source_url: str
    stream_url: str
    requested_by: str
    duration: Optional[int] = None
    thumbnail: Optional[str] = None  # Image URL shown in embeds


@dataclass(frozen=True)
class TrackEvent:
    """Emitted by a TrackQueue when its head stops playing."""
    track: Track
    error: Optional[Exception] = None
