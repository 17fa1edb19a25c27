"""
Message payloads for track and queue state.

Every function here is pure: it takes metadata and timings and returns a
Reply that handlers and the notifier hand to discord.py unchanged.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import discord

from .i18n import t
from .tracks import Track

EMBED_COLOR = 0xA877C8
EMPTY_QUEUE_COLOR = 0xED4245
DEFAULT_THUMBNAIL = "https://images.pexels.com/photos/11733110/pexels-photo-11733110.jpeg"

QUEUE_PREVIEW_LIMIT = 10
TITLE_MAX_LENGTH = 80
DESCRIPTION_MAX_LENGTH = 4000


@dataclass
class Reply:
    content: Optional[str] = None
    embed: Optional[discord.Embed] = None
    ephemeral: bool = False

    def as_channel_kwargs(self) -> dict[str, object]:
        kwargs: dict[str, object] = {}
        if self.content is not None:
            kwargs["content"] = self.content
        if self.embed is not None:
            kwargs["embed"] = self.embed
        return kwargs

    def as_kwargs(self) -> dict[str, object]:
        """Keyword arguments for an interaction response or followup."""
        kwargs = self.as_channel_kwargs()
        kwargs["ephemeral"] = self.ephemeral
        return kwargs


def format_duration(seconds: Optional[float]) -> str:
    """Format seconds as MM:SS, or HH:MM:SS from one hour up."""
    if seconds is None:
        return t("embed.live")
    total = max(int(seconds), 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def remaining_seconds(track: Track, elapsed: float) -> Optional[float]:
    if track.duration is None:
        return None
    return max(track.duration - elapsed, 0.0)


def bold(text: str) -> str:
    return f"**{text}**"


def hyperlink(text: str, url: str) -> str:
    return f"[{text}]({url})"


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _track_link(track: Track) -> str:
    # Square brackets in titles would end the markdown link early
    title = truncate(track.title, TITLE_MAX_LENGTH).replace("[", "(").replace("]", ")")
    return hyperlink(title, track.source_url)


def _track_embed(track: Track, title: Optional[str] = None) -> discord.Embed:
    embed = discord.Embed(
        title=title,
        description=bold(_track_link(track)),
        color=EMBED_COLOR,
    )
    embed.set_thumbnail(url=track.thumbnail or DEFAULT_THUMBNAIL)
    return embed


def queued_up(track: Track, position: int, seconds_until: Optional[float]) -> Reply:
    embed = _track_embed(track, t("embed.queued_title"))
    embed.add_field(name=t("embed.duration"), value=format_duration(track.duration), inline=False)
    embed.add_field(name=t("embed.position"), value=str(position), inline=False)
    embed.add_field(
        name=t("embed.time_until"),
        value=format_duration(seconds_until) if seconds_until is not None else t("embed.unknown"),
        inline=False,
    )
    return Reply(embed=embed)


def now_playing(track: Track, elapsed: float) -> Reply:
    embed = _track_embed(track, t("embed.now_playing_title"))
    embed.add_field(
        name=t("embed.time_remaining"),
        value=format_duration(remaining_seconds(track, elapsed)),
        inline=False,
    )
    embed.add_field(name=t("embed.requested_by"), value=track.requested_by, inline=False)
    return Reply(embed=embed)


def empty_queue() -> Reply:
    return Reply(embed=discord.Embed(title=t("embed.empty_queue_title"), color=EMPTY_QUEUE_COLOR))


def queue_listing(tracks: Sequence[Track], elapsed: float) -> Reply:
    """Current track plus a preview of what comes next."""
    if not tracks:
        return empty_queue()

    current, upcoming = tracks[0], tracks[1:]
    lines = [
        t(
            "queue.now_playing",
            track=_track_link(current),
            remaining=format_duration(remaining_seconds(current, elapsed)),
        )
    ]
    if upcoming:
        lines.append("")
        lines.append(t("queue.up_next"))
        for i, track in enumerate(upcoming[:QUEUE_PREVIEW_LIMIT], 1):
            lines.append(f"{i}. {_track_link(track)} `{format_duration(track.duration)}`")
        if len(upcoming) > QUEUE_PREVIEW_LIMIT:
            lines.append(t("queue.more", count=len(upcoming) - QUEUE_PREVIEW_LIMIT))

    embed = discord.Embed(
        title=t("embed.queue_title"),
        description=truncate("\n".join(lines), DESCRIPTION_MAX_LENGTH),
        color=EMBED_COLOR,
    )
    embed.set_thumbnail(url=current.thumbnail or DEFAULT_THUMBNAIL)
    embed.set_footer(text=t("queue.footer", count=len(tracks)))
    return Reply(embed=embed)


def inspiration(image_url: str) -> Reply:
    embed = discord.Embed(color=EMBED_COLOR)
    embed.set_image(url=image_url)
    return Reply(embed=embed)


def notice(content: str, *, ephemeral: bool = False) -> Reply:
    return Reply(content=content, ephemeral=ephemeral)
