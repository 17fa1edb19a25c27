"""User-facing strings, looked up by dotted key."""

import logging

DEFAULT_LOCALE = "en"

_EN = {
    "errors.guild_only": "This command only works in a server.",
    "errors.user_not_in_voice": "You have to be in a voice channel to execute commands!",
    "errors.not_in_voice": "Not in a voice channel",
    "errors.connect_failed": "Failed to join voice channel: {error}",
    "errors.leave_failed": "Failed: {error}",
    "errors.source_failed": "Error sourcing track: {error}",
    "inspire.failed": "Something went wrong while contacting inspirobot",
    "voice.connected": "Joined {channel}",
    "voice.moved": "Moved to {channel}",
    "voice.already_connected": "Already in {channel}",
    "voice.disconnected": "Bye 👋",
    "playback.skipped": "Skipped {title}",
    "playback.failed": "Could not play {title}: {error}",
    "embed.queued_title": "New song queued up",
    "embed.now_playing_title": "Now playing",
    "embed.empty_queue_title": "There are no songs in the queue",
    "embed.queue_title": "Queue",
    "embed.duration": "Duration",
    "embed.position": "Position in queue",
    "embed.time_until": "Estimated time until song is played",
    "embed.time_remaining": "Time remaining",
    "embed.requested_by": "Requested by",
    "embed.live": "Live",
    "embed.unknown": "Unknown",
    "queue.now_playing": "**Now playing:** {track} `{remaining} left`",
    "queue.up_next": "**Up next:**",
    "queue.more": "...and {count} more",
    "queue.footer": "{count} track(s) in queue",
}

LOCALES = {
    "en": _EN,
}

def t(key: str, locale: str = DEFAULT_LOCALE, **fmt: object) -> str:
    table = LOCALES.get(locale, _EN)
    template = table.get(key) or _EN.get(key)
    if template is None:
        logging.warning("Missing translation key: %s", key)
        return key
    if not fmt:
        return template
    return template.format(**fmt)
