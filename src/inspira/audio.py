import discord
import logging
import shutil
import os
import platform

from .tracks import Track

# Streams are remote; let FFmpeg reconnect on dropped HTTP connections.
FFMPEG_BEFORE_OPTIONS = '-nostdin -reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5'
FFMPEG_OPTIONS = '-vn'

BIN_DIR_NAME = "bin"


class AudioError(Exception):
    """Raised when an audio source cannot be created."""
    pass


def get_base_path() -> str:
    """Returns the project root directory."""
    # src/inspira/audio.py -> src/inspira -> src -> root
    return os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def get_ffmpeg_executable() -> str:
    """Finds the ffmpeg executable: project bin/, then PATH, then Homebrew paths."""
    name = "ffmpeg.exe" if platform.system() == "Windows" else "ffmpeg"
    local_bin = os.path.join(get_base_path(), BIN_DIR_NAME, name)
    if os.path.exists(local_bin) and os.access(local_bin, os.X_OK):
        return local_bin

    path = shutil.which("ffmpeg")
    if path:
        return path

    for candidate in ("/opt/homebrew/bin/ffmpeg", "/usr/local/bin/ffmpeg"):
        if os.path.exists(candidate):
            return candidate
    return "ffmpeg"


def _opus_candidates() -> list[str]:
    system = platform.system()
    if system == "Windows":
        names = ["libopus-0.dll", "libopus.dll"]
        return [os.path.join(get_base_path(), BIN_DIR_NAME, n) for n in names] + names
    if system == "Darwin":
        return [
            os.path.join(get_base_path(), BIN_DIR_NAME, "libopus.dylib"),
            "/opt/homebrew/lib/libopus.dylib",
            "/usr/local/lib/libopus.dylib",
        ]
    return [
        os.path.join(get_base_path(), BIN_DIR_NAME, "libopus.so.0"),
        "libopus.so.0",
        "/usr/lib/libopus.so.0",
        "/usr/lib64/libopus.so.0",
        "/usr/local/lib/libopus.so.0",
    ]


def load_opus_lib() -> bool:
    """Loads libopus for voice if discord.py did not find it. Returns True when loaded."""
    if discord.opus.is_loaded():
        return True

    for path in _opus_candidates():
        try:
            discord.opus.load_opus(path)
            logging.info("Loaded opus from %s", path)
            return True
        except OSError:
            continue

    # discord.py raises OpusNotLoaded on the first voice connect
    logging.warning("libopus could not be loaded; voice playback will fail")
    return False


def create_stream_source(track: Track) -> discord.AudioSource:
    """Creates an FFmpeg source reading the track's remote stream URL."""
    ffmpeg_path = get_ffmpeg_executable()
    if ffmpeg_path == "ffmpeg" and not shutil.which("ffmpeg"):
        raise AudioError("FFmpeg executable not found. Please install ffmpeg.")

    try:
        return discord.FFmpegPCMAudio(
            track.stream_url,
            executable=ffmpeg_path,
            before_options=FFMPEG_BEFORE_OPTIONS,
            options=FFMPEG_OPTIONS,
        )
    except discord.ClientException as e:
        raise AudioError(f"Discord Client Exception: {e}") from e
