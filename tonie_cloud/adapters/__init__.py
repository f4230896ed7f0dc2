"""Adapters for external tools.

WHY: Turning a URL into a local audio file needs yt-dlp and ffmpeg. Those
invocations are isolated here so the core only depends on the AudioSource
shape, not on tool names or flags.

RULES:
- Each adapter lives in its own module under this package
- Tool failures surface as AcquisitionFailed
"""

from tonie_cloud.adapters.media import AudioSource, download_audio

__all__ = ["AudioSource", "download_audio"]
