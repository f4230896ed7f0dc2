"""Adapter: URL to local mp3 via yt-dlp and ffmpeg.

WHY: The upload workflow only needs a local audio file. Getting one from a
video page or podcast URL is delegated to yt-dlp (download + extract audio)
and, when a time range is wanted, ffmpeg (stream-copy trim). Keeping the
tool invocations here means the rest of the package only sees
"(url, start, end) -> path".

HOW: download_audio() is a context manager. It works inside a temporary
directory, yields the path of the finished mp3 and deletes the directory
on exit, so the caller must finish with the file inside the with-block.

RULES:
- Tool binaries come from config (TONIE_YTDLP_BIN / TONIE_FFMPEG_BIN)
- start/end are passed to ffmpeg verbatim (seconds or HH:MM:SS[.ms])
- Missing tool, non-zero exit or missing output raises AcquisitionFailed
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path
from typing import Optional

from tonie_cloud import config
from tonie_cloud.api.errors import AcquisitionFailed

logger = logging.getLogger(__name__)

AudioSource = Callable[[str, Optional[str], Optional[str]], AbstractContextManager[Path]]
"""Anything that turns (url, start, end) into a temporary local audio file."""


def _run(cmd: list[str], desc: str) -> None:
    """Run an external tool, raising AcquisitionFailed on any failure."""
    logger.debug("Running %s: %s", desc, " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise AcquisitionFailed(f"{desc} failed: {cmd[0]} is not installed") from e
    if result.returncode != 0:
        raise AcquisitionFailed(
            f"{desc} failed ({cmd[0]} exited with {result.returncode})\n"
            f"stderr: {result.stderr[-2000:]}"
        )


def trim_command(source: Path, target: Path, start: str | None, end: str | None) -> list[str]:
    cmd = [config.FFMPEG_BIN, "-i", str(source)]
    if start is not None:
        cmd += ["-ss", str(start)]
    if end is not None:
        cmd += ["-to", str(end)]
    cmd += ["-c", "copy", str(target)]
    return cmd


@contextmanager
def download_audio(url: str, start: str | None = None, end: str | None = None) -> Iterator[Path]:
    """Download ``url`` as mp3, optionally trimmed to [start, end].

    Yields:
        Path to the mp3, valid until the with-block exits.
    """
    with tempfile.TemporaryDirectory(prefix="tonie-") as tmp:
        trunk = Path(tmp) / "download"
        mp3 = trunk.with_suffix(".mp3")

        logger.info("Downloading audio from %s", url)
        _run(
            [config.YTDLP_BIN, "-x", "--audio-format", "mp3", "-o", f"{trunk}.%(ext)s", url],
            "Download",
        )

        if start is not None or end is not None:
            untrimmed = Path(tmp) / "download_temp.mp3"
            if not mp3.is_file():
                raise AcquisitionFailed(f"Download of {url} produced no mp3 file")
            mp3.rename(untrimmed)
            logger.info("Trimming audio (from=%s, to=%s)", start, end)
            _run(trim_command(untrimmed, mp3, start, end), "Trim")
            untrimmed.unlink()

        if not mp3.is_file():
            raise AcquisitionFailed(f"Download of {url} produced no mp3 file")
        yield mp3
