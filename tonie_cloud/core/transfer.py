"""Download audio from a URL and add it to a Creative Tonie in one go."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tonie_cloud.adapters.media import AudioSource, download_audio
from tonie_cloud.api.models import CreativeTonie
from tonie_cloud.config import DEFAULT_ORIGIN

if TYPE_CHECKING:
    from tonie_cloud.api.client import TonieClient


def download_and_add_chapter(
    client: TonieClient,
    tonie: CreativeTonie,
    url: str,
    title: str,
    start: str | None = None,
    end: str | None = None,
    origin: str = DEFAULT_ORIGIN,
    source: AudioSource = download_audio,
) -> None:
    """Fetch ``url`` through ``source`` and upload the result as a chapter.

    The downloaded file only exists inside the ``source`` context, so the
    whole upload workflow runs there. AcquisitionFailed from ``source`` and
    any upload error propagate unchanged.
    """
    with source(url, start, end) as path:
        client.add_chapter(tonie, path, title, origin=origin)
