"""Tonie cloud request and response dataclasses.

WHY: The Tonie API returns camel-case JSON for households, Creative Tonies
and their chapters. Typed dataclasses make these structures explicit and
let the chapter maintenance code compare chapters by value.

HOW: Each dataclass maps one API JSON object. from_dict() parses a raw
response dict; to_dict() produces the payload for objects that are sent
back to the service. Required fields are read with data[...] so a missing
one raises KeyError (the client reports it as DecodeError); optional fields
fall back to neutral defaults.

RULES:
- Python attribute names are snake_case, wire names stay camel-case
- Chapter and Household are frozen; chapter lists are replaced, never mutated
- Chapter equality is full field equality (used by chapter removal)
- Unknown fields in responses are ignored
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _list_of(data: dict, key: str) -> list:
    value = data[key]
    if not isinstance(value, list):
        raise TypeError(f"expected a list for {key!r}, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Household:
    """A household as returned by GET /v2/households."""

    id: str
    name: str
    image: str | None = None
    foreign_creative_tonie_content: bool = False
    access: str | None = None
    can_leave: bool = False
    owner_name: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Household:
        return cls(
            id=data["id"],
            name=data["name"],
            image=data.get("image"),
            foreign_creative_tonie_content=data.get("foreignCreativeTonieContent", False),
            access=data.get("access"),
            can_leave=data.get("canLeave", False),
            owner_name=data.get("ownerName"),
        )


@dataclass(frozen=True)
class Chapter:
    """One audio track on a Creative Tonie.

    WHY: Chapter removal sends the whole remaining list back to the service,
    so a chapter must round-trip exactly: every field read from the API is
    written back unchanged by to_dict().

    RULES:
    - id, title, file and seconds are required in responses
    - file is an opaque storage reference; never interpret it
    """

    id: str
    title: str
    file: str
    seconds: float
    transcoding: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> Chapter:
        return cls(
            id=data["id"],
            title=data["title"],
            file=data["file"],
            seconds=float(data["seconds"]),
            transcoding=data.get("transcoding", False),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "file": self.file,
            "seconds": self.seconds,
            "transcoding": self.transcoding,
        }

    def __str__(self) -> str:
        return f'Chapter(title: "{self.title}", seconds: {self.seconds})'


@dataclass(frozen=True)
class DeletedChapter:
    title: str
    seconds: float

    @classmethod
    def from_dict(cls, data: dict) -> DeletedChapter:
        return cls(title=data["title"], seconds=float(data["seconds"]))


@dataclass(frozen=True)
class TranscodingError:
    """A transcoding failure reported on a Creative Tonie."""

    reason: str
    deleted_chapters: list[DeletedChapter] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> TranscodingError:
        return cls(
            reason=data["reason"],
            deleted_chapters=[DeletedChapter.from_dict(d) for d in _list_of(data, "deletedChapters")],
        )


@dataclass
class CreativeTonie:
    """A Creative Tonie figurine and its ordered chapter list.

    WHY: The chapter list order is the playback order, and it is the list
    submitted when chapters are rewritten. The remaining-capacity counters
    are reported by the service and shown to the user.

    HOW: Parsed from one element of GET /v2/households/{id}/creativetonies.

    RULES:
    - id, householdId, name and chapters are required
    - Counters and flags default to zero/False when the service omits them
    """

    id: str
    household_id: str
    name: str
    chapters: list[Chapter] = field(default_factory=list)
    live: bool = False
    private: bool = False
    image_url: str | None = None
    transcoding_errors: list[TranscodingError] = field(default_factory=list)
    seconds_remaining: float = 0.0
    seconds_present: float = 0.0
    chapters_remaining: int = 0
    chapters_present: int = 0
    transcoding: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> CreativeTonie:
        return cls(
            id=data["id"],
            household_id=data["householdId"],
            name=data["name"],
            chapters=[Chapter.from_dict(c) for c in _list_of(data, "chapters")],
            live=data.get("live", False),
            private=data.get("private", False),
            image_url=data.get("imageUrl"),
            transcoding_errors=[
                TranscodingError.from_dict(e) for e in data.get("transcodingErrors") or []
            ],
            seconds_remaining=float(data.get("secondsRemaining", 0.0)),
            seconds_present=float(data.get("secondsPresent", 0.0)),
            chapters_remaining=int(data.get("chaptersRemaining", 0)),
            chapters_present=int(data.get("chaptersPresent", 0)),
            transcoding=data.get("transcoding", False),
        )

    def __str__(self) -> str:
        return f'CreativeTonie(name: "{self.name}")'


@dataclass(frozen=True)
class UploadSlot:
    """A one-time pre-signed upload target returned by POST /v2/file.

    The service answers with ``{"fileId": ..., "request": {"url": ...,
    "fields": {...}}}``; the fields must be posted verbatim alongside the
    file part.
    """

    file_id: str
    upload_url: str
    upload_fields: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> UploadSlot:
        request = data["request"]
        fields = request.get("fields") or {}
        if not isinstance(fields, dict):
            raise TypeError(f"expected an object for 'fields', got {type(fields).__name__}")
        return cls(
            file_id=data["fileId"],
            upload_url=request["url"],
            upload_fields={str(k): str(v) for k, v in fields.items()},
        )


@dataclass(frozen=True)
class AddChapterRequest:
    """Payload registering an uploaded file as a new chapter."""

    title: str
    file: str
    origin: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "file": self.file, "origin": self.origin}
