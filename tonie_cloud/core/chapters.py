"""Finding and removing chapters on a Creative Tonie.

WHY: The service has no per-chapter delete. Removing a chapter means
sending the figurine's complete chapter list minus that chapter, so the
list arithmetic and its sanity checks live here, on top of the client.

HOW: find_chapters() filters by substring or regex. remove_chapter()
computes the remaining list, checks that exactly one element went away
and PATCHes the rest. remove_chapters() asks for confirmation first and
then removes the matches one after the other.

RULES:
- Chapter order is preserved in every list sent to the service
- A chapter that is absent (or present twice) is never "removed": no request
- Each removal starts from the list left by the previous one, so a batch
  never resurrects a chapter it already removed
- Read-modify-write without a version check: changes made to the same
  figurine from another device between read and write are lost
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Union

import httpx

from tonie_cloud.api.errors import AmbiguousChapter, ChapterNotFound, ServiceError
from tonie_cloud.api.models import Chapter, CreativeTonie, Household

if TYPE_CHECKING:
    from tonie_cloud.api.client import TonieClient
    from tonie_cloud.core.prompts import PromptProvider

logger = logging.getLogger(__name__)

Matcher = Union[str, re.Pattern]

# Per-chapter failures; anything else aborts a batch removal
_RECOVERABLE = (ServiceError, ChapterNotFound)


@dataclass
class RemovalReport:
    """Outcome of a confirmed batch removal."""

    confirmed: bool
    removed: list[Chapter] = field(default_factory=list)
    failed: list[tuple[Chapter, Exception]] = field(default_factory=list)


def find_chapters(tonie: CreativeTonie, matcher: Matcher) -> list[Chapter]:
    """Return the chapters whose title matches, in playback order.

    A ``str`` matches as a plain substring; a compiled pattern matches
    if ``pattern.search(title)`` finds anything.
    """
    if isinstance(matcher, re.Pattern):
        return [c for c in tonie.chapters if matcher.search(c.title)]
    return [c for c in tonie.chapters if matcher in c.title]


def remove_chapter(
    client: TonieClient,
    tonie: CreativeTonie,
    chapter: Chapter,
    household: Household | None = None,
) -> CreativeTonie:
    """Remove one chapter from ``tonie`` by rewriting its chapter list.

    Args:
        client: Authenticated client.
        tonie: The figurine as last read from the service.
        chapter: The chapter to drop, compared by full value.
        household: Household owning the figurine; defaults to the
            client's current household.

    Returns:
        A copy of ``tonie`` holding the remaining chapters.

    Raises:
        ChapterNotFound: ``chapter`` is not in ``tonie.chapters``.
        AmbiguousChapter: ``chapter`` occurs more than once.
    """
    occurrences = tonie.chapters.count(chapter)
    if occurrences == 0:
        raise ChapterNotFound(f"Chapter '{chapter.title}' not found on creative tonie '{tonie.name}'.")
    if occurrences > 1:
        raise AmbiguousChapter(
            f"Chapter '{chapter.title}' occurs {occurrences} times on creative tonie '{tonie.name}'."
        )

    remaining = list(tonie.chapters)
    remaining.remove(chapter)

    if household is None:
        household = client.current_household()

    logger.info("Deleting chapter '%s' from creative tonie '%s'.", chapter.title, tonie.name)
    client.replace_chapters(household, tonie, remaining)
    logger.info("Deletion successful.")
    return replace(tonie, chapters=remaining, chapters_present=len(remaining))


def describe_removal(chapters: list[Chapter]) -> str:
    lines = ["This would remove the following chapters:"]
    lines.extend(f"  - {c.title}" for c in chapters)
    return "\n".join(lines)


def remove_chapters(
    client: TonieClient,
    tonie: CreativeTonie,
    matcher: Matcher,
    prompt: PromptProvider,
    household: Household | None = None,
) -> RemovalReport:
    """Remove every chapter matching ``matcher`` after confirmation.

    WHY: Bulk cleanup ("remove all chapters called 'Test'") is the common
    case, and deleting audio is not undoable, so the user sees the list
    and has to agree first.

    HOW: find_chapters() → household lookup → prompt.confirm() →
    remove_chapter() per match, passing the updated figurine from one
    removal into the next.

    RULES:
    - No matches: nothing is asked, an empty unconfirmed report is returned
    - Declined: nothing is sent
    - ServiceError/ChapterNotFound on one chapter are recorded in
      ``failed`` and the remaining chapters are still attempted
    - Any other error (auth, household ambiguity, transport) is raised
      immediately
    """
    chapters = find_chapters(tonie, matcher)
    if not chapters:
        logger.info("No chapters on creative tonie '%s' match %r.", tonie.name, matcher)
        return RemovalReport(confirmed=False)

    # before confirm: an unresolvable household fails without asking
    if household is None:
        household = client.current_household()

    if not prompt.confirm(describe_removal(chapters), "remove"):
        logger.info("Not removed.")
        return RemovalReport(confirmed=False)

    report = RemovalReport(confirmed=True)
    current = tonie
    for chapter in chapters:
        try:
            current = remove_chapter(client, current, chapter, household=household)
        except _RECOVERABLE as e:
            logger.warning("Could not remove chapter '%s': %s", chapter.title, e)
            report.failed.append((chapter, e))
            continue
        except httpx.HTTPError:
            logger.error("Aborting removal after transport error on '%s'.", chapter.title)
            raise
        report.removed.append(chapter)
    return report
