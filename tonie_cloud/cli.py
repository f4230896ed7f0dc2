"""Command-line interface for the Tonie cloud client.

WHY: Filling a Creative Tonie is usually a one-off task: upload a file,
grab an episode from a URL, or clear out old chapters. The CLI exposes
those workflows without writing any Python.

HOW: argparse with one subcommand per workflow. main() configures logging,
opens a TonieClient, logs in (flags, then TONIE_USERNAME/TONIE_PASSWORD,
then an interactive prompt), optionally selects a household and dispatches
to the subcommand handler. Status messages go to stderr, listings to stdout.

RULES:
- Subcommands: me, households, tonies, add, download, find, remove
- TONIE arguments accept a Creative Tonie id or its exact name
- --household accepts a household id or exact name; without it the
  household is chosen automatically only if the user has exactly one
- remove asks for confirmation unless --yes is given
- Exit code 1 on any TonieError or network failure, 130 on Ctrl-C
"""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from tonie_cloud import __version__
from tonie_cloud.api.client import TonieClient
from tonie_cloud.api.errors import TonieError
from tonie_cloud.api.models import CreativeTonie, Household
from tonie_cloud.config import DEFAULT_ORIGIN
from tonie_cloud.core.chapters import Matcher, find_chapters, remove_chapters
from tonie_cloud.core.prompts import ConsolePrompt
from tonie_cloud.core.transfer import download_and_add_chapter


class CLIError(TonieError):
    """Raised for invalid command-line input (unknown tonie, bad regex)."""


class _AssumeYes(ConsolePrompt):
    """Console prompt that shows the confirmation text but never waits."""

    def confirm(self, message: str, action: str) -> bool:
        print(message, flush=True)
        return True


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _format_seconds(seconds: float) -> str:
    total = int(round(seconds))
    return "{}:{:02d}".format(total // 60, total % 60)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def resolve_household(households: List[Household], key: str) -> Household:
    for household in households:
        if household.id == key or household.name == key:
            return household
    raise CLIError("Unknown household '{}'. Available: {}".format(
        key, ", ".join(h.name for h in households) or "none"))


def resolve_tonie(tonies: List[CreativeTonie], key: str) -> CreativeTonie:
    """Find a Creative Tonie by id, falling back to its exact name."""
    for tonie in tonies:
        if tonie.id == key:
            return tonie
    named = [t for t in tonies if t.name == key]
    if len(named) == 1:
        return named[0]
    if len(named) > 1:
        raise CLIError("Several creative tonies are named '{}'; use the id instead.".format(key))
    raise CLIError("Unknown creative tonie '{}'. Available: {}".format(
        key, ", ".join(t.name for t in tonies) or "none"))


def build_matcher(query: str, regex: bool) -> Matcher:
    if not regex:
        return query
    try:
        return re.compile(query)
    except re.error as e:
        raise CLIError("Invalid regular expression '{}': {}".format(query, e)) from e


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


def _cmd_me(client: TonieClient, args: argparse.Namespace) -> None:
    print(json.dumps(client.me(), indent=2, ensure_ascii=False))


def _cmd_households(client: TonieClient, args: argparse.Namespace) -> None:
    for household in client.households():
        print("{}\t{}\t{}".format(household.id, household.name, household.access or ""))


def _cmd_tonies(client: TonieClient, args: argparse.Namespace) -> None:
    for tonie in client.creativetonies():
        print("{}\t{}\t{} chapters, {} remaining".format(
            tonie.id,
            tonie.name,
            len(tonie.chapters),
            _format_seconds(tonie.seconds_remaining),
        ))
        for index, chapter in enumerate(tonie.chapters, start=1):
            print("  {:2d}. {} ({})".format(index, chapter.title, _format_seconds(chapter.seconds)))
        for error in tonie.transcoding_errors:
            print("  ! transcoding error: {}".format(error.reason))


def _cmd_add(client: TonieClient, args: argparse.Namespace) -> None:
    tonie = resolve_tonie(client.creativetonies(), args.tonie)
    title = args.title or Path(args.file).stem
    client.add_chapter(tonie, args.file, title, origin=args.origin)
    _status("Done! Added '{}' to '{}'.".format(title, tonie.name))


def _cmd_download(client: TonieClient, args: argparse.Namespace) -> None:
    tonie = resolve_tonie(client.creativetonies(), args.tonie)
    download_and_add_chapter(
        client,
        tonie,
        args.url,
        args.title,
        start=args.start,
        end=args.end,
        origin=args.origin,
    )
    _status("Done! Added '{}' to '{}'.".format(args.title, tonie.name))


def _cmd_find(client: TonieClient, args: argparse.Namespace) -> None:
    tonie = resolve_tonie(client.creativetonies(), args.tonie)
    for chapter in find_chapters(tonie, build_matcher(args.query, args.regex)):
        print("{}\t{}\t{}".format(chapter.id, chapter.title, _format_seconds(chapter.seconds)))


def _cmd_remove(client: TonieClient, args: argparse.Namespace) -> None:
    tonie = resolve_tonie(client.creativetonies(), args.tonie)
    matcher = build_matcher(args.query, args.regex)
    prompt = _AssumeYes() if args.yes else ConsolePrompt()

    report = remove_chapters(client, tonie, matcher, prompt)
    if not report.confirmed:
        _status("Nothing removed.")
        return

    _status("Removed {} chapter(s).".format(len(report.removed)))
    for chapter, error in report.failed:
        _status("  Failed: {} ({})".format(chapter.title, error))
    if report.failed:
        sys.exit(1)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Kept separate from main() so tests can parse arguments without
    touching the network.
    """
    parser = argparse.ArgumentParser(
        prog="tonie-cloud",
        description="Manage the chapters of Creative Tonies in the Tonies cloud.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    parser.add_argument("--username", default=None, help="Tonies account e-mail (default: TONIE_USERNAME or prompt).")
    parser.add_argument("--password", default=None, help="Tonies account password (default: TONIE_PASSWORD or prompt).")
    parser.add_argument("--household", default=None, help="Household id or name to work in.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging.")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("me", help="Print the account profile as JSON.")
    p.set_defaults(func=_cmd_me)

    p = sub.add_parser("households", help="List households.")
    p.set_defaults(func=_cmd_households)

    p = sub.add_parser("tonies", help="List creative tonies and their chapters.")
    p.set_defaults(func=_cmd_tonies)

    p = sub.add_parser("add", help="Upload a local audio file as a new chapter.")
    p.add_argument("tonie", help="Creative tonie id or name.")
    p.add_argument("file", help="Path to the audio file.")
    p.add_argument("--title", default=None, help="Chapter title (default: file name without extension).")
    p.add_argument("--origin", default=DEFAULT_ORIGIN, help="Origin tag (default: %(default)s).")
    p.set_defaults(func=_cmd_add)

    p = sub.add_parser("download", help="Download audio from a URL and add it as a chapter.")
    p.add_argument("tonie", help="Creative tonie id or name.")
    p.add_argument("url", help="Page or media URL understood by yt-dlp.")
    p.add_argument("--title", required=True, help="Chapter title.")
    p.add_argument("--from", dest="start", default=None, help="Trim start (seconds or HH:MM:SS).")
    p.add_argument("--to", dest="end", default=None, help="Trim end (seconds or HH:MM:SS).")
    p.add_argument("--origin", default=DEFAULT_ORIGIN, help="Origin tag (default: %(default)s).")
    p.set_defaults(func=_cmd_download)

    for name, help_text, handler in (
        ("find", "List chapters whose title matches.", _cmd_find),
        ("remove", "Remove chapters whose title matches.", _cmd_remove),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("tonie", help="Creative tonie id or name.")
        p.add_argument("query", help="Substring (or regular expression with --regex) to match titles.")
        p.add_argument("--regex", action="store_true", help="Treat QUERY as a regular expression.")
        if name == "remove":
            p.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation.")
        p.set_defaults(func=handler)

    return parser


def main(argv: Optional[List[str]] = None, client: Optional[TonieClient] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - An explicit client (tests) replaces the default TonieClient()
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        with client or TonieClient() as active:
            active.login(args.username, args.password)
            if args.household:
                active.select_household(resolve_household(active.households(), args.household))
            args.func(active, args)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except TonieError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)
    except httpx.HTTPError as e:
        print("Error: Network error: {}".format(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
