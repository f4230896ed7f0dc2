"""Prompt providers for the interactive entry points.

WHY: Two operations talk to a human: logging in without stored credentials
and confirming chapter removal. Routing that through a small interface keeps
the client and the chapter maintenance code testable headlessly; tests pass
a provider with canned answers.

HOW: PromptProvider is an ABC with ask() and confirm(). ConsolePrompt is
the terminal implementation used by the CLI.

RULES:
- ask() returns the line typed by the user without the trailing newline
- Passwords are read like any other line (not masked)
- confirm() is affirmative only for an exact "y"
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class PromptProvider(ABC):
    """Source of answers for interactive questions."""

    @abstractmethod
    def ask(self, label: str) -> str:
        """Show ``label`` and return one line of input."""

    @abstractmethod
    def confirm(self, message: str, action: str) -> bool:
        """Show ``message`` and return True if the user agrees to ``action``."""


class ConsolePrompt(PromptProvider):
    """Reads answers from stdin, writes questions to stdout."""

    def ask(self, label: str) -> str:
        return input(label)

    def confirm(self, message: str, action: str) -> bool:
        print(message, flush=True)
        return input(f"Type y to {action}: ") == "y"
