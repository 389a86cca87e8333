"""
Operator choices during the cherry-pick procedure.

Interactive runs read a single keystroke from the terminal; unattended runs
use the automatic defaults. Both are injectable into the syncer.
"""

import sys
from enum import Enum
from typing import Protocol

import click
from rich.console import Console
from rich.markup import escape


class Action(str, Enum):
    """What to do with a commit missing downstream."""

    CHERRY_PICK = "c"
    SKIP = "s"
    DEFER = "l"
    QUIT = "q"


class ConflictAction(str, Enum):
    """What to do when a cherry-pick conflicts."""

    ABORT_SKIP = "s"
    ABORT_DEFER = "l"
    MANUAL_FIX = "q"


ACTION_QUESTION = (
    "What do you want to do? c) cherry-pick this commit, s) skip this commit definitely, "
    "l) leave this commit for later, q) quit process"
)
CONFLICT_QUESTION = (
    "What do you want to do? s) skip this commit definitely, "
    "l) leave this commit for later, q) quit process"
)


class Prompter(Protocol):
    def choose_action(self, commit: str) -> Action: ...

    def choose_conflict_action(self, commit: str) -> ConflictAction: ...


class AutomaticPrompter:
    """Unattended choices: always cherry-pick, stop on conflicts."""

    def choose_action(self, commit: str) -> Action:
        return Action.CHERRY_PICK

    def choose_conflict_action(self, commit: str) -> ConflictAction:
        return ConflictAction.MANUAL_FIX


class TerminalPrompter:
    """
    Ask the operator with a single keystroke.

    Unknown keys are asked again. When stdin is not a terminal nobody can
    answer, so the commit is left for a later run instead of blocking.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def _is_terminal(self) -> bool:
        return sys.stdin is not None and sys.stdin.isatty()

    def _read_key(self, question: str, choices: type[Enum]) -> Enum:
        valid = {choice.value: choice for choice in choices}
        while True:
            self.console.print(question, markup=False, highlight=False)
            key = click.getchar().lower()
            self.console.print()
            if key in valid:
                return valid[key]
            self.console.print(f"[yellow]Unknown choice {escape(repr(key))}[/yellow]")

    def choose_action(self, commit: str) -> Action:
        if not self._is_terminal():
            self.console.print(
                f"[yellow]No terminal to ask about {commit}, leaving it for later[/yellow]"
            )
            return Action.DEFER
        return self._read_key(ACTION_QUESTION, Action)

    def choose_conflict_action(self, commit: str) -> ConflictAction:
        if not self._is_terminal():
            self.console.print(
                f"[yellow]No terminal to ask about {commit}, leaving it for later[/yellow]"
            )
            return ConflictAction.ABORT_DEFER
        return self._read_key(CONFLICT_QUESTION, ConflictAction)
