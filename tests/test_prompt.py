"""Tests for operator prompts."""

from io import StringIO

import pytest
from rich.console import Console

from upstream_sync.prompt import (
    ACTION_QUESTION,
    CONFLICT_QUESTION,
    Action,
    AutomaticPrompter,
    ConflictAction,
    TerminalPrompter,
)


class FakeStdin:
    def __init__(self, tty: bool):
        self.tty = tty

    def isatty(self) -> bool:
        return self.tty


@pytest.fixture
def output():
    return StringIO()


@pytest.fixture
def prompter(output):
    return TerminalPrompter(Console(file=output, width=200))


@pytest.fixture
def keys(monkeypatch):
    """Feed keystrokes to click.getchar on a terminal stdin."""
    pressed = []

    def _getchar(echo=False):
        return pressed.pop(0)

    monkeypatch.setattr("sys.stdin", FakeStdin(tty=True))
    monkeypatch.setattr("click.getchar", _getchar)
    return pressed


class TestTerminalPrompter:
    """Tests for TerminalPrompter."""

    @pytest.mark.parametrize(
        "key, action",
        [
            ("c", Action.CHERRY_PICK),
            ("s", Action.SKIP),
            ("l", Action.DEFER),
            ("q", Action.QUIT),
            ("C", Action.CHERRY_PICK),
        ],
    )
    def test_action_keys(self, prompter, keys, output, key, action):
        keys.append(key)
        assert prompter.choose_action("c1") is action
        assert ACTION_QUESTION in output.getvalue()

    @pytest.mark.parametrize(
        "key, action",
        [
            ("s", ConflictAction.ABORT_SKIP),
            ("l", ConflictAction.ABORT_DEFER),
            ("q", ConflictAction.MANUAL_FIX),
        ],
    )
    def test_conflict_keys(self, prompter, keys, output, key, action):
        keys.append(key)
        assert prompter.choose_conflict_action("c1") is action
        assert CONFLICT_QUESTION in output.getvalue()

    def test_invalid_key_asks_again(self, prompter, keys, output):
        """Test that an unknown key repeats the question."""
        keys.extend(["x", "[", "s"])

        assert prompter.choose_action("c1") is Action.SKIP
        assert keys == []
        text = output.getvalue()
        assert text.count(ACTION_QUESTION) == 3
        assert "Unknown choice 'x'" in text
        assert "Unknown choice '['" in text

    def test_cherry_pick_is_not_a_conflict_choice(self, prompter, keys):
        keys.extend(["c", "l"])
        assert prompter.choose_conflict_action("c1") is ConflictAction.ABORT_DEFER

    @pytest.mark.parametrize("stdin", [FakeStdin(tty=False), None])
    def test_no_terminal_leaves_commit_for_later(self, prompter, output, monkeypatch, stdin):
        """Test the safe choices when nobody can answer."""

        def _getchar(echo=False):
            raise AssertionError("must not read a key without a terminal")

        monkeypatch.setattr("sys.stdin", stdin)
        monkeypatch.setattr("click.getchar", _getchar)

        assert prompter.choose_action("c1") is Action.DEFER
        assert prompter.choose_conflict_action("c1") is ConflictAction.ABORT_DEFER
        assert "No terminal to ask about c1" in output.getvalue()


class TestAutomaticPrompter:
    def test_defaults(self):
        prompter = AutomaticPrompter()
        assert prompter.choose_action("c1") is Action.CHERRY_PICK
        assert prompter.choose_conflict_action("c1") is ConflictAction.MANUAL_FIX
