"""Unit tests for the task title quality gate."""

import random

import pytest

from planner.core import validation
from planner.core.validation import get_task_title_error, is_valid_task_title, validate_task_title


VOWEL_FREE_ALPHABET = "bcdfghjklmnpqrstvwxyzBCDFGHJKLMNPQRSTVWXYZ0123456789 -"


def _vowel_free_titles(count: int = 40, seed: int = 7) -> list[str]:
    rng = random.Random(seed)
    titles = ["xqz", "bcd fgh", "Mr Smth", "TV shw 42"]
    titles += ["".join(rng.choice(VOWEL_FREE_ALPHABET) for _ in range(rng.randint(1, 30))) for _ in range(count)]
    return titles


@pytest.mark.unit
class TestAcceptedTitles:
    """Titles that pass the gate."""

    @pytest.mark.parametrize(
        "title",
        [
            "Study Chapter 3",
            "Finish homework",
            "Go home",
            "Email professor about the lab",
            "  Study Chapter 3  ",
            "laundry",
            "Meditation",
            "Groceries",
            "Homework",
        ],
    )
    def test_valid_titles(self, title):
        """Realistic task titles are accepted."""
        result = validate_task_title(title)

        assert result.is_valid is True
        assert result.error is None

    def test_action_verb_matches_inside_words(self):
        """Verbs are matched as substrings, so 'Rebuild' counts as 'build'."""
        assert is_valid_task_title("Rebuild X") is True


@pytest.mark.unit
class TestRejectedTitles:
    """Each rule in order, with the reason it reports."""

    @pytest.mark.parametrize(
        ("title", "error"),
        [
            ("", validation.EMPTY_TITLE),
            ("     ", validation.EMPTY_TITLE),
            ("a", validation.TOO_SHORT),
            ("x" * 101, validation.TOO_LONG),
            ("12345", validation.NO_LETTER),
            ("aaaa task", validation.REPEATED_CHARACTERS),
            ("Study!!!! now", validation.REPEATED_CHARACTERS),
            ("qwerty", validation.KEYBOARD_PATTERN),
            ("asdf", validation.KEYBOARD_PATTERN),
            ("asdf homework", validation.KEYBOARD_PATTERN),
            ("123456 plan", validation.KEYBOARD_PATTERN),
            ("abcde review", validation.KEYBOARD_PATTERN),
            ("bcd fgh", validation.NO_VOWEL),
            ("xqz", validation.NO_VOWEL),
            ("rhythms test", validation.EXCESSIVE_CONSONANTS),
            ("a b c", validation.NO_PROPER_WORDS),
            ("hi", validation.SINGLE_WORD_TOO_SHORT),
            ("supercalifragilistic", validation.SINGLE_WORD_TOO_LONG),
            ("Cookkkie", validation.SINGLE_WORD_REPEATED),
            ("Trzmkastrzm", validation.SINGLE_WORD_LOW_VOWELS),
        ],
    )
    def test_rejection_reason(self, title, error):
        """The first failing rule supplies the reason."""
        result = validate_task_title(title)

        assert result.is_valid is False
        assert result.error == error

    def test_length_checked_on_trimmed_title(self):
        """Surrounding whitespace does not make a short title long enough."""
        assert validate_task_title(" a ").error == validation.TOO_SHORT

    def test_padding_of_four_spaces_counts_as_repetition(self):
        """A run of four spaces is a repeated character even at the edges."""
        assert validate_task_title("    Study Chapter 3").error == validation.REPEATED_CHARACTERS

    def test_keyboard_pattern_spans_whitespace(self):
        """Whitespace is removed before keyboard patterns are checked."""
        assert validate_task_title("as df notes").error == validation.KEYBOARD_PATTERN

    def test_keyboard_pattern_is_case_insensitive(self):
        """Upper case mashing is still mashing."""
        assert validate_task_title("QWERTY tasks").error == validation.KEYBOARD_PATTERN


@pytest.mark.unit
class TestProperties:
    """Properties that hold for every input."""

    @pytest.mark.parametrize("title", ["", " ", "\t\n", "  \t  "])
    def test_blank_titles_are_invalid(self, title):
        """Empty or whitespace-only titles are always rejected."""
        assert is_valid_task_title(title) is False

    @pytest.mark.parametrize("title", ["Readddd notes", "Plan ----", "zzzz", "Study 1111 problems"])
    def test_four_repeats_are_invalid(self, title):
        """Any character repeated four or more times in a row is rejected."""
        assert is_valid_task_title(title) is False

    @pytest.mark.parametrize("title", _vowel_free_titles())
    def test_no_vowel_is_invalid(self, title):
        """A title without a vowel is never accepted."""
        assert is_valid_task_title(title) is False

    def test_deterministic(self):
        """Same input always yields the same output."""
        first = validate_task_title("Prepare slides for seminar")
        second = validate_task_title("Prepare slides for seminar")

        assert first == second


@pytest.mark.unit
class TestHelpers:
    """Convenience wrappers around validate_task_title."""

    def test_get_error_for_valid_title(self):
        """No error for an acceptable title."""
        assert get_task_title_error("Finish homework") is None

    def test_get_error_for_invalid_title(self):
        """The rejection reason is returned for a bad title."""
        assert get_task_title_error("qwerty") == validation.KEYBOARD_PATTERN
