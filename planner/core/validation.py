"""Title quality gate for task titles.

The gate is an ordered list of lexical checks; the first failing check
decides the rejection reason. It rejects keyboard mashing and other gibberish
while letting ordinary short titles ("Study Chapter 3", "Homework") through.

Usage:
    result = validate_task_title("Study Chapter 3")
    if not result.is_valid:
        print(result.error)
"""

import re
from collections.abc import Callable

from pydantic import BaseModel

from planner.core.config import constants


class TitleValidation(BaseModel):
    """Outcome of running a title through the quality gate."""

    is_valid: bool
    error: str | None = None


WHITELISTED_SINGLE_WORDS = frozenset(
    {
        "homework",
        "laundry",
        "workout",
        "exercise",
        "shopping",
        "cooking",
        "cleaning",
        "studying",
        "reading",
        "writing",
        "research",
        "planning",
        "debugging",
        "testing",
        "deployment",
        "meeting",
        "presentation",
        "interview",
        "appointment",
        "meditation",
        "journaling",
    }
)

ACTION_VERBS = (
    "plan",
    "write",
    "read",
    "review",
    "fix",
    "build",
    "clean",
    "study",
    "prepare",
    "update",
    "email",
    "call",
    "design",
    "implement",
    "test",
    "deploy",
    "research",
    "organize",
    "schedule",
    "draft",
    "finish",
    "complete",
    "start",
    "begin",
    "create",
    "make",
    "develop",
    "learn",
    "practice",
    "submit",
    "upload",
    "download",
    "install",
    "configure",
    "setup",
    "analyze",
    "document",
    "refactor",
    "optimize",
    "backup",
    "restore",
    "sync",
    "merge",
    "commit",
    "push",
    "pull",
    "clone",
    "fork",
)

# Substring match, so "Rebuild", "Readme" and "Testing" all count
_ACTION_VERB_PATTERN = re.compile("|".join(ACTION_VERBS), re.IGNORECASE)

_KEYBOARD_PATTERNS = (
    re.compile(r"qwerty|asdf|zxcv|hjkl|yuiop|fghj|vbnm", re.IGNORECASE),
    re.compile(r"123456|234567|345678|456789|567890"),
    re.compile(r"abcde|bcdef|cdefg|defgh|efghi|fghij", re.IGNORECASE),
)

_LETTER = re.compile(r"[A-Za-z]")
_VOWEL = re.compile(r"[aeiou]", re.IGNORECASE)
_CONSONANT = re.compile(r"[bcdfghjklmnpqrstvwxyz]", re.IGNORECASE)
_REPEATED_FOUR = re.compile(r"(.)\1{3,}")
_REPEATED_THREE = re.compile(r"(.)\1{2,}")
_CONSONANT_RUN = re.compile(r"[bcdfghjklmnpqrstvwxyz]{6,}", re.IGNORECASE)
_NON_LETTERS = re.compile(r"[^A-Za-z]")
_WHITESPACE = re.compile(r"\s")

EMPTY_TITLE = "Task title cannot be empty"
TOO_SHORT = f"Task title must be at least {constants.TITLE_MIN_LENGTH} characters long"
TOO_LONG = f"Task title must be less than {constants.TITLE_MAX_LENGTH} characters"
NO_LETTER = "Task title must contain at least one letter"
REPEATED_CHARACTERS = "Please enter a meaningful task name (avoid repeated characters)"
KEYBOARD_PATTERN = "Please enter a meaningful task name (avoid keyboard patterns)"
NO_VOWEL = "Please enter a meaningful task name (should contain vowels)"
EXCESSIVE_CONSONANTS = "Please enter a meaningful task name (avoid excessive consonants)"
NO_PROPER_WORDS = "Please enter a meaningful task name with proper words"
SINGLE_WORD_TOO_SHORT = 'Please use a more descriptive task name (e.g., "Study Chapter 3", "Finish homework")'
SINGLE_WORD_TOO_LONG = "Please use a more descriptive task name with multiple words"
SINGLE_WORD_REPEATED = "Please enter a meaningful task name"
SINGLE_WORD_LOW_VOWELS = "Please enter a meaningful task name (try adding more details)"


def _check_length(title: str) -> str | None:
    trimmed = title.strip()
    if not trimmed:
        return EMPTY_TITLE
    if len(trimmed) < constants.TITLE_MIN_LENGTH:
        return TOO_SHORT
    if len(trimmed) > constants.TITLE_MAX_LENGTH:
        return TOO_LONG
    return None


def _check_has_letter(title: str) -> str | None:
    return None if _LETTER.search(title) else NO_LETTER


def _check_repeated_characters(title: str) -> str | None:
    # Checked on the raw title: padding of four or more spaces is rejected too
    return REPEATED_CHARACTERS if _REPEATED_FOUR.search(title) else None


def _check_keyboard_patterns(title: str) -> str | None:
    compact = _WHITESPACE.sub("", title)
    if any(pattern.search(compact) for pattern in _KEYBOARD_PATTERNS):
        return KEYBOARD_PATTERN
    return None


def _check_has_vowel(title: str) -> str | None:
    return None if _VOWEL.search(title) else NO_VOWEL


def _check_consonant_run(title: str) -> str | None:
    letters_only = _NON_LETTERS.sub("", title)
    return EXCESSIVE_CONSONANTS if _CONSONANT_RUN.search(letters_only) else None


# Order matters: the first failing check supplies the reason
TITLE_CHECKS: tuple[Callable[[str], str | None], ...] = (
    _check_length,
    _check_has_letter,
    _check_repeated_characters,
    _check_keyboard_patterns,
    _check_has_vowel,
    _check_consonant_run,
)


def _validate_multi_word(trimmed: str, words: list[str]) -> str | None:
    if _ACTION_VERB_PATTERN.search(trimmed):
        return None
    if not any(len(word) >= 2 for word in words):  # noqa: PLR2004
        return NO_PROPER_WORDS
    return None


def _validate_single_word(word: str) -> str | None:
    word = word.lower()

    if word in WHITELISTED_SINGLE_WORDS:
        return None

    if len(word) < constants.SINGLE_WORD_MIN_LENGTH:
        return SINGLE_WORD_TOO_SHORT

    if len(word) > constants.SINGLE_WORD_MAX_LENGTH:
        return SINGLE_WORD_TOO_LONG

    if _REPEATED_THREE.search(word):
        return SINGLE_WORD_REPEATED

    vowel_count = len(_VOWEL.findall(word))
    consonant_count = len(_CONSONANT.findall(word))
    if consonant_count > 0 and vowel_count / consonant_count < constants.MIN_VOWEL_CONSONANT_RATIO:
        return SINGLE_WORD_LOW_VOWELS

    return None


def validate_task_title(title: str) -> TitleValidation:
    """Run a proposed task title through the quality gate.

    Args:
        title: Raw title as typed by the user (surrounding whitespace does not count toward length)

    Returns:
        TitleValidation with is_valid and, on rejection, a human-readable error
    """
    for check in TITLE_CHECKS:
        error = check(title)
        if error:
            return TitleValidation(is_valid=False, error=error)

    trimmed = title.strip()
    words = trimmed.split()
    if len(words) >= 2:  # noqa: PLR2004
        error = _validate_multi_word(trimmed, words)
    else:
        error = _validate_single_word(words[0])

    if error:
        return TitleValidation(is_valid=False, error=error)
    return TitleValidation(is_valid=True)


def is_valid_task_title(title: str) -> bool:
    """Return True when the title passes the quality gate."""
    return validate_task_title(title).is_valid


def get_task_title_error(title: str) -> str | None:
    """Return the rejection reason for a title, or None if it is acceptable."""
    result = validate_task_title(title)
    return None if result.is_valid else (result.error or "Invalid task title")
