"""Word validation for the sentence game.

Pure functions with no state of their own: punctuation stripping, required
word matching and sentence termination checks.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cheesepants_py.game.models import GameState, WordInfo

DEFAULT_REQUIRED_WORDS: tuple[str, ...] = ("cheese", "pants")
MIN_REQUIRED_WORDS = 2

PUNCTUATION_RE = re.compile(r"[.,!?;:'\"()\[\]{}]")
TERMINAL_PUNCTUATION = (".", "!", "?")


def normalize(token: str) -> str:
    """Strip punctuation and lowercase a token.

    Args:
        token: Raw word as submitted.

    Returns:
        The comparable form of the word.
    """
    return PUNCTUATION_RE.sub("", token).lower()


def ends_sentence(token: str) -> bool:
    """Check if a raw token ends with terminal punctuation."""
    return token.endswith(TERMINAL_PUNCTUATION)


def first_token(text: str) -> str:
    """Get the first whitespace-delimited token of some text.

    Args:
        text: Submitted text, possibly several words pasted at once.

    Returns:
        The first token, or an empty string when there is none.
    """
    parts = text.split()
    return parts[0] if parts else ""


def match_required(
    token: str,
    required_words: Sequence[str],
    already_matched: Sequence[bool],
) -> int | None:
    """Find the required-word slot a token satisfies.

    Only slots that are not yet matched are considered, and the first one
    that compares equal after normalization wins.

    Args:
        token: Raw word as submitted.
        required_words: The room's required words.
        already_matched: Per slot, whether it is already satisfied.

    Returns:
        The index of the satisfied slot, or None.
    """
    normalized = normalize(token)
    if not normalized:
        return None
    for index, required in enumerate(required_words):
        if already_matched[index]:
            continue
        if normalized == normalize(required):
            return index
    return None


def recompute_required_words(state: GameState) -> None:
    """Rebuild required-word flags and word annotations from the words alone.

    Every flag and annotation is cleared, then the words are scanned in
    order and each one claims the first unmatched slot it satisfies.

    Args:
        state: The game state to update in place.
    """
    flags = [False] * len(state.required_words)
    for word in state.words:
        index = match_required(word.text, state.required_words, flags)
        word.is_required = index is not None
        word.matched_required_word_index = index
        if index is not None:
            flags[index] = True
    state.has_required_words = flags


def is_game_complete(state: GameState, last_word: WordInfo) -> bool:
    """Check the win condition for the word just added.

    Args:
        state: The game state after the word was appended.
        last_word: The word that was just added.

    Returns:
        True when every required word is used and the word ends the sentence.
    """
    return all(state.has_required_words) and ends_sentence(last_word.text)


def parse_required_words(
    raw: str | Sequence[str] | None,
    default: Sequence[str] = DEFAULT_REQUIRED_WORDS,
) -> list[str]:
    """Parse the required words supplied when a room is created.

    Args:
        raw: Comma-separated words, a list of words, or None.
        default: Words used when fewer than two usable words remain.

    Returns:
        The cleaned words, or ``default`` when fewer than two remain.
    """
    if raw is None:
        candidates: list[str] = []
    elif isinstance(raw, str):
        candidates = raw.split(",")
    else:
        candidates = list(raw)

    words = [w.strip() for w in candidates if w and w.strip()]
    if len(words) < MIN_REQUIRED_WORDS:
        return list(default)
    return words
