"""End-of-game statistics and achievements."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from cheesepants_py.game.validator import PUNCTUATION_RE

if TYPE_CHECKING:
    from datetime import datetime

    from cheesepants_py.game.models import GameState, WordInfo

WORD_COUNT_WEIGHT = 1.0
AVG_LENGTH_WEIGHT = 0.7


def _clean_length(text: str) -> int:
    return len(PUNCTUATION_RE.sub("", text))


@dataclass
class PlayerStats:
    """Contribution of one player to the sentence."""

    player_id: str
    name: str
    words_added: int = 0
    avg_word_length: float = 0.0
    required_words_used: int = 0

    @property
    def score(self) -> float:
        """Ranking score: words added plus weighted average word length."""
        return self.words_added * WORD_COUNT_WEIGHT + self.avg_word_length * AVG_LENGTH_WEIGHT

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "playerId": self.player_id,
            "name": self.name,
            "wordsAdded": self.words_added,
            "avgWordLength": round(self.avg_word_length, 2),
            "requiredWordsUsed": self.required_words_used,
            "score": round(self.score, 2),
        }


@dataclass
class Achievement:
    """A title awarded to a player at the end of a game."""

    title: str
    player: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {"title": self.title, "player": self.player}


@dataclass
class GameStats:
    """Summary of a game room."""

    game_id: str
    phase: str
    completion_seconds: int
    total_words: int
    longest_word: str | None
    sentence_length: int
    players: list[PlayerStats] = field(default_factory=list)
    achievements: list[Achievement] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        return {
            "gameId": self.game_id,
            "phase": self.phase,
            "completionSeconds": self.completion_seconds,
            "totalWords": self.total_words,
            "longestWord": self.longest_word,
            "sentenceLength": self.sentence_length,
            "players": [p.to_dict() for p in self.players],
            "achievements": [a.to_dict() for a in self.achievements],
        }


def calculate_player_stats(state: GameState) -> list[PlayerStats]:
    """Compute per-player contributions, best score first.

    Words whose author has since been removed from the room are ignored.

    Args:
        state: The game state.

    Returns:
        Stats for every current member, sorted by descending score.
    """
    stats = {p.id: PlayerStats(player_id=p.id, name=p.name) for p in state.players}
    lengths: dict[str, list[int]] = {}

    for word in state.words:
        player_stats = stats.get(word.author_id)
        if player_stats is None:
            continue
        player_stats.words_added += 1
        lengths.setdefault(word.author_id, []).append(_clean_length(word.text))
        if word.is_required:
            player_stats.required_words_used += 1

    for player_id, values in lengths.items():
        stats[player_id].avg_word_length = sum(values) / len(values)

    return sorted(stats.values(), key=lambda s: s.score, reverse=True)


def find_longest_word(words: list[WordInfo]) -> WordInfo | None:
    """Find the longest word ignoring punctuation; the earliest wins ties."""
    longest: WordInfo | None = None
    for word in words:
        if longest is None or _clean_length(word.text) > _clean_length(longest.text):
            longest = word
    return longest


def calculate_sentence_length(words: list[WordInfo]) -> int:
    """Count the characters of the sentence, including separating spaces."""
    if not words:
        return 0
    return sum(len(w.text) for w in words) + len(words) - 1


def get_achievements(state: GameState, player_stats: list[PlayerStats] | None = None) -> list[Achievement]:
    """Award end-of-game titles.

    Args:
        state: The game state.
        player_stats: Precomputed stats, computed when omitted.

    Returns:
        The achievements, empty when there are no players or words.
    """
    ranked = player_stats if player_stats is not None else calculate_player_stats(state)
    if not ranked or not state.words:
        return []

    achievements: list[Achievement] = []

    top = ranked[0]
    if top.words_added > 0:
        achievements.append(Achievement("Word Master", f"{top.name} ({top.words_added} words)"))

    vocab = max(ranked, key=lambda s: s.avg_word_length)
    if vocab.avg_word_length > 0:
        achievements.append(Achievement("Vocabulary Champion", f"{vocab.name} (avg: {vocab.avg_word_length:.1f})"))

    objective = max(ranked, key=lambda s: s.required_words_used)
    if objective.required_words_used > 0:
        achievements.append(
            Achievement("Objective Completer", f"{objective.name} ({objective.required_words_used} req. words)")
        )

    longest = find_longest_word(state.words)
    if longest is not None:
        achievements.append(Achievement("Longest Word Award", f'{longest.author_name} ("{longest.text}")'))

    achievements.append(Achievement("Sentence Finisher", state.words[-1].author_name))
    return achievements


def calculate_game_stats(state: GameState, now: datetime) -> GameStats:
    """Summarize a game room.

    Args:
        state: The game state.
        now: Used as the end time while the game is unfinished.

    Returns:
        The statistics.
    """
    end = state.ended_at or now
    player_stats = calculate_player_stats(state)
    longest = find_longest_word(state.words)

    return GameStats(
        game_id=state.game_id,
        phase=state.phase.value,
        completion_seconds=max(0, int((end - state.started_at).total_seconds())),
        total_words=len(state.words),
        longest_word=longest.text if longest else None,
        sentence_length=calculate_sentence_length(state.words),
        players=player_stats,
        achievements=get_achievements(state, player_stats),
    )
