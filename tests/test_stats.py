"""Tests for end-of-game statistics."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from cheesepants_py.game.models import GameState, Player, WordInfo
from cheesepants_py.game.stats import (
    calculate_game_stats,
    calculate_player_stats,
    calculate_sentence_length,
    find_longest_word,
    get_achievements,
)

if TYPE_CHECKING:
    from cheesepants_py.game.session import GameSession
    from tests.conftest import FakeClock


def _word(text: str, author: str, required: bool = False) -> WordInfo:
    return WordInfo(text=text, author_id=author.lower(), author_name=author, is_required=required)


def _finished_state() -> GameState:
    return GameState(
        game_id="g",
        players=[Player(id="alice", name="Alice"), Player(id="bob", name="Bob")],
        words=[
            _word("The", "Alice"),
            _word("mighty", "Bob"),
            _word("cheese", "Alice", required=True),
            _word("wears", "Bob"),
            _word("pants.", "Alice", required=True),
        ],
    )


class TestPlayerStats:
    """Tests for per-player statistics."""

    def test_counts_and_averages(self) -> None:
        """Test word counts, average lengths and required words per player."""
        stats = {s.player_id: s for s in calculate_player_stats(_finished_state())}

        assert stats["alice"].words_added == 3
        assert stats["alice"].required_words_used == 2
        # "pants." counts as five letters
        assert stats["alice"].avg_word_length == (3 + 6 + 5) / 3
        assert stats["bob"].words_added == 2
        assert stats["bob"].avg_word_length == (6 + 5) / 2

    def test_sorted_by_score(self) -> None:
        """Test the ranking uses words added plus weighted average length."""
        ranked = calculate_player_stats(_finished_state())

        assert [s.player_id for s in ranked] == ["alice", "bob"]
        assert ranked[0].score == 3 + 0.7 * ((3 + 6 + 5) / 3)

    def test_players_without_words(self) -> None:
        """Test silent players are listed with zeros."""
        state = GameState(game_id="g", players=[Player(id="a", name="A")])
        [stats] = calculate_player_stats(state)

        assert stats.words_added == 0
        assert stats.avg_word_length == 0.0

    def test_removed_authors_are_ignored(self) -> None:
        """Test words by departed players do not create stats."""
        state = _finished_state()
        state.words.append(_word("extra", "Zed"))

        assert {s.player_id for s in calculate_player_stats(state)} == {"alice", "bob"}

    def test_to_dict_rounds(self) -> None:
        """Test floats are rounded for output."""
        [alice, _] = calculate_player_stats(_finished_state())
        data = alice.to_dict()

        assert data["avgWordLength"] == 4.67
        assert data["wordsAdded"] == 3
        assert data["requiredWordsUsed"] == 2


class TestSentenceHelpers:
    """Tests for sentence level helpers."""

    def test_longest_word_ignores_punctuation(self) -> None:
        """Test punctuation does not count towards length."""
        words = [_word("hi!!!!!", "A"), _word("hello", "B")]
        longest = find_longest_word(words)
        assert longest is not None and longest.text == "hello"

    def test_longest_word_tie_goes_to_earliest(self) -> None:
        """Test the first of equally long words wins."""
        words = [_word("mighty", "A"), _word("cheese", "B")]
        longest = find_longest_word(words)
        assert longest is not None and longest.text == "mighty"

    def test_longest_word_empty(self) -> None:
        """Test there is no longest word in an empty sentence."""
        assert find_longest_word([]) is None

    def test_sentence_length(self) -> None:
        """Test the length includes single spaces between words."""
        assert calculate_sentence_length(_finished_state().words) == len("The mighty cheese wears pants.")
        assert calculate_sentence_length([]) == 0


class TestAchievements:
    """Tests for end-of-game titles."""

    def test_all_titles(self) -> None:
        """Test each title goes to the right player."""
        achievements = {a.title: a.player for a in get_achievements(_finished_state())}

        assert achievements == {
            "Word Master": "Alice (3 words)",
            "Vocabulary Champion": "Bob (avg: 5.5)",
            "Objective Completer": "Alice (2 req. words)",
            "Longest Word Award": 'Bob ("mighty")',
            "Sentence Finisher": "Alice",
        }

    def test_no_words(self) -> None:
        """Test an empty sentence earns nothing."""
        state = GameState(game_id="g", players=[Player(id="a", name="A")])
        assert get_achievements(state) == []

    def test_objective_needs_required_words(self) -> None:
        """Test no objective title is awarded without required words."""
        state = GameState(game_id="g", players=[Player(id="a", name="A")], words=[_word("hello", "A")])
        titles = [a.title for a in get_achievements(state)]

        assert "Objective Completer" not in titles
        assert "Sentence Finisher" in titles


class TestGameStats:
    """Tests for the full game summary."""

    def test_completed_game(self, session: GameSession, clock: FakeClock) -> None:
        """Test completion time runs from start to the winning word."""
        session.join("a", "A")
        session.join("b", "B")
        session.start_game("a")
        clock.advance(20)
        session.add_word("a", "cheese")
        clock.advance(22)
        session.add_word("b", "pants!")
        clock.advance(600)

        stats = calculate_game_stats(session.state, clock())

        assert stats.phase == "complete"
        assert stats.completion_seconds == 42
        assert stats.total_words == 2
        assert stats.longest_word == "cheese"
        assert stats.sentence_length == len("cheese pants!")

    def test_unfinished_game_uses_now(self, playing_session: GameSession, clock: FakeClock) -> None:
        """Test running games measure time until now."""
        start = playing_session.state.started_at

        stats = calculate_game_stats(playing_session.state, start + timedelta(seconds=90))

        assert stats.completion_seconds == 90
        assert stats.longest_word is None
        assert stats.to_dict()["achievements"] == []
