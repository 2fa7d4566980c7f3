"""Tests for turn rotation and the turn timer."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from cheesepants_py.game.models import GamePhase, GameState, Player
from cheesepants_py.game.turns import (
    advance_turn,
    is_turn_expired,
    reset_turn_timer,
    set_current_turn,
    turn_elapsed_seconds,
)

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


def _state(**kwargs) -> GameState:
    players = [Player(id="a", name="A", is_current_turn=True), Player(id="b", name="B"), Player(id="c", name="C")]
    return GameState(game_id="g", players=players, started_by_id="a", phase=GamePhase.PLAYING, **kwargs)


class TestRotation:
    """Tests for moving the turn between players."""

    def test_advance_wraps(self) -> None:
        """Test the turn wraps from the last seat to the first."""
        state = _state()
        set_current_turn(state, 2)

        player = advance_turn(state, NOW)

        assert player is not None and player.id == "a"
        assert state.current_player_index == 0
        assert [p.is_current_turn for p in state.players] == [True, False, False]

    def test_advance_empty_room(self) -> None:
        """Test advancing an empty room is a no-op."""
        state = GameState(game_id="g")
        assert advance_turn(state, NOW) is None
        assert state.current_player_index == 0

    def test_set_current_turn_single_holder(self) -> None:
        """Test exactly one player holds the turn after a change."""
        state = _state()
        set_current_turn(state, 1)
        assert [p.is_current_turn for p in state.players] == [False, True, False]

    def test_advance_updates_baseline_only_with_limit(self) -> None:
        """Test the baseline moves only when a limit is active."""
        unlimited = _state()
        advance_turn(unlimited, NOW)
        assert unlimited.last_turn_start_time is None

        limited = _state(turn_time_limit=10)
        advance_turn(limited, NOW)
        assert limited.last_turn_start_time == NOW


class TestTimer:
    """Tests for timer baselines and expiry."""

    def test_reset_with_and_without_limit(self) -> None:
        """Test resetting sets or clears the baseline depending on the limit."""
        state = _state(turn_time_limit=10, last_turn_start_time=NOW - timedelta(seconds=50))
        reset_turn_timer(state, NOW)
        assert state.last_turn_start_time == NOW

        state.turn_time_limit = 0
        reset_turn_timer(state, NOW)
        assert state.last_turn_start_time is None

    def test_elapsed(self) -> None:
        """Test elapsed seconds are measured from the baseline."""
        state = _state(turn_time_limit=10, last_turn_start_time=NOW)
        assert turn_elapsed_seconds(state, NOW + timedelta(seconds=7.5)) == 7.5
        assert turn_elapsed_seconds(_state(), NOW) is None

    def test_expired(self) -> None:
        """Test a turn expires once the limit is reached."""
        state = _state(turn_time_limit=10, last_turn_start_time=NOW)
        assert not is_turn_expired(state, NOW + timedelta(seconds=9))
        assert is_turn_expired(state, NOW + timedelta(seconds=10))

    def test_never_expires_without_baseline(self) -> None:
        """Test a missing baseline means no timeout."""
        state = _state(turn_time_limit=10)
        assert not is_turn_expired(state, NOW + timedelta(days=1))

    def test_never_expires_outside_play(self) -> None:
        """Test only playing rooms can time out."""
        state = _state(turn_time_limit=10, last_turn_start_time=NOW)
        state.phase = GamePhase.COMPLETE
        assert not is_turn_expired(state, NOW + timedelta(minutes=5))
