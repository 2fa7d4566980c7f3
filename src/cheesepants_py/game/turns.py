"""Turn rotation and turn timer bookkeeping."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cheesepants_py.game.models import GamePhase

if TYPE_CHECKING:
    from datetime import datetime

    from cheesepants_py.game.models import GameState, Player


def reset_turn_timer(state: GameState, now: datetime) -> None:
    """Restart the timer baseline, or clear it when there is no limit."""
    state.last_turn_start_time = now if state.turn_time_limit > 0 else None


def set_current_turn(state: GameState, index: int) -> None:
    """Give the turn to the player at ``index``.

    Args:
        state: The game state.
        index: Position of the new current player in ``players``.
    """
    for player in state.players:
        player.is_current_turn = False
    state.current_player_index = index
    state.players[index].is_current_turn = True


def advance_turn(state: GameState, now: datetime) -> Player | None:
    """Pass the turn to the next player in join order.

    The timer baseline is only touched when a turn limit is active.

    Args:
        state: The game state.
        now: Current time.

    Returns:
        The new current player, or None for an empty room.
    """
    if not state.players:
        return None

    state.players[state.current_player_index].is_current_turn = False
    state.current_player_index = (state.current_player_index + 1) % len(state.players)
    state.players[state.current_player_index].is_current_turn = True

    if state.turn_time_limit > 0:
        state.last_turn_start_time = now

    return state.players[state.current_player_index]


def turn_elapsed_seconds(state: GameState, now: datetime) -> float | None:
    """Seconds since the current turn began, or None without a baseline."""
    if state.last_turn_start_time is None:
        return None
    return (now - state.last_turn_start_time).total_seconds()


def is_turn_expired(state: GameState, now: datetime) -> bool:
    """Check whether the current player has used up their time.

    Args:
        state: The game state.
        now: Current time.

    Returns:
        True only while playing with a limit and a baseline, once the
        elapsed time reaches the limit.
    """
    if state.phase != GamePhase.PLAYING or state.turn_time_limit <= 0 or not state.players:
        return False
    elapsed = turn_elapsed_seconds(state, now)
    return elapsed is not None and elapsed >= state.turn_time_limit
