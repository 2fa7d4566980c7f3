"""Game session state machine.

A :class:`GameSession` wraps the :class:`GameState` of one room and applies
player actions to it. Every method checks all of its preconditions first and
raises a :class:`GameActionError` without touching the state when one fails,
so a rejected action never leaves a half-applied change behind.

The session neither persists nor broadcasts; the realtime layer does both
after each accepted action.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from cheesepants_py.game.exceptions import (
    InvalidInputError,
    InvalidReferenceError,
    NotAdminError,
    NotYourTurnError,
    PhaseError,
)
from cheesepants_py.game.models import GamePhase, Player, WordInfo
from cheesepants_py.game.turns import advance_turn, is_turn_expired, reset_turn_timer, set_current_turn
from cheesepants_py.game.validator import (
    first_token,
    is_game_complete,
    match_required,
    recompute_required_words,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from cheesepants_py.game.models import GameState

logger = structlog.get_logger(__name__)

NOT_STARTED_MESSAGE = "The game has not started yet."
ALREADY_STARTED_MESSAGE = "The game has already started."
ALREADY_COMPLETE_MESSAGE = "The game is already complete."


def utcnow() -> datetime:
    """Default clock for sessions."""
    return datetime.now(UTC)


@dataclass
class JoinResult:
    """Outcome of a join request.

    Attributes:
        player: The joined (or rejoined) player.
        is_new: Whether the player was added to the room.
        connection_changed: Whether ``connectedPlayers`` changed.
    """

    player: Player
    is_new: bool
    connection_changed: bool

    @property
    def state_changed(self) -> bool:
        """Whether the room needs to be persisted and broadcast."""
        return self.is_new or self.connection_changed


@dataclass
class AddWordResult:
    """Outcome of an accepted word.

    Attributes:
        word: The word that was appended.
        completed: Whether this word finished the game.
        needs_punctuation: Every required word is used but the sentence
            has not been ended with terminal punctuation.
    """

    word: WordInfo
    completed: bool
    needs_punctuation: bool


class GameSession:
    """State machine over one room's :class:`GameState`."""

    def __init__(self, state: GameState, clock: Callable[[], datetime] = utcnow) -> None:
        """Initialize the session.

        Args:
            state: The room state; mutated in place by accepted actions.
            clock: Callable returning the current time.
        """
        self.state = state
        self._clock = clock

    @property
    def game_id(self) -> str:
        """ID of the room this session drives."""
        return self.state.game_id

    # Guards

    def _require_admin(self, player_id: str, action: str) -> None:
        if not self.state.is_admin(player_id):
            raise NotAdminError(action)

    def _require_playing(self) -> None:
        if self.state.phase == GamePhase.LOBBY:
            raise PhaseError(NOT_STARTED_MESSAGE)
        if self.state.phase == GamePhase.COMPLETE:
            raise PhaseError(ALREADY_COMPLETE_MESSAGE)

    def _require_member(self, player_id: str) -> int:
        index = self.state.player_index(player_id)
        if index is None:
            raise InvalidReferenceError(f"Player {player_id} is not in this game.")
        return index

    # Membership

    def join(self, player_id: str, player_name: str | None) -> JoinResult:
        """Add a player to the room, or reconnect an existing member.

        Args:
            player_id: The joining player's ID.
            player_name: Display name; required for a new player.

        Returns:
            The join outcome.

        Raises:
            InvalidInputError: If a new player has no usable name.
        """
        existing = self.state.get_player(player_id)
        if existing is not None:
            changed = self.mark_connected(player_id)
            logger.debug("Player reconnected", game_id=self.game_id, player_id=player_id, changed=changed)
            return JoinResult(player=existing, is_new=False, connection_changed=changed)

        name = (player_name or "").strip()
        if not name:
            raise InvalidInputError("A player name is required to join.")

        player = Player(id=player_id, name=name, is_current_turn=not self.state.players)
        if not self.state.players:
            self.state.current_player_index = 0
        self.state.players.append(player)
        if player_id not in self.state.connected_players:
            self.state.connected_players.append(player_id)
        if self.state.started_by_id is None:
            self.state.started_by_id = player_id

        logger.info(
            "Player joined game",
            game_id=self.game_id,
            player_id=player_id,
            player_name=name,
            is_admin=self.state.is_admin(player_id),
            player_count=len(self.state.players),
        )
        return JoinResult(player=player, is_new=True, connection_changed=True)

    def mark_connected(self, player_id: str) -> bool:
        """Record that a member holds an open connection.

        Returns:
            True if ``connectedPlayers`` changed.
        """
        if self.state.get_player(player_id) is None or player_id in self.state.connected_players:
            return False
        self.state.connected_players.append(player_id)
        return True

    def mark_disconnected(self, player_id: str) -> bool:
        """Record that a player's connection closed; their seat is kept.

        Returns:
            True if ``connectedPlayers`` changed.
        """
        if player_id not in self.state.connected_players:
            return False
        self.state.connected_players.remove(player_id)
        return True

    # Lifecycle

    def start_game(self, player_id: str) -> None:
        """Move the room from the lobby into play.

        Args:
            player_id: The requesting player.

        Raises:
            NotAdminError: If the requester is not the admin.
            PhaseError: If the game is not in the lobby.
            InvalidReferenceError: If the room has no players.
        """
        self._require_admin(player_id, "start the game")
        if self.state.phase == GamePhase.PLAYING:
            raise PhaseError(ALREADY_STARTED_MESSAGE)
        if self.state.phase == GamePhase.COMPLETE:
            raise PhaseError(ALREADY_COMPLETE_MESSAGE)
        if not self.state.players:
            raise InvalidReferenceError("At least one player is needed to start the game.")

        now = self._clock()
        self.state.phase = GamePhase.PLAYING
        self.state.started_at = now
        set_current_turn(self.state, self.state.current_player_index)
        if self.state.turn_time_limit > 0:
            self.state.last_turn_start_time = now

        logger.info("Game started", game_id=self.game_id, player_count=len(self.state.players))

    # Gameplay

    def add_word(self, player_id: str, text: str) -> AddWordResult:
        """Append the current player's word to the sentence.

        Only the first whitespace-delimited token of ``text`` is used. The
        turn advances before the win condition is evaluated.

        Args:
            player_id: The submitting player.
            text: The submitted text.

        Returns:
            The outcome of the word.

        Raises:
            PhaseError: If the game is not being played.
            NotYourTurnError: If it is not the submitter's turn.
            InvalidInputError: If the text contains no word.
        """
        self._require_playing()
        current = self.state.current_player
        if current is None or current.id != player_id:
            raise NotYourTurnError
        token = first_token(text or "")
        if not token:
            raise InvalidInputError("Please enter a word.")

        now = self._clock()
        index = match_required(token, self.state.required_words, self.state.has_required_words)
        word = WordInfo(
            text=token,
            author_id=current.id,
            author_name=current.name,
            added_at=now,
            is_required=index is not None,
            matched_required_word_index=index,
        )
        if index is not None:
            self.state.has_required_words[index] = True
        self.state.words.append(word)

        advance_turn(self.state, now)

        completed = is_game_complete(self.state, word)
        if completed:
            self.state.phase = GamePhase.COMPLETE
            self.state.ended_at = now
            logger.info("Game complete", game_id=self.game_id, word_count=len(self.state.words))

        return AddWordResult(
            word=word,
            completed=completed,
            needs_punctuation=not completed and all(self.state.has_required_words),
        )

    def delete_word(self, player_id: str, index: int) -> WordInfo:
        """Remove a word and recompute every required-word match.

        Args:
            player_id: The requesting player.
            index: Position of the word to remove.

        Returns:
            The removed word.

        Raises:
            NotAdminError: If the requester is not the admin.
            PhaseError: If the game is not being played.
            InvalidReferenceError: If the index is out of range.
        """
        self._require_admin(player_id, "delete words")
        self._require_playing()
        if not 0 <= index < len(self.state.words):
            raise InvalidReferenceError(f"There is no word at position {index}.")

        removed = self.state.words.pop(index)
        if removed.is_required and removed.matched_required_word_index is not None:
            self.state.has_required_words[removed.matched_required_word_index] = False
        recompute_required_words(self.state)

        logger.info("Word deleted", game_id=self.game_id, index=index, text=removed.text)
        return removed

    def change_turn(self, player_id: str, target_id: str) -> Player:
        """Hand the turn to a specific player.

        The timer baseline restarts when a limit is active, so the new
        current player gets a full turn.

        Args:
            player_id: The requesting player.
            target_id: The player who should hold the turn.

        Returns:
            The new current player.

        Raises:
            NotAdminError: If the requester is not the admin.
            PhaseError: If the game is not being played.
            InvalidReferenceError: If the target is not a member.
        """
        self._require_admin(player_id, "change the turn")
        self._require_playing()
        index = self._require_member(target_id)

        set_current_turn(self.state, index)
        reset_turn_timer(self.state, self._clock())

        logger.info("Turn changed", game_id=self.game_id, player_id=target_id)
        return self.state.players[index]

    def update_turn_time_limit(self, player_id: str, seconds: int) -> int:
        """Change the per-turn time limit.

        Args:
            player_id: The requesting player.
            seconds: New limit; negative values are clamped to 0 (unlimited).

        Returns:
            The limit that was applied.

        Raises:
            NotAdminError: If the requester is not the admin.
            PhaseError: If the game is already complete.
        """
        self._require_admin(player_id, "change the turn time limit")
        if self.state.phase == GamePhase.COMPLETE:
            raise PhaseError(ALREADY_COMPLETE_MESSAGE)

        self.state.turn_time_limit = max(0, int(seconds))
        reset_turn_timer(self.state, self._clock())

        logger.info("Turn time limit updated", game_id=self.game_id, turn_time_limit=self.state.turn_time_limit)
        return self.state.turn_time_limit

    def remove_player(self, player_id: str, target_id: str) -> Player:
        """Remove a member from the room.

        The turn keeps pointing at the same logical player where possible;
        when the removed player held the turn it passes to whoever now sits
        at that position (wrapping to the first player).

        Args:
            player_id: The requesting player.
            target_id: The player to remove.

        Returns:
            The removed player.

        Raises:
            NotAdminError: If the requester is not the admin.
            InvalidReferenceError: If the target is not a member.
        """
        self._require_admin(player_id, "remove players")
        removed_index = self._require_member(target_id)

        held_turn = removed_index == self.state.current_player_index
        removed = self.state.players.pop(removed_index)

        if not self.state.players:
            # a finished sentence stays finished
            if self.state.phase != GamePhase.COMPLETE:
                self.state.phase = GamePhase.LOBBY
            self.state.current_player_index = 0
        elif held_turn:
            index = self.state.current_player_index
            if index >= len(self.state.players):
                index = 0
            set_current_turn(self.state, index)
        elif removed_index < self.state.current_player_index:
            self.state.current_player_index -= 1

        if target_id in self.state.connected_players:
            self.state.connected_players.remove(target_id)

        logger.info(
            "Player removed",
            game_id=self.game_id,
            player_id=target_id,
            remaining_players=len(self.state.players),
        )
        return removed

    # Timer

    def check_turn_timeout(self) -> Player | None:
        """Skip the current player's turn if their time has run out.

        Returns:
            The player who timed out, or None when nothing expired.
        """
        now = self._clock()
        if not is_turn_expired(self.state, now):
            return None

        timed_out = self.state.current_player
        advance_turn(self.state, now)
        logger.info(
            "Turn timed out",
            game_id=self.game_id,
            player_id=timed_out.id if timed_out else None,
            turn_time_limit=self.state.turn_time_limit,
        )
        return timed_out
