"""Game data models for cheesepants-py.

This module defines the room aggregate (:class:`GameState`) together with the
players and words it owns. The models serialize to the camelCase layout used
on the wire and in storage, and tolerate records written by older versions of
the game when loading.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from cheesepants_py.game.validator import DEFAULT_REQUIRED_WORDS, recompute_required_words


class GamePhase(StrEnum):
    """Phase of a game room.

    The game moves through these phases in order:
    LOBBY -> PLAYING -> COMPLETE
    """

    LOBBY = "lobby"  # Waiting for the admin to start
    PLAYING = "playing"  # Players are taking turns adding words
    COMPLETE = "complete"  # Sentence finished, terminal


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class Player:
    """A member of a game room.

    Attributes:
        id: Opaque, caller-supplied identifier, unique within the room.
        name: Display name shown to other players.
        is_current_turn: Whether this player may add the next word.
    """

    id: str
    name: str
    is_current_turn: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "isCurrentTurn": self.is_current_turn,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Player:
        """Create a player from its serialized form."""
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            is_current_turn=bool(data.get("isCurrentTurn", False)),
        )


@dataclass
class WordInfo:
    """A single word of the shared sentence.

    Attributes:
        text: The submitted token, kept verbatim (including punctuation).
        author_id: ID of the player who added the word.
        author_name: Name of the author at the time the word was added.
        added_at: When the word was added.
        is_required: Whether this word satisfied a required word.
        matched_required_word_index: Which required-word slot it satisfied.
    """

    text: str
    author_id: str
    author_name: str
    added_at: datetime = field(default_factory=_utcnow)
    is_required: bool = False
    matched_required_word_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "text": self.text,
            "authorId": self.author_id,
            "authorName": self.author_name,
            "addedAt": _format_datetime(self.added_at),
            "isRequired": self.is_required,
            "matchedRequiredWordIndex": self.matched_required_word_index,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | str, default_added_at: datetime | None = None) -> WordInfo:
        """Create a word from its serialized form.

        Older records stored the sentence as a list of plain strings; those
        are accepted and given an empty author.

        Args:
            data: Serialized word, or a bare string from a legacy record.
            default_added_at: Timestamp used when the record has none.

        Returns:
            The word.
        """
        fallback = default_added_at or _utcnow()
        if isinstance(data, str):
            return cls(text=data, author_id="", author_name="", added_at=fallback)

        matched = data.get("matchedRequiredWordIndex")
        return cls(
            text=str(data.get("text", "")),
            author_id=str(data.get("authorId", "")),
            author_name=str(data.get("authorName", "")),
            added_at=_parse_datetime(data.get("addedAt")) or fallback,
            is_required=bool(data.get("isRequired", False)),
            matched_required_word_index=int(matched) if matched is not None else None,
        )


@dataclass
class GameState:
    """Authoritative state of one game room.

    Attributes:
        game_id: Opaque identifier of the room.
        players: Members in join order; the order drives turn rotation.
        connected_players: IDs of members that currently hold a connection.
        words: The sentence so far.
        started_at: When the room was opened, then when play started.
        ended_at: When the sentence was completed.
        started_by_id: The first player to join; the room's admin.
        required_words: Words the sentence must contain.
        has_required_words: Per required word, whether it has been used.
        current_player_index: Index into ``players`` of whose turn it is.
        phase: Current phase of the room.
        turn_time_limit: Seconds allowed per turn, 0 for unlimited.
        last_turn_start_time: Baseline for the turn timer.
    """

    game_id: str
    players: list[Player] = field(default_factory=list)
    connected_players: list[str] = field(default_factory=list)
    words: list[WordInfo] = field(default_factory=list)
    started_at: datetime = field(default_factory=_utcnow)
    ended_at: datetime | None = None
    started_by_id: str | None = None
    required_words: list[str] = field(default_factory=lambda: list(DEFAULT_REQUIRED_WORDS))
    has_required_words: list[bool] = field(default_factory=list)
    current_player_index: int = 0
    phase: GamePhase = GamePhase.LOBBY
    turn_time_limit: int = 0
    last_turn_start_time: datetime | None = None

    def __post_init__(self) -> None:
        """Keep the required-word flags aligned with the required words."""
        if len(self.has_required_words) != len(self.required_words):
            self.has_required_words = [False] * len(self.required_words)

    @property
    def admin(self) -> Player | None:
        """The player occupying the admin seat, if still a member."""
        return self.get_player(self.started_by_id) if self.started_by_id else None

    @property
    def current_player(self) -> Player | None:
        """The player whose turn it is, or None for an empty room."""
        if not self.players:
            return None
        return self.players[self.current_player_index]

    @property
    def sentence(self) -> list[str]:
        """The raw text of every word, in order."""
        return [word.text for word in self.words]

    def get_player(self, player_id: str) -> Player | None:
        """Get a member by ID.

        Args:
            player_id: The player's ID.

        Returns:
            The Player or None if not a member.
        """
        return next((p for p in self.players if p.id == player_id), None)

    def player_index(self, player_id: str) -> int | None:
        """Get a member's position in the turn order."""
        return next((i for i, p in enumerate(self.players) if p.id == player_id), None)

    def is_admin(self, player_id: str) -> bool:
        """Check if a player is the room's admin."""
        return self.started_by_id is not None and self.started_by_id == player_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "gameId": self.game_id,
            "players": [p.to_dict() for p in self.players],
            "connectedPlayers": list(self.connected_players),
            "words": [w.to_dict() for w in self.words],
            "startedAt": _format_datetime(self.started_at),
            "endedAt": _format_datetime(self.ended_at),
            "startedById": self.started_by_id,
            "requiredWords": list(self.required_words),
            "hasRequiredWords": list(self.has_required_words),
            "currentPlayerIndex": self.current_player_index,
            "phase": self.phase.value,
            "turnTimeLimit": self.turn_time_limit,
            "lastTurnStartTime": _format_datetime(self.last_turn_start_time),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        """Create a game state from a stored record.

        Fields introduced after the first release are defaulted when absent:
        ``turnTimeLimit`` (0), ``lastTurnStartTime`` (null), ``phase``
        (derived from the words and ``endedAt``) and ``hasRequiredWords``
        (recomputed from the words). The legacy ``startedBy`` key is read
        when ``startedById`` is missing.

        Args:
            data: The serialized record.

        Returns:
            The loaded game state.
        """
        started_at = _parse_datetime(data.get("startedAt")) or _utcnow()
        ended_at = _parse_datetime(data.get("endedAt"))
        words = [WordInfo.from_dict(w, default_added_at=started_at) for w in data.get("words", [])]
        required_words = [str(w) for w in data.get("requiredWords") or DEFAULT_REQUIRED_WORDS]

        phase_value = data.get("phase")
        if phase_value:
            phase = GamePhase(phase_value)
        elif ended_at is not None:
            phase = GamePhase.COMPLETE
        elif words:
            phase = GamePhase.PLAYING
        else:
            phase = GamePhase.LOBBY

        players = [Player.from_dict(p) for p in data.get("players", [])]
        current_index = int(data.get("currentPlayerIndex", 0))
        if players and not 0 <= current_index < len(players):
            current_index = 0

        state = cls(
            game_id=str(data["gameId"]),
            players=players,
            connected_players=[str(p) for p in data.get("connectedPlayers", [])],
            words=words,
            started_at=started_at,
            ended_at=ended_at,
            started_by_id=data.get("startedById", data.get("startedBy")),
            required_words=required_words,
            has_required_words=[bool(f) for f in data.get("hasRequiredWords", [])],
            current_player_index=current_index,
            phase=phase,
            turn_time_limit=max(0, int(data.get("turnTimeLimit") or 0)),
            last_turn_start_time=_parse_datetime(data.get("lastTurnStartTime")),
        )

        stored_flags = data.get("hasRequiredWords")
        legacy_words = any(isinstance(w, str) for w in data.get("words", []))
        if stored_flags is None or len(stored_flags) != len(required_words) or legacy_words:
            recompute_required_words(state)

        return state
