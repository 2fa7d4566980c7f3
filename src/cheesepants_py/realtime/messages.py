"""WebSocket message types for the sentence game.

Every inbound frame is a JSON object ``{"type": <kind>, ...fields}``.
:func:`parse_inbound` turns it into one frozen dataclass per kind, so the
handler only ever sees well-typed messages. Outbound messages are small
dataclasses with a ``to_dict`` producing the wire shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping


class MessageType(str, Enum):
    """Types of WebSocket messages."""

    # Client -> Server
    JOIN = "join"
    GET_GAME_STATE = "get-game-state"
    START_GAME = "start-game"
    ADD_WORD = "add-word"
    DELETE_WORD = "delete-word"
    CHANGE_TURN = "change-turn"
    UPDATE_TURN_TIME_LIMIT = "update-turn-time-limit"
    REMOVE_PLAYER = "remove-player"
    TEST_CONNECTION = "test-connection"

    # Both directions: free-form relay inbound, advisory text outbound
    MESSAGE = "message"

    # Server -> Client
    GET_GAME_STATE_RESPONSE = "get-game-state-response"
    GAME_COMPLETE = "game-complete"
    QUIT = "quit"
    PONG = "pong"


class InvalidMessageError(ValueError):
    """Raised when an inbound frame cannot be interpreted."""


class InvalidConnectionError(ValueError):
    """Raised when WebSocket connection parameters are malformed."""


def _require_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        msg = f"Missing or invalid '{key}'."
        raise InvalidMessageError(msg)
    return value


def _require_int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool):
        value = None
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            value = None
    if not isinstance(value, int):
        msg = f"'{key}' must be a whole number."
        raise InvalidMessageError(msg)
    return value


# Inbound messages


@dataclass(frozen=True)
class JoinMessage:
    """Request to join the room, or rejoin it after a reconnect."""

    player_name: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> JoinMessage:
        """Create from a decoded frame."""
        name = data.get("playerName")
        return cls(player_name=name if isinstance(name, str) else None)


@dataclass(frozen=True)
class GetGameStateMessage:
    """Request for the full room state."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GetGameStateMessage:
        """Create from a decoded frame."""
        return cls()


@dataclass(frozen=True)
class StartGameMessage:
    """Admin request to start play."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StartGameMessage:
        """Create from a decoded frame."""
        return cls()


@dataclass(frozen=True)
class AddWordMessage:
    """Word submitted by the current player."""

    word: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AddWordMessage:
        """Create from a decoded frame."""
        word = data.get("word")
        if not isinstance(word, str):
            msg = "Please enter a word."
            raise InvalidMessageError(msg)
        return cls(word=word)


@dataclass(frozen=True)
class DeleteWordMessage:
    """Admin request to delete the word at ``index``."""

    index: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DeleteWordMessage:
        """Create from a decoded frame."""
        return cls(index=_require_int(data, "index"))


@dataclass(frozen=True)
class ChangeTurnMessage:
    """Admin request to hand the turn to another player."""

    new_current_player_id: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChangeTurnMessage:
        """Create from a decoded frame."""
        return cls(new_current_player_id=_require_str(data, "newCurrentPlayerId"))


@dataclass(frozen=True)
class UpdateTurnTimeLimitMessage:
    """Admin request to change the per-turn time limit."""

    new_time_limit: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UpdateTurnTimeLimitMessage:
        """Create from a decoded frame."""
        return cls(new_time_limit=_require_int(data, "newTimeLimit"))


@dataclass(frozen=True)
class RemovePlayerMessage:
    """Admin request to remove a player from the room."""

    player_id_to_remove: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RemovePlayerMessage:
        """Create from a decoded frame."""
        return cls(player_id_to_remove=_require_str(data, "playerIdToRemove"))


@dataclass(frozen=True)
class TestConnectionMessage:
    """Keepalive sent periodically by clients."""

    __test__ = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TestConnectionMessage:
        """Create from a decoded frame."""
        return cls()


@dataclass(frozen=True)
class RelayMessage:
    """Free-form message relayed verbatim to the other players.

    Attributes:
        payload: The frame exactly as it was received.
    """

    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RelayMessage:
        """Create from a decoded frame."""
        return cls(payload=dict(data))


InboundMessage = (
    JoinMessage
    | GetGameStateMessage
    | StartGameMessage
    | AddWordMessage
    | DeleteWordMessage
    | ChangeTurnMessage
    | UpdateTurnTimeLimitMessage
    | RemovePlayerMessage
    | TestConnectionMessage
    | RelayMessage
)

INBOUND_MESSAGES: dict[MessageType, type[InboundMessage]] = {
    MessageType.JOIN: JoinMessage,
    MessageType.GET_GAME_STATE: GetGameStateMessage,
    MessageType.START_GAME: StartGameMessage,
    MessageType.ADD_WORD: AddWordMessage,
    MessageType.DELETE_WORD: DeleteWordMessage,
    MessageType.CHANGE_TURN: ChangeTurnMessage,
    MessageType.UPDATE_TURN_TIME_LIMIT: UpdateTurnTimeLimitMessage,
    MessageType.REMOVE_PLAYER: RemovePlayerMessage,
    MessageType.TEST_CONNECTION: TestConnectionMessage,
    MessageType.MESSAGE: RelayMessage,
}


def parse_inbound(data: Any) -> InboundMessage:
    """Parse a decoded inbound frame.

    Args:
        data: The decoded JSON value.

    Returns:
        The typed message.

    Raises:
        InvalidMessageError: If the frame is not an object, has an unknown
            type, or carries fields of the wrong type.
    """
    if not isinstance(data, dict):
        msg = "Messages must be JSON objects."
        raise InvalidMessageError(msg)

    raw_type = data.get("type")
    try:
        message_type = MessageType(raw_type)
    except (TypeError, ValueError):
        message_type = None
    message_cls = INBOUND_MESSAGES.get(message_type) if message_type is not None else None
    if message_cls is None:
        msg = f"Unknown message type: {raw_type}"
        raise InvalidMessageError(msg)

    return message_cls.from_dict(data)


# Outbound messages


@dataclass
class GameStateMessage:
    """Full room state, sent after every change and on request."""

    game_state: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.GET_GAME_STATE_RESPONSE.value,
            "gameState": self.game_state,
        }


@dataclass
class GameCompleteMessage:
    """Sent to everyone when the sentence is finished."""

    sentence: list[str]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.GAME_COMPLETE.value,
            "sentence": list(self.sentence),
        }


@dataclass
class TextMessage:
    """Human-readable advisory or notice."""

    data: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.MESSAGE.value,
            "data": self.data,
        }


@dataclass
class QuitMessage:
    """Tells a removed player's client to reset to an un-joined state."""

    game_id: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.QUIT.value,
            "gameId": self.game_id,
        }


@dataclass
class PongMessage:
    """Reply to a keepalive."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"type": MessageType.PONG.value}


# Connection parameters


@dataclass(frozen=True)
class ConnectionParams:
    """Query parameters of a game WebSocket connection.

    Attributes:
        game_id: The room to connect to.
        player_id: The connecting player; the actor of every later action.
        player_name: When present, the player joins during the handshake.
        required_words: Raw comma-separated required words for a new room.
        turn_time_limit: Seconds per turn for a new room.
    """

    game_id: str
    player_id: str
    player_name: str | None = None
    required_words: str | None = None
    turn_time_limit: int = 0

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> ConnectionParams:
        """Validate and build connection parameters.

        Args:
            query: The connection's query parameters.

        Returns:
            The parsed parameters.

        Raises:
            InvalidConnectionError: If ``gameId`` or ``playerId`` is missing or
                ``turnTimeLimit`` is not an integer.
        """
        game_id = (query.get("gameId") or "").strip()
        player_id = (query.get("playerId") or "").strip()
        if not game_id or not player_id:
            msg = "gameId and playerId are required"
            raise InvalidConnectionError(msg)

        raw_limit = (query.get("turnTimeLimit") or "").strip()
        try:
            turn_time_limit = int(raw_limit) if raw_limit else 0
        except ValueError as e:
            msg = "turnTimeLimit must be an integer"
            raise InvalidConnectionError(msg) from e

        player_name = (query.get("playerName") or "").strip() or None
        return cls(
            game_id=game_id,
            player_id=player_id,
            player_name=player_name,
            required_words=query.get("requiredWords") or None,
            turn_time_limit=max(0, turn_time_limit),
        )
