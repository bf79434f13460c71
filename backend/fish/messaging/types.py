from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from fish.logic.enums import GameErrorCode, Team
from fish.logic.teams import SwapRequest
from fish.messaging.snapshot import RoomSnapshot

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F

ROOM_CODE_PATTERN = r"^[A-Za-z0-9]{6}$"
_ID_FIELD = Field(min_length=1, max_length=64)


class ClientMessageType(StrEnum):
    CREATE_ROOM = "CREATE_ROOM"
    JOIN_ROOM = "JOIN_ROOM"
    START_GAME = "START_GAME"
    RANDOMIZE_TEAMS = "RANDOMIZE_TEAMS"
    SWAP_REQUEST = "SWAP_REQUEST"
    SWAP_RESPONSE = "SWAP_RESPONSE"
    CONFIRM_TEAMS = "CONFIRM_TEAMS"
    ASK_CARD = "ASK_CARD"
    MAKE_CLAIM = "MAKE_CLAIM"
    TOGGLE_PAUSE = "TOGGLE_PAUSE"
    DECLARE_WINNER = "DECLARE_WINNER"
    LEAVE_ROOM = "LEAVE_ROOM"
    LEAVE_GAME = "LEAVE_GAME"
    BACK_TO_LOBBY = "BACK_TO_LOBBY"
    PLAY_AGAIN = "PLAY_AGAIN"
    FORCE_REDISTRIBUTE = "FORCE_REDISTRIBUTE"
    REGISTER_USER = "REGISTER_USER"
    INVITE_TO_GAME = "INVITE_TO_GAME"
    INVITE_RESPONSE = "INVITE_RESPONSE"
    PING = "PING"


class SessionMessageType(StrEnum):
    ROOM_CREATED = "ROOM_CREATED"
    PLAYER_JOINED = "PLAYER_JOINED"
    PLAYER_LEFT = "PLAYER_LEFT"
    ROOM_UPDATED = "ROOM_UPDATED"
    TEAMS_ASSIGNED = "TEAMS_ASSIGNED"
    TEAMS_UPDATED = "TEAMS_UPDATED"
    SWAP_REQUEST_SENT = "SWAP_REQUEST_SENT"
    SWAP_RESPONSE_RESULT = "SWAP_RESPONSE_RESULT"
    GAME_STARTED = "GAME_STARTED"
    GAME_STATE_UPDATE = "GAME_STATE_UPDATE"
    GAME_REJOINED = "GAME_REJOINED"
    PLAYER_DISCONNECTED = "PLAYER_DISCONNECTED"
    PLAYER_RECONNECTED = "PLAYER_RECONNECTED"
    CARDS_REDISTRIBUTED = "CARDS_REDISTRIBUTED"
    PLAYER_LEFT_GAME = "PLAYER_LEFT_GAME"
    LEFT_ROOM = "LEFT_ROOM"
    ROOM_CLOSED = "ROOM_CLOSED"
    GAME_INVITE = "GAME_INVITE"
    INVITE_SENT = "INVITE_SENT"
    INVITE_FAILED = "INVITE_FAILED"
    USER_REGISTERED = "USER_REGISTERED"
    PONG = "PONG"
    ERROR = "ERROR"


class SessionErrorCode(StrEnum):
    ROOM_NOT_FOUND = "room_not_found"
    ROOM_FULL = "room_full"
    SERVER_FULL = "server_full"
    ROOM_NOT_JOINABLE = "room_not_joinable"
    ALREADY_IN_ROOM = "already_in_room"
    NOT_IN_ROOM = "not_in_room"
    NOT_HOST = "not_host"
    WRONG_PHASE = "wrong_phase"
    PLAYER_NOT_DISCONNECTED = "player_not_disconnected"
    RECONNECT_RETRY_LATER = "reconnect_retry_later"
    NOT_REGISTERED = "not_registered"
    INVALID_MESSAGE = "invalid_message"
    RATE_LIMITED = "rate_limited"
    INTERNAL_ERROR = "internal_error"


class InviteFailureReason(StrEnum):
    OFFLINE = "offline"
    DECLINED = "declined"
    ALREADY_IN_ROOM = "already_in_room"


def _check_display_text(v: str) -> str:
    if any(ord(c) < _SPACE_ORD or ord(c) == _DEL_ORD for c in v):
        raise ValueError("text must not contain control characters")
    stripped = v.strip()
    if not stripped:
        raise ValueError("text must not be blank")
    return stripped


# --- Client commands ---


class _RoomCommand(BaseModel):
    code: str = Field(pattern=ROOM_CODE_PATTERN)

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        return v.upper()


class CreateRoomMessage(BaseModel):
    type: Literal[ClientMessageType.CREATE_ROOM] = ClientMessageType.CREATE_ROOM
    player_name: str = Field(min_length=1, max_length=32)

    @field_validator("player_name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return _check_display_text(v)


class JoinRoomMessage(_RoomCommand):
    type: Literal[ClientMessageType.JOIN_ROOM] = ClientMessageType.JOIN_ROOM
    player_name: str = Field(min_length=1, max_length=32)

    @field_validator("player_name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return _check_display_text(v)


class StartGameMessage(_RoomCommand):
    type: Literal[ClientMessageType.START_GAME] = ClientMessageType.START_GAME


class RandomizeTeamsMessage(_RoomCommand):
    type: Literal[ClientMessageType.RANDOMIZE_TEAMS] = ClientMessageType.RANDOMIZE_TEAMS


class SwapRequestMessage(_RoomCommand):
    type: Literal[ClientMessageType.SWAP_REQUEST] = ClientMessageType.SWAP_REQUEST
    target_id: str = _ID_FIELD


class SwapResponseMessage(_RoomCommand):
    type: Literal[ClientMessageType.SWAP_RESPONSE] = ClientMessageType.SWAP_RESPONSE
    request_id: int = Field(ge=1)
    accept: bool


class ConfirmTeamsMessage(_RoomCommand):
    type: Literal[ClientMessageType.CONFIRM_TEAMS] = ClientMessageType.CONFIRM_TEAMS


class AskCardMessage(_RoomCommand):
    type: Literal[ClientMessageType.ASK_CARD] = ClientMessageType.ASK_CARD
    target_id: str = _ID_FIELD
    card: str = Field(min_length=3, max_length=16)


class MakeClaimMessage(_RoomCommand):
    type: Literal[ClientMessageType.MAKE_CLAIM] = ClientMessageType.MAKE_CLAIM
    half_suit: str = Field(min_length=1, max_length=16)
    # player_id -> card ids that player is claimed to hold
    distribution: dict[str, list[Annotated[str, Field(max_length=16)]]] = Field(max_length=10)
    target_team: Team


class TogglePauseMessage(_RoomCommand):
    type: Literal[ClientMessageType.TOGGLE_PAUSE] = ClientMessageType.TOGGLE_PAUSE


class DeclareWinnerMessage(_RoomCommand):
    type: Literal[ClientMessageType.DECLARE_WINNER] = ClientMessageType.DECLARE_WINNER
    team: Team


class LeaveRoomMessage(_RoomCommand):
    type: Literal[ClientMessageType.LEAVE_ROOM] = ClientMessageType.LEAVE_ROOM
    close: bool = False


class LeaveGameMessage(_RoomCommand):
    type: Literal[ClientMessageType.LEAVE_GAME] = ClientMessageType.LEAVE_GAME


class BackToLobbyMessage(_RoomCommand):
    type: Literal[ClientMessageType.BACK_TO_LOBBY] = ClientMessageType.BACK_TO_LOBBY


class PlayAgainMessage(_RoomCommand):
    type: Literal[ClientMessageType.PLAY_AGAIN] = ClientMessageType.PLAY_AGAIN


class ForceRedistributeMessage(_RoomCommand):
    type: Literal[ClientMessageType.FORCE_REDISTRIBUTE] = ClientMessageType.FORCE_REDISTRIBUTE
    player_id: str = _ID_FIELD


class RegisterUserMessage(BaseModel):
    type: Literal[ClientMessageType.REGISTER_USER] = ClientMessageType.REGISTER_USER
    user_id: str = Field(min_length=1, max_length=100)
    display_name: str = Field(min_length=1, max_length=32)

    @field_validator("display_name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return _check_display_text(v)


class InviteToGameMessage(_RoomCommand):
    type: Literal[ClientMessageType.INVITE_TO_GAME] = ClientMessageType.INVITE_TO_GAME
    user_id: str = Field(min_length=1, max_length=100)


class InviteResponseMessage(_RoomCommand):
    type: Literal[ClientMessageType.INVITE_RESPONSE] = ClientMessageType.INVITE_RESPONSE
    inviter_user_id: str = Field(min_length=1, max_length=100)
    accept: bool


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = Annotated[
    CreateRoomMessage
    | JoinRoomMessage
    | StartGameMessage
    | RandomizeTeamsMessage
    | SwapRequestMessage
    | SwapResponseMessage
    | ConfirmTeamsMessage
    | AskCardMessage
    | MakeClaimMessage
    | TogglePauseMessage
    | DeclareWinnerMessage
    | LeaveRoomMessage
    | LeaveGameMessage
    | BackToLobbyMessage
    | PlayAgainMessage
    | ForceRedistributeMessage
    | RegisterUserMessage
    | InviteToGameMessage
    | InviteResponseMessage
    | PingMessage,
    Field(discriminator="type"),
]

_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a decoded frame into a typed client command."""
    return _client_message_adapter.validate_python(data)


# --- Server events carrying a room snapshot ---


class _RoomEvent(BaseModel):
    room: RoomSnapshot
    you: str  # player id of the recipient


class RoomCreatedMessage(_RoomEvent):
    type: Literal[SessionMessageType.ROOM_CREATED] = SessionMessageType.ROOM_CREATED


class PlayerJoinedMessage(_RoomEvent):
    type: Literal[SessionMessageType.PLAYER_JOINED] = SessionMessageType.PLAYER_JOINED
    player_id: str
    player_name: str


class PlayerLeftMessage(_RoomEvent):
    type: Literal[SessionMessageType.PLAYER_LEFT] = SessionMessageType.PLAYER_LEFT
    player_id: str
    player_name: str


class RoomUpdatedMessage(_RoomEvent):
    type: Literal[SessionMessageType.ROOM_UPDATED] = SessionMessageType.ROOM_UPDATED


class TeamsAssignedMessage(_RoomEvent):
    type: Literal[SessionMessageType.TEAMS_ASSIGNED] = SessionMessageType.TEAMS_ASSIGNED


class TeamsUpdatedMessage(_RoomEvent):
    type: Literal[SessionMessageType.TEAMS_UPDATED] = SessionMessageType.TEAMS_UPDATED


class SwapRequestSentMessage(_RoomEvent):
    type: Literal[SessionMessageType.SWAP_REQUEST_SENT] = SessionMessageType.SWAP_REQUEST_SENT
    request: SwapRequest


class SwapResponseResultMessage(_RoomEvent):
    type: Literal[SessionMessageType.SWAP_RESPONSE_RESULT] = SessionMessageType.SWAP_RESPONSE_RESULT
    request: SwapRequest


class GameStartedMessage(_RoomEvent):
    type: Literal[SessionMessageType.GAME_STARTED] = SessionMessageType.GAME_STARTED


class GameStateUpdateMessage(_RoomEvent):
    type: Literal[SessionMessageType.GAME_STATE_UPDATE] = SessionMessageType.GAME_STATE_UPDATE


class GameRejoinedMessage(_RoomEvent):
    """Full snapshot sent only to the returning connection."""

    type: Literal[SessionMessageType.GAME_REJOINED] = SessionMessageType.GAME_REJOINED


class PlayerDisconnectedMessage(_RoomEvent):
    type: Literal[SessionMessageType.PLAYER_DISCONNECTED] = SessionMessageType.PLAYER_DISCONNECTED
    player_id: str
    player_name: str
    grace_period_seconds: float


class PlayerReconnectedMessage(_RoomEvent):
    type: Literal[SessionMessageType.PLAYER_RECONNECTED] = SessionMessageType.PLAYER_RECONNECTED
    player_id: str
    player_name: str


class CardsRedistributedMessage(_RoomEvent):
    type: Literal[SessionMessageType.CARDS_REDISTRIBUTED] = SessionMessageType.CARDS_REDISTRIBUTED
    player_id: str
    player_name: str
    cards_moved: int


class PlayerLeftGameMessage(_RoomEvent):
    type: Literal[SessionMessageType.PLAYER_LEFT_GAME] = SessionMessageType.PLAYER_LEFT_GAME
    player_id: str
    player_name: str
    cards_moved: int


# --- Server events without a room snapshot ---


class LeftRoomMessage(BaseModel):
    type: Literal[SessionMessageType.LEFT_ROOM] = SessionMessageType.LEFT_ROOM
    code: str


class RoomClosedMessage(BaseModel):
    type: Literal[SessionMessageType.ROOM_CLOSED] = SessionMessageType.ROOM_CLOSED
    code: str


class GameInviteMessage(BaseModel):
    type: Literal[SessionMessageType.GAME_INVITE] = SessionMessageType.GAME_INVITE
    code: str
    inviter_user_id: str
    inviter_name: str


class InviteSentMessage(BaseModel):
    type: Literal[SessionMessageType.INVITE_SENT] = SessionMessageType.INVITE_SENT
    code: str
    user_id: str


class InviteFailedMessage(BaseModel):
    type: Literal[SessionMessageType.INVITE_FAILED] = SessionMessageType.INVITE_FAILED
    code: str
    user_id: str
    reason: InviteFailureReason


class UserRegisteredMessage(BaseModel):
    type: Literal[SessionMessageType.USER_REGISTERED] = SessionMessageType.USER_REGISTERED
    user_id: str
    display_name: str


class PongMessage(BaseModel):
    type: Literal[SessionMessageType.PONG] = SessionMessageType.PONG


class ErrorMessage(BaseModel):
    type: Literal[SessionMessageType.ERROR] = SessionMessageType.ERROR
    code: SessionErrorCode | GameErrorCode
    message: str
