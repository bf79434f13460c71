from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from fish.logic.exceptions import FishRuleError
from fish.messaging.types import (
    AskCardMessage,
    BackToLobbyMessage,
    ConfirmTeamsMessage,
    CreateRoomMessage,
    DeclareWinnerMessage,
    ErrorMessage,
    ForceRedistributeMessage,
    InviteResponseMessage,
    InviteToGameMessage,
    JoinRoomMessage,
    LeaveGameMessage,
    LeaveRoomMessage,
    MakeClaimMessage,
    PingMessage,
    PlayAgainMessage,
    RandomizeTeamsMessage,
    RegisterUserMessage,
    SessionErrorCode,
    StartGameMessage,
    SwapRequestMessage,
    SwapResponseMessage,
    TogglePauseMessage,
    parse_client_message,
)
from fish.session.manager import CommandRejectedError

if TYPE_CHECKING:
    from fish.messaging.protocol import ConnectionProtocol
    from fish.messaging.types import ClientMessage
    from fish.session.manager import SessionManager

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Routes incoming messages to appropriate handlers.

    This class contains pure business logic and can be tested
    without real WebSocket connections. Every rejection is answered with an
    ERROR message to the requester only; the room is left untouched.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message from %s: %s", connection.connection_id, e)
            await self._send_error(connection, SessionErrorCode.INVALID_MESSAGE, str(e))
            return

        try:
            await self._dispatch(connection, message)
        except (FishRuleError, CommandRejectedError) as e:
            logger.info("%s rejected for %s: %s", message.type, connection.connection_id, e.message)
            await self._send_error(connection, e.code, e.message)
        except Exception:
            logger.exception("unexpected error handling %s for %s", message.type, connection.connection_id)
            await self._send_error(connection, SessionErrorCode.INTERNAL_ERROR, "internal server error")
        finally:
            structlog.contextvars.unbind_contextvars("room_code", "player_id")

    async def _dispatch(self, connection: ConnectionProtocol, message: ClientMessage) -> None:  # noqa: C901, PLR0912
        manager = self._session_manager
        if isinstance(message, CreateRoomMessage):
            await manager.create_room(connection, message.player_name)
        elif isinstance(message, JoinRoomMessage):
            await manager.join_room(connection, message.code, message.player_name)
        elif isinstance(message, StartGameMessage):
            await manager.start_game(connection, message.code)
        elif isinstance(message, RandomizeTeamsMessage):
            await manager.randomize_teams(connection, message.code)
        elif isinstance(message, SwapRequestMessage):
            await manager.swap_request(connection, message.code, message.target_id)
        elif isinstance(message, SwapResponseMessage):
            await manager.swap_response(connection, message.code, message.request_id, accept=message.accept)
        elif isinstance(message, ConfirmTeamsMessage):
            await manager.confirm_teams(connection, message.code)
        elif isinstance(message, AskCardMessage):
            await manager.ask_card(connection, message.code, message.target_id, message.card)
        elif isinstance(message, MakeClaimMessage):
            await manager.make_claim(
                connection,
                message.code,
                message.half_suit,
                message.distribution,
                message.target_team,
            )
        elif isinstance(message, TogglePauseMessage):
            await manager.toggle_pause(connection, message.code)
        elif isinstance(message, DeclareWinnerMessage):
            await manager.declare_winner(connection, message.code, message.team)
        elif isinstance(message, LeaveRoomMessage):
            await manager.leave_room(connection, message.code, close=message.close)
        elif isinstance(message, LeaveGameMessage):
            await manager.leave_game(connection, message.code)
        elif isinstance(message, BackToLobbyMessage):
            await manager.back_to_lobby(connection, message.code)
        elif isinstance(message, PlayAgainMessage):
            await manager.play_again(connection, message.code)
        elif isinstance(message, ForceRedistributeMessage):
            await manager.force_redistribute(connection, message.code, message.player_id)
        elif isinstance(message, RegisterUserMessage):
            await manager.register_user(connection, message.user_id, message.display_name)
        elif isinstance(message, InviteToGameMessage):
            await manager.invite_to_game(connection, message.code, message.user_id)
        elif isinstance(message, InviteResponseMessage):
            await manager.invite_response(
                connection,
                message.code,
                message.inviter_user_id,
                accept=message.accept,
            )
        elif isinstance(message, PingMessage):
            await manager.handle_ping(connection)

    @staticmethod
    async def _send_error(connection: ConnectionProtocol, code: str, message: str) -> None:
        await connection.send_message(ErrorMessage(code=code, message=message).model_dump(mode="json"))

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.handle_disconnect(connection)
