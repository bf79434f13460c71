from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from fish.logic.cards import create_rng, parse_card
from fish.logic.enums import RoomPhase
from fish.logic.exceptions import InvalidPlayerCountError, UnknownPlayerError
from fish.logic.game import ask_card, declare_winner, make_claim, start_game, toggle_pause
from fish.logic.settings import GameSettings
from fish.logic.teams import carry_over_teams, create_team_setup, randomize_teams, request_swap, respond_swap
from fish.messaging.snapshot import build_room_snapshot
from fish.messaging.types import (
    CardsRedistributedMessage,
    GameInviteMessage,
    GameRejoinedMessage,
    GameStartedMessage,
    GameStateUpdateMessage,
    InviteFailedMessage,
    InviteFailureReason,
    InviteSentMessage,
    LeftRoomMessage,
    PlayerDisconnectedMessage,
    PlayerJoinedMessage,
    PlayerLeftGameMessage,
    PlayerLeftMessage,
    PlayerReconnectedMessage,
    PongMessage,
    RoomClosedMessage,
    RoomCreatedMessage,
    RoomUpdatedMessage,
    SessionErrorCode,
    SwapRequestSentMessage,
    SwapResponseResultMessage,
    TeamsAssignedMessage,
    TeamsUpdatedMessage,
    UserRegisteredMessage,
)
from fish.session.broadcast import broadcast_to_players
from fish.session.disconnect_monitor import DEFAULT_GRACE_SECONDS, DisconnectMonitor
from fish.session.history import GameResult, GameResultPlayer
from fish.session.models import Player, Room, new_player_id
from fish.session.presence import PresenceDirectory
from fish.session.room_store import RoomCodeExhaustedError, RoomStore

if TYPE_CHECKING:
    import random

    from pydantic import BaseModel

    from fish.logic.enums import Team
    from fish.messaging.protocol import ConnectionProtocol
    from fish.session.history import GameHistoryRecorder

logger = structlog.get_logger()

DEFAULT_MAX_ROOMS = 500


class CommandRejectedError(Exception):
    """A command that cannot be applied in the current session state.

    Converted by the router into an ERROR message to the requester only.
    """

    def __init__(self, code: SessionErrorCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class SessionManager:
    def __init__(
        self,
        room_store: RoomStore | None = None,
        *,
        game_settings: GameSettings | None = None,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        max_rooms: int = DEFAULT_MAX_ROOMS,
        history: GameHistoryRecorder | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = room_store if room_store is not None else RoomStore()
        self._game_settings = game_settings or GameSettings()
        self._max_rooms = max_rooms
        self._history = history
        self._rng = rng or create_rng()
        self._connections: dict[str, ConnectionProtocol] = {}
        self._bindings: dict[str, tuple[str, str]] = {}  # connection_id -> (room_code, player_id)
        self._room_locks: dict[str, asyncio.Lock] = {}  # room_code -> Lock
        self._presence = PresenceDirectory()
        self._monitor = DisconnectMonitor(
            on_expire=self._handle_reconnect_deadline,
            grace_seconds=grace_seconds,
            clock=clock,
        )
        for room in self._store:
            self._room_locks[room.code] = asyncio.Lock()

    # --- Registry ---

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)
        self._bindings.pop(connection.connection_id, None)
        self._presence.unregister_connection(connection.connection_id)

    def get_room(self, code: str) -> Room | None:
        return self._store.get(code)

    @property
    def presence(self) -> PresenceDirectory:
        return self._presence

    @property
    def monitor(self) -> DisconnectMonitor:
        return self._monitor

    @property
    def room_count(self) -> int:
        return self._store.count()

    @property
    def game_count(self) -> int:
        return sum(1 for room in self._store if room.game_in_progress)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @property
    def max_rooms(self) -> int:
        return self._max_rooms

    def room_of(self, connection_id: str) -> str | None:
        binding = self._bindings.get(connection_id)
        return binding[0] if binding is not None else None

    def shutdown(self) -> None:
        self._monitor.shutdown()

    # --- Internal helpers ---

    def _bind(self, connection: ConnectionProtocol, room: Room, player: Player) -> None:
        self._bindings[connection.connection_id] = (room.code, player.player_id)

    def _unbind(self, player: Player) -> None:
        connection_id = player.connection_id
        if connection_id is not None and self._bindings.get(connection_id, ("", ""))[1] == player.player_id:
            del self._bindings[connection_id]

    def _lock_for(self, code: str) -> asyncio.Lock:
        lock = self._room_locks.get(code)
        if lock is None:
            raise CommandRejectedError(SessionErrorCode.ROOM_NOT_FOUND, f"room {code} does not exist")
        return lock

    def _resolve(self, connection: ConnectionProtocol, code: str) -> tuple[Room, Player]:
        binding = self._bindings.get(connection.connection_id)
        if binding is None or binding[0] != code:
            raise CommandRejectedError(SessionErrorCode.NOT_IN_ROOM, f"you are not in room {code}")
        room = self._store.get(code)
        if room is None:
            raise CommandRejectedError(SessionErrorCode.ROOM_NOT_FOUND, f"room {code} does not exist")
        player = room.get_player(binding[1])
        if player is None:
            raise CommandRejectedError(SessionErrorCode.NOT_IN_ROOM, f"you are not in room {code}")
        return room, player

    @contextlib.asynccontextmanager
    async def _room_context(self, connection: ConnectionProtocol, code: str) -> AsyncIterator[tuple[Room, Player]]:
        """Hold the room lock and resolve the requester inside it."""
        async with self._lock_for(code):
            room, player = self._resolve(connection, code)
            structlog.contextvars.bind_contextvars(room_code=room.code, player_id=player.player_id)
            yield room, player

    @staticmethod
    def _require_host(room: Room, player: Player) -> None:
        if not room.is_host(player.player_id):
            raise CommandRejectedError(SessionErrorCode.NOT_HOST, "only the host can do that")

    @staticmethod
    def _require_phase(room: Room, *phases: RoomPhase) -> None:
        if room.phase not in phases:
            expected = ", ".join(p.value for p in phases)
            raise CommandRejectedError(
                SessionErrorCode.WRONG_PHASE,
                f"room is in {room.phase.value}, expected {expected}",
            )

    @staticmethod
    def _require_game(room: Room) -> None:
        if room.game is None:
            raise CommandRejectedError(SessionErrorCode.WRONG_PHASE, "no game is running in this room")

    def _new_player(self, connection: ConnectionProtocol, name: str) -> Player:
        entry = self._presence.user_for(connection.connection_id)
        return Player(
            player_id=new_player_id(),
            name=name,
            connection=connection,
            user_id=entry.user_id if entry is not None else None,
        )

    @staticmethod
    async def _send(connection: ConnectionProtocol | None, message: BaseModel) -> None:
        if connection is None:
            return
        with contextlib.suppress(RuntimeError, OSError, ConnectionError):
            await connection.send_message(message.model_dump(mode="json"))

    async def _broadcast(
        self,
        room: Room,
        message_cls: type[BaseModel],
        *,
        exclude_player_id: str | None = None,
        **fields: Any,  # noqa: ANN401
    ) -> None:
        """Send the full room snapshot to every connected player, each with their own id."""
        snapshot = build_room_snapshot(room)

        def build(player: Player) -> dict[str, Any]:
            return message_cls(room=snapshot, you=player.player_id, **fields).model_dump(mode="json")

        await broadcast_to_players(room.players, build, exclude_player_id=exclude_player_id)

    def _discard_room(self, room: Room) -> None:
        self._monitor.forget_room(room.code)
        for player in room.players:
            self._unbind(player)
        self._store.remove(room.code)
        self._room_locks.pop(room.code, None)
        logger.info("room removed", room_code=room.code)

    def _game_result(self, room: Room) -> GameResult:
        game = room.game
        return GameResult(
            room_code=room.code,
            finished_at=datetime.now(UTC),
            winner=game.winner,
            is_draw=game.is_draw,
            claimed_a=list(game.claimed.A),
            claimed_b=list(game.claimed.B),
            players=[
                GameResultPlayer(
                    player_id=p.player_id,
                    name=p.name,
                    team=game.team_of(p.player_id),
                    user_id=p.user_id,
                )
                for p in room.players
            ],
        )

    async def _conclude(self, room: Room) -> GameResult:
        """Snapshot the finished game, then drop every seat still held for a reconnection.

        A held seat only exists to resume a running game; after game over the
        absent player is a plain roster removal. Must hold the room lock.
        """
        result = self._game_result(room)
        for player in room.disconnected_players:
            logger.info("held seat released after game over", released_id=player.player_id)
            await self._remove_from_room(room, player)
        return result

    async def _record_result(self, result: GameResult | None) -> None:
        """Best-effort persist a finished game. Called outside the room lock."""
        if result is None or self._history is None:
            return
        try:
            await self._history.record(result)
        except Exception:
            logger.exception("failed to record game result", room_code=result.room_code)

    # --- Lobby ---

    async def create_room(self, connection: ConnectionProtocol, player_name: str) -> Room:
        if connection.connection_id in self._bindings:
            raise CommandRejectedError(SessionErrorCode.ALREADY_IN_ROOM, "leave your current room first")
        if self._store.count() >= self._max_rooms:
            raise CommandRejectedError(SessionErrorCode.SERVER_FULL, "server is at capacity")
        try:
            room = self._store.create(self._game_settings)
        except RoomCodeExhaustedError:
            logger.warning("room code space exhausted", room_count=self._store.count())
            raise CommandRejectedError(SessionErrorCode.SERVER_FULL, "no room code available") from None

        self._room_locks[room.code] = asyncio.Lock()
        player = self._new_player(connection, player_name)
        room.players.append(player)
        room.host_id = player.player_id
        self._bind(connection, room, player)

        structlog.contextvars.bind_contextvars(room_code=room.code, player_id=player.player_id)
        logger.info("room created")
        await self._send(connection, RoomCreatedMessage(room=build_room_snapshot(room), you=player.player_id))
        return room

    async def join_room(self, connection: ConnectionProtocol, code: str, player_name: str) -> None:
        """Join a room, or resume a held seat when the connection's user owns one."""
        if connection.connection_id in self._bindings:
            raise CommandRejectedError(SessionErrorCode.ALREADY_IN_ROOM, "leave your current room first")

        async with self._lock_for(code):
            room = self._store.get(code)
            if room is None:
                raise CommandRejectedError(SessionErrorCode.ROOM_NOT_FOUND, f"room {code} does not exist")
            structlog.contextvars.bind_contextvars(room_code=room.code)

            entry = self._presence.user_for(connection.connection_id)
            existing = room.find_by_user_id(entry.user_id) if entry is not None else None
            if existing is not None:
                if existing.disconnected:
                    await self._reconnect(room, existing, connection)
                    return
                if room.game_in_progress:
                    # the old socket has not been noticed as closed yet
                    raise CommandRejectedError(
                        SessionErrorCode.RECONNECT_RETRY_LATER,
                        "your previous connection is still active, retry shortly",
                    )
                raise CommandRejectedError(SessionErrorCode.ALREADY_IN_ROOM, "you are already in this room")

            if room.phase in (RoomPhase.TEAM_SETUP, RoomPhase.IN_PROGRESS):
                raise CommandRejectedError(SessionErrorCode.ROOM_NOT_JOINABLE, "a game is already underway")
            if room.player_count >= room.settings.max_players:
                raise CommandRejectedError(SessionErrorCode.ROOM_FULL, f"room {code} is full")

            player = self._new_player(connection, player_name)
            room.players.append(player)
            if room.host_id is None:
                room.host_id = player.player_id
            self._bind(connection, room, player)
            structlog.contextvars.bind_contextvars(player_id=player.player_id)
            logger.info("player joined room")
            await self._broadcast(room, PlayerJoinedMessage, player_id=player.player_id, player_name=player.name)

    async def _reconnect(self, room: Room, player: Player, connection: ConnectionProtocol) -> None:
        self._monitor.restore(room, player, connection)
        self._bind(connection, room, player)
        structlog.contextvars.bind_contextvars(player_id=player.player_id)
        await self._broadcast(
            room,
            PlayerReconnectedMessage,
            exclude_player_id=player.player_id,
            player_id=player.player_id,
            player_name=player.name,
        )
        await self._send(connection, GameRejoinedMessage(room=build_room_snapshot(room), you=player.player_id))

    # --- Team setup ---

    async def start_game(self, connection: ConnectionProtocol, code: str) -> None:
        """Assign random teams; the room moves from the lobby to team setup."""
        async with self._room_context(connection, code) as (room, player):
            self._require_host(room, player)
            self._require_phase(room, RoomPhase.LOBBY)
            if not room.settings.is_valid_player_count(room.player_count):
                raise InvalidPlayerCountError(
                    f"need an even number of players between {room.settings.min_players} "
                    f"and {room.settings.max_players}, have {room.player_count}",
                )
            room.team_setup = create_team_setup(room.player_ids, self._rng)
            logger.info("teams assigned")
            await self._broadcast(room, TeamsAssignedMessage)

    async def randomize_teams(self, connection: ConnectionProtocol, code: str) -> None:
        async with self._room_context(connection, code) as (room, player):
            self._require_host(room, player)
            self._require_phase(room, RoomPhase.TEAM_SETUP)
            room.team_setup = randomize_teams(room.team_setup, self._rng)
            await self._broadcast(room, TeamsUpdatedMessage)

    async def swap_request(self, connection: ConnectionProtocol, code: str, target_id: str) -> None:
        async with self._room_context(connection, code) as (room, player):
            self._require_phase(room, RoomPhase.TEAM_SETUP)
            room.team_setup, request = request_swap(room.team_setup, player.player_id, target_id)
            await self._broadcast(room, SwapRequestSentMessage, request=request)

    async def swap_response(
        self,
        connection: ConnectionProtocol,
        code: str,
        request_id: int,
        *,
        accept: bool,
    ) -> None:
        async with self._room_context(connection, code) as (room, player):
            self._require_phase(room, RoomPhase.TEAM_SETUP)
            room.team_setup, request = respond_swap(room.team_setup, request_id, player.player_id, accept=accept)
            await self._broadcast(room, SwapResponseResultMessage, request=request)

    async def confirm_teams(self, connection: ConnectionProtocol, code: str) -> None:
        """Freeze the teams and deal; the only way into a running game."""
        async with self._room_context(connection, code) as (room, player):
            self._require_host(room, player)
            self._require_phase(room, RoomPhase.TEAM_SETUP)
            room.game = start_game(room.team_setup.teams, room.player_ids, room.settings, self._rng)
            room.team_setup = None
            logger.info("game started", num_players=room.player_count)
            await self._broadcast(room, GameStartedMessage)

    # --- Game ---

    async def ask_card(self, connection: ConnectionProtocol, code: str, target_id: str, card_id: str) -> None:
        async with self._room_context(connection, code) as (room, player):
            self._require_game(room)
            card = parse_card(card_id)
            result = ask_card(room.game, player.player_id, target_id, card)
            room.game = result.state
            logger.info("card asked", target_id=target_id, outcome=result.transaction.type)
            await self._broadcast(room, GameStateUpdateMessage)

    async def make_claim(
        self,
        connection: ConnectionProtocol,
        code: str,
        half_suit: str,
        distribution: dict[str, list[str]],
        target_team: Team,
    ) -> None:
        finished: GameResult | None = None
        async with self._room_context(connection, code) as (room, player):
            self._require_game(room)
            cards = {pid: [parse_card(card_id) for card_id in card_ids] for pid, card_ids in distribution.items()}
            result = make_claim(room.game, player.player_id, half_suit, cards, target_team)
            room.game = result.state
            logger.info("claim made", half_suit=half_suit, outcome=result.transaction.type)
            await self._broadcast(room, GameStateUpdateMessage)
            if room.game.game_over:
                finished = await self._conclude(room)
        await self._record_result(finished)

    async def toggle_pause(self, connection: ConnectionProtocol, code: str) -> None:
        async with self._room_context(connection, code) as (room, player):
            self._require_game(room)
            room.game = toggle_pause(room.game, player.player_id).state
            logger.info("pause toggled", is_paused=room.game.is_paused)
            await self._broadcast(room, GameStateUpdateMessage)

    async def declare_winner(self, connection: ConnectionProtocol, code: str, team: Team) -> None:
        finished: GameResult | None = None
        async with self._room_context(connection, code) as (room, player):
            self._require_host(room, player)
            self._require_game(room)
            room.game = declare_winner(room.game, team, clinch_threshold=room.settings.clinch_threshold).state
            logger.info("winner declared", team=team)
            await self._broadcast(room, GameStateUpdateMessage)
            finished = await self._conclude(room)
        await self._record_result(finished)

    # --- Departures ---

    async def _expel(self, room: Room, player: Player, message_cls: type[BaseModel]) -> GameResult | None:
        """Remove a player from the running game and announce it. Must hold the room lock."""
        outcome = self._monitor.depart(room, player)
        self._unbind(player)
        if room.is_empty:
            self._discard_room(room)
            return None
        if outcome.attrition_winner is not None:
            await self._broadcast(room, GameStateUpdateMessage)
            return await self._conclude(room)
        await self._broadcast(
            room,
            message_cls,
            player_id=player.player_id,
            player_name=player.name,
            cards_moved=outcome.cards_moved,
        )
        return None

    async def _remove_from_room(self, room: Room, player: Player) -> None:
        """Roster removal outside a running game. Must hold the room lock."""
        self._unbind(player)
        room.remove_player(player.player_id)
        # a team setup cannot survive an unbalanced roster
        room.team_setup = None
        self._monitor.timers.cancel(room.code, player.player_id)
        if room.is_empty:
            self._discard_room(room)
            return
        await self._broadcast(room, PlayerLeftMessage, player_id=player.player_id, player_name=player.name)

    async def _close_room(self, room: Room) -> None:
        message = RoomClosedMessage(code=room.code)
        for member in list(room.players):
            await self._send(member.connection if member.is_connected else None, message)
        self._discard_room(room)
        logger.info("room closed by host")

    async def leave_room(self, connection: ConnectionProtocol, code: str, *, close: bool = False) -> None:
        finished: GameResult | None = None
        async with self._room_context(connection, code) as (room, player):
            if close:
                self._require_host(room, player)
                await self._close_room(room)
                return
            if room.game_in_progress:
                finished = await self._expel(room, player, PlayerLeftGameMessage)
            else:
                await self._remove_from_room(room, player)
            logger.info("player left room")
            await self._send(connection, LeftRoomMessage(code=code))
        await self._record_result(finished)

    async def leave_game(self, connection: ConnectionProtocol, code: str) -> None:
        await self.leave_room(connection, code, close=False)

    async def force_redistribute(self, connection: ConnectionProtocol, code: str, player_id: str) -> None:
        """Host override: redistribute a disconnected player's cards without waiting."""
        finished: GameResult | None = None
        async with self._room_context(connection, code) as (room, player):
            self._require_host(room, player)
            self._require_phase(room, RoomPhase.IN_PROGRESS)
            target = room.get_player(player_id)
            if target is None:
                raise UnknownPlayerError(f"player {player_id} is not in this room")
            if not target.disconnected:
                raise CommandRejectedError(
                    SessionErrorCode.PLAYER_NOT_DISCONNECTED,
                    "only a disconnected player's cards can be redistributed",
                )
            logger.info("forced redistribution", target_id=player_id)
            finished = await self._expel(room, target, CardsRedistributedMessage)
        await self._record_result(finished)

    async def back_to_lobby(self, connection: ConnectionProtocol, code: str) -> None:
        async with self._room_context(connection, code) as (room, player):
            self._require_host(room, player)
            self._require_phase(room, RoomPhase.GAME_OVER, RoomPhase.TEAM_SETUP)
            room.team_setup = None
            room.game = None
            await self._broadcast(room, RoomUpdatedMessage)

    async def play_again(self, connection: ConnectionProtocol, code: str) -> None:
        """Open a new team setup after a finished game, keeping the old teams when possible."""
        async with self._room_context(connection, code) as (room, player):
            self._require_host(room, player)
            self._require_phase(room, RoomPhase.GAME_OVER)
            if not room.settings.is_valid_player_count(room.player_count):
                raise InvalidPlayerCountError(f"cannot start a new game with {room.player_count} players")
            room.team_setup = carry_over_teams(room.game.teams, room.player_ids, self._rng)
            room.game = None
            await self._broadcast(room, TeamsAssignedMessage)

    # --- Transport loss ---

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        """Route transport loss: hold the seat, redistribute, or drop from the roster."""
        finished: GameResult | None = None
        binding = self._bindings.get(connection.connection_id)
        lock = self._room_locks.get(binding[0]) if binding is not None else None
        if binding is not None and lock is not None:
            code, player_id = binding
            async with lock:
                room = self._store.get(code)
                player = room.get_player(player_id) if room is not None else None
                # the seat may already be bound to a newer connection
                if room is not None and player is not None and player.connection_id == connection.connection_id:
                    structlog.contextvars.bind_contextvars(room_code=code, player_id=player_id)
                    finished = await self._handle_transport_loss(room, player)
        self.unregister_connection(connection)
        await self._record_result(finished)

    async def _handle_transport_loss(self, room: Room, player: Player) -> GameResult | None:
        if not room.game_in_progress:
            await self._remove_from_room(room, player)
            return None
        if not self._monitor.can_hold(player):
            return await self._expel(room, player, CardsRedistributedMessage)
        self._unbind(player)
        self._monitor.hold(room, player)
        await self._broadcast(
            room,
            PlayerDisconnectedMessage,
            player_id=player.player_id,
            player_name=player.name,
            grace_period_seconds=self._monitor.grace_seconds,
        )
        return None

    async def _handle_reconnect_deadline(self, code: str, player_id: str, episode: int) -> None:
        lock = self._room_locks.get(code)
        if lock is None:
            return
        finished: GameResult | None = None
        async with lock:
            room = self._store.get(code)
            if room is None or not self._monitor.is_current_episode(room, player_id, episode):
                return
            player = room.get_player(player_id)
            structlog.contextvars.bind_contextvars(room_code=code, player_id=player_id)
            logger.info("reconnect window expired")
            if room.game_in_progress:
                finished = await self._expel(room, player, CardsRedistributedMessage)
            else:
                await self._remove_from_room(room, player)
        await self._record_result(finished)

    # --- Identity, presence and invites ---

    async def register_user(self, connection: ConnectionProtocol, user_id: str, display_name: str) -> None:
        self._presence.register(user_id, display_name, connection.connection_id)
        binding = self._bindings.get(connection.connection_id)
        lock = self._room_locks.get(binding[0]) if binding is not None else None
        if binding is not None and lock is not None:
            async with lock:
                room = self._store.get(binding[0])
                player = room.get_player(binding[1]) if room is not None else None
                if player is not None and player.user_id is None:
                    player.user_id = user_id
        logger.info("user registered", user_id=user_id)
        await self._send(connection, UserRegisteredMessage(user_id=user_id, display_name=display_name))

    async def invite_to_game(self, connection: ConnectionProtocol, code: str, user_id: str) -> None:
        inviter = self._presence.user_for(connection.connection_id)
        if inviter is None:
            raise CommandRejectedError(SessionErrorCode.NOT_REGISTERED, "register before inviting players")
        async with self._room_context(connection, code) as (room, _player):
            already_in_room = room.find_by_user_id(user_id) is not None

        invitee = self._presence.lookup(user_id)
        invitee_connection = self._connections.get(invitee.connection_id) if invitee is not None else None
        if already_in_room or invitee_connection is None:
            reason = InviteFailureReason.ALREADY_IN_ROOM if already_in_room else InviteFailureReason.OFFLINE
            await self._send(connection, InviteFailedMessage(code=code, user_id=user_id, reason=reason))
            return

        await self._send(
            invitee_connection,
            GameInviteMessage(code=code, inviter_user_id=inviter.user_id, inviter_name=inviter.display_name),
        )
        await self._send(connection, InviteSentMessage(code=code, user_id=user_id))

    async def invite_response(
        self,
        connection: ConnectionProtocol,
        code: str,
        inviter_user_id: str,
        *,
        accept: bool,
    ) -> None:
        invitee = self._presence.user_for(connection.connection_id)
        if invitee is None:
            raise CommandRejectedError(SessionErrorCode.NOT_REGISTERED, "register before answering invites")
        if accept:
            await self.join_room(connection, code, invitee.display_name)
            return
        inviter = self._presence.lookup(inviter_user_id)
        if inviter is not None:
            await self._send(
                self._connections.get(inviter.connection_id),
                InviteFailedMessage(code=code, user_id=invitee.user_id, reason=InviteFailureReason.DECLINED),
            )

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        await self._send(connection, PongMessage())
