import pytest

from fish.logic.cards import create_rng
from fish.logic.enums import RoomPhase
from fish.logic.settings import GameSettings
from fish.messaging.types import SessionErrorCode, SessionMessageType
from fish.session.manager import CommandRejectedError, SessionManager
from fish.session.room_store import RoomStore
from fish.tests.unit.session.helpers import connect, create_room_with_players, player_id_of


class TestCreateRoom:
    async def test_creator_becomes_host(self, manager):
        conn = await connect(manager)
        room = await manager.create_room(conn, "Alice")

        assert room.phase is RoomPhase.LOBBY
        assert room.host_id == player_id_of(manager, conn)
        message = conn.last_message()
        assert message["type"] == SessionMessageType.ROOM_CREATED
        assert message["you"] == room.host_id
        assert message["room"]["code"] == room.code
        assert message["room"]["players"][0]["is_host"] is True

    async def test_player_id_is_not_the_connection_id(self, manager):
        conn = await connect(manager)
        await manager.create_room(conn, "Alice")
        assert player_id_of(manager, conn) != conn.connection_id

    async def test_cannot_create_while_in_a_room(self, manager):
        conn = await connect(manager)
        await manager.create_room(conn, "Alice")

        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.create_room(conn, "Alice")
        assert exc_info.value.code is SessionErrorCode.ALREADY_IN_ROOM

    async def test_server_full(self):
        manager = SessionManager(max_rooms=1, rng=create_rng(1))
        await manager.create_room(await connect(manager), "Alice")

        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.create_room(await connect(manager), "Bob")
        assert exc_info.value.code is SessionErrorCode.SERVER_FULL

    async def test_room_code_exhaustion_reports_server_full(self):
        manager = SessionManager(room_store=RoomStore(code_factory=lambda: "AAAAAA", max_attempts=3))
        await manager.create_room(await connect(manager), "Alice")

        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.create_room(await connect(manager), "Bob")
        assert exc_info.value.code is SessionErrorCode.SERVER_FULL
        assert manager.room_count == 1


class TestJoinRoom:
    async def test_join_broadcasts_to_everyone(self, manager):
        code, conns = await create_room_with_players(manager, 2)
        newcomer = await connect(manager)

        await manager.join_room(newcomer, code, "Carol")

        for conn in [*conns, newcomer]:
            message = conn.last_message()
            assert message["type"] == SessionMessageType.PLAYER_JOINED
            assert message["player_name"] == "Carol"
            assert [p["name"] for p in message["room"]["players"]] == ["Alice", "Bob", "Carol"]
        assert newcomer.last_message()["you"] == player_id_of(manager, newcomer)

    async def test_unknown_room(self, manager):
        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.join_room(await connect(manager), "ZZZZZZ", "Bob")
        assert exc_info.value.code is SessionErrorCode.ROOM_NOT_FOUND

    async def test_full_room(self):
        manager = SessionManager(game_settings=GameSettings(max_players=4), rng=create_rng(1))
        code, _ = await create_room_with_players(manager, 4)

        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.join_room(await connect(manager), code, "Erin")
        assert exc_info.value.code is SessionErrorCode.ROOM_FULL

    async def test_cannot_join_during_team_setup(self, manager):
        code, conns = await create_room_with_players(manager, 4)
        await manager.start_game(conns[0], code)

        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.join_room(await connect(manager), code, "Erin")
        assert exc_info.value.code is SessionErrorCode.ROOM_NOT_JOINABLE

    async def test_cannot_join_twice(self, manager):
        code, conns = await create_room_with_players(manager, 2)
        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.join_room(conns[1], code, "Bob")
        assert exc_info.value.code is SessionErrorCode.ALREADY_IN_ROOM

    async def test_registered_user_cannot_take_a_second_seat(self, manager):
        code, _ = await create_room_with_players(manager, 2, registered=True)
        second_tab = await connect(manager, user_id="user-1", name="Bob")

        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.join_room(second_tab, code, "Bob")
        assert exc_info.value.code is SessionErrorCode.ALREADY_IN_ROOM


class TestLeaveRoom:
    async def test_leave_notifies_leaver_and_others(self, manager):
        code, conns = await create_room_with_players(manager, 3)
        bob_id = player_id_of(manager, conns[1])

        await manager.leave_room(conns[1], code)

        assert conns[1].last_message() == {"type": "LEFT_ROOM", "code": code}
        for conn in (conns[0], conns[2]):
            message = conn.last_message()
            assert message["type"] == SessionMessageType.PLAYER_LEFT
            assert message["player_id"] == bob_id
        assert manager.room_of(conns[1].connection_id) is None

    async def test_host_role_moves_on(self, manager):
        code, conns = await create_room_with_players(manager, 3)
        await manager.leave_room(conns[0], code)

        room = manager.get_room(code)
        assert room.host_id == player_id_of(manager, conns[1])
        assert conns[1].last_message()["room"]["players"][0]["is_host"] is True

    async def test_last_player_out_removes_room(self, manager):
        code, conns = await create_room_with_players(manager, 1)
        await manager.leave_room(conns[0], code)

        assert manager.get_room(code) is None
        assert manager.room_count == 0

    async def test_host_can_close_room(self, manager):
        code, conns = await create_room_with_players(manager, 3)
        await manager.leave_room(conns[0], code, close=True)

        for conn in conns:
            assert conn.last_message() == {"type": "ROOM_CLOSED", "code": code}
            assert manager.room_of(conn.connection_id) is None
        assert manager.get_room(code) is None

    async def test_only_host_can_close(self, manager):
        code, conns = await create_room_with_players(manager, 2)
        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.leave_room(conns[1], code, close=True)
        assert exc_info.value.code is SessionErrorCode.NOT_HOST
        assert manager.get_room(code) is not None

    async def test_commands_for_other_rooms_rejected(self, manager):
        _, conns = await create_room_with_players(manager, 1)
        other_code, _ = await create_room_with_players(manager, 1)

        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.start_game(conns[0], other_code)
        assert exc_info.value.code is SessionErrorCode.NOT_IN_ROOM

    async def test_disconnect_in_lobby_drops_player(self, manager):
        code, conns = await create_room_with_players(manager, 2, registered=True)
        await manager.handle_disconnect(conns[1])

        assert manager.get_room(code).player_count == 1
        assert conns[0].last_message()["type"] == SessionMessageType.PLAYER_LEFT
        assert manager.connection_count == 1
