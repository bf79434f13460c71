import pytest

from fish.logic.enums import RoomPhase, Team, TransactionType
from fish.logic.exceptions import (
    GameOverError,
    InvalidCardError,
    NotYourTeamsTurnError,
    NotYourTurnError,
    WinnerNotClinchedError,
)
from fish.logic.state import ClaimedHalfSuits
from fish.messaging.types import SessionErrorCode, SessionMessageType
from fish.session.manager import CommandRejectedError
from fish.tests.unit.session.helpers import (
    clear_outboxes,
    connect,
    create_room_with_players,
    create_started_game,
    player_id_of,
    seat_game,
)

# seven half-suits already scored; hearts-low is the last one in play
NEARLY_DONE = ClaimedHalfSuits(
    A=("clubs-low", "clubs-high", "diamonds-low", "diamonds-high"),
    B=("hearts-high", "spades-low", "spades-high"),
)
CLINCHED = ClaimedHalfSuits(
    A=("clubs-low", "clubs-high", "diamonds-low", "diamonds-high", "spades-high"),
    B=("hearts-high",),
)


async def _finished_game(manager, conns, room):
    seat_game(
        room,
        {0: ["2-hearts", "3-hearts", "4-hearts"], 2: ["5-hearts", "6-hearts", "7-hearts"]},
        claimed=NEARLY_DONE,
    )
    ids = room.player_ids
    await manager.make_claim(
        conns[0],
        room.code,
        "hearts-low",
        {ids[0]: ["2-hearts", "3-hearts", "4-hearts"], ids[2]: ["5-hearts", "6-hearts", "7-hearts"]},
        Team.A,
    )
    clear_outboxes(conns)


class TestAskCard:
    async def test_successful_ask_broadcasts_new_state(self, manager):
        room, conns = await create_started_game(manager)
        seat_game(room, {0: ["2-hearts"], 1: ["3-hearts"], 2: ["9-spades"], 3: ["10-spades"]})
        ids = room.player_ids

        await manager.ask_card(conns[0], room.code, ids[1], "3-hearts")

        game = manager.get_room(room.code).game
        assert [c.id for c in game.hand_of(ids[0])] == ["2-hearts", "3-hearts"]
        assert game.current_player == ids[0]
        for conn in conns:
            message = conn.last_message()
            assert message["type"] == SessionMessageType.GAME_STATE_UPDATE
            assert message["room"]["game"]["last_transaction"]["type"] == TransactionType.CARD_GIVEN

    async def test_miss_passes_the_turn(self, manager):
        room, conns = await create_started_game(manager)
        seat_game(room, {0: ["2-hearts"], 1: ["3-hearts"], 2: ["9-spades"], 3: ["10-spades"]})
        ids = room.player_ids

        await manager.ask_card(conns[0], room.code, ids[3], "4-hearts")

        assert manager.get_room(room.code).game.current_player == ids[3]

    async def test_out_of_turn_ask_rejected(self, manager):
        room, conns = await create_started_game(manager)
        seat_game(room, {0: ["2-hearts"], 1: ["3-hearts"], 2: ["9-spades"], 3: ["10-spades"]})

        with pytest.raises(NotYourTurnError):
            await manager.ask_card(conns[1], room.code, room.player_ids[0], "2-hearts")
        assert conns[0].sent_messages == []

    async def test_unparseable_card_rejected(self, manager):
        room, conns = await create_started_game(manager)
        with pytest.raises(InvalidCardError):
            await manager.ask_card(conns[0], room.code, room.player_ids[1], "8-hearts")

    async def test_ask_in_lobby_rejected(self, manager):
        code, conns = await create_room_with_players(manager, 4)
        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.ask_card(conns[0], code, player_id_of(manager, conns[1]), "2-hearts")
        assert exc_info.value.code is SessionErrorCode.WRONG_PHASE


class TestClaim:
    async def test_last_claim_ends_the_game(self, manager, history):
        room, conns = await create_started_game(manager)
        await _finished_game(manager, conns, room)

        room = manager.get_room(room.code)
        assert room.phase is RoomPhase.GAME_OVER
        assert room.game.winner is Team.A
        assert room.game.claimed.total == 8

        assert len(history.results) == 1
        result = history.results[0]
        assert result.winner is Team.A
        assert result.room_code == room.code
        assert sorted(p.user_id for p in result.players) == ["user-0", "user-1", "user-2", "user-3"]

    async def test_wrong_claim_awards_opponents(self, manager):
        room, conns = await create_started_game(manager)
        seat_game(room, {0: ["2-hearts", "3-hearts", "4-hearts"], 1: ["5-hearts", "6-hearts", "7-hearts"]})
        ids = room.player_ids

        await manager.make_claim(
            conns[0],
            room.code,
            "hearts-low",
            {ids[0]: ["2-hearts", "3-hearts", "4-hearts", "5-hearts", "6-hearts", "7-hearts"]},
            Team.A,
        )

        game = manager.get_room(room.code).game
        assert game.claimed.B == ("hearts-low",)
        assert conns[1].last_message()["room"]["game"]["last_transaction"]["type"] == TransactionType.CLAIM_FAILED

    async def test_claim_outside_team_turn_rejected(self, manager):
        room, conns = await create_started_game(manager)
        seat_game(room, {0: ["2-hearts"], 1: ["3-hearts"]})
        with pytest.raises(NotYourTeamsTurnError):
            await manager.make_claim(conns[1], room.code, "hearts-low", {}, Team.B)

    async def test_unknown_half_suit_rejected(self, manager):
        room, conns = await create_started_game(manager)
        with pytest.raises(InvalidCardError):
            await manager.make_claim(conns[0], room.code, "hearts-middle", {}, Team.A)


class TestPause:
    async def test_current_team_can_pause_and_resume(self, manager):
        room, conns = await create_started_game(manager)
        seat_game(room, {0: ["2-hearts"], 1: ["3-hearts"], 2: ["9-spades"], 3: ["10-spades"]})

        await manager.toggle_pause(conns[2], room.code)
        game = manager.get_room(room.code).game
        assert game.is_paused is True
        assert game.paused_by == room.player_ids[2]

        await manager.toggle_pause(conns[0], room.code)
        assert manager.get_room(room.code).game.is_paused is False

    async def test_other_team_cannot_pause(self, manager):
        room, conns = await create_started_game(manager)
        seat_game(room, {0: ["2-hearts"], 1: ["3-hearts"]})
        with pytest.raises(NotYourTeamsTurnError):
            await manager.toggle_pause(conns[1], room.code)


class TestDeclareWinner:
    async def test_host_declares_clinched_team(self, manager, history):
        room, conns = await create_started_game(manager)
        seat_game(room, {0: ["2-hearts"], 1: ["3-hearts"]}, claimed=CLINCHED)

        await manager.declare_winner(conns[0], room.code, Team.A)

        game = manager.get_room(room.code).game
        assert game.game_over is True
        assert game.winner is Team.A
        assert history.results[0].winner is Team.A

    async def test_not_clinched(self, manager, history):
        room, conns = await create_started_game(manager)
        seat_game(room, {0: ["2-hearts"], 1: ["3-hearts"]}, claimed=CLINCHED)

        with pytest.raises(WinnerNotClinchedError):
            await manager.declare_winner(conns[0], room.code, Team.B)
        assert history.results == []

    async def test_only_host_declares(self, manager):
        room, conns = await create_started_game(manager)
        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.declare_winner(conns[1], room.code, Team.A)
        assert exc_info.value.code is SessionErrorCode.NOT_HOST


class TestAfterTheGame:
    async def test_commands_after_game_over_rejected(self, manager):
        room, conns = await create_started_game(manager)
        await _finished_game(manager, conns, room)

        with pytest.raises(GameOverError):
            await manager.ask_card(conns[0], room.code, room.player_ids[1], "2-clubs")

    async def test_back_to_lobby(self, manager):
        room, conns = await create_started_game(manager)
        await _finished_game(manager, conns, room)

        await manager.back_to_lobby(conns[0], room.code)

        room = manager.get_room(room.code)
        assert room.phase is RoomPhase.LOBBY
        assert room.game is None
        for conn in conns:
            message = conn.last_message()
            assert message["type"] == SessionMessageType.ROOM_UPDATED
            assert message["room"]["game"] is None

    async def test_back_to_lobby_during_game_rejected(self, manager):
        room, conns = await create_started_game(manager)
        with pytest.raises(CommandRejectedError) as exc_info:
            await manager.back_to_lobby(conns[0], room.code)
        assert exc_info.value.code is SessionErrorCode.WRONG_PHASE

    async def test_play_again_keeps_teams(self, manager):
        room, conns = await create_started_game(manager)
        await _finished_game(manager, conns, room)
        previous = room.game.teams

        await manager.play_again(conns[0], room.code)

        room = manager.get_room(room.code)
        assert room.phase is RoomPhase.TEAM_SETUP
        assert room.team_setup.teams == previous
        assert conns[1].last_message()["type"] == SessionMessageType.TEAMS_ASSIGNED

    async def test_new_players_may_join_after_back_to_lobby(self, manager):
        room, conns = await create_started_game(manager)
        await _finished_game(manager, conns, room)
        await manager.back_to_lobby(conns[0], room.code)

        newcomer = await connect(manager)
        await manager.join_room(newcomer, room.code, "Erin")
        assert manager.get_room(room.code).player_count == 5
