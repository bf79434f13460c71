"""
Team assignment and swap negotiation before a game starts.

All functions are pure: they take a frozen TeamSetup and return a new one.
Rejected operations raise InvalidSwapError / TeamSetupError and leave the
input untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from fish.logic.enums import SwapStatus, Team
from fish.logic.exceptions import InvalidSwapError, TeamSetupError

if TYPE_CHECKING:
    import random
    from collections.abc import Sequence


class Teams(BaseModel):
    """Two disjoint, equally sized lists of player ids."""

    model_config = ConfigDict(frozen=True)

    A: tuple[str, ...] = ()
    B: tuple[str, ...] = ()

    def members(self, team: Team) -> tuple[str, ...]:
        return self.A if team is Team.A else self.B

    def team_of(self, player_id: str) -> Team | None:
        if player_id in self.A:
            return Team.A
        if player_id in self.B:
            return Team.B
        return None

    @property
    def all_players(self) -> tuple[str, ...]:
        return self.A + self.B

    def without(self, player_id: str) -> Teams:
        return Teams(
            A=tuple(p for p in self.A if p != player_id),
            B=tuple(p for p in self.B if p != player_id),
        )

    def exchange(self, first: str, second: str) -> Teams:
        """Swap two players on opposite teams, each taking the other's slot."""

        def _swap(members: tuple[str, ...]) -> tuple[str, ...]:
            return tuple(second if p == first else first if p == second else p for p in members)

        return Teams(A=_swap(self.A), B=_swap(self.B))


class SwapRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    from_id: str
    target_id: str
    status: SwapStatus = SwapStatus.PENDING


class TeamSetup(BaseModel):
    """Team partition under negotiation, before the host confirms it."""

    model_config = ConfigDict(frozen=True)

    teams: Teams
    swap_requests: tuple[SwapRequest, ...] = ()
    next_request_id: int = 1

    def pending_request_from(self, player_id: str) -> SwapRequest | None:
        for request in self.swap_requests:
            if request.from_id == player_id and request.status is SwapStatus.PENDING:
                return request
        return None

    def get_request(self, request_id: int) -> SwapRequest | None:
        for request in self.swap_requests:
            if request.id == request_id:
                return request
        return None


def assign_teams(player_ids: Sequence[str], rng: random.Random) -> Teams:
    """Shuffle the players and split them into two equal halves."""
    if len(player_ids) % 2 != 0 or not player_ids:
        raise TeamSetupError(f"cannot split {len(player_ids)} players into two equal teams")
    if len(set(player_ids)) != len(player_ids):
        raise TeamSetupError("duplicate player ids")
    shuffled = list(player_ids)
    rng.shuffle(shuffled)
    half = len(shuffled) // 2
    return Teams(A=tuple(shuffled[:half]), B=tuple(shuffled[half:]))


def create_team_setup(player_ids: Sequence[str], rng: random.Random) -> TeamSetup:
    return TeamSetup(teams=assign_teams(player_ids, rng))


def randomize_teams(setup: TeamSetup, rng: random.Random) -> TeamSetup:
    """Re-draw the teams and drop every swap request, pending or settled."""
    return setup.model_copy(
        update={
            "teams": assign_teams(setup.teams.all_players, rng),
            "swap_requests": (),
        },
    )


def request_swap(setup: TeamSetup, from_id: str, target_id: str) -> tuple[TeamSetup, SwapRequest]:
    """Open a pending swap request from one player to an opponent."""
    from_team = setup.teams.team_of(from_id)
    target_team = setup.teams.team_of(target_id)
    if from_team is None or target_team is None:
        raise InvalidSwapError("both players must be in the team setup")
    if from_team is target_team:
        raise InvalidSwapError("can only request a swap with a player on the other team")
    if setup.pending_request_from(from_id) is not None:
        raise InvalidSwapError("you already have a pending swap request")

    request = SwapRequest(id=setup.next_request_id, from_id=from_id, target_id=target_id)
    new_setup = setup.model_copy(
        update={
            "swap_requests": (*setup.swap_requests, request),
            "next_request_id": setup.next_request_id + 1,
        },
    )
    return new_setup, request


def respond_swap(
    setup: TeamSetup,
    request_id: int,
    responder_id: str,
    *,
    accept: bool,
) -> tuple[TeamSetup, SwapRequest]:
    """
    Accept or decline a pending swap request.

    Only the target may respond. Accepting exchanges the two players in one
    step and declines every other pending request that involves either of
    them, since those were negotiated against the old teams.
    """
    request = setup.get_request(request_id)
    if request is None:
        raise InvalidSwapError(f"swap request {request_id} does not exist")
    if request.target_id != responder_id:
        raise InvalidSwapError("only the requested player can respond")
    if request.status is not SwapStatus.PENDING:
        raise InvalidSwapError(f"swap request {request_id} is already {request.status.value}")

    if not accept:
        resolved = request.model_copy(update={"status": SwapStatus.DECLINED})
        requests = tuple(resolved if r.id == request_id else r for r in setup.swap_requests)
        return setup.model_copy(update={"swap_requests": requests}), resolved

    # a stale request could have the two players on the same team by now
    if setup.teams.team_of(request.from_id) is setup.teams.team_of(request.target_id):
        raise InvalidSwapError("players are no longer on opposite teams")

    resolved = request.model_copy(update={"status": SwapStatus.ACCEPTED})
    involved = {request.from_id, request.target_id}
    requests = []
    for r in setup.swap_requests:
        if r.id == request_id:
            requests.append(resolved)
        elif r.status is SwapStatus.PENDING and {r.from_id, r.target_id} & involved:
            requests.append(r.model_copy(update={"status": SwapStatus.DECLINED}))
        else:
            requests.append(r)

    new_setup = setup.model_copy(
        update={
            "teams": setup.teams.exchange(request.from_id, request.target_id),
            "swap_requests": tuple(requests),
        },
    )
    return new_setup, resolved


def carry_over_teams(previous: Teams, roster: Sequence[str], rng: random.Random) -> TeamSetup:
    """
    Team setup for a rematch.

    Keeps the previous teams when they still cover exactly the current roster
    with equal sizes, otherwise assigns fresh random teams.
    """
    kept = Teams(
        A=tuple(p for p in previous.A if p in roster),
        B=tuple(p for p in previous.B if p in roster),
    )
    if set(kept.all_players) == set(roster) and len(kept.A) == len(kept.B):
        return TeamSetup(teams=kept)
    return create_team_setup(roster, rng)
