"""
Swiss Pairing Engine - round 1 and ranking-based pairings.

Round 1: random pairing, optionally stratified by player level
(beginners with veterans, or beginners with beginners).

Rounds > 1: Swiss pairing. Participants arrive ranked by current standings;
the highest-ranked unpaired participant takes the nearest-ranked opponent
they have not played yet, with backtracking so no one further down the
table is left without a legal opponent.

Byes: an odd field leaves one participant unpaired. In round 1 it is the
last participant left over; in later rounds it is the lowest-ranked
participant among those with the fewest byes so far, so nobody receives
a second bye while someone else has none.

Everything here is pure: no session, no persistence.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from app.models.round_definition import PairingAlgorithm, PlayerLevelPairingStrategy
from app.services.errors import InsufficientParticipants

logger = logging.getLogger(__name__)

# Upper bound on backtracking steps for one next-round pairing
SEARCH_BUDGET = 200_000


@dataclass
class PlayerEntry:
    """Lightweight struct for pairing input."""
    user_id: int
    is_beginner: bool = False
    name: Optional[str] = None


@dataclass
class Pairing:
    player1_id: int
    player2_id: Optional[int] = None  # None -> bye
    table_number: Optional[int] = None

    @property
    def is_bye(self) -> bool:
        return self.player2_id is None


@dataclass
class PairingResult:
    pairings: List[Pairing] = field(default_factory=list)  # playing pairs in rank order, bye last
    bye_player_id: Optional[int] = None
    rematches: int = 0

    @property
    def playing(self) -> List[Pairing]:
        return [p for p in self.pairings if not p.is_bye]


class _SearchExhausted(Exception):
    pass


def pair_key(a: int, b: int) -> FrozenSet[int]:
    return frozenset((a, b))


def _pair_sequentially(order: Sequence[PlayerEntry]) -> Tuple[List[Tuple[PlayerEntry, PlayerEntry]], List[PlayerEntry]]:
    """Pair 1v2, 3v4, ... Returns (pairs, leftover)."""
    pairs = [(order[i], order[i + 1]) for i in range(0, len(order) - 1, 2)]
    leftover = [order[-1]] if len(order) % 2 else []
    return pairs, leftover


def _beginners_with_veterans(
    beginners: List[PlayerEntry], veterans: List[PlayerEntry]
) -> Tuple[List[Tuple[PlayerEntry, PlayerEntry]], List[PlayerEntry]]:
    mixed = list(zip(beginners, veterans))
    used = len(mixed)
    # Only one side has an excess; it is paired within its own group
    excess = beginners[used:] + veterans[used:]
    rest, leftover = _pair_sequentially(excess)
    return mixed + rest, leftover


def build_first_round_pairings(
    players: Sequence[PlayerEntry],
    algorithm: PairingAlgorithm = PairingAlgorithm.STANDARD,
    level_strategy: Optional[PlayerLevelPairingStrategy] = None,
    rng: Optional[random.Random] = None,
) -> PairingResult:
    """Build round 1 pairings for confirmed *players*.

    STANDARD (or CUSTOM without a level strategy): shuffle and pair 1v2, 3v4, ...
    CUSTOM + BEGINNERS_WITH_VETERANS: one beginner with one veteran while both
    groups last; the excess plays within its own group.
    CUSTOM + BEGINNERS_WITH_BEGINNERS: beginners pair among themselves and
    veterans among themselves; an odd beginner group produces a single
    cross-level pair at the boundary.

    Raises:
        InsufficientParticipants if fewer than two players
    """
    if len(players) < 2:
        raise InsufficientParticipants(
            f"At least 2 confirmed participants are required to create pairings, got {len(players)}"
        )

    rng = rng or random.Random()
    strategy = level_strategy or PlayerLevelPairingStrategy.NONE

    if algorithm == PairingAlgorithm.CUSTOM and strategy != PlayerLevelPairingStrategy.NONE:
        beginners = [p for p in players if p.is_beginner]
        veterans = [p for p in players if not p.is_beginner]
        rng.shuffle(beginners)
        rng.shuffle(veterans)
        if strategy == PlayerLevelPairingStrategy.BEGINNERS_WITH_VETERANS:
            pairs, leftover = _beginners_with_veterans(beginners, veterans)
        else:
            pairs, leftover = _pair_sequentially(beginners + veterans)
    else:
        shuffled = list(players)
        rng.shuffle(shuffled)
        pairs, leftover = _pair_sequentially(shuffled)

    result = PairingResult(pairings=[Pairing(a.user_id, b.user_id) for a, b in pairs])
    if leftover:
        result.bye_player_id = leftover[0].user_id
        result.pairings.append(Pairing(player1_id=leftover[0].user_id))
    return result


def select_bye_candidates(ranked: Sequence[int], bye_counts: Mapping[int, int]) -> List[int]:
    """Bye candidates in preference order: fewest byes first, lowest-ranked first within that."""
    fewest = min(bye_counts.get(p, 0) for p in ranked)
    return [p for p in reversed(ranked) if bye_counts.get(p, 0) == fewest]


def _pair_without_rematches(
    players: List[int], played: Set[FrozenSet[int]], budget: List[int]
) -> Optional[List[Tuple[int, int]]]:
    """Depth-first search for a full rematch-free pairing, nearest-ranked opponent first."""

    def solve(remaining: List[int]) -> Optional[List[Tuple[int, int]]]:
        if not remaining:
            return []
        budget[0] -= 1
        if budget[0] < 0:
            raise _SearchExhausted()
        top = remaining[0]
        for idx in range(1, len(remaining)):
            opponent = remaining[idx]
            if pair_key(top, opponent) in played:
                continue
            sub = solve(remaining[1:idx] + remaining[idx + 1:])
            if sub is not None:
                return [(top, opponent)] + sub
        return None

    try:
        return solve(list(players))
    except _SearchExhausted:
        return None


def _pair_adjacent_preferring_new(players: List[int], played: Set[FrozenSet[int]]) -> Tuple[List[Tuple[int, int]], int]:
    """Greedy fallback: nearest unplayed opponent, else the adjacent one. Returns (pairs, rematch_count)."""
    remaining = list(players)
    pairs: List[Tuple[int, int]] = []
    rematches = 0
    while len(remaining) >= 2:
        top = remaining.pop(0)
        idx = next((i for i, p in enumerate(remaining) if pair_key(top, p) not in played), None)
        if idx is None:
            idx = 0
            rematches += 1
        pairs.append((top, remaining.pop(idx)))
    return pairs, rematches


def build_swiss_pairings(
    ranked: Sequence[int],
    history: Iterable[Tuple[int, Optional[int]]] = (),
    bye_counts: Optional[Mapping[int, int]] = None,
) -> PairingResult:
    """Build Swiss pairings for the next round.

    Args:
        ranked: participant user ids ordered best-first by current standings
        history: (player1_id, player2_id) of every earlier match; byes have player2_id None
        bye_counts: byes received so far per user id

    Returns:
        PairingResult with playing pairs in rank order (player1 is the better-ranked
        side) followed by the bye, if any. ``rematches`` is non-zero only when no
        rematch-free pairing exists.
    """
    if len(ranked) < 2:
        raise InsufficientParticipants(
            f"At least 2 ranked participants are required to create pairings, got {len(ranked)}"
        )

    played: Set[FrozenSet[int]] = {pair_key(a, b) for a, b in history if b is not None}
    bye_counts = bye_counts or {}
    budget = [SEARCH_BUDGET]

    if len(ranked) % 2:
        candidates = select_bye_candidates(ranked, bye_counts)
    else:
        candidates = [None]

    for bye_id in candidates:
        remaining = [p for p in ranked if p != bye_id]
        pairs = _pair_without_rematches(remaining, played, budget)
        if pairs is not None:
            return _to_result(pairs, bye_id, rematches=0)
        if budget[0] < 0:
            break

    bye_id = candidates[0]
    remaining = [p for p in ranked if p != bye_id]
    pairs, rematches = _pair_adjacent_preferring_new(remaining, played)
    logger.warning(
        "No rematch-free pairing found for %d participants; falling back with %d rematch(es)",
        len(ranked),
        rematches,
    )
    return _to_result(pairs, bye_id, rematches=rematches)


def _to_result(pairs: List[Tuple[int, int]], bye_id: Optional[int], rematches: int) -> PairingResult:
    result = PairingResult(pairings=[Pairing(a, b) for a, b in pairs], rematches=rematches)
    if bye_id is not None:
        result.bye_player_id = bye_id
        result.pairings.append(Pairing(player1_id=bye_id))
    return result
