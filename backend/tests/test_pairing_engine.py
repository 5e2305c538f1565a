"""
Tests for round 1 and Swiss pairings - pure functions, no database.
"""

import random

import pytest

from app.models.round_definition import PairingAlgorithm, PlayerLevelPairingStrategy
from app.services.errors import InsufficientParticipants
from app.services.pairing_engine import (
    PlayerEntry,
    build_first_round_pairings,
    build_swiss_pairings,
    pair_key,
    select_bye_candidates,
)


def _make_players(n: int, beginners=()) -> list:
    """Helper: players with user ids 1..n; ids in *beginners* are beginners."""
    return [PlayerEntry(user_id=uid, is_beginner=uid in beginners) for uid in range(1, n + 1)]


def _ids_in(result) -> list:
    ids = []
    for pairing in result.pairings:
        ids.append(pairing.player1_id)
        if pairing.player2_id is not None:
            ids.append(pairing.player2_id)
    return ids


class TestFirstRound:
    def test_even_count_pairs_everyone_once(self):
        result = build_first_round_pairings(_make_players(8), rng=random.Random(7))
        assert len(result.pairings) == 4
        assert result.bye_player_id is None
        assert sorted(_ids_in(result)) == list(range(1, 9))

    def test_odd_count_gives_exactly_one_bye(self):
        result = build_first_round_pairings(_make_players(7), rng=random.Random(7))
        byes = [p for p in result.pairings if p.is_bye]
        assert len(byes) == 1
        assert len(result.playing) == 3
        assert result.bye_player_id == byes[0].player1_id
        # Bye comes last
        assert result.pairings[-1].is_bye
        assert sorted(_ids_in(result)) == list(range(1, 8))

    def test_same_seed_same_pairings(self):
        a = build_first_round_pairings(_make_players(10), rng=random.Random(42))
        b = build_first_round_pairings(_make_players(10), rng=random.Random(42))
        assert [(p.player1_id, p.player2_id) for p in a.pairings] == [(p.player1_id, p.player2_id) for p in b.pairings]

    def test_two_players_single_pair(self):
        result = build_first_round_pairings(_make_players(2), rng=random.Random(1))
        assert len(result.pairings) == 1
        assert {result.pairings[0].player1_id, result.pairings[0].player2_id} == {1, 2}

    @pytest.mark.parametrize("count", [0, 1])
    def test_fewer_than_two_rejected(self, count):
        with pytest.raises(InsufficientParticipants):
            build_first_round_pairings(_make_players(count))

    def test_beginners_with_veterans_mixes_levels(self):
        players = _make_players(6, beginners={1, 2, 3})
        result = build_first_round_pairings(
            players,
            algorithm=PairingAlgorithm.CUSTOM,
            level_strategy=PlayerLevelPairingStrategy.BEGINNERS_WITH_VETERANS,
            rng=random.Random(3),
        )
        beginners = {1, 2, 3}
        for pairing in result.playing:
            assert (pairing.player1_id in beginners) != (pairing.player2_id in beginners)

    def test_beginners_with_veterans_excess_plays_within_group(self):
        # 2 beginners, 4 veterans -> 2 mixed pairs, 1 veteran pair
        players = _make_players(6, beginners={1, 2})
        result = build_first_round_pairings(
            players,
            algorithm=PairingAlgorithm.CUSTOM,
            level_strategy=PlayerLevelPairingStrategy.BEGINNERS_WITH_VETERANS,
            rng=random.Random(3),
        )
        mixed = [p for p in result.playing if (p.player1_id in {1, 2}) != (p.player2_id in {1, 2})]
        assert len(mixed) == 2
        assert len(result.playing) == 3

    def test_beginners_with_beginners_keeps_groups_apart(self):
        players = _make_players(8, beginners={1, 2, 3, 4})
        result = build_first_round_pairings(
            players,
            algorithm=PairingAlgorithm.CUSTOM,
            level_strategy=PlayerLevelPairingStrategy.BEGINNERS_WITH_BEGINNERS,
            rng=random.Random(5),
        )
        beginners = {1, 2, 3, 4}
        for pairing in result.playing:
            assert (pairing.player1_id in beginners) == (pairing.player2_id in beginners)

    def test_standard_ignores_level_strategy(self):
        players = _make_players(4, beginners={1, 2})
        result = build_first_round_pairings(
            players,
            algorithm=PairingAlgorithm.STANDARD,
            level_strategy=PlayerLevelPairingStrategy.BEGINNERS_WITH_VETERANS,
            rng=random.Random(9),
        )
        assert sorted(_ids_in(result)) == [1, 2, 3, 4]


class TestByeCandidates:
    def test_lowest_ranked_first_without_history(self):
        assert select_bye_candidates([1, 2, 3, 4, 5], {}) == [5, 4, 3, 2, 1]

    def test_previous_bye_holder_skipped(self):
        assert select_bye_candidates([1, 2, 3, 4, 5], {5: 1}) == [4, 3, 2, 1]

    def test_everyone_had_one_bye(self):
        counts = {p: 1 for p in (1, 2, 3)}
        assert select_bye_candidates([1, 2, 3], counts) == [3, 2, 1]


class TestSwissPairings:
    def test_adjacent_ranks_paired_without_history(self):
        result = build_swiss_pairings([1, 2, 3, 4, 5, 6])
        assert [(p.player1_id, p.player2_id) for p in result.pairings] == [(1, 2), (3, 4), (5, 6)]
        assert result.rematches == 0

    def test_rematch_swapped_with_next_opponent(self):
        # 1 already played 2 -> 1 takes 3, 2 takes 4
        result = build_swiss_pairings([1, 2, 3, 4], history=[(1, 2), (3, 4)])
        assert [(p.player1_id, p.player2_id) for p in result.pairings] == [(1, 3), (2, 4)]

    def test_backtracks_when_greedy_choice_strands_a_player(self):
        # Greedy 1v2 leaves 3v4 which already played; search must find 1v3, 2v4 or 1v4, 2v3
        result = build_swiss_pairings([1, 2, 3, 4], history=[(3, 4), (1, 3)])
        played = {pair_key(3, 4), pair_key(1, 3)}
        for pairing in result.playing:
            assert pair_key(pairing.player1_id, pairing.player2_id) not in played
        assert result.rematches == 0

    def test_no_rematch_over_several_rounds(self):
        players = list(range(1, 9))
        history = []
        for round_number in range(3):
            ranked = players[round_number:] + players[:round_number]
            result = build_swiss_pairings(ranked, history=history)
            assert result.rematches == 0
            seen = {pair_key(a, b) for a, b in history}
            for pairing in result.playing:
                assert pair_key(pairing.player1_id, pairing.player2_id) not in seen
            history.extend((p.player1_id, p.player2_id) for p in result.playing)

    def test_odd_count_lowest_ranked_gets_bye(self):
        result = build_swiss_pairings([1, 2, 3, 4, 5])
        assert result.bye_player_id == 5
        assert result.pairings[-1].is_bye

    def test_no_second_bye_while_others_have_none(self):
        result = build_swiss_pairings([1, 2, 3, 4, 5], history=[(5, None)], bye_counts={5: 1})
        assert result.bye_player_id == 4

    def test_better_ranked_side_is_player1(self):
        result = build_swiss_pairings([10, 20, 30, 40])
        for pairing in result.playing:
            assert [10, 20, 30, 40].index(pairing.player1_id) < [10, 20, 30, 40].index(pairing.player2_id)

    def test_unavoidable_rematch_falls_back(self):
        result = build_swiss_pairings([1, 2], history=[(1, 2)])
        assert [(p.player1_id, p.player2_id) for p in result.pairings] == [(1, 2)]
        assert result.rematches == 1

    def test_single_player_rejected(self):
        with pytest.raises(InsufficientParticipants):
            build_swiss_pairings([1])
