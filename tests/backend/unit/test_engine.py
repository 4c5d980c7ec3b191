import random
from fractions import Fraction

import pytest

from skinscalc.backend import engine
from skinscalc.backend.engine import (
    RoundResolution,
    aggregate_round,
    calculate_skins,
    resolve_hole,
    resolve_round,
)
from skinscalc.backend.errors import EngineInvariantError
from skinscalc.backend.models import TIE, EngineConfig, Player, Round, SplitMode, TiePolicy
from skinscalc.backend.normalizer import normalize_round

SPLIT = EngineConfig(tie_policy=TiePolicy.SPLIT)
SPLIT_WHOLE = EngineConfig(tie_policy=TiePolicy.SPLIT, split_mode=SplitMode.WHOLE)


def _round(holes_count: int, **scores: list[int]) -> Round:
    return normalize_round(
        holes_count=holes_count,
        players=[{"id": player_id, "scores": values} for player_id, values in scores.items()],
    )


def test_calculate_skins_outright_win_then_two_pushes() -> None:
    result = calculate_skins(_round(3, A=[4, 5, 3], B=[5, 5, 3]))

    assert result.player_skins == {"A": 1, "B": 0}
    assert result.winner == "A"
    assert result.unclaimed_bank == 2
    assert [hole.bank_before for hole in result.holes] == [0, 0, 1]
    assert result.holes[0].winners == ("A",)
    assert result.holes[1].winners == ()
    assert result.holes[2].winners == ()


def test_calculate_skins_single_tied_hole_is_a_tie_with_unclaimed_stake() -> None:
    result = calculate_skins(_round(1, A=[4], B=[4]))

    assert result.player_skins == {"A": 0, "B": 0}
    assert result.winner == TIE
    assert result.unclaimed_bank == 1
    assert result.holes[0].pushed is True


def test_calculate_skins_carried_bank_is_claimed_by_next_outright_winner() -> None:
    result = calculate_skins(_round(3, A=[4, 4, 3], B=[4, 4, 4]))

    assert [hole.bank_before for hole in result.holes] == [0, 1, 2]
    assert result.holes[2].winners == ("A",)
    assert result.holes[2].payouts == {"A": 3}
    assert result.player_skins == {"A": 3, "B": 0}
    assert result.unclaimed_bank == 0


def test_calculate_skins_uses_stake_per_hole() -> None:
    result = calculate_skins(_round(3, A=[4, 5, 3], B=[5, 5, 3]), EngineConfig(stake_per_hole=Fraction(5)))

    assert result.player_skins == {"A": 5, "B": 0}
    assert result.unclaimed_bank == 10
    assert [hole.bank_before for hole in result.holes] == [0, 0, 5]


def test_calculate_skins_all_tie_pushes_regardless_of_player_count() -> None:
    result = calculate_skins(_round(1, a=[3], b=[3], c=[3], d=[3], e=[3], f=[3]))

    assert result.holes[0].winners == ()
    assert result.winner == TIE
    assert result.unclaimed_bank == 1


def test_resolve_hole_adds_stake_before_awarding_bank() -> None:
    step = resolve_hole(hole_number=4, bank=Fraction(2), scores={"a": 3, "b": 4}, config=EngineConfig())

    assert step.outcome.hole_number == 4
    assert step.outcome.bank_before == 2
    assert step.outcome.winners == ("a",)
    assert step.outcome.payouts == {"a": 3}
    assert step.bank == 0


def test_resolve_hole_push_keeps_post_stake_bank() -> None:
    step = resolve_hole(hole_number=1, bank=Fraction(0), scores={"a": 4, "b": 4, "c": 5}, config=EngineConfig())

    assert step.outcome.winners == ()
    assert step.outcome.payouts == {}
    assert step.bank == 1


def test_split_policy_divides_bank_among_tied_leaders() -> None:
    result = calculate_skins(_round(2, A=[3, 4], B=[3, 5], C=[4, 3]), SPLIT)

    assert result.holes[0].winners == ("A", "B")
    assert result.holes[0].payouts == {"A": Fraction(1, 2), "B": Fraction(1, 2)}
    assert result.holes[1].bank_before == 0
    assert result.player_skins == {"A": Fraction(1, 2), "B": Fraction(1, 2), "C": 1}
    assert result.winner == "C"
    assert result.unclaimed_bank == 0


def test_split_policy_fractional_shares_are_exact() -> None:
    result = calculate_skins(_round(1, A=[4], B=[4], C=[4]), SPLIT)

    assert result.player_skins == {"A": Fraction(1, 3), "B": Fraction(1, 3), "C": Fraction(1, 3)}
    assert sum(result.player_skins.values()) == 1
    assert result.winner == TIE


def test_whole_split_carries_indivisible_remainder() -> None:
    config = EngineConfig(stake_per_hole=Fraction(5), tie_policy=TiePolicy.SPLIT, split_mode=SplitMode.WHOLE)

    result = calculate_skins(_round(1, A=[3], B=[3], C=[4]), config)

    assert result.holes[0].winners == ("A", "B")
    assert result.player_skins == {"A": 2, "B": 2, "C": 0}
    assert result.unclaimed_bank == 1


def test_whole_split_pushes_when_bank_is_too_small_to_share() -> None:
    result = calculate_skins(_round(2, A=[3, 3], B=[3, 3], C=[3, 4]), SPLIT_WHOLE)

    assert result.holes[0].winners == ()
    assert result.holes[1].bank_before == 1
    assert result.holes[1].winners == ("A", "B")
    assert result.player_skins == {"A": 1, "B": 1, "C": 0}
    assert result.unclaimed_bank == 0


def test_aggregate_round_reports_tie_when_leaders_share_maximum() -> None:
    round_ = _round(2, A=[3, 5], B=[5, 3], C=[6, 6])

    result = aggregate_round(round_, resolve_round(round_, EngineConfig()))

    assert result.player_skins == {"A": 1, "B": 1, "C": 0}
    assert result.winner == TIE


def test_calculate_skins_is_idempotent() -> None:
    round_ = _round(4, A=[4, 4, 3, 5], B=[4, 5, 3, 4], C=[5, 4, 4, 4])

    assert calculate_skins(round_) == calculate_skins(round_)


def test_check_invariants_rejects_missing_holes() -> None:
    round_ = _round(2, A=[3, 4], B=[4, 3])

    with pytest.raises(EngineInvariantError):
        engine._check_invariants(round_, EngineConfig(), RoundResolution(holes=(), bank=Fraction(0)))


def test_check_invariants_rejects_unbalanced_bank() -> None:
    round_ = _round(1, A=[3], B=[4])
    resolution = resolve_round(round_, EngineConfig())
    broken = RoundResolution(holes=resolution.holes, bank=Fraction(1))

    with pytest.raises(EngineInvariantError):
        engine._check_invariants(round_, EngineConfig(), broken)


def _random_round(rng: random.Random) -> Round:
    holes_count = rng.randint(1, 18)
    players = tuple(
        Player(player_id=f"p{index}", scores=tuple(rng.randint(2, 6) for _ in range(holes_count)))
        for index in range(rng.randint(2, 6))
    )
    return Round(holes_count=holes_count, players=players)


@pytest.mark.parametrize("seed", range(40))
@pytest.mark.parametrize(
    "config",
    [EngineConfig(), EngineConfig(stake_per_hole=Fraction(3, 2)), SPLIT, SPLIT_WHOLE],
    ids=["push", "push-fractional-stake", "split", "split-whole"],
)
def test_random_rounds_conserve_stake(seed: int, config: EngineConfig) -> None:
    round_ = _random_round(random.Random(seed))

    result = calculate_skins(round_, config)

    assert len(result.holes) == round_.holes_count
    assert [hole.hole_number for hole in result.holes] == list(range(1, round_.holes_count + 1))
    assert sum(result.player_skins.values()) + result.unclaimed_bank == round_.holes_count * config.stake_per_hole
    assert result.unclaimed_bank >= 0
    assert all(hole.bank_before >= 0 for hole in result.holes)


@pytest.mark.parametrize("seed", range(40))
@pytest.mark.parametrize("config", [EngineConfig(), SPLIT], ids=["push", "split"])
def test_random_rounds_bank_resets_after_claims_and_grows_through_pushes(seed: int, config: EngineConfig) -> None:
    result = calculate_skins(_random_round(random.Random(seed)), config)

    assert result.holes[0].bank_before == 0
    for previous, current in zip(result.holes, result.holes[1:]):
        if previous.winners:
            assert current.bank_before == 0
        else:
            assert current.bank_before == previous.bank_before + config.stake_per_hole


@pytest.mark.parametrize("seed", range(40))
def test_random_rounds_winner_policy_matches_hole_scores(seed: int) -> None:
    round_ = _random_round(random.Random(seed))

    result = calculate_skins(round_)

    for hole in result.holes:
        low = min(hole.scores.values())
        leaders = [player_id for player_id, strokes in hole.scores.items() if strokes == low]
        if len(leaders) == 1:
            assert hole.winners == (leaders[0],)
        else:
            assert hole.winners == ()

    best = max(result.player_skins.values())
    sharing = [player_id for player_id, skins in result.player_skins.items() if skins == best]
    assert (result.winner == TIE) == (len(sharing) >= 2)
    if result.winner != TIE:
        assert result.winner == sharing[0]
