"""Hole resolution and result aggregation for a skins round."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import Mapping

from .errors import EngineInvariantError
from .models import TIE, EngineConfig, HoleOutcome, Round, RoundResult, SplitMode, TiePolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HoleResolution:
    outcome: HoleOutcome
    bank: Fraction


@dataclass(frozen=True)
class RoundResolution:
    holes: tuple[HoleOutcome, ...]
    bank: Fraction


def calculate_skins(round_: Round, config: EngineConfig | None = None) -> RoundResult:
    """Resolve every hole of a validated round and aggregate the result."""
    engine_config = config if config is not None else EngineConfig()
    resolution = resolve_round(round_, engine_config)
    return aggregate_round(round_, resolution)


def resolve_round(round_: Round, config: EngineConfig) -> RoundResolution:
    """Fold over holes in play order, threading the bank from one hole to the next."""
    logger.debug(
        "Resolving %d holes for %d players (stake=%s, tie_policy=%s)",
        round_.holes_count,
        len(round_.players),
        config.stake_per_hole,
        config.tie_policy.value,
    )
    bank = Fraction(0)
    holes: list[HoleOutcome] = []
    for hole_number in range(1, round_.holes_count + 1):
        step = resolve_hole(
            hole_number=hole_number,
            bank=bank,
            scores=round_.hole_scores(hole_number),
            config=config,
        )
        holes.append(step.outcome)
        bank = step.bank

    resolution = RoundResolution(holes=tuple(holes), bank=bank)
    _check_invariants(round_, config, resolution)
    return resolution


def resolve_hole(hole_number: int, bank: Fraction, scores: Mapping[str, int], config: EngineConfig) -> HoleResolution:
    """Resolve one hole: add its stake to the bank, then award or carry the bank."""
    bank_before = bank
    bank = bank + config.stake_per_hole
    min_score = min(scores.values())
    leaders = tuple(player_id for player_id, strokes in scores.items() if strokes == min_score)

    if len(leaders) == 1:
        return _apply_outright_win(hole_number, bank_before, bank, scores, leaders[0])
    if config.tie_policy is TiePolicy.SPLIT:
        return _apply_split(hole_number, bank_before, bank, scores, leaders, config.split_mode)
    return _apply_push(hole_number, bank_before, bank, scores)


def _apply_outright_win(
    hole_number: int,
    bank_before: Fraction,
    bank: Fraction,
    scores: Mapping[str, int],
    winner: str,
) -> HoleResolution:
    outcome = HoleOutcome(
        hole_number=hole_number,
        bank_before=bank_before,
        scores=dict(scores),
        winners=(winner,),
        payouts={winner: bank},
    )
    return HoleResolution(outcome=outcome, bank=Fraction(0))


def _apply_push(hole_number: int, bank_before: Fraction, bank: Fraction, scores: Mapping[str, int]) -> HoleResolution:
    logger.debug("Hole %d pushed, carrying bank %s", hole_number, bank)
    outcome = HoleOutcome(hole_number=hole_number, bank_before=bank_before, scores=dict(scores), winners=())
    return HoleResolution(outcome=outcome, bank=bank)


def _apply_split(
    hole_number: int,
    bank_before: Fraction,
    bank: Fraction,
    scores: Mapping[str, int],
    leaders: tuple[str, ...],
    split_mode: SplitMode,
) -> HoleResolution:
    if split_mode is SplitMode.WHOLE:
        share = Fraction(int(bank // len(leaders)))
    else:
        share = bank / len(leaders)
    if share == 0:
        return _apply_push(hole_number, bank_before, bank, scores)

    remainder = bank - share * len(leaders)
    logger.debug("Hole %d split %s ways at %s each, %s carried", hole_number, len(leaders), share, remainder)
    outcome = HoleOutcome(
        hole_number=hole_number,
        bank_before=bank_before,
        scores=dict(scores),
        winners=leaders,
        payouts={player_id: share for player_id in leaders},
    )
    return HoleResolution(outcome=outcome, bank=remainder)


def _check_invariants(round_: Round, config: EngineConfig, resolution: RoundResolution) -> None:
    if len(resolution.holes) != round_.holes_count:
        raise EngineInvariantError(
            f"Resolved {len(resolution.holes)} holes for a {round_.holes_count}-hole round"
        )
    if resolution.bank < 0 or any(hole.bank_before < 0 for hole in resolution.holes):
        raise EngineInvariantError("Bank went negative during resolution")
    paid = sum((sum(hole.payouts.values(), Fraction(0)) for hole in resolution.holes), Fraction(0))
    if paid + resolution.bank != config.stake_per_hole * round_.holes_count:
        raise EngineInvariantError(f"Paid {paid} plus bank {resolution.bank} does not match total stake")


def aggregate_round(round_: Round, resolution: RoundResolution) -> RoundResult:
    """Fold hole outcomes into per-player totals and the overall winner."""
    player_skins: dict[str, Fraction] = {player_id: Fraction(0) for player_id in round_.player_ids}
    for hole in resolution.holes:
        for player_id, amount in hole.payouts.items():
            player_skins[player_id] += amount

    return RoundResult(
        player_skins=player_skins,
        winner=_pick_winner(player_skins),
        holes=resolution.holes,
        unclaimed_bank=resolution.bank,
    )


def _pick_winner(player_skins: Mapping[str, Fraction]) -> str:
    best = max(player_skins.values())
    leaders = [player_id for player_id, skins in player_skins.items() if skins == best]
    if len(leaders) != 1:
        return TIE
    return leaders[0]
