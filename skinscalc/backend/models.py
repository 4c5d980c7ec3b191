"""Domain models for a single skins round and its result."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Mapping

TIE = "TIE"

MIN_HOLES = 1
MAX_HOLES = 18
MIN_PLAYERS = 2
MAX_PLAYERS = 6
MAX_STROKES = 99

MAX_STAKE = 1_000_000
STAKE_DECIMAL_PLACES = 6


class TiePolicy(str, Enum):
    PUSH = "push"
    SPLIT = "split"


class SplitMode(str, Enum):
    FRACTIONAL = "fractional"
    WHOLE = "whole"


def check_stake(value: Decimal) -> Decimal:
    """Reject stakes that are not positive, exceed MAX_STAKE or carry too many decimal places."""
    if not value.is_finite() or value <= 0 or value > MAX_STAKE:
        raise ValueError(f"stake must be greater than 0 and at most {MAX_STAKE}, got {value}")
    if value.normalize().as_tuple().exponent < -STAKE_DECIMAL_PLACES:
        raise ValueError(f"stake must have at most {STAKE_DECIMAL_PLACES} decimal places, got {value}")
    return value


@dataclass(frozen=True)
class EngineConfig:
    stake_per_hole: Fraction = Fraction(1)
    tie_policy: TiePolicy = TiePolicy.PUSH
    split_mode: SplitMode = SplitMode.FRACTIONAL

    def __post_init__(self) -> None:
        raw_stake = self.stake_per_hole
        if isinstance(raw_stake, Decimal):
            raw_stake = check_stake(raw_stake)
        stake = Fraction(raw_stake)
        if stake <= 0 or stake > MAX_STAKE:
            raise ValueError(f"stake_per_hole must be greater than 0 and at most {MAX_STAKE}")
        object.__setattr__(self, "stake_per_hole", stake)
        object.__setattr__(self, "tie_policy", TiePolicy(self.tie_policy))
        object.__setattr__(self, "split_mode", SplitMode(self.split_mode))


@dataclass(frozen=True)
class Player:
    player_id: str
    scores: tuple[int, ...]


@dataclass(frozen=True)
class Round:
    holes_count: int
    players: tuple[Player, ...]

    @property
    def player_ids(self) -> tuple[str, ...]:
        return tuple(player.player_id for player in self.players)

    def hole_scores(self, hole_number: int) -> dict[str, int]:
        """Return player id to strokes for a 1-based hole number."""
        return {player.player_id: player.scores[hole_number - 1] for player in self.players}


@dataclass(frozen=True)
class HoleOutcome:
    hole_number: int
    bank_before: Fraction
    scores: Mapping[str, int]
    winners: tuple[str, ...]
    payouts: Mapping[str, Fraction] = field(default_factory=dict)

    @property
    def pushed(self) -> bool:
        return not self.winners


@dataclass(frozen=True)
class RoundResult:
    player_skins: Mapping[str, Fraction]
    winner: str
    holes: tuple[HoleOutcome, ...]
    unclaimed_bank: Fraction


def as_number(value: Fraction) -> int | float:
    """Render an exact amount as a JSON number."""
    if value.denominator == 1:
        return int(value)
    return float(value)
