"""Pydantic request and response bodies for the skins API."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import MAX_STAKE, STAKE_DECIMAL_PLACES, HoleOutcome, RoundResult, TiePolicy, as_number


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlayerPayload(CamelModel):
    id: str
    scores: list[Any] | str


class CalculateSkinsRequest(CamelModel):
    holes_count: int
    players: list[PlayerPayload]
    stake_per_hole: Decimal | None = Field(
        default=None,
        gt=0,
        le=MAX_STAKE,
        max_digits=len(str(MAX_STAKE)) + STAKE_DECIMAL_PLACES,
        decimal_places=STAKE_DECIMAL_PLACES,
    )
    tie_policy: TiePolicy | None = None


class HoleResponse(CamelModel):
    hole_number: int
    bank_before: int | float
    scores: dict[str, int]
    winners: list[str]

    @classmethod
    def from_outcome(cls, outcome: HoleOutcome) -> "HoleResponse":
        return cls(
            hole_number=outcome.hole_number,
            bank_before=as_number(outcome.bank_before),
            scores=dict(outcome.scores),
            winners=list(outcome.winners),
        )


class SkinsResponse(CamelModel):
    player_skins: dict[str, int | float]
    winner: str
    holes: list[HoleResponse]
    unclaimed_bank: int | float

    @classmethod
    def from_result(cls, result: RoundResult) -> "SkinsResponse":
        return cls(
            player_skins={player_id: as_number(skins) for player_id, skins in result.player_skins.items()},
            winner=result.winner,
            holes=[HoleResponse.from_outcome(hole) for hole in result.holes],
            unclaimed_bank=as_number(result.unclaimed_bank),
        )


class HealthResponse(CamelModel):
    status: str
    stake_per_hole: int | float
    tie_policy: TiePolicy
