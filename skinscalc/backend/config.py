"""Configuration helpers for backend runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction

from .models import EngineConfig, SplitMode, TiePolicy, check_stake


@dataclass(frozen=True)
class BackendSettings:
    host: str
    port: int
    stake_per_hole: Fraction
    tie_policy: TiePolicy
    split_mode: SplitMode
    cors_origins: tuple[str, ...]
    log_level: str

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            stake_per_hole=self.stake_per_hole,
            tie_policy=self.tie_policy,
            split_mode=self.split_mode,
        )


def _parse_stake(raw: str) -> Fraction:
    try:
        stake = Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ValueError(f"SKINSCALC_STAKE_PER_HOLE must be a number, got {raw!r}") from exc
    try:
        return Fraction(check_stake(stake))
    except ValueError as exc:
        raise ValueError(f"SKINSCALC_STAKE_PER_HOLE is invalid: {exc}") from exc


def _parse_origins(raw: str) -> tuple[str, ...]:
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


def _engine_env() -> tuple[Fraction, TiePolicy, SplitMode]:
    return (
        _parse_stake(os.getenv("SKINSCALC_STAKE_PER_HOLE", "1")),
        TiePolicy(os.getenv("SKINSCALC_TIE_POLICY", "push").strip().lower()),
        SplitMode(os.getenv("SKINSCALC_SPLIT_MODE", "fractional").strip().lower()),
    )


def load_engine_config() -> EngineConfig:
    """Read only the scoring settings, ignoring server-related variables."""
    stake, tie_policy, split_mode = _engine_env()
    return EngineConfig(stake_per_hole=stake, tie_policy=tie_policy, split_mode=split_mode)


def load_settings() -> BackendSettings:
    port_raw = os.getenv("SKINSCALC_PORT", "8080")
    stake, tie_policy, split_mode = _engine_env()
    return BackendSettings(
        host=os.getenv("SKINSCALC_HOST", "127.0.0.1"),
        port=int(port_raw),
        stake_per_hole=stake,
        tie_policy=tie_policy,
        split_mode=split_mode,
        cors_origins=_parse_origins(os.getenv("SKINSCALC_CORS_ORIGINS", "http://localhost:3000")),
        log_level=os.getenv("SKINSCALC_LOG_LEVEL", "info").strip().lower(),
    )
