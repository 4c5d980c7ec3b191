"""Backend package for the skins calculator."""

from .config import BackendSettings, load_settings
from .engine import aggregate_round, calculate_skins, resolve_hole, resolve_round
from .errors import EngineInvariantError, SkinsError, ValidationError
from .models import TIE, EngineConfig, HoleOutcome, Player, Round, RoundResult, SplitMode, TiePolicy
from .normalizer import normalize_round

__all__ = [
    "aggregate_round",
    "BackendSettings",
    "calculate_skins",
    "EngineConfig",
    "EngineInvariantError",
    "HoleOutcome",
    "load_settings",
    "normalize_round",
    "Player",
    "resolve_hole",
    "resolve_round",
    "Round",
    "RoundResult",
    "SkinsError",
    "SplitMode",
    "TIE",
    "TiePolicy",
    "ValidationError",
]
