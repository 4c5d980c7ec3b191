"""Error types raised by the scoring engine."""

from __future__ import annotations


class SkinsError(Exception):
    """Base class for scoring engine errors."""


class ValidationError(SkinsError, ValueError):
    """Raised when a round request violates an input constraint."""

    def __init__(self, message: str, field: str, player_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.player_id = player_id

    def to_payload(self) -> dict[str, str | None]:
        return {"message": self.message, "field": self.field, "playerId": self.player_id}


class EngineInvariantError(SkinsError, RuntimeError):
    """Raised when hole resolution breaks one of its own invariants."""
