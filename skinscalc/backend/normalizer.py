"""Validation and canonicalization of raw round requests."""

from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

from .errors import ValidationError
from .models import MAX_HOLES, MAX_PLAYERS, MAX_STROKES, MIN_HOLES, MIN_PLAYERS, Player, Round


def normalize_round(holes_count: Any, players: Sequence[Mapping[str, Any]]) -> Round:
    """Build a validated Round, raising ValidationError on the first violated constraint."""
    if isinstance(holes_count, bool) or not isinstance(holes_count, int):
        raise ValidationError("Holes count must be a whole number", field="holesCount")
    if holes_count < MIN_HOLES or holes_count > MAX_HOLES:
        raise ValidationError(
            f"Holes count must be between {MIN_HOLES} and {MAX_HOLES}, got {holes_count}",
            field="holesCount",
        )

    if len(players) < MIN_PLAYERS:
        raise ValidationError(f"At least {MIN_PLAYERS} players are required", field="players")
    if len(players) > MAX_PLAYERS:
        raise ValidationError(f"At most {MAX_PLAYERS} players are allowed", field="players")

    normalized: list[Player] = []
    seen_ids: set[str] = set()
    for index, raw_player in enumerate(players):
        player = _normalize_player(index=index, raw_player=raw_player, holes_count=holes_count, seen_ids=seen_ids)
        seen_ids.add(player.player_id)
        normalized.append(player)

    return Round(holes_count=holes_count, players=tuple(normalized))


def _normalize_player(index: int, raw_player: Mapping[str, Any], holes_count: int, seen_ids: set[str]) -> Player:
    if not isinstance(raw_player, Mapping):
        raise ValidationError(f"Player #{index + 1} must be an object with id and scores", field=f"players[{index}]")
    raw_id = raw_player.get("id")
    player_id = raw_id.strip() if isinstance(raw_id, str) else ""
    if player_id == "":
        raise ValidationError(f"Player #{index + 1} is missing an id", field=f"players[{index}].id")
    if player_id in seen_ids:
        raise ValidationError(
            f"Player id '{player_id}' is used more than once",
            field=f"players[{index}].id",
            player_id=player_id,
        )

    field_path = f"players[{index}].scores"
    tokens = split_score_tokens(raw_player.get("scores"))
    scores = tuple(_parse_score(token, field_path=field_path, player_id=player_id) for token in tokens)
    if len(scores) != holes_count:
        raise ValidationError(
            f"Player '{player_id}' has {len(scores)} scores, expected {holes_count}",
            field=field_path,
            player_id=player_id,
        )
    return Player(player_id=player_id, scores=scores)


def split_score_tokens(raw_scores: Any) -> list[Any]:
    """Accept a comma-delimited string or a pre-parsed sequence of scores."""
    if raw_scores is None:
        return []
    if isinstance(raw_scores, str):
        if raw_scores.strip() == "":
            return []
        return [token.strip() for token in raw_scores.split(",")]
    if isinstance(raw_scores, (list, tuple)):
        return list(raw_scores)
    return [raw_scores]


def _parse_score(token: Any, field_path: str, player_id: str) -> int:
    value = _whole_number(token)
    if value is None or value < 0 or value > MAX_STROKES:
        raise ValidationError(
            f"Player '{player_id}' has an invalid score {token!r}; "
            f"scores must be whole numbers between 0 and {MAX_STROKES}",
            field=field_path,
            player_id=player_id,
        )
    return value


def _whole_number(token: Any) -> int | None:
    if isinstance(token, bool):
        return None
    if isinstance(token, int):
        return token
    if isinstance(token, str):
        try:
            return int(token)
        except ValueError:
            pass
        try:
            token = float(token)
        except ValueError:
            return None
    if isinstance(token, float) and math.isfinite(token) and token.is_integer():
        return int(token)
    return None
