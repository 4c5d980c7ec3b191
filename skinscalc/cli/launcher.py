"""Command-line launcher: serve the API or score a round from the terminal."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

from urllib import error, request

from skinscalc.backend.config import load_engine_config, load_settings
from skinscalc.backend.engine import calculate_skins
from skinscalc.backend.errors import ValidationError
from skinscalc.backend.models import TIE, TiePolicy, check_stake
from skinscalc.backend.normalizer import normalize_round
from skinscalc.backend.schemas import SkinsResponse

API_APP = "skinscalc.backend.api:app"
CALCULATE_PATH = "/api/skins/calculate"


def _stake(raw: str) -> Decimal:
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"invalid stake: {raw!r}") from exc
    try:
        return check_stake(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_player_arg(raw: str) -> dict[str, str]:
    """Split an ``ID=4,5,3`` argument into an id and a score string."""
    player_id, separator, scores = raw.partition("=")
    if not separator:
        raise argparse.ArgumentTypeError(f"expected ID=SCORES, got {raw!r}")
    return {"id": player_id.strip(), "scores": scores}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="skinscalc", description="Skins game calculator")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    calc = subparsers.add_parser("calc", help="score a round")
    calc.add_argument("--holes", type=int, required=True, dest="holes_count")
    calc.add_argument("--player", type=parse_player_arg, action="append", required=True, dest="players")
    calc.add_argument("--stake", type=_stake, default=None)
    calc.add_argument("--tie-policy", choices=[policy.value for policy in TiePolicy], default=None)
    calc.add_argument("--server", default="", help="post to a running API instead of scoring locally")
    calc.add_argument("--json", action="store_true", dest="as_json")
    return parser.parse_args(argv)


def build_request_body(args: argparse.Namespace) -> dict[str, Any]:
    body: dict[str, Any] = {"holesCount": args.holes_count, "players": args.players}
    if args.stake is not None:
        body["stakePerHole"] = float(args.stake)
    if args.tie_policy:
        body["tiePolicy"] = args.tie_policy
    return body


def score_locally(args: argparse.Namespace) -> dict[str, Any]:
    config = load_engine_config()
    if args.stake is not None:
        config = replace(config, stake_per_hole=args.stake)
    if args.tie_policy:
        config = replace(config, tie_policy=TiePolicy(args.tie_policy))
    round_ = normalize_round(holes_count=args.holes_count, players=args.players)
    result = calculate_skins(round_, config)
    return SkinsResponse.from_result(result).model_dump(by_alias=True)


def score_remotely(server_url: str, body: dict[str, Any], timeout_s: float = 5.0) -> dict[str, Any]:
    """POST a round to a running API; raise ValidationError when it rejects the input."""
    req = request.Request(
        f"{server_url.rstrip('/')}{CALCULATE_PATH}",
        data=json.dumps(body).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with request.urlopen(req, timeout=timeout_s) as response:
            return json.loads(response.read().decode("utf-8"))
    except error.HTTPError as exc:
        if exc.code not in (400, 422):
            raise
        data = json.loads(exc.read().decode("utf-8") or "{}")
        raise ValidationError(
            data.get("message") or f"Request failed with {exc.code}",
            field=data.get("field") or "",
            player_id=data.get("playerId"),
        ) from exc


def render_table(payload: dict[str, Any]) -> str:
    player_ids = list(payload["playerSkins"])
    header = ["Hole", "Bank", *player_ids, "Winners"]
    rows = [header]
    for hole in payload["holes"]:
        rows.append(
            [
                str(hole["holeNumber"]),
                str(hole["bankBefore"]),
                *(str(hole["scores"][player_id]) for player_id in player_ids),
                ", ".join(hole["winners"]) or "-",
            ]
        )
    widths = [max(len(row[column]) for row in rows) for column in range(len(header))]
    lines = ["  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip() for row in rows]

    lines.append("")
    for player_id in player_ids:
        lines.append(f"{player_id}: {payload['playerSkins'][player_id]}")
    winner = payload["winner"]
    lines.append(f"Winner: {'Tie' if winner == TIE else winner}")
    lines.append(f"Unclaimed bank: {payload['unclaimedBank']}")
    return "\n".join(lines)


def serve(host: str | None, port: int | None) -> int:
    import uvicorn

    settings = load_settings()
    logging.basicConfig(level=settings.log_level.upper())
    uvicorn.run(
        API_APP,
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level,
    )
    return 0


def calc(args: argparse.Namespace) -> int:
    try:
        if args.server:
            payload = score_remotely(args.server, build_request_body(args))
        else:
            payload = score_locally(args)
    except ValidationError as exc:
        print(exc.message, file=sys.stderr)
        return 2
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    except error.URLError as exc:
        print(f"Server not reachable: {exc.reason}", file=sys.stderr)
        return 1

    if args.as_json:
        print(json.dumps(payload, indent=2))
    else:
        print(render_table(payload))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.command == "serve":
        return serve(host=args.host, port=args.port)
    return calc(args)


if __name__ == "__main__":
    raise SystemExit(main())
