"""FastAPI endpoints for skins calculation."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import BackendSettings, load_settings
from .engine import calculate_skins
from .errors import EngineInvariantError, ValidationError
from .models import EngineConfig, as_number
from .normalizer import normalize_round
from .schemas import CalculateSkinsRequest, HealthResponse, SkinsResponse

logger = logging.getLogger(__name__)


def _describe_request_error(errors: list[dict[str, Any]]) -> str:
    if not errors:
        return "Malformed request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if location:
        return f"Malformed request: {location}: {first.get('msg', 'invalid value')}"
    return f"Malformed request: {first.get('msg', 'invalid value')}"


def create_app(settings: BackendSettings | None = None) -> FastAPI:
    app_settings = settings if settings is not None else load_settings()
    engine_config = app_settings.engine_config()

    app = FastAPI(title="Skins Calculator API", version="0.1.0")
    app.state.settings = app_settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(app_settings.cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    def get_engine_config() -> EngineConfig:
        return engine_config

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("Rejected round on %s: %s", exc.field, exc.message)
        return JSONResponse(status_code=400, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def handle_malformed_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = list(exc.errors())
        message = _describe_request_error(errors)
        logger.info("Rejected malformed request: %s", message)
        return JSONResponse(
            status_code=422,
            content={"message": message, "details": jsonable_encoder(errors)},
        )

    @app.exception_handler(EngineInvariantError)
    async def handle_engine_defect(request: Request, exc: EngineInvariantError) -> JSONResponse:
        logger.exception("Scoring engine invariant violated", exc_info=exc)
        return JSONResponse(status_code=500, content={"message": "Internal scoring error"})

    @app.get("/api/health", response_model=HealthResponse)
    def health(config: EngineConfig = Depends(get_engine_config)) -> HealthResponse:
        return HealthResponse(
            status="ok",
            stake_per_hole=as_number(config.stake_per_hole),
            tie_policy=config.tie_policy,
        )

    @app.post("/api/skins/calculate", response_model=SkinsResponse)
    def calculate(
        payload: CalculateSkinsRequest,
        config: EngineConfig = Depends(get_engine_config),
    ) -> SkinsResponse:
        round_ = normalize_round(
            holes_count=payload.holes_count,
            players=[player.model_dump() for player in payload.players],
        )
        call_config = config
        if payload.stake_per_hole is not None:
            call_config = replace(call_config, stake_per_hole=payload.stake_per_hole)
        if payload.tie_policy is not None:
            call_config = replace(call_config, tie_policy=payload.tie_policy)
        result = calculate_skins(round_, call_config)
        return SkinsResponse.from_result(result)

    return app


app = create_app()
