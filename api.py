"""
Quick Query — FastAPI Server
============================

HTTP access to the resolution engine, for shells that are not Python.

Endpoints:
    POST /resolve           Resolve one search-bar query
    POST /color/convert     Convert a color literal to one or all notations
    GET  /health            Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
    uvicorn api:app --host 0.0.0.0        # Production

Docs:
    http://localhost:8000/docs             # Swagger UI (auto-generated)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from quick_query import __version__
from quick_query.color import FORMAT_ALIASES, convert_to_all_formats, format_color, parse_any_color
from quick_query.config import EngineConfig
from quick_query.currency import FrankfurterRateService, RateService
from quick_query.models import ColorFormat, QuickResult
from quick_query.resolver import QuickQueryEngine
from quick_query.vocabulary import CURRENCY_ALIASES, UNIT_CATEGORIES

# ─── Load .env if available ──────────────────────────────────────────
try:
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:
    pass


# ─── Application Lifespan (shared rate service) ─────────────────────

_config = EngineConfig.from_env()
_rate_service: RateService | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open one HTTP client for the rate service and close it on shutdown."""
    global _rate_service  # noqa: PLW0603
    service = FrankfurterRateService(_config.rates_url, _config.http_timeout)
    _rate_service = service
    yield
    _rate_service = None
    await service.aclose()


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="Quick Query API",
    description=(
        "Ask-anything search bar engine: arithmetic, unit conversion, "
        "currency conversion and color-space conversion with partial-query previews."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Request / Response Schemas ─────────────────────────────────────


class ResolveRequest(BaseModel):
    """Request body for the /resolve endpoint."""

    query: str = Field(
        ...,
        max_length=256,
        description="Search bar text, exactly as typed.",
        json_schema_extra={"example": "10 feet to meters"},
    )


class ResolveResponse(BaseModel):
    query: str
    result: Optional[QuickResult] = None


class ColorConvertRequest(BaseModel):
    color: str = Field(..., min_length=1, json_schema_extra={"example": "#ff0000"})
    target: Optional[str] = Field(
        default=None, description="Format name; omit for every format."
    )


class ColorConvertResponse(BaseModel):
    source_format: str
    swatch: str
    formats: dict[str, str]


class HealthResponse(BaseModel):
    status: str
    version: str
    unit_categories: int
    currency_aliases: int
    color_formats: int


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_engine() -> QuickQueryEngine:
    """A fresh engine per request: HTTP callers never share resolver state."""
    if _rate_service is None:
        raise HTTPException(status_code=503, detail="Rate service not initialised")
    return QuickQueryEngine(_rate_service, _config)


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/resolve",
    summary="Resolve a search bar query",
    tags=["Resolution"],
    responses={503: {"description": "Rate service not yet initialised"}},
)
async def resolve_query(request: ResolveRequest) -> ResolveResponse:
    """Run the interpreters in priority order.

    `result` is null when nothing matched or a currency lookup failed.
    Previews carry `is_preview: true`.
    """
    engine = _get_engine()
    result = await engine.resolve_once(request.query)
    return ResolveResponse(query=request.query, result=result)


@app.post(
    "/color/convert",
    summary="Convert a color literal",
    tags=["Color"],
    responses={422: {"description": "Unrecognized color literal or format"}},
)
def convert_color(request: ColorConvertRequest) -> ColorConvertResponse:
    """Convert any supported color literal through the RGB pivot."""
    parsed = parse_any_color(request.color.strip().lower())
    if parsed is None:
        raise HTTPException(status_code=422, detail=f"Unrecognized color: {request.color!r}")

    if request.target is None:
        formats = convert_to_all_formats(parsed.rgb)
    else:
        target = FORMAT_ALIASES.get(request.target.strip().lower())
        if target is None:
            raise HTTPException(status_code=422, detail=f"Unknown format: {request.target!r}")
        formats = {target.value: format_color(parsed.rgb, target)}

    return ColorConvertResponse(
        source_format=parsed.format.value,
        swatch=format_color(parsed.rgb, ColorFormat.HEX),
        formats=formats,
    )


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Rate service not yet initialised"}},
)
def health_check() -> HealthResponse:
    """Returns service status and vocabulary sizes."""
    if _rate_service is None:
        raise HTTPException(status_code=503, detail="Rate service not initialised")
    return HealthResponse(
        status="healthy",
        version=__version__,
        unit_categories=len(UNIT_CATEGORIES),
        currency_aliases=len(CURRENCY_ALIASES),
        color_formats=len(set(FORMAT_ALIASES.values())),
    )
