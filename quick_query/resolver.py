"""
Resolution orchestrator — one query in, at most one QuickResult out.

Flow per keystroke:
  ┌──────────────┐
  │  raw string  │
  └──────┬───────┘
         │ normalize
  ┌──────▼───────┐
  │  Calculator  │──► resolved        ← first success wins,
  │    Color     │──► resolved          nothing below it runs
  │    Units     │──► resolved
  │   Currency   │──► evaluating (emits a CurrencyRequest effect)
  ├──────────────┤
  │ Partial unit │──► preview
  │ Partial curr.│──► preview
  └──────┬───────┘
         ▼
        idle

Design:
  - resolve() is a pure function: (query, previous state) → (state, effects).
    It never touches the network, which makes every transition testable.
  - QuickQueryEngine runs the effects on asyncio: debounces them, calls the
    RateService, and feeds responses back through apply_currency_result().
  - A response is applied only if its query is still the current query AND
    still the pending one. Anything else is stale and silently dropped.
  - Service failures never surface as text; they clear to "no result".
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum

from .calculator import evaluate_expression
from .color import parse_color_query
from .config import EngineConfig
from .currency import (
    RateService,
    parse_currency_query,
    parse_partial_currency_query,
)
from .models import (
    ColorConversion,
    CurrencyResult,
    PartialCurrencySuggestion,
    PartialUnitSuggestion,
    QuickResult,
    ResultKind,
    UnitConversion,
)
from .normalizer import format_grouped, format_number, normalize, ungroup
from .units import parse_partial_unit_query, parse_unit_query

logger = logging.getLogger(__name__)

UNIT_FRACTION_DIGITS = 4
CURRENCY_FRACTION_DIGITS = 2
RATE_FRACTION_DIGITS = 4


# ─── State ───────────────────────────────────────────────────────────


class Phase(str, Enum):
    IDLE = "idle"
    EVALUATING = "evaluating"  # Waiting on the rate service
    RESOLVED = "resolved"
    PREVIEW = "preview"


@dataclass(frozen=True)
class CurrencyRequest:
    """Side effect emitted by resolve(): 'please fetch this rate'."""

    query: str  # Normalized query that spawned the request
    amount: float
    from_code: str
    to_code: str


@dataclass(frozen=True)
class ResolverState:
    phase: Phase = Phase.IDLE
    query: str = ""
    result: QuickResult | None = None
    pending_query: str | None = None  # Currency request in flight for this query
    cached_query: str | None = None  # Last currency query that succeeded
    cached_result: QuickResult | None = None


# ─── Result Builders ─────────────────────────────────────────────────


def _calculator_result(query: str, value: str) -> QuickResult:
    return QuickResult(
        kind=ResultKind.CALCULATOR,
        display_query=f"{query} =",
        display_value=value,
        copy_value=ungroup(value),
    )


def _color_result(query: str, conversion: ColorConversion) -> QuickResult:
    return QuickResult(
        kind=ResultKind.COLOR,
        display_query=query,
        display_value=conversion.value,
        copy_value=conversion.value,
        color_swatch=conversion.swatch,
    )


def _unit_result(conversion: UnitConversion, is_preview: bool = False) -> QuickResult:
    value = format_grouped(conversion.result, UNIT_FRACTION_DIGITS)
    return QuickResult(
        kind=ResultKind.UNIT,
        display_query=(
            f"{format_number(conversion.amount)} {conversion.from_unit} "
            f"to {conversion.to_unit}"
        ),
        display_value=f"{value} {conversion.to_unit}",
        copy_value=ungroup(value),
        is_preview=is_preview,
    )


def currency_result_to_quick(result: CurrencyResult) -> QuickResult:
    value = format_grouped(result.result, CURRENCY_FRACTION_DIGITS, CURRENCY_FRACTION_DIGITS)
    rate = format_grouped(result.rate, RATE_FRACTION_DIGITS)
    return QuickResult(
        kind=ResultKind.CURRENCY,
        display_query=(
            f"{format_number(result.amount)} {result.from_code} to {result.to_code}"
            f" · 1 {result.from_code} = {rate} {result.to_code}"
        ),
        display_value=f"{value} {result.to_code}",
        copy_value=ungroup(value),
    )


def _unit_preview(suggestion: PartialUnitSuggestion) -> QuickResult:
    conversion = parse_unit_query(suggestion.suggested_query)
    if conversion is not None:
        preview = _unit_result(conversion, is_preview=True)
        return preview.model_copy(update={"display_query": suggestion.suggested_query})
    return QuickResult(
        kind=ResultKind.UNIT,
        display_query=suggestion.suggested_query,
        display_value=suggestion.suggested_query,
        copy_value=suggestion.suggested_query,
        is_preview=True,
    )


def _currency_preview(suggestion: PartialCurrencySuggestion) -> QuickResult:
    return QuickResult(
        kind=ResultKind.CURRENCY,
        display_query=suggestion.suggested_query,
        display_value=f"{suggestion.from_code} → {suggestion.to_code}",
        copy_value=suggestion.suggested_query,
        is_preview=True,
    )


# ─── Pure Transition Functions ───────────────────────────────────────


def resolve(
    raw: str, previous: ResolverState | None = None
) -> tuple[ResolverState, tuple[CurrencyRequest, ...]]:
    """Run the interpreters in priority order for one query.

    Args:
        raw: The search box text, exactly as typed.
        previous: State after the previous keystroke (None on first call).

    Returns:
        (new_state, effects). Effects hold at most one CurrencyRequest.
    """
    previous = previous or ResolverState()
    query = normalize(raw)

    # The currency cache outlives every transition
    base = ResolverState(
        query=query,
        cached_query=previous.cached_query,
        cached_result=previous.cached_result,
    )

    if not query:
        return base, ()

    # ── 1. Calculator ───────────────────────────────────────────────
    calculated = evaluate_expression(query)
    if calculated is not None:
        logger.debug("Query %r resolved by calculator", query)
        return replace(base, phase=Phase.RESOLVED, result=_calculator_result(query, calculated)), ()

    # ── 2. Color ────────────────────────────────────────────────────
    color = parse_color_query(query)
    if color is not None:
        logger.debug("Query %r resolved by color", query)
        return replace(base, phase=Phase.RESOLVED, result=_color_result(query, color)), ()

    # ── 3. Units ────────────────────────────────────────────────────
    unit = parse_unit_query(query)
    if unit is not None:
        logger.debug("Query %r resolved by units (%s)", query, unit.category)
        return replace(base, phase=Phase.RESOLVED, result=_unit_result(unit)), ()

    # ── 4. Currency (asynchronous) ──────────────────────────────────
    currency = parse_currency_query(query)
    if currency is not None:
        if previous.cached_query == query and previous.cached_result is not None:
            logger.debug("Query %r served from currency cache", query)
            return replace(base, phase=Phase.RESOLVED, result=previous.cached_result), ()

        evaluating = replace(base, phase=Phase.EVALUATING, pending_query=query)
        if previous.pending_query == query:
            return evaluating, ()

        request = CurrencyRequest(
            query=query,
            amount=currency.amount,
            from_code=currency.from_code,
            to_code=currency.to_code,
        )
        return evaluating, (request,)

    # ── 5. Partial interpreters: units first, then currency ────────
    unit_guess = parse_partial_unit_query(query)
    if unit_guess is not None:
        return replace(base, phase=Phase.PREVIEW, result=_unit_preview(unit_guess)), ()

    currency_guess = parse_partial_currency_query(query)
    if currency_guess is not None:
        return replace(base, phase=Phase.PREVIEW, result=_currency_preview(currency_guess)), ()

    # ── 6. Nothing matched ──────────────────────────────────────────
    return base, ()


def is_stale(state: ResolverState, request: CurrencyRequest) -> bool:
    """True when the query that spawned `request` is no longer on screen."""
    return state.query != request.query or state.pending_query != request.query


def apply_currency_result(
    state: ResolverState, request: CurrencyRequest, result: CurrencyResult | None
) -> ResolverState:
    """Fold a rate service response (None = failure) into the state."""
    if is_stale(state, request):
        logger.debug("Dropping stale currency response for %r", request.query)
        return state

    if result is None:
        return replace(state, phase=Phase.IDLE, result=None, pending_query=None)

    quick = currency_result_to_quick(result)
    return replace(
        state,
        phase=Phase.RESOLVED,
        result=quick,
        pending_query=None,
        cached_query=request.query,
        cached_result=quick,
    )


# ─── Async Engine ────────────────────────────────────────────────────


class QuickQueryEngine:
    """Drives resolve() from text-change events and runs its effects.

    Usage (inside a running event loop):
        engine = QuickQueryEngine(rate_service)
        engine.on_query_changed("20 usd in yen")   # returns None, fetch scheduled
        await engine.wait_idle()
        engine.get_current_result()                 # currency QuickResult
    """

    def __init__(self, rate_service: RateService, config: EngineConfig | None = None):
        self.rate_service = rate_service
        self.config = config or EngineConfig()
        self._state = ResolverState()
        self._debounced: tuple[CurrencyRequest, asyncio.Task] | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> ResolverState:
        return self._state

    def get_current_result(self) -> QuickResult | None:
        return self._state.result

    def on_query_changed(self, raw: str) -> QuickResult | None:
        """Handle one text change; returns the result visible right now."""
        self._state, effects = resolve(raw, self._state)
        self._cancel_stale_debounce()
        for request in effects:
            self._schedule(request, self.config.debounce_seconds)
        return self._state.result

    async def resolve_once(self, raw: str) -> QuickResult | None:
        """Resolve a query to completion, awaiting the rate service directly."""
        self._state, effects = resolve(raw, self._state)
        self._cancel_stale_debounce()
        for request in effects:
            await self._fetch(request)
        return self._state.result

    def refresh_currency(self) -> bool:
        """Re-fetch the displayed currency result, bypassing the cache.

        Returns:
            False when no currency result is on screen.
        """
        state = self._state
        if state.result is None or state.result.kind is not ResultKind.CURRENCY:
            return False
        if state.result.is_preview:
            return False

        parsed = parse_currency_query(state.query)
        if parsed is None:
            return False

        request = CurrencyRequest(state.query, parsed.amount, parsed.from_code, parsed.to_code)
        self._state = replace(state, pending_query=state.query, cached_query=None, cached_result=None)
        self._schedule(request, 0)
        return True

    async def wait_idle(self) -> None:
        """Wait until every scheduled or in-flight currency task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ─── Internals ──────────────────────────────────────────────────

    def _cancel_stale_debounce(self) -> None:
        """Cancel a request still waiting out its debounce if it no longer applies.

        Requests already sent are left alone; their responses are dropped later.
        """
        if self._debounced is None:
            return
        request, task = self._debounced
        if request.query != self._state.pending_query:
            task.cancel()
            self._debounced = None
            logger.debug("Cancelled debounced currency request for %r", request.query)

    def _schedule(self, request: CurrencyRequest, delay: float) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # Called from a thread without an event loop: nothing can be sent
            logger.warning("No running event loop; currency lookup for %r not sent", request.query)
            self._state = apply_currency_result(self._state, request, None)
            return

        if self._debounced is not None:
            self._debounced[1].cancel()

        task = asyncio.create_task(self._debounce_then_fetch(request, delay))
        self._debounced = (request, task)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _debounce_then_fetch(self, request: CurrencyRequest, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)

        # Past this point the request counts as sent and is never cancelled
        if self._debounced is not None and self._debounced[0] is request:
            self._debounced = None

        await self._fetch(request)

    async def _fetch(self, request: CurrencyRequest) -> None:
        logger.info(
            "Requesting rate: %s %s → %s", request.amount, request.from_code, request.to_code
        )
        try:
            result = await self.rate_service.resolve_currency(
                request.amount, request.from_code, request.to_code
            )
        except Exception as e:
            logger.warning("Currency lookup failed for %r: %s", request.query, e)
            result = None

        self._state = apply_currency_result(self._state, request, result)
