"""
Test suite for the resolution state machine and the async engine.

Covers:
  - Interpreter priority (first success wins, nothing below it runs)
  - Currency request effects, de-duplication and the last-result cache
  - Stale response handling
  - Debounce cancellation on the engine
  - Failure → no result

Run: pytest tests/ -v
"""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest
from conftest import FakeRateService

from quick_query.config import EngineConfig
from quick_query.models import CurrencyResult, ResultKind
from quick_query.resolver import (
    CurrencyRequest,
    Phase,
    QuickQueryEngine,
    ResolverState,
    apply_currency_result,
    currency_result_to_quick,
    is_stale,
    resolve,
)

NO_DEBOUNCE = EngineConfig(debounce_ms=0)


def _usd_jpy(amount: float = 20) -> CurrencyResult:
    return CurrencyResult(
        amount=amount, from_code="USD", to_code="JPY", result=amount * 150, rate=150.0
    )


async def _until(predicate, rounds: int = 100) -> None:
    """Let the event loop run until `predicate()` holds."""
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


# ═══════════════════════════════════════════════════════════════════════
# PRIORITY ORDER
# ═══════════════════════════════════════════════════════════════════════


class TestPriority:
    def test_empty_query_is_idle(self):
        state, effects = resolve("   ")
        assert state.phase is Phase.IDLE
        assert state.result is None
        assert effects == ()

    def test_calculator_short_circuits(self):
        with patch("quick_query.resolver.parse_unit_query") as units, patch(
            "quick_query.resolver.parse_currency_query"
        ) as currency:
            state, _ = resolve("2+2")
        units.assert_not_called()
        currency.assert_not_called()
        assert state.phase is Phase.RESOLVED
        assert state.result.kind is ResultKind.CALCULATOR
        assert state.result.display_query == "2+2 ="
        assert state.result.display_value == "4"

    def test_calculator_copy_value_is_plain(self):
        state, _ = resolve("1000000/3")
        assert state.result.display_value == "333.333,3333333333"
        assert state.result.copy_value == "333333.3333333333"

    def test_color_before_units(self):
        state, _ = resolve("#FF0000 to HSL")
        assert state.result.kind is ResultKind.COLOR
        assert state.result.display_value == "hsl(0, 100%, 50%)"
        assert state.result.color_swatch == "#FF0000"

    def test_unit_result(self):
        state, effects = resolve("10 Feet to Meters")
        assert effects == ()
        assert state.query == "10 feet to meters"
        assert state.result.kind is ResultKind.UNIT
        assert state.result.display_value == "3,048 meters"
        assert state.result.copy_value == "3.048"
        assert state.result.is_preview is False

    def test_units_before_currency(self):
        # "pound" is both a weight and a currency
        state, effects = resolve("10 pounds to kg")
        assert state.result.kind is ResultKind.UNIT
        assert effects == ()

    def test_nothing_matches(self):
        state, effects = resolve("hello world")
        assert state.phase is Phase.IDLE
        assert state.result is None
        assert effects == ()


# ═══════════════════════════════════════════════════════════════════════
# PREVIEWS
# ═══════════════════════════════════════════════════════════════════════


class TestPreviews:
    def test_unit_preview_shows_converted_value(self):
        state, _ = resolve("100 fahr")
        assert state.phase is Phase.PREVIEW
        assert state.result.is_preview is True
        assert state.result.kind is ResultKind.UNIT
        assert state.result.display_query == "100 fahrenheit to celsius"
        assert state.result.display_value == "37,7778 celsius"

    def test_currency_preview(self):
        state, effects = resolve("10 yen")
        assert effects == ()
        assert state.phase is Phase.PREVIEW
        assert state.result.kind is ResultKind.CURRENCY
        assert state.result.display_value == "JPY → USD"
        assert state.result.copy_value == "10 yen to usd"

    def test_unit_preview_beats_currency_preview(self):
        # "pou" completes to the weight unit, never to the currency
        state, _ = resolve("2 pou")
        assert state.result.kind is ResultKind.UNIT
        assert state.result.display_query == "2 pounds to kilograms"


# ═══════════════════════════════════════════════════════════════════════
# CURRENCY TRANSITIONS
# ═══════════════════════════════════════════════════════════════════════


class TestCurrencyTransitions:
    def test_emits_request_and_evaluates(self):
        state, effects = resolve("20 usd in yen")
        assert state.phase is Phase.EVALUATING
        assert state.result is None
        assert state.pending_query == "20 usd in yen"
        assert effects == (CurrencyRequest("20 usd in yen", 20.0, "USD", "JPY"),)

    def test_same_query_not_reissued(self):
        first, _ = resolve("20 usd in yen")
        second, effects = resolve(" 20 USD in yen ", first)
        assert second.phase is Phase.EVALUATING
        assert effects == ()

    def test_apply_success_resolves_and_caches(self):
        state, (request,) = resolve("20 usd in yen")
        state = apply_currency_result(state, request, _usd_jpy())
        assert state.phase is Phase.RESOLVED
        assert state.pending_query is None
        assert state.result.display_value == "3.000,00 JPY"
        assert state.result.copy_value == "3000.00"
        assert state.result.display_query == "20 USD to JPY · 1 USD = 150 JPY"
        assert state.cached_query == "20 usd in yen"

    def test_apply_failure_clears(self):
        state, (request,) = resolve("20 usd in yen")
        state = apply_currency_result(state, request, None)
        assert state.phase is Phase.IDLE
        assert state.result is None
        assert state.pending_query is None

    def test_stale_response_dropped(self):
        state, (request,) = resolve("20 usd in yen")
        state, _ = resolve("10 feet to meters", state)
        assert is_stale(state, request)

        after = apply_currency_result(state, request, _usd_jpy())
        assert after == state
        assert after.result.kind is ResultKind.UNIT

    def test_response_for_older_currency_query_dropped(self):
        state, (old,) = resolve("2 usd in yen")
        state, (new,) = resolve("20 usd in yen", state)
        state = apply_currency_result(state, old, _usd_jpy(2))
        assert state.phase is Phase.EVALUATING
        assert state.result is None

        state = apply_currency_result(state, new, _usd_jpy(20))
        assert state.result.display_value == "3.000,00 JPY"

    def test_cache_served_on_retype(self):
        state, (request,) = resolve("20 usd in yen")
        state = apply_currency_result(state, request, _usd_jpy())
        state, _ = resolve("2+2", state)
        state, effects = resolve("20 usd in yen", state)
        assert effects == ()
        assert state.phase is Phase.RESOLVED
        assert state.result.display_value == "3.000,00 JPY"

    def test_cache_is_single_entry(self):
        state = ResolverState()
        for query, amount in (("20 usd in yen", 20), ("30 usd in yen", 30)):
            state, (request,) = resolve(query, state)
            state = apply_currency_result(state, request, _usd_jpy(amount))

        _, effects = resolve("20 usd in yen", state)
        assert len(effects) == 1

    def test_fractional_rate_display(self):
        result = CurrencyResult(
            amount=10, from_code="JPY", to_code="USD", result=0.066, rate=0.0066
        )
        quick = currency_result_to_quick(result)
        assert quick.display_value == "0,07 USD"
        assert quick.display_query == "10 JPY to USD · 1 JPY = 0,0066 USD"


# ═══════════════════════════════════════════════════════════════════════
# ASYNC ENGINE
# ═══════════════════════════════════════════════════════════════════════


class TestEngine:
    def test_currency_resolves_after_fetch(self, rate_service: FakeRateService):
        async def scenario():
            engine = QuickQueryEngine(rate_service, NO_DEBOUNCE)
            assert engine.on_query_changed("20 usd in yen") is None
            assert engine.state.phase is Phase.EVALUATING
            await engine.wait_idle()
            return engine.get_current_result()

        result = asyncio.run(scenario())
        assert result.display_value == "3.000,00 JPY"
        assert rate_service.calls == [(20.0, "USD", "JPY")]

    def test_currency_without_event_loop_clears_instead_of_raising(
        self, rate_service: FakeRateService
    ):
        engine = QuickQueryEngine(rate_service, NO_DEBOUNCE)
        assert engine.on_query_changed("20 usd in yen") is None
        assert engine.state.phase is Phase.IDLE
        assert engine.state.pending_query is None
        assert rate_service.calls == []

        async def scenario():
            # The same query is retried once a loop is available
            engine.on_query_changed("20 usd in yen")
            await engine.wait_idle()
            return engine.get_current_result()

        assert asyncio.run(scenario()).display_value == "3.000,00 JPY"
        assert len(rate_service.calls) == 1

    def test_synchronous_results_are_immediate(self, rate_service: FakeRateService):
        async def scenario():
            engine = QuickQueryEngine(rate_service)
            return engine.on_query_changed("2^10")

        assert asyncio.run(scenario()).display_value == "1.024"
        assert rate_service.calls == []

    def test_sent_request_is_not_cancelled_but_its_response_is_ignored(
        self, rate_service: FakeRateService
    ):
        rate_service.gated = True

        async def scenario():
            engine = QuickQueryEngine(rate_service, NO_DEBOUNCE)
            engine.on_query_changed("20 usd in yen")
            await _until(lambda: len(rate_service.calls) == 1)

            engine.on_query_changed("10 feet to meters")
            rate_service.release(0)
            await engine.wait_idle()
            return engine

        engine = asyncio.run(scenario())
        assert engine.state.phase is Phase.RESOLVED
        assert engine.get_current_result().kind is ResultKind.UNIT
        assert engine.state.cached_query is None

    def test_debounce_drops_superseded_queries(self, rate_service: FakeRateService):
        async def scenario():
            engine = QuickQueryEngine(rate_service, EngineConfig(debounce_ms=50))
            for typed in ("2 usd in yen", "20 usd in yen"):
                engine.on_query_changed(typed)
            await engine.wait_idle()
            return engine.get_current_result()

        result = asyncio.run(scenario())
        assert rate_service.calls == [(20.0, "USD", "JPY")]
        assert result.display_value == "3.000,00 JPY"

    def test_switching_away_cancels_debounced_request(self, rate_service: FakeRateService):
        async def scenario():
            engine = QuickQueryEngine(rate_service, EngineConfig(debounce_ms=50))
            engine.on_query_changed("20 usd in yen")
            engine.on_query_changed("2+2")
            await engine.wait_idle()
            return engine.get_current_result()

        result = asyncio.run(scenario())
        assert rate_service.calls == []
        assert result.kind is ResultKind.CALCULATOR

    def test_repeated_keystroke_keeps_single_request(self, rate_service: FakeRateService):
        async def scenario():
            engine = QuickQueryEngine(rate_service, EngineConfig(debounce_ms=20))
            engine.on_query_changed("20 usd in yen")
            engine.on_query_changed("20 usd in yen ")
            await engine.wait_idle()

        asyncio.run(scenario())
        assert len(rate_service.calls) == 1

    def test_cache_avoids_second_request(self, rate_service: FakeRateService):
        async def scenario():
            engine = QuickQueryEngine(rate_service, NO_DEBOUNCE)
            await engine.resolve_once("20 usd in yen")
            await engine.resolve_once("2+2")
            return engine.on_query_changed("20 usd in yen")

        result = asyncio.run(scenario())
        assert result.display_value == "3.000,00 JPY"
        assert len(rate_service.calls) == 1

    def test_failure_clears_result(self):
        service = FakeRateService(rates={})

        async def scenario():
            engine = QuickQueryEngine(service, NO_DEBOUNCE)
            result = await engine.resolve_once("20 usd in yen")
            return engine, result

        engine, result = asyncio.run(scenario())
        assert result is None
        assert engine.state.phase is Phase.IDLE
        assert engine.state.pending_query is None

    def test_refresh_refetches(self, rate_service: FakeRateService):
        async def scenario():
            engine = QuickQueryEngine(rate_service, NO_DEBOUNCE)
            await engine.resolve_once("20 usd in yen")
            rate_service.rates[("USD", "JPY")] = 160.0
            assert engine.refresh_currency() is True
            await engine.wait_idle()
            return engine.get_current_result()

        result = asyncio.run(scenario())
        assert len(rate_service.calls) == 2
        assert result.display_value == "3.200,00 JPY"

    @pytest.mark.parametrize("query", ["2+2", "10 yen", "hello"])
    def test_refresh_needs_a_currency_result(self, rate_service: FakeRateService, query):
        async def scenario():
            engine = QuickQueryEngine(rate_service, NO_DEBOUNCE)
            engine.on_query_changed(query)
            return engine.refresh_currency()

        assert asyncio.run(scenario()) is False
        assert rate_service.calls == []
