"""Pytest configuration: makes the project root importable and keeps tests off the network."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent))

from quick_query.exceptions import CurrencyServiceError  # noqa: E402
from quick_query.models import CurrencyResult  # noqa: E402


@pytest.fixture(autouse=True)
def _no_network():
    """Block real HTTP so no test ever reaches the live rate service."""
    with patch.object(
        httpx.AsyncHTTPTransport,
        "handle_async_request",
        side_effect=httpx.ConnectError("network disabled in tests"),
    ):
        yield


class FakeRateService:
    """In-memory RateService.

    With `gated = True` every call parks until the test releases it, which
    lets a test decide the order in which responses arrive.
    """

    DEFAULT_RATES = {
        ("USD", "JPY"): 150.0,
        ("USD", "EUR"): 0.9,
        ("EUR", "USD"): 1.1,
        ("JPY", "USD"): 0.0066,
        ("GBP", "USD"): 1.25,
    }

    def __init__(self, rates: dict[tuple[str, str], float] | None = None):
        self.rates = dict(self.DEFAULT_RATES if rates is None else rates)
        self.calls: list[tuple[float, str, str]] = []
        self.gated = False
        self._gates: list[asyncio.Event] = []

    async def resolve_currency(self, amount: float, from_code: str, to_code: str) -> CurrencyResult:
        self.calls.append((amount, from_code, to_code))
        if self.gated:
            gate = asyncio.Event()
            self._gates.append(gate)
            await gate.wait()

        rate = self.rates.get((from_code, to_code))
        if rate is None:
            raise CurrencyServiceError(f"Currency {to_code!r} not found")
        return CurrencyResult(
            amount=amount,
            from_code=from_code,
            to_code=to_code,
            result=amount * rate,
            rate=rate,
        )

    def release(self, index: int) -> None:
        self._gates[index].set()


@pytest.fixture
def rate_service() -> FakeRateService:
    return FakeRateService()
