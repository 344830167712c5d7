"""
Currency interpreter — query parsing plus the exchange-rate boundary.

The engine never does currency math itself. It parses the query, then asks
a RateService; accuracy and availability are the service's problem.

Tie-break note: unlike units, an exact alias beats any longer prefix match
("10 yen" stays yen). Currency names collide far less than unit
abbreviations, so the exact word is nearly always what was meant.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

import httpx

from .exceptions import CurrencyServiceError
from .models import CurrencyQuery, CurrencyResult, PartialCurrencySuggestion
from .normalizer import format_number, parse_amount
from .vocabulary import CURRENCY_ALIASES, is_iso_code

logger = logging.getLogger(__name__)

_EXACT = re.compile(r"^([\d.,]+)\s*([a-z]+)\s+(?:in|to)\s+([a-z]+)$")
_PARTIAL = re.compile(r"^([\d.,]+)\s*([a-z]+)$")

MIN_FRAGMENT_LENGTH = 2
DEFAULT_TARGET = "USD"
FALLBACK_TARGET = "EUR"  # When the source already is the default target

DEFAULT_RATES_URL = "https://api.frankfurter.app/latest"


# ─── Parsing ─────────────────────────────────────────────────────────


def resolve_currency_token(token: str) -> str:
    """Alias → ISO code; unknown tokens are taken as codes, upper-cased."""
    return CURRENCY_ALIASES.get(token, token.upper())


def parse_currency_query(query: str) -> CurrencyQuery | None:
    """Parse '<amount> <currency> (to|in) <currency>'.

    Example:
        parse_currency_query("20 usd in yen") → 20 USD → JPY
        parse_currency_query("5 eur to eur")  → None
    """
    match = _EXACT.match(query.strip().lower())
    if match is None:
        return None

    amount = parse_amount(match.group(1))
    if amount is None or amount <= 0:
        return None

    from_code = resolve_currency_token(match.group(2))
    to_code = resolve_currency_token(match.group(3))

    if not (is_iso_code(from_code) and is_iso_code(to_code)):
        return None
    if from_code == to_code:
        return None

    return CurrencyQuery(amount=amount, from_code=from_code, to_code=to_code)


def parse_partial_currency_query(query: str) -> PartialCurrencySuggestion | None:
    """Guess the completion of '<amount> <currency fragment>'.

    The target is USD, or EUR when the source is USD.
    """
    match = _PARTIAL.match(query.strip().lower())
    if match is None:
        return None

    amount = parse_amount(match.group(1))
    if amount is None or amount <= 0:
        return None

    fragment = match.group(2)
    if len(fragment) < MIN_FRAGMENT_LENGTH:
        return None

    if fragment in CURRENCY_ALIASES:
        name = fragment
    else:
        candidates = [alias for alias in CURRENCY_ALIASES if alias.startswith(fragment)]
        if not candidates:
            return None
        name = min(candidates, key=len)

    from_code = CURRENCY_ALIASES[name]
    to_code = FALLBACK_TARGET if from_code == DEFAULT_TARGET else DEFAULT_TARGET

    return PartialCurrencySuggestion(
        amount=amount,
        from_code=from_code,
        to_code=to_code,
        suggested_query=f"{format_number(amount)} {name} to {to_code.lower()}",
    )


# ─── Rate Service Boundary ───────────────────────────────────────────


class RateService(Protocol):
    """Anything that can convert an amount between two ISO codes."""

    async def resolve_currency(
        self, amount: float, from_code: str, to_code: str
    ) -> CurrencyResult: ...


class FrankfurterRateService:
    """RateService backed by the free frankfurter.app API (no key needed).

    Usage:
        async with FrankfurterRateService() as service:
            result = await service.resolve_currency(20, "USD", "JPY")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_RATES_URL,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> FrankfurterRateService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def resolve_currency(
        self, amount: float, from_code: str, to_code: str
    ) -> CurrencyResult:
        """Convert via the remote API.

        Raises:
            CurrencyServiceError: On transport errors, non-2xx responses,
                malformed payloads, or an unknown target code.
        """
        from_code, to_code = from_code.upper(), to_code.upper()
        params = {"amount": format_number(amount), "from": from_code, "to": to_code}

        try:
            response = await self._client.get(self.base_url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise CurrencyServiceError(
                f"Rate service answered {e.response.status_code}",
                {"status": e.response.status_code, **params},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise CurrencyServiceError(f"Failed to fetch rates: {e}", params) from e

        try:
            result = float(data["rates"][to_code])
        except (KeyError, TypeError, ValueError) as e:
            raise CurrencyServiceError(f"Currency {to_code!r} not found", params) from e

        logger.debug("Rate service: %s %s = %s %s", amount, from_code, result, to_code)
        return CurrencyResult(
            amount=amount,
            from_code=from_code,
            to_code=to_code,
            result=result,
            rate=result / amount,
        )
