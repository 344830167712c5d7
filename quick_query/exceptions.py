"""
Custom exception hierarchy for query resolution.

None of these escape the public entry points: malformed queries resolve to
None, and rate service failures degrade to "no result" in the resolver.
They exist so the layers in between can tell failure categories apart.
"""

from __future__ import annotations


class QuickQueryError(Exception):
    """Base exception for all quick query failures."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)


class ExpressionError(QuickQueryError):
    """An arithmetic expression is malformed or mathematically undefined."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("EXPRESSION_INVALID", message, details)


class CurrencyServiceError(QuickQueryError):
    """The exchange rate service is unreachable or rejected the request."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("CURRENCY_SERVICE_FAILED", message, details)


class VocabularyIntegrityError(QuickQueryError):
    """A unit or currency table breaks its alias invariants."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("VOCABULARY_INTEGRITY", message, details)
