"""
Lookup Errors
=============

Error taxonomy for the barcode resolution pipeline.

Only InvalidInput, UnknownSourceError and (on request) AllSourcesExhausted
ever reach callers. The other errors are raised inside adapters and turned
into "no result from this source" at the adapter boundary.
"""

from __future__ import annotations


class BarcodeLookupError(Exception):
    """Base class for all lookup errors."""


class TransientFetchError(BarcodeLookupError):
    """Network failure or timeout while fetching from a source."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Transient fetch error for {url}: {reason}")


class NotFoundAtSource(BarcodeLookupError):
    """The source confirmed it has no product for the barcode."""

    def __init__(self, source: str, barcode: str, reason: str = "not found") -> None:
        self.source = source
        self.barcode = barcode
        self.reason = reason
        super().__init__(f"{source}: {reason} for barcode {barcode}")


class MalformedResponse(BarcodeLookupError):
    """The response body could not be parsed."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: malformed response ({reason})")


class AllSourcesExhausted(BarcodeLookupError):
    """Every source was tried and none had the product."""

    def __init__(self, barcode: str, sources_tried: list[str]) -> None:
        self.barcode = barcode
        self.sources_tried = sources_tried
        tried = ", ".join(sources_tried) or "none"
        super().__init__(f"Product {barcode} not found in any source (tried: {tried})")


class InvalidInput(BarcodeLookupError, ValueError):
    """Caller supplied input that is rejected before any processing."""


class UnknownSourceError(BarcodeLookupError):
    """A source name that is not configured in the registry."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = available or []
        message = f"Unknown source: '{name}'"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)
