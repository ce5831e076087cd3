"""
Product Resolver Module
=======================

Resolves one barcode by walking the configured sources in priority
order, consulting the result cache before each source.

State machine per call:
    Pending -> (CacheCheck -> SourceQuery)* -> Resolved | Exhausted

Sources are tried strictly one after another; a source is only queried
when every source before it had nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence, Union

from barcode_lookup.core.schema import ProductInfo
from barcode_lookup.lookup.adapters import get_adapter
from barcode_lookup.lookup.cache import ResultCache
from barcode_lookup.lookup.classifier import NotFoundClassifier
from barcode_lookup.lookup.errors import AllSourcesExhausted, InvalidInput
from barcode_lookup.lookup.fetcher import Fetcher
from barcode_lookup.lookup.registry import SourceConfig, SourceRegistry, get_default_registry

logger = logging.getLogger(__name__)

SourceSpec = Union[str, SourceConfig]


class ResolutionStatus(str, Enum):
    """Terminal state of a resolution."""

    RESOLVED = "resolved"
    EXHAUSTED = "exhausted"


@dataclass
class SourceAttempt:
    """What happened at one source during a resolution."""

    source: str
    found: bool
    from_cache: bool = False
    misses: int = 0
    error: str | None = None


@dataclass
class ResolutionResult:
    """Outcome of resolving one barcode."""

    barcode: str
    status: ResolutionStatus
    product: ProductInfo | None = None
    source: str | None = None
    from_cache: bool = False
    attempts: list[SourceAttempt] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED

    @property
    def sources_tried(self) -> list[str]:
        return [a.source for a in self.attempts]

    def unwrap(self) -> ProductInfo:
        """
        Return the product or raise.

        Raises:
            AllSourcesExhausted: If no source had the product
        """
        if self.product is None:
            raise AllSourcesExhausted(self.barcode, self.sources_tried)
        return self.product

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "barcode": self.barcode,
            "status": self.status.value,
            "product": self.product.to_dict() if self.product else None,
            "source": self.source,
            "fromCache": self.from_cache,
            "sourcesTried": self.sources_tried,
        }


class ProductResolver:
    """
    Source fallback chain with write-through caching.

    With ``sources=None`` every enabled source is used in registry order
    and the best result is also cached under the barcode alone. An
    explicit list is used in exactly the given order, enabled or not.

    Adapters are created per call, so concurrent resolutions share only
    the cache.
    """

    def __init__(
        self,
        registry: SourceRegistry | None = None,
        cache: ResultCache | None = None,
        fetcher: Fetcher | None = None,
        classifier: NotFoundClassifier | None = None,
    ) -> None:
        self.registry = registry or get_default_registry()
        global_config = self.registry.global_config
        self.cache = cache if cache is not None else ResultCache(
            ttl_seconds=global_config.cache_ttl_seconds,
            max_entries=global_config.cache_max_entries,
        )
        self.fetcher = fetcher or Fetcher(timeout=global_config.request_timeout)
        self.classifier = classifier or NotFoundClassifier()

    def select_sources(self, sources: Sequence[SourceSpec] | None) -> list[SourceConfig]:
        """
        Turn the caller's source list into ordered configurations.

        Raises:
            UnknownSourceError: If a named source is not registered
        """
        if sources is None:
            return self.registry.list_enabled_sources()
        names = [s for s in sources if isinstance(s, str)]
        known = {s.name: s for s in self.registry.resolve_sources(names)}
        return [known[s] if isinstance(s, str) else s for s in sources]

    async def resolve(
        self,
        barcode: str,
        sources: Sequence[SourceSpec] | None = None,
        use_cache: bool = True,
    ) -> ResolutionResult:
        """
        Resolve a barcode to product info.

        Args:
            barcode: Barcode to look up
            sources: Source names/configs in priority order, or None for
                all enabled sources
            use_cache: False skips cache reads; results are still written

        Returns:
            ResolutionResult, RESOLVED with a product or EXHAUSTED

        Raises:
            InvalidInput: If the barcode is blank
            UnknownSourceError: If a named source is not registered
        """
        barcode = (barcode or "").strip()
        if not barcode:
            raise InvalidInput("Barcode is required")

        source_configs = self.select_sources(sources)
        combined = sources is None

        if use_cache and combined:
            cached = self.cache.get(barcode)
            if cached is not None:
                logger.info(f"Using cached product info for barcode: {barcode}")
                return ResolutionResult(
                    barcode=barcode,
                    status=ResolutionStatus.RESOLVED,
                    product=cached,
                    source=None,
                    from_cache=True,
                )

        logger.info(f"Starting product lookup for barcode: {barcode}")
        attempts: list[SourceAttempt] = []

        for source in source_configs:
            if use_cache:
                cached = self.cache.get(barcode, source.name)
                if cached is not None:
                    logger.info(
                        f"Using cached product info for barcode: {barcode}, source: {source.name}"
                    )
                    attempts.append(SourceAttempt(source.name, found=True, from_cache=True))
                    if combined:
                        self.cache.set(barcode, cached)
                    return ResolutionResult(
                        barcode=barcode,
                        status=ResolutionStatus.RESOLVED,
                        product=cached,
                        source=source.name,
                        from_cache=True,
                        attempts=attempts,
                    )

            product, attempt = await self._query_source(barcode, source)
            attempts.append(attempt)

            if product is not None:
                self.cache.set(barcode, product, source.name)
                if combined:
                    self.cache.set(barcode, product)
                return ResolutionResult(
                    barcode=barcode,
                    status=ResolutionStatus.RESOLVED,
                    product=product,
                    source=source.name,
                    attempts=attempts,
                )

        logger.info(f"Product not found in any source for barcode: {barcode}")
        return ResolutionResult(
            barcode=barcode,
            status=ResolutionStatus.EXHAUSTED,
            attempts=attempts,
        )

    async def _query_source(
        self, barcode: str, source: SourceConfig
    ) -> tuple[ProductInfo | None, SourceAttempt]:
        try:
            adapter = get_adapter(
                source,
                fetcher=self.fetcher,
                classifier=self.classifier,
                placeholder_image=self.registry.global_config.placeholder_image,
            )
        except Exception as e:
            # a source that cannot be built is skipped like any other miss
            logger.error(f"Could not create adapter for source {source.name}: {e}")
            return None, SourceAttempt(source.name, found=False, error=str(e))

        if adapter is None:
            logger.error(f"No adapter '{source.adapter}' registered for source {source.name}")
            return None, SourceAttempt(
                source.name, found=False, error=f"Unknown adapter: {source.adapter}"
            )

        logger.debug(f"Trying source {source.name} for barcode {barcode}")
        try:
            product = await adapter.lookup(barcode)
        except Exception as e:
            # adapter bugs degrade to a miss so the fallback chain continues
            logger.error(f"Unexpected error from source {source.name} for {barcode}: {e}")
            return None, SourceAttempt(
                source.name, found=False, misses=adapter.misses, error=str(e)
            )

        return product, SourceAttempt(
            source.name, found=product is not None, misses=adapter.misses
        )

    async def aclose(self) -> None:
        """Release the fetcher's HTTP client."""
        await self.fetcher.aclose()

    async def __aenter__(self) -> ProductResolver:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


# Global resolver instance (owns the process-wide cache)
_default_resolver: ProductResolver | None = None


def get_default_resolver() -> ProductResolver:
    """Get the default resolver, built from the default registry."""
    global _default_resolver

    if _default_resolver is None:
        _default_resolver = ProductResolver(get_default_registry())

    return _default_resolver


def reset_default_resolver() -> None:
    """Reset the default resolver and its cache (useful for testing)."""
    global _default_resolver
    _default_resolver = None


async def resolve(
    barcode: str,
    sources: Sequence[SourceSpec] | None = None,
    use_cache: bool = True,
) -> ResolutionResult:
    """Resolve a barcode with the default resolver."""
    return await get_default_resolver().resolve(barcode, sources, use_cache)
