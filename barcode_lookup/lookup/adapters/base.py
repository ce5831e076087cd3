"""
Adapter Base Module
===================

Defines the abstract base class for source-specific adapters.
Adapters are responsible for:
1. Expanding a barcode into the source's URL variants
2. Fetching them with the source's User-Agent pool
3. Recognising "not found" responses
4. Parsing a response body into a ProductInfo
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from barcode_lookup.core.schema import PLACEHOLDER_IMAGE, ProductInfo
from barcode_lookup.lookup.classifier import NotFoundClassifier
from barcode_lookup.lookup.errors import (
    MalformedResponse,
    NotFoundAtSource,
    TransientFetchError,
)
from barcode_lookup.lookup.fetcher import Fetcher
from barcode_lookup.lookup.registry import DEFAULT_USER_AGENTS, SourceConfig

logger = logging.getLogger(__name__)


class BaseAdapter(ABC):
    """
    Abstract base class for source-specific adapters.

    Subclasses must implement:
    - fetch_product: Query the source for one barcode
    - parse: Turn a response body into a ProductInfo (or None)

    ``lookup`` is the only entry point used by the resolver. It never
    raises for fetch, not-found or parse failures; those all mean
    "no data from this source".
    """

    # Adapter identification (override in subclasses)
    ADAPTER_NAME: str = "base"
    ADAPTER_VERSION: str = "1.0.0"

    def __init__(
        self,
        source: SourceConfig,
        fetcher: Fetcher | None = None,
        classifier: NotFoundClassifier | None = None,
        placeholder_image: str = PLACEHOLDER_IMAGE,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            source: Source configuration (URL variants, agents, miss threshold)
            fetcher: HTTP fetcher; a default one is created if omitted
            classifier: Not-found classifier for HTML responses
            placeholder_image: Image URL used when none is found
        """
        self.source = source
        self.fetcher = fetcher or Fetcher()
        self.classifier = classifier or NotFoundClassifier()
        self.placeholder_image = placeholder_image
        self.config: dict[str, Any] = source.custom_config
        self.misses = 0

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def label(self) -> str:
        return self.source.label

    @property
    def user_agents(self) -> list[str]:
        return self.source.user_agents or list(DEFAULT_USER_AGENTS)

    def url_variants(self, barcode: str) -> list[str]:
        return self.source.build_urls(barcode)

    def is_not_found_page(self, body: str, status_code: int) -> bool:
        """Check whether a response means the source has no such product."""
        return self.classifier.is_not_found(status_code, body)

    def record_miss(self, barcode: str, reason: str) -> bool:
        """
        Count a miss for the current lookup.

        Returns:
            True if the configured miss threshold is now reached
        """
        self.misses += 1
        logger.debug(f"{self.name}: miss {self.misses} for {barcode} ({reason})")
        threshold = self.source.miss_threshold
        return threshold is not None and self.misses >= threshold

    @abstractmethod
    async def fetch_product(self, barcode: str) -> ProductInfo | None:
        """
        Query the source for a barcode.

        May raise TransientFetchError, NotFoundAtSource or MalformedResponse.

        Returns:
            ProductInfo, or None if the source has no data
        """

    @abstractmethod
    def parse(self, body: str, barcode: str, url: str) -> ProductInfo | None:
        """
        Parse a response body.

        Args:
            body: Response body text
            barcode: Barcode being resolved
            url: URL the body was fetched from

        Returns:
            ProductInfo with a real name, or None
        """

    async def lookup(self, barcode: str) -> ProductInfo | None:
        """
        Resolve a barcode at this source.

        Returns:
            ProductInfo, or None for "no data from this source"
        """
        self.misses = 0
        try:
            product = await self.fetch_product(barcode)
        except NotFoundAtSource as e:
            self.misses += 1
            logger.info(f"{e}")
            return None
        except (MalformedResponse, TransientFetchError) as e:
            self.misses += 1
            logger.warning(f"{self.name}: no result for {barcode}: {e}")
            return None

        if product is None or product.is_sentinel:
            logger.info(
                f"Product not found in {self.name} for barcode {barcode} "
                f"({self.misses} misses)"
            )
            return None

        logger.info(f"Found product info from {self.name} for barcode {barcode}")
        return product

    def get_info(self) -> dict[str, str]:
        """Get adapter information."""
        return {
            "name": self.ADAPTER_NAME,
            "version": self.ADAPTER_VERSION,
            "class": self.__class__.__name__,
            "source": self.name,
        }
