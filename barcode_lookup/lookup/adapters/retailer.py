"""
Retailer Adapter Module
=======================

Adapter for scraped retailer product pages. Retailer differences live in
declarative rule sets (see barcode_lookup.lookup.rules) and in the source
configuration, not in code.
"""

from __future__ import annotations

import logging
from typing import Any

from barcode_lookup.core.schema import PLACEHOLDER_IMAGE, ProductInfo
from barcode_lookup.lookup.adapters.base import BaseAdapter
from barcode_lookup.lookup.classifier import NotFoundClassifier
from barcode_lookup.lookup.extractor import EntityExtractor
from barcode_lookup.lookup.fetcher import Fetcher
from barcode_lookup.lookup.registry import SourceConfig
from barcode_lookup.lookup.rules import get_rule_sets

logger = logging.getLogger(__name__)

SEARCH_RESULTS_SUFFIX = " (Search Results)"


class RetailerAdapter(BaseAdapter):
    """
    Scrapes a retailer's barcode URLs.

    Fetch policy: URL variants outer, User-Agents inner, one bounded GET
    per combination. A transport error, a 404, a soft-404 or an
    unparsable page is a miss; the first parsed product stops the
    search. The source's miss_threshold (None = never) ends it early.

    custom_config keys:
    - rules: rule set name (default "woocommerce")
    - site_name: suffix stripped from title-derived names
    - extra_rules: per-field regex lists tried before the rule set
    - name_blacklist: replaces the default name blacklist
    """

    ADAPTER_NAME = "retailer"
    ADAPTER_VERSION = "1.0.0"

    def __init__(
        self,
        source: SourceConfig,
        fetcher: Fetcher | None = None,
        classifier: NotFoundClassifier | None = None,
        placeholder_image: str = PLACEHOLDER_IMAGE,
    ) -> None:
        super().__init__(source, fetcher, classifier, placeholder_image)

        product_rules, listing_rules = get_rule_sets(self.config.get("rules", "woocommerce"))
        extra: dict[str, Any] = self.config.get("extra_rules") or {}
        site_name = self.config.get("site_name", "")
        blacklist = self.config.get("name_blacklist")

        self.product_extractor = EntityExtractor(
            product_rules.with_extra(extra),
            name_blacklist=blacklist,
            site_name=site_name,
            placeholder_image=placeholder_image,
        )
        self.listing_extractor = EntityExtractor(
            listing_rules.with_extra(extra),
            name_blacklist=blacklist,
            site_name=site_name,
            placeholder_image=placeholder_image,
        )

    async def fetch_product(self, barcode: str) -> ProductInfo | None:
        for url in self.url_variants(barcode):
            for user_agent in self.user_agents:
                result = await self.fetcher.fetch(url, user_agent)

                if result.error is not None:
                    reason = f"transient error: {result.error}"
                elif result.is_http_not_found:
                    reason = "HTTP 404"
                elif self.is_not_found_page(result.text, result.status_code):
                    reason = f"not found page (status {result.status_code})"
                elif not result.success:
                    reason = f"status {result.status_code}"
                else:
                    product = self.parse(result.text, barcode, url)
                    if product is not None:
                        return product
                    reason = "no product name extracted"

                if self.record_miss(barcode, f"{url}: {reason}"):
                    logger.info(
                        f"{self.name}: miss threshold {self.source.miss_threshold} "
                        f"reached for {barcode}"
                    )
                    return None

        return None

    def parse(self, body: str, barcode: str, url: str) -> ProductInfo | None:
        """
        Extract a product from a retailer page.

        Search/listing pages that show product cards use the listing rules
        and are labelled as search results; everything else (and a failed
        listing extraction) goes through the product page rules.
        """
        if self.classifier.is_listing_page(body) and not self.classifier.is_product_page(body):
            logger.debug(f"{self.name}: detected page with product listings at {url}")
            product = self.listing_extractor.extract(
                body, barcode, f"{self.label}{SEARCH_RESULTS_SUFFIX}"
            )
            if not product.is_sentinel:
                return product

        product = self.product_extractor.extract(body, barcode, self.label)
        if product.is_sentinel:
            return None
        return product
