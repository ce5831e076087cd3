"""
Not-Found Classifier Module
===========================

Decides whether a fetched page represents "no such product".

Many retailer sites answer HTTP 200 with a friendly "not found" page
(soft-404), so the status code alone is not enough. A page is not-found
when any of these holds:

1. The status is 404
2. The body carries a known error-page signature (a heading or title
   containing both "404" and "Not Found", or a "no results" banner)
3. The body is a search page with no product markup on it
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_HEADING_RE = re.compile(r"<(h1|h2|title)\b[^>]*>([\s\S]*?)</\1>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")

DEFAULT_ERROR_SIGNATURES: list[str] = [
    '<h2 class="entry-title">404',
    "We're sorry, but the page you were looking for doesn't exist.",
    "We&#039;re sorry, but the page you were looking for doesn&#039;t exist.",
]

DEFAULT_NO_RESULTS_MARKERS: list[str] = [
    "woocommerce-no-products-found",
    "No products were found matching your selection",
    "Aucun produit ne correspond à votre sélection",
    "Aucun résultat",
]

DEFAULT_SEARCH_MARKERS: list[str] = [
    "search-results",
    "search-no-results",
    "Résultats de recherche",
    "Search results for",
]

DEFAULT_PRODUCT_MARKERS: list[str] = [
    "product_title",
    "product-inner",
    "product-loop-title",
    "woocommerce-loop-product__title",
    "product-image",
    "attachment-woocommerce_thumbnail",
    "woocommerce-product-gallery",
]

# Listing markup: present on category/search pages that show product cards
DEFAULT_LISTING_MARKERS: list[str] = [
    "product-inner",
    "product-loop-title",
    "woocommerce-loop-product__title",
    "attachment-woocommerce_thumbnail",
]

# Single-product markup: a detail page that may also show related product cards
DEFAULT_PRODUCT_PAGE_MARKERS: list[str] = [
    "product_title",
    "single-product",
]


@dataclass
class NotFoundClassifier:
    """Classifies fetched pages as "not found" using declarative markers."""

    error_signatures: list[str] = field(default_factory=lambda: list(DEFAULT_ERROR_SIGNATURES))
    no_results_markers: list[str] = field(default_factory=lambda: list(DEFAULT_NO_RESULTS_MARKERS))
    search_markers: list[str] = field(default_factory=lambda: list(DEFAULT_SEARCH_MARKERS))
    product_markers: list[str] = field(default_factory=lambda: list(DEFAULT_PRODUCT_MARKERS))
    listing_markers: list[str] = field(default_factory=lambda: list(DEFAULT_LISTING_MARKERS))
    product_page_markers: list[str] = field(
        default_factory=lambda: list(DEFAULT_PRODUCT_PAGE_MARKERS)
    )

    def is_not_found(self, status_code: int, body: str) -> bool:
        """
        Decide whether a response means "no such product".

        Args:
            status_code: HTTP status of the response
            body: Response body text

        Returns:
            True if any not-found rule fires
        """
        if status_code == 404:
            return True
        if not body:
            return True
        if self.has_error_signature(body):
            return True
        if self.is_search_page(body) and not self.has_product_markup(body):
            return True
        return False

    def has_error_signature(self, body: str) -> bool:
        """Check for error-page headings, known signatures and no-results banners."""
        for match in _HEADING_RE.finditer(body):
            text = _TAG_RE.sub("", match.group(2))
            if "404" in text and "not found" in text.lower():
                return True
        if any(sig in body for sig in self.error_signatures):
            return True
        return any(marker in body for marker in self.no_results_markers)

    def is_search_page(self, body: str) -> bool:
        """Check for search-page markup."""
        return any(marker in body for marker in self.search_markers)

    def has_product_markup(self, body: str) -> bool:
        """Check for any product markup (detail page or listing cards)."""
        return any(marker in body for marker in self.product_markers)

    def is_listing_page(self, body: str) -> bool:
        """Check whether the page shows product cards rather than a single product."""
        return any(marker in body for marker in self.listing_markers)

    def is_product_page(self, body: str) -> bool:
        """Check for single-product page markup."""
        return any(marker in body for marker in self.product_page_markers)
