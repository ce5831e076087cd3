"""
Retailer Rule Sets
==================

Declarative extraction ladders for retailer page shapes. Each rule set
lists, per field, the regexes tried in order; group 1 holds the value.

Rule sets are looked up by the ``rules`` key of a source's custom_config.
"""

from __future__ import annotations

import re
from typing import Any

from barcode_lookup.lookup.extractor import (
    ExtractionRule,
    RuleSet,
    attribute_of,
    constant,
    is_image_url,
    price_of,
    text_of,
)


def _rules(*regexes: str, extractor=None, validator=None) -> tuple[ExtractionRule, ...]:
    return tuple(
        ExtractionRule.from_regex(r, extractor=extractor, validator=validator)
        for r in regexes
    )


_PRICE_REGEXES = (
    # sale price: the <ins> amount inside the price block
    r'<p[^>]*class="[^"]*\bprice\b[^"]*"[^>]*>(?:(?!</p>)[\s\S])*?<ins[^>]*>([\s\S]*?)</ins>',
    r'<span[^>]*class="[^"]*price[^"]*"[^>]*>([\s\S]*?)Dh</span>',
    r'<span[^>]*class="[^"]*price[^"]*"[^>]*>([\s\S]*?)</span>',
    r'<p[^>]*class="[^"]*price[^"]*"[^>]*>([\s\S]*?)</p>',
    r"(\d+,\d+)\s*Dh",
    r"(\d+\.\d+)\s*Dh",
)

_CATEGORY_REGEXES = (
    r'<span[^>]*class="[^"]*posted_in[^"]*"[^>]*>[\s\S]*?<a[^>]*>([\s\S]*?)</a>',
    r'<meta[^>]*property="product:category"[^>]*content="([^"]*)"',
)

_OUT_OF_STOCK_REGEXES = (
    r'<p[^>]*class="[^"]*\bstock\b[^"]*\bout-of-stock\b[^"]*"',
    r"(Rupture de stock)",
    r"(Out of stock)",
)

WOOCOMMERCE_PRODUCT_RULES = RuleSet(
    name=_rules(
        r'<h1[^>]*class="[^"]*product_title[^"]*"[^>]*>([\s\S]*?)</h1>',
        r"<h1[^>]*>([\s\S]*?)</h1>",
        r'<div[^>]*class="[^"]*product-title[^"]*"[^>]*>([\s\S]*?)</div>',
        r'<span[^>]*class="[^"]*product-title[^"]*"[^>]*>([\s\S]*?)</span>',
        r'<meta[^>]*property="og:title"[^>]*content="([^"]*)"',
        r"<title>([\s\S]*?)</title>",
        extractor=text_of(),
    ),
    price=_rules(*_PRICE_REGEXES, extractor=price_of()),
    image=_rules(
        r'<meta[^>]*property="og:image"[^>]*content="([^"]*)"',
        r'<img[^>]*id="og_image"[^>]*src="([^"]*)"[^>]*>',
        r'<img[^>]*class="[^"]*product_image[^"]*"[^>]*src="([^"]*)"[^>]*>',
        r'<img[^>]*class="[^"]*wp-post-image[^"]*"[^>]*src="([^"]*)"[^>]*>',
        r'<img[^>]*src="([^"]*)"[^>]*class="[^"]*wp-post-image[^"]*"[^>]*>',
        r'<div[^>]*class="[^"]*woocommerce-product-gallery__image[^"]*"[^>]*>[\s\S]*?<img[^>]*src="([^"]*)"[^>]*>',
        extractor=attribute_of(),
        validator=is_image_url,
    ),
    category=_rules(*_CATEGORY_REGEXES, extractor=text_of()),
    out_of_stock=_rules(*_OUT_OF_STOCK_REGEXES, extractor=constant("out_of_stock")),
)

# Search/listing pages showing product cards: the first card is the match
WOOCOMMERCE_LISTING_RULES = RuleSet(
    name=_rules(
        r'<h3[^>]*class="[^"]*woocommerce-loop-product__title[^"]*"[^>]*>([\s\S]*?)</h3>',
        r'<h2[^>]*class="[^"]*woocommerce-loop-product__title[^"]*"[^>]*>([\s\S]*?)</h2>',
        r'<a[^>]*class="[^"]*product-loop-title[^"]*"[^>]*>([\s\S]*?)</a>',
        r'<div[^>]*class="[^"]*product-title[^"]*"[^>]*>([\s\S]*?)</div>',
        r'<div[^>]*class="[^"]*product-name[^"]*"[^>]*>([\s\S]*?)</div>',
        r"<h1[^>]*>([\s\S]*?)</h1>",
        r"<title>([\s\S]*?)</title>",
        extractor=text_of(),
    ),
    price=_rules(*_PRICE_REGEXES[1:], extractor=price_of()),
    image=_rules(
        r'<img[^>]*class="[^"]*attachment-woocommerce_thumbnail[^"]*"[^>]*src="([^"]*)"[^>]*>',
        r'<img[^>]*src="([^"]*)"[^>]*class="[^"]*attachment-woocommerce_thumbnail[^"]*"[^>]*>',
        r'<img[^>]*class="[^"]*wp-post-image[^"]*"[^>]*src="([^"]*)"[^>]*>',
        r'<img[^>]*src="([^"]*)"[^>]*class="[^"]*wp-post-image[^"]*"[^>]*>',
        r'<img[^>]*src="([^"]*)"[^>]*alt="[^"]*"',
        extractor=attribute_of(),
        validator=is_image_url,
    ),
    category=_rules(*_CATEGORY_REGEXES, extractor=text_of()),
    out_of_stock=(),
)

RULE_SETS: dict[str, tuple[RuleSet, RuleSet]] = {
    "woocommerce": (WOOCOMMERCE_PRODUCT_RULES, WOOCOMMERCE_LISTING_RULES),
}


def get_rule_sets(name: str) -> tuple[RuleSet, RuleSet]:
    """
    Get the (product page, listing page) rule sets registered under a name.

    Raises:
        KeyError: If no rule set is registered under the name
    """
    try:
        return RULE_SETS[name]
    except KeyError:
        raise KeyError(
            f"Unknown rule set '{name}' (available: {', '.join(RULE_SETS)})"
        ) from None


def validate_rule_config(custom_config: dict[str, Any]) -> None:
    """
    Check the rule settings of a source's custom_config.

    Validates the ``rules`` name and every ``extra_rules`` field and regex,
    so a bad configuration fails when it is loaded rather than mid-lookup.

    Raises:
        ValueError: For an unknown rule set or field, or an invalid regex
    """
    rules = custom_config.get("rules")
    if rules is not None and rules not in RULE_SETS:
        raise ValueError(
            f"Unknown rule set '{rules}' (available: {', '.join(RULE_SETS)})"
        )

    extra = custom_config.get("extra_rules") or {}
    if not isinstance(extra, dict):
        raise ValueError("extra_rules must map field names to regex lists")
    for field_name, regexes in extra.items():
        if field_name not in RuleSet.FIELDS:
            raise ValueError(f"Unknown extraction field: {field_name}")
        if isinstance(regexes, str) or not isinstance(regexes, list):
            raise ValueError(f"extra_rules.{field_name} must be a list of regexes")
        for regex in regexes:
            try:
                re.compile(regex, re.IGNORECASE)
            except re.error as e:
                raise ValueError(f"Invalid regex for {field_name}: {regex!r} ({e})") from e
