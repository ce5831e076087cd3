"""
Entity Extractor Module
=======================

Turns raw retailer HTML into best-effort product fields.

Each field has an ordered list of ExtractionRule objects; the first rule
producing a non-empty, validated value wins. Unresolved fields fall back
to documented defaults. The extractor never raises: when no name can be
resolved the result carries the sentinel name, which callers must treat
as "no product".
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Callable

from barcode_lookup.core.schema import (
    DEFAULT_CATEGORY,
    DEFAULT_PRICE,
    PLACEHOLDER_IMAGE,
    ProductInfo,
    sentinel_name,
)

logger = logging.getLogger(__name__)

Extractor = Callable[[re.Match[str]], str | None]
Validator = Callable[[str], bool]

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_PRICE_TOKEN_RE = re.compile(r"(\d+)[.,](\d+)")

# A name containing any of these came from the wrong part of the page
DEFAULT_NAME_BLACKLIST: list[str] = [
    "404",
    "Not Found",
    "Page introuvable",
    "Recherche",
    "Résultats de recherche",
    "Search results",
    "Aucun résultat",
    "No results",
]


def decode_entities(text: str) -> str:
    """Decode named and numeric (decimal and hex) HTML character references."""
    if not text:
        return ""
    return html.unescape(text)


def strip_tags(text: str) -> str:
    """Remove markup, decode entities and collapse whitespace."""
    text = _TAG_RE.sub(" ", text)
    text = decode_entities(text).replace("\xa0", " ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_price(text: str | None) -> str | None:
    """
    Normalize a price fragment to a dot-decimal string.

    The first ``\\d+[.,]\\d+`` token is kept and a comma decimal separator
    is rewritten to a dot, so "12,50 Dh" becomes "12.50". Applying the
    function to its own output returns it unchanged.

    Returns:
        Normalized price, or None if the text holds no decimal token
    """
    if not text:
        return None
    match = _PRICE_TOKEN_RE.search(strip_tags(text))
    if match is None:
        return None
    return f"{match.group(1)}.{match.group(2)}"


def text_of(group: int = 1) -> Extractor:
    """Extractor returning the tag-stripped, decoded text of a group."""

    def _extract(match: re.Match[str]) -> str | None:
        value = match.group(group)
        return strip_tags(value) if value else None

    return _extract


def attribute_of(group: int = 1) -> Extractor:
    """Extractor returning a group verbatim apart from entity decoding (URLs)."""

    def _extract(match: re.Match[str]) -> str | None:
        value = match.group(group)
        return decode_entities(value).strip() if value else None

    return _extract


def price_of(group: int = 1) -> Extractor:
    """Extractor returning the normalized price in a group."""

    def _extract(match: re.Match[str]) -> str | None:
        return normalize_price(match.group(group))

    return _extract


def constant(value: str) -> Extractor:
    """Extractor returning a fixed value whenever the pattern matches."""

    def _extract(match: re.Match[str]) -> str | None:
        return value

    return _extract


def non_empty(value: str) -> bool:
    return bool(value and value.strip())


def is_image_url(value: str) -> bool:
    """Reject empty values and inline data URIs (lazy-load placeholders)."""
    return non_empty(value) and not value.startswith("data:")


@dataclass(frozen=True)
class ExtractionRule:
    """One ordered (pattern, extractor, validator) step of a field ladder."""

    pattern: re.Pattern[str]
    extractor: Extractor = field(default_factory=text_of)
    validator: Validator = non_empty
    description: str = ""

    @classmethod
    def from_regex(
        cls,
        regex: str,
        extractor: Extractor | None = None,
        validator: Validator | None = None,
        description: str = "",
    ) -> ExtractionRule:
        """Compile a rule from a regex string (case-insensitive)."""
        return cls(
            pattern=re.compile(regex, re.IGNORECASE),
            extractor=extractor or text_of(),
            validator=validator or non_empty,
            description=description or regex,
        )

    def apply(self, page: str, validator: Validator | None = None) -> str | None:
        """
        Return the first match in document order that passes validation.

        Args:
            page: Raw HTML
            validator: Additional validator applied after the rule's own one

        Returns:
            The extracted value, or None
        """
        for match in self.pattern.finditer(page):
            value = self.extractor(match)
            if value is None or not self.validator(value):
                continue
            if validator is not None and not validator(value):
                continue
            return value
        return None


@dataclass(frozen=True)
class RuleSet:
    """Per-field rule ladders for one page shape."""

    name: tuple[ExtractionRule, ...] = ()
    price: tuple[ExtractionRule, ...] = ()
    image: tuple[ExtractionRule, ...] = ()
    category: tuple[ExtractionRule, ...] = ()
    out_of_stock: tuple[ExtractionRule, ...] = ()

    FIELDS = ("name", "price", "image", "category", "out_of_stock")

    def with_extra(self, extra: dict[str, list[str]] | None) -> RuleSet:
        """
        Prepend configured regexes to the matching field ladders.

        Args:
            extra: Mapping of field name to regex strings (group 1 is the value)

        Returns:
            A new RuleSet; the original is unchanged
        """
        if not extra:
            return self

        changes: dict[str, tuple[ExtractionRule, ...]] = {}
        for field_name, regexes in extra.items():
            if field_name not in self.FIELDS:
                raise ValueError(f"Unknown extraction field: {field_name}")
            if field_name == "price":
                extractor = price_of()
            elif field_name == "image":
                extractor = attribute_of()
            elif field_name == "out_of_stock":
                extractor = constant("out_of_stock")
            else:
                extractor = text_of()
            validator = is_image_url if field_name == "image" else None
            rules = tuple(
                ExtractionRule.from_regex(r, extractor=extractor, validator=validator)
                for r in regexes
            )
            changes[field_name] = rules + getattr(self, field_name)
        return replace(self, **changes)


class EntityExtractor:
    """
    Rule-driven product extractor.

    Handles:
    - Ordered per-field rule ladders (first validated match wins)
    - HTML entity decoding of every extracted value
    - Price normalization ("12,50" -> "12.50")
    - Name blacklisting of error/search page titles
    - Site-name suffix stripping on title-derived names
    - Defaults for unresolved fields
    """

    def __init__(
        self,
        rules: RuleSet,
        name_blacklist: list[str] | None = None,
        site_name: str = "",
        placeholder_image: str = PLACEHOLDER_IMAGE,
    ) -> None:
        self.rules = rules
        self.name_blacklist = (
            list(name_blacklist) if name_blacklist is not None else list(DEFAULT_NAME_BLACKLIST)
        )
        self.site_name = site_name
        self.placeholder_image = placeholder_image

    def is_valid_name(self, name: str) -> bool:
        """Reject blank names and names containing blacklisted substrings."""
        if not non_empty(name):
            return False
        lowered = name.lower()
        return not any(bad.lower() in lowered for bad in self.name_blacklist)

    def clean_name(self, name: str) -> str:
        """Strip the configured site-name suffix."""
        if self.site_name and self.site_name in name:
            name = name.replace(self.site_name, "")
        return name.strip()

    @staticmethod
    def extract_field(
        page: str,
        rules: tuple[ExtractionRule, ...],
        validator: Validator | None = None,
    ) -> str | None:
        """Run a rule ladder and return the first validated value."""
        for rule in rules:
            value = rule.apply(page, validator)
            if value is not None:
                logger.debug(f"Matched {value!r} using rule: {rule.description}")
                return value
        return None

    def extract(self, page: str, barcode: str, source: str) -> ProductInfo:
        """
        Extract product fields from a page.

        Args:
            page: Raw HTML
            barcode: Barcode being resolved
            source: Source label recorded on the result

        Returns:
            ProductInfo; its name is the sentinel when no name was found
        """
        try:
            return self._extract(page, barcode, source)
        except Exception as e:
            # extraction never raises
            logger.error(f"Extraction failed for {barcode} ({source}): {e}")
            return ProductInfo(
                barcode=barcode,
                name=sentinel_name(barcode),
                price=DEFAULT_PRICE,
                image=self.placeholder_image,
                category=DEFAULT_CATEGORY,
                source=source,
            )

    def _extract(self, page: str, barcode: str, source: str) -> ProductInfo:
        name = self.extract_field(
            page,
            self.rules.name,
            lambda v: self.is_valid_name(self.clean_name(v)),
        )
        if name is None:
            logger.debug(f"Could not extract product name for {barcode} ({source})")
            name = sentinel_name(barcode)
        else:
            name = self.clean_name(name)

        price = self.extract_field(page, self.rules.price) or DEFAULT_PRICE
        image = self.extract_field(page, self.rules.image) or self.placeholder_image
        category = self.extract_field(page, self.rules.category) or DEFAULT_CATEGORY
        in_stock = self.extract_field(page, self.rules.out_of_stock) is None

        return ProductInfo(
            barcode=barcode,
            name=name,
            price=price,
            image=image,
            category=category,
            in_stock=in_stock,
            source=source,
        )
