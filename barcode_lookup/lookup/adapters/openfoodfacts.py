"""
Open Food Facts Adapter Module
==============================

Adapter for the Open Food Facts product API (``/api/v2/product/{barcode}.json``).
The JSON response is validated into typed models before mapping.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from barcode_lookup.core.schema import DEFAULT_CATEGORY, ProductInfo
from barcode_lookup.lookup.adapters.base import BaseAdapter
from barcode_lookup.lookup.errors import (
    MalformedResponse,
    NotFoundAtSource,
    TransientFetchError,
)
from barcode_lookup.lookup.extractor import decode_entities
from barcode_lookup.lookup.fetcher import JSON_ACCEPT

logger = logging.getLogger(__name__)


class OpenFoodFactsProduct(BaseModel):
    """The subset of an Open Food Facts product record that is mapped."""

    model_config = ConfigDict(extra="ignore")

    product_name: str | None = None
    generic_name: str | None = None
    brands: str | None = None
    quantity: str | None = None
    categories: str | None = None
    image_front_url: str | None = None
    image_url: str | None = None
    selected_images: dict[str, Any] | None = None
    images: dict[str, Any] | None = None

    @field_validator(
        "product_name", "generic_name", "brands", "quantity", "categories",
        "image_front_url", "image_url",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """The API sends empty strings for unknown values."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class OpenFoodFactsResponse(BaseModel):
    """Envelope of ``/api/v2/product/{barcode}.json``; status 1 means found."""

    model_config = ConfigDict(extra="ignore")

    status: int = 0
    status_verbose: str = ""
    product: OpenFoodFactsProduct | None = None


def compose_name(product: OpenFoodFactsProduct) -> str | None:
    """
    Build a display name: product name, then quantity and brand when they
    are not already part of it.
    """
    name = product.product_name or product.generic_name
    if not name:
        return None
    name = decode_entities(name).strip()

    if product.quantity and product.quantity.lower() not in name.lower():
        name = f"{name} {product.quantity.strip()}"

    if product.brands:
        brands = decode_entities(product.brands).strip()
        if brands.lower() not in name.lower():
            name = f"{name} - {brands}"

    return name


def pick_image(product: OpenFoodFactsProduct) -> str | None:
    """Front image, then generic image, then the first gallery image."""
    if product.image_front_url:
        return product.image_front_url
    if product.image_url:
        return product.image_url

    front = (product.selected_images or {}).get("front") or {}
    display = front.get("display") if isinstance(front, dict) else None
    if isinstance(display, dict):
        for url in display.values():
            if url:
                return url

    for image in (product.images or {}).values():
        if isinstance(image, dict) and image.get("url"):
            return image["url"]

    return None


def first_category(product: OpenFoodFactsProduct) -> str | None:
    if not product.categories:
        return None
    first = product.categories.split(",")[0].strip()
    return first or None


class OpenFoodFactsAdapter(BaseAdapter):
    """
    Queries the Open Food Facts JSON API with a single typed request.

    A 404, ``status != 1`` or a product without a name is a
    NotFoundAtSource; an unparsable body is a MalformedResponse.
    """

    ADAPTER_NAME = "openfoodfacts"
    ADAPTER_VERSION = "1.0.0"

    async def fetch_product(self, barcode: str) -> ProductInfo | None:
        urls = self.url_variants(barcode)
        if not urls:
            raise NotFoundAtSource(self.name, barcode, "no URL configured")
        url = urls[0]

        result = await self.fetcher.fetch(url, self.user_agents[0], accept=JSON_ACCEPT)
        result.raise_for_transport()

        if result.is_http_not_found:
            raise NotFoundAtSource(self.name, barcode, "HTTP 404")
        if not result.success:
            raise TransientFetchError(url, f"HTTP {result.status_code}")
        if result.mime_type and "json" not in result.mime_type:
            raise MalformedResponse(self.name, f"unexpected content type {result.mime_type}")

        product = self.parse(result.text, barcode, url)
        if product is None:
            raise NotFoundAtSource(self.name, barcode, "product not found or invalid response")
        return product

    def decode(self, body: str) -> OpenFoodFactsResponse:
        """
        Validate a response body.

        Raises:
            MalformedResponse: If the body is not the expected JSON object
        """
        try:
            data = json.loads(body)
        except ValueError as e:
            raise MalformedResponse(self.name, f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedResponse(self.name, f"expected object, got {type(data).__name__}")
        try:
            return OpenFoodFactsResponse.model_validate(data)
        except ValidationError as e:
            raise MalformedResponse(self.name, str(e)) from e

    def parse(self, body: str, barcode: str, url: str) -> ProductInfo | None:
        response = self.decode(body)
        logger.debug(f"{self.name} response status for {barcode}: {response.status}")

        if response.status != 1 or response.product is None:
            return None

        name = compose_name(response.product)
        if name is None:
            return None

        return ProductInfo(
            barcode=barcode,
            name=name,
            image=pick_image(response.product) or self.placeholder_image,
            category=first_category(response.product) or DEFAULT_CATEGORY,
            quantity=response.product.quantity,
            source=self.label,
        )
