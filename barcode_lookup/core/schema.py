"""Canonical Pydantic v2 models for product lookup results."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

SENTINEL_NAME_TEMPLATE = "Product {barcode}"
PLACEHOLDER_IMAGE = "/placeholder.svg?height=200&width=200"
DEFAULT_PRICE = "0.00"
DEFAULT_CATEGORY = "Unknown"


def sentinel_name(barcode: str) -> str:
    """Return the placeholder name that marks a failed extraction."""
    return SENTINEL_NAME_TEMPLATE.format(barcode=barcode)


def is_sentinel_name(name: str | None, barcode: str) -> bool:
    """Check whether a name is missing or is the extraction-failure placeholder."""
    if not name or not name.strip():
        return True
    return name.strip() == sentinel_name(barcode)


class ProductInfo(BaseModel):
    """Product metadata resolved from one source."""

    model_config = ConfigDict(frozen=True)

    barcode: str
    name: str
    price: str | None = None
    image: str = PLACEHOLDER_IMAGE
    category: str | None = None
    in_stock: bool = True
    quantity: str | None = None
    source: str = ""

    @field_validator("barcode")
    @classmethod
    def barcode_not_blank(cls, v: str) -> str:
        """Barcodes are opaque keys but must not be blank."""
        v = v.strip()
        if not v:
            raise ValueError("barcode must not be empty")
        return v

    @property
    def is_sentinel(self) -> bool:
        """True when the name is the extraction-failure placeholder."""
        return is_sentinel_name(self.name, self.barcode)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the external (camelCase) representation."""
        return {
            "barcode": self.barcode,
            "name": self.name,
            "price": self.price,
            "image": self.image,
            "category": self.category,
            "inStock": self.in_stock,
            "quantity": self.quantity,
            "source": self.source,
        }


class BatchItemResult(BaseModel):
    """Outcome for one barcode of a batch."""

    barcode: str
    success: bool
    product: ProductInfo | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {"barcode": self.barcode, "success": self.success}
        if self.product is not None:
            result["product"] = self.product.to_dict()
        if self.error is not None:
            result["error"] = self.error
        return result


class BatchReport(BaseModel):
    """Final report of a batch resolution, in input order."""

    total: int = 0
    found: int = 0
    not_found: int = 0
    results: list[BatchItemResult] = Field(default_factory=list)
    duration_seconds: float | None = None

    @classmethod
    def from_results(
        cls, results: list[BatchItemResult], duration_seconds: float | None = None
    ) -> "BatchReport":
        """Build a report and derive the counters from the item results."""
        found = sum(1 for r in results if r.success)
        return cls(
            total=len(results),
            found=found,
            not_found=len(results) - found,
            results=results,
            duration_seconds=duration_seconds,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "found": self.found,
            "notFound": self.not_found,
            "results": [r.to_dict() for r in self.results],
            "durationSeconds": self.duration_seconds,
        }
