"""
Adapter Registry Module
=======================

Central registry for source-specific adapters.
Provides factory functions for creating adapters by name.
"""

from __future__ import annotations

from typing import Type

from barcode_lookup.core.schema import PLACEHOLDER_IMAGE
from barcode_lookup.lookup.adapters.base import BaseAdapter
from barcode_lookup.lookup.adapters.openfoodfacts import OpenFoodFactsAdapter
from barcode_lookup.lookup.adapters.retailer import RetailerAdapter
from barcode_lookup.lookup.classifier import NotFoundClassifier
from barcode_lookup.lookup.fetcher import Fetcher
from barcode_lookup.lookup.registry import SourceConfig


# Registry mapping adapter names to their classes
ADAPTER_REGISTRY: dict[str, Type[BaseAdapter]] = {
    "retailer": RetailerAdapter,
    "openfoodfacts": OpenFoodFactsAdapter,
}


def get_adapter(
    source: SourceConfig,
    fetcher: Fetcher | None = None,
    classifier: NotFoundClassifier | None = None,
    placeholder_image: str = PLACEHOLDER_IMAGE,
) -> BaseAdapter | None:
    """
    Get an adapter instance for a source.

    Args:
        source: Source configuration; its ``adapter`` field selects the class
        fetcher: Shared HTTP fetcher
        classifier: Not-found classifier
        placeholder_image: Image URL used when none is found

    Returns:
        Adapter instance, or None if the adapter type is not registered
    """
    adapter_class = ADAPTER_REGISTRY.get(source.adapter)
    if adapter_class is None:
        return None
    return adapter_class(source, fetcher, classifier, placeholder_image)


def register_adapter(name: str, adapter_class: Type[BaseAdapter]) -> None:
    """
    Register a new adapter type.

    Args:
        name: Name to register the adapter under
        adapter_class: Adapter class (must inherit from BaseAdapter)
    """
    if not issubclass(adapter_class, BaseAdapter):
        raise TypeError(f"{adapter_class} must inherit from BaseAdapter")
    ADAPTER_REGISTRY[name] = adapter_class


def list_adapters() -> list[str]:
    """List all registered adapter names."""
    return list(ADAPTER_REGISTRY.keys())


def get_adapter_info(adapter_type: str) -> dict[str, str] | None:
    """
    Get information about an adapter type.

    Returns:
        Dict with adapter info, or None if not found
    """
    adapter_class = ADAPTER_REGISTRY.get(adapter_type)
    if adapter_class is None:
        return None

    return {
        "name": adapter_class.ADAPTER_NAME,
        "version": adapter_class.ADAPTER_VERSION,
        "class": adapter_class.__name__,
    }


__all__ = [
    # Registry functions
    "get_adapter",
    "register_adapter",
    "list_adapters",
    "get_adapter_info",
    "ADAPTER_REGISTRY",
    # Base classes
    "BaseAdapter",
    # Concrete adapters
    "RetailerAdapter",
    "OpenFoodFactsAdapter",
]
