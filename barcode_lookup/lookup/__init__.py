"""
Barcode Lookup Pipeline
=======================

This package resolves scanned barcodes into product metadata by
querying external sources and reconciling their answers.

Pipeline Stages:
1. Select - Registry yields the ordered, enabled sources
2. Cache - Result cache is checked per (barcode, source)
3. Fetch - Adapter tries each URL variant with each User-Agent
4. Classify - Not-found pages (including soft-404s) are skipped
5. Extract - Rule ladders turn HTML/JSON into a ProductInfo
6. Batch - Many barcodes run in chunks under a concurrency cap
"""

from barcode_lookup.lookup.registry import (
    SourceRegistry,
    SourceConfig,
    GlobalConfig,
    get_default_registry,
    reset_default_registry,
)
from barcode_lookup.lookup.fetcher import (
    Fetcher,
    FetchResult,
)
from barcode_lookup.lookup.classifier import NotFoundClassifier
from barcode_lookup.lookup.extractor import (
    EntityExtractor,
    ExtractionRule,
    RuleSet,
    decode_entities,
    normalize_price,
)
from barcode_lookup.lookup.cache import (
    ResultCache,
    CacheEntry,
)
from barcode_lookup.lookup.errors import (
    BarcodeLookupError,
    TransientFetchError,
    NotFoundAtSource,
    MalformedResponse,
    AllSourcesExhausted,
    InvalidInput,
    UnknownSourceError,
)
from barcode_lookup.lookup.resolver import (
    ProductResolver,
    ResolutionResult,
    ResolutionStatus,
    SourceAttempt,
    get_default_resolver,
    reset_default_resolver,
    resolve,
)
from barcode_lookup.lookup.batch import (
    BatchCoordinator,
    parse_barcodes,
    resolve_batch,
)
from barcode_lookup.lookup.health import (
    HealthCheckResult,
    HealthStatus,
    SystemStatus,
    check_all_sources,
    check_source_health,
)

__all__ = [
    # Registry
    "SourceRegistry",
    "SourceConfig",
    "GlobalConfig",
    "get_default_registry",
    "reset_default_registry",
    # Fetcher
    "Fetcher",
    "FetchResult",
    # Classifier / Extractor
    "NotFoundClassifier",
    "EntityExtractor",
    "ExtractionRule",
    "RuleSet",
    "decode_entities",
    "normalize_price",
    # Cache
    "ResultCache",
    "CacheEntry",
    # Errors
    "BarcodeLookupError",
    "TransientFetchError",
    "NotFoundAtSource",
    "MalformedResponse",
    "AllSourcesExhausted",
    "InvalidInput",
    "UnknownSourceError",
    # Resolver
    "ProductResolver",
    "ResolutionResult",
    "ResolutionStatus",
    "SourceAttempt",
    "get_default_resolver",
    "reset_default_resolver",
    "resolve",
    # Batch
    "BatchCoordinator",
    "parse_barcodes",
    "resolve_batch",
    # Health
    "HealthCheckResult",
    "HealthStatus",
    "SystemStatus",
    "check_all_sources",
    "check_source_health",
]
