"""HTML/JSON fixtures and mock-transport helpers for the lookup tests."""

import json
from typing import Any, Callable

import httpx

from barcode_lookup.lookup.fetcher import Fetcher
from barcode_lookup.lookup.registry import SourceRegistry

PRODUCT_PAGE = """<!DOCTYPE html>
<html><head>
<title>Lait Centrale 1L - Aswak Assalam</title>
<meta property="og:image" content="https://aswakassalam.com/wp-content/uploads/lait.jpg" />
</head>
<body class="product-template-default single-product">
<h1 class="product_title entry-title">Lait Centrale Danone &amp; Co 1L</h1>
<p class="price"><span class="woocommerce-Price-amount amount"><bdi>12,50&nbsp;<span class="woocommerce-Price-currencySymbol">Dh</span></bdi></span></p>
<div class="product_meta"><span class="posted_in">Cat&eacute;gorie : <a href="/c/lait" rel="tag">Produits laitiers</a></span></div>
<p class="stock in-stock">En stock</p>
</body></html>
"""

OUT_OF_STOCK_PAGE = PRODUCT_PAGE.replace(
    '<p class="stock in-stock">En stock</p>',
    '<p class="stock out-of-stock">Rupture de stock</p>',
)

SOFT_404_PAGE = """<html><head><title>Page non trouv&eacute;e - Aswak Assalam</title></head>
<body class="error404">
<h2 class="entry-title">404 - Page introuvable</h2>
<div class="product-inner"><h3 class="woocommerce-loop-product__title">Promo Huile</h3></div>
</body></html>
"""

EMPTY_SEARCH_PAGE = """<html><head><title>R&eacute;sultats de recherche - Aswak Assalam</title></head>
<body class="search search-results">
<h1 class="page-title">R&eacute;sultats de recherche</h1>
<p class="woocommerce-info">Aucun produit</p>
</body></html>
"""

SEARCH_RESULTS_PAGE = """<html><head><title>R&eacute;sultats de recherche - Aswak Assalam</title></head>
<body class="search search-results">
<ul class="products"><li class="product"><div class="product-inner">
<a href="/p/huile"><img width="300" src="https://aswakassalam.com/up/huile-300x300.jpg" class="attachment-woocommerce_thumbnail size-woocommerce_thumbnail" alt="Huile"></a>
<h3 class="woocommerce-loop-product__title">Huile Lesieur 1L</h3>
<span class="price"><span class="woocommerce-Price-amount amount"><bdi>24,90&nbsp;<span class="woocommerce-Price-currencySymbol">Dh</span></bdi></span></span>
</div></li></ul>
</body></html>
"""

SENTINEL_PAGE = """<html><head><title>Product 6111245591063</title></head>
<body><h1>Product 6111245591063</h1><p>Aucune information disponible.</p></body></html>
"""

OFF_FOUND: dict[str, Any] = {
    "code": "3017620422003",
    "status": 1,
    "status_verbose": "product found",
    "product": {
        "product_name": "Nutella",
        "brands": "Ferrero",
        "quantity": "400 g",
        "categories": "Spreads, Sweet spreads, Hazelnut spreads",
        "image_front_url": "https://images.openfoodfacts.org/front.jpg",
        "image_url": "https://images.openfoodfacts.org/image.jpg",
    },
}

OFF_NOT_FOUND: dict[str, Any] = {
    "code": "0000000000000",
    "status": 0,
    "status_verbose": "product not found",
}

TEST_USER_AGENTS = ["TestAgent/1.0", "TestAgent/2.0"]


def make_config(**overrides: Any) -> dict[str, Any]:
    """Registry config with a retailer ("shop") and the JSON API ("off")."""
    shop = {
        "name": "shop",
        "label": "Test Shop",
        "adapter": "retailer",
        "domain": "shop.test",
        "url_variants": [
            "https://shop.test/ean1/{barcode}",
            "https://shop.test/ean2/{barcode}",
        ],
        "user_agents": TEST_USER_AGENTS,
        "miss_threshold": None,
        "custom_config": {"rules": "woocommerce", "site_name": " - Aswak Assalam"},
    }
    off = {
        "name": "off",
        "label": "Open Food Facts API",
        "adapter": "openfoodfacts",
        "domain": "off.test",
        "url_variants": ["https://off.test/api/v2/product/{barcode}.json"],
        "user_agents": ["TestAgent/1.0"],
        "miss_threshold": 1,
    }
    shop.update(overrides.pop("shop", {}))
    off.update(overrides.pop("off", {}))
    config = {
        "global": {
            "request_timeout": 1.0,
            "cache_ttl_seconds": 3600,
            "batch_concurrency": 5,
            "max_batch_size": 100,
            "inter_chunk_delay": 0,
        },
        "sources": [shop, off],
    }
    config["global"].update(overrides.pop("global", {}))
    return config


def make_registry(**overrides: Any) -> SourceRegistry:
    registry = SourceRegistry()
    registry.load_dict(make_config(**overrides))
    return registry


class RecordingHandler:
    """MockTransport handler that records requests and delegates to a route function."""

    def __init__(self, route: Callable[[httpx.Request], httpx.Response]) -> None:
        self.route = route
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.route(request)

    @property
    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]

    def count(self, host: str) -> int:
        return sum(1 for r in self.requests if r.url.host == host)


def html_response(body: str, status: int = 200) -> httpx.Response:
    return httpx.Response(status, text=body, headers={"content-type": "text/html; charset=utf-8"})


def json_response(data: Any, status: int = 200) -> httpx.Response:
    return httpx.Response(
        status, content=json.dumps(data).encode(), headers={"content-type": "application/json"}
    )


def make_fetcher(route: Callable[[httpx.Request], httpx.Response]) -> tuple[Fetcher, RecordingHandler]:
    handler = RecordingHandler(route)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return Fetcher(timeout=1.0, client=client), handler


