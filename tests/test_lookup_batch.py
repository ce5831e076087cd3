"""Tests for batch resolution."""

import asyncio

import httpx
import pytest

from barcode_lookup.core.schema import ProductInfo
from barcode_lookup.lookup import batch as batch_module
from barcode_lookup.lookup import resolver as resolver_module
from barcode_lookup.lookup.batch import NOT_FOUND_MESSAGE, BatchCoordinator, parse_barcodes
from barcode_lookup.lookup.errors import InvalidInput, UnknownSourceError
from barcode_lookup.lookup.resolver import (
    ProductResolver,
    ResolutionResult,
    ResolutionStatus,
)
from helpers import OFF_FOUND, OFF_NOT_FOUND, json_response, make_fetcher, make_registry


class FakeResolver(ProductResolver):
    """Resolver that answers without I/O and records concurrency."""

    def __init__(self, delay: float = 0.01, failing: set[str] | None = None,
                 missing: set[str] | None = None) -> None:
        super().__init__(make_registry())
        self.delay = delay
        self.failing = failing or set()
        self.missing = missing or set()
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls: list[str] = []

    async def resolve(self, barcode, sources=None, use_cache=True) -> ResolutionResult:
        self.calls.append(barcode)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if barcode in self.failing:
                raise RuntimeError(f"boom {barcode}")
            if barcode in self.missing:
                return ResolutionResult(barcode=barcode, status=ResolutionStatus.EXHAUSTED)
            return ResolutionResult(
                barcode=barcode,
                status=ResolutionStatus.RESOLVED,
                product=ProductInfo(barcode=barcode, name=f"Item {barcode}", source="Fake"),
                source="fake",
            )
        finally:
            self.in_flight -= 1


class TestParseBarcodes:
    """Tests for free-form barcode input."""

    def test_newlines_and_commas(self) -> None:
        assert parse_barcodes("111\n222, 333\n\n, 444 ") == ["111", "222", "333", "444"]

    def test_empty(self) -> None:
        assert parse_barcodes("") == []
        assert parse_barcodes(" ,\n ") == []


class TestValidation:
    """Tests for input rejected before processing."""

    def test_empty_batch(self) -> None:
        coordinator = BatchCoordinator(FakeResolver())
        with pytest.raises(InvalidInput):
            coordinator.validate([])

    def test_oversized_batch(self) -> None:
        coordinator = BatchCoordinator(FakeResolver(), max_batch_size=3)
        with pytest.raises(InvalidInput, match="Too many barcodes"):
            coordinator.validate(["1", "2", "3", "4"])

    def test_blank_entry(self) -> None:
        coordinator = BatchCoordinator(FakeResolver())
        with pytest.raises(InvalidInput, match="position 1"):
            coordinator.validate(["1", "  ", "3"])

    def test_string_is_not_a_batch(self) -> None:
        coordinator = BatchCoordinator(FakeResolver())
        with pytest.raises(InvalidInput):
            coordinator.validate("6111245591063")

    def test_strips_whitespace(self) -> None:
        coordinator = BatchCoordinator(FakeResolver())
        assert coordinator.validate([" 1 ", "2"]) == ["1", "2"]

    def test_invalid_concurrency(self) -> None:
        with pytest.raises(ValueError):
            BatchCoordinator(FakeResolver(), concurrency=0)

    def test_chunk(self) -> None:
        coordinator = BatchCoordinator(FakeResolver(), concurrency=5)
        chunks = coordinator.chunk([str(i) for i in range(12)])
        assert [len(c) for c in chunks] == [5, 5, 2]

    def test_defaults_from_global_config(self) -> None:
        coordinator = BatchCoordinator(FakeResolver())
        assert coordinator.concurrency == 5
        assert coordinator.max_batch_size == 100
        assert coordinator.inter_chunk_delay == 0

    @pytest.mark.asyncio
    async def test_oversized_batch_makes_no_calls(self) -> None:
        resolver = FakeResolver()
        coordinator = BatchCoordinator(resolver, max_batch_size=2)
        with pytest.raises(InvalidInput):
            await coordinator.resolve_batch(["1", "2", "3"])
        assert resolver.calls == []

    @pytest.mark.asyncio
    async def test_unknown_source_makes_no_calls(self) -> None:
        resolver = FakeResolver()
        with pytest.raises(UnknownSourceError):
            await BatchCoordinator(resolver).resolve_batch(["1"], ["carrefour"])
        assert resolver.calls == []


class TestResolveBatch:
    """Tests for BatchCoordinator.resolve_batch."""

    @pytest.mark.asyncio
    async def test_concurrency_cap_and_order(self) -> None:
        resolver = FakeResolver()
        barcodes = [f"61112455910{i:02d}" for i in range(12)]

        report = await BatchCoordinator(resolver, concurrency=5).resolve_batch(barcodes)

        assert resolver.max_in_flight == 5
        assert [r.barcode for r in report.results] == barcodes
        assert report.total == 12
        assert report.found == 12
        assert report.not_found == 0

    @pytest.mark.asyncio
    async def test_failure_does_not_abort_batch(self) -> None:
        resolver = FakeResolver(failing={"2"}, missing={"3"})

        report = await BatchCoordinator(resolver).resolve_batch(["1", "2", "3", "4"])

        assert [r.success for r in report.results] == [True, False, False, True]
        assert report.results[1].error == "boom 2"
        assert report.results[2].error == NOT_FOUND_MESSAGE
        assert report.found == 2
        assert report.not_found == 2

    @pytest.mark.asyncio
    async def test_inter_chunk_delay(self, monkeypatch) -> None:
        delays: list[float] = []
        real_sleep = asyncio.sleep

        async def recording_sleep(delay: float, *args, **kwargs):
            delays.append(delay)
            await real_sleep(0)

        monkeypatch.setattr(batch_module.asyncio, "sleep", recording_sleep)
        coordinator = BatchCoordinator(FakeResolver(delay=0), concurrency=2, inter_chunk_delay=0.5)

        await coordinator.resolve_batch(["1", "2", "3", "4", "5"])

        assert delays == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_report_serialization(self) -> None:
        report = await BatchCoordinator(FakeResolver(missing={"2"})).resolve_batch(["1", "2"])

        data = report.to_dict()

        assert data["total"] == 2
        assert data["found"] == 1
        assert data["notFound"] == 1
        assert data["results"][0]["product"]["name"] == "Item 1"
        assert data["results"][1] == {
            "barcode": "2",
            "success": False,
            "error": NOT_FOUND_MESSAGE,
        }
        assert data["durationSeconds"] >= 0

    @pytest.mark.asyncio
    async def test_end_to_end_with_http(self) -> None:
        def route(request: httpx.Request) -> httpx.Response:
            if request.url.host == "shop.test":
                return httpx.Response(404, text="gone")
            if "3017620422003" in request.url.path:
                return json_response(OFF_FOUND)
            return json_response(OFF_NOT_FOUND)

        fetcher, handler = make_fetcher(route)
        resolver = ProductResolver(make_registry(), fetcher=fetcher)

        report = await BatchCoordinator(resolver).resolve_batch(
            ["3017620422003", "0000000000000", "3017620422003"]
        )

        assert [r.success for r in report.results] == [True, False, True]
        assert report.results[0].product.name == "Nutella 400 g - Ferrero"
        assert report.results[1].error == NOT_FOUND_MESSAGE

    @pytest.mark.asyncio
    async def test_module_resolve_batch(self, monkeypatch) -> None:
        resolver = FakeResolver()
        monkeypatch.setattr(resolver_module, "_default_resolver", resolver)

        report = await batch_module.resolve_batch(["1", "2"])

        assert report.found == 2
        assert resolver.calls == ["1", "2"]
