"""Tests for source health checks."""

from datetime import UTC, datetime

import httpx
import pytest

from barcode_lookup.lookup.health import (
    HealthCheckResult,
    HealthStatus,
    check_all_sources,
    check_source_health,
    overall_status,
)
from barcode_lookup.lookup.registry import SourceConfig
from helpers import make_fetcher, make_registry


def check(status: HealthStatus) -> HealthCheckResult:
    return HealthCheckResult(
        name="x", status=status, message="", timestamp=datetime.now(UTC)
    )


class TestOverallStatus:
    """Tests for aggregating source checks."""

    def test_all_healthy(self) -> None:
        assert overall_status([check(HealthStatus.HEALTHY)] * 2) == HealthStatus.HEALTHY

    def test_mixed(self) -> None:
        checks = [check(HealthStatus.HEALTHY), check(HealthStatus.ERROR)]
        assert overall_status(checks) == HealthStatus.DEGRADED

    def test_all_errors(self) -> None:
        assert overall_status([check(HealthStatus.ERROR)] * 2) == HealthStatus.ERROR

    def test_no_sources(self) -> None:
        assert overall_status([]) == HealthStatus.ERROR


class TestCheckSourceHealth:
    """Tests for probing one source."""

    @pytest.mark.asyncio
    async def test_reachable(self) -> None:
        fetcher, handler = make_fetcher(lambda request: httpx.Response(200))
        source = make_registry().get_source("shop")

        result = await check_source_health(source, fetcher)

        assert result.status == HealthStatus.HEALTHY
        assert result.name == "Test Shop"
        assert result.url == "https://shop.test/"
        assert handler.requests[0].method == "HEAD"
        assert result.to_dict()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        fetcher, _ = make_fetcher(lambda request: httpx.Response(503))
        source = make_registry().get_source("shop")

        result = await check_source_health(source, fetcher)

        assert result.status == HealthStatus.DEGRADED
        assert "503" in result.message

    @pytest.mark.asyncio
    async def test_unreachable(self) -> None:
        def route(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher, _ = make_fetcher(route)
        source = make_registry().get_source("shop")

        result = await check_source_health(source, fetcher)

        assert result.status == HealthStatus.ERROR
        assert result.message == "connection refused"

    @pytest.mark.asyncio
    async def test_no_url(self) -> None:
        result = await check_source_health(SourceConfig(name="bare", adapter="retailer"))
        assert result.status == HealthStatus.ERROR


class TestCheckAllSources:
    """Tests for probing every source."""

    @pytest.mark.asyncio
    async def test_enabled_sources_only(self) -> None:
        fetcher, handler = make_fetcher(lambda request: httpx.Response(200))
        registry = make_registry(off={"enabled": False})

        status = await check_all_sources(registry, fetcher)

        assert [c.name for c in status.checks] == ["Test Shop"]
        assert status.overall == HealthStatus.HEALTHY
        assert handler.count("off.test") == 0

    @pytest.mark.asyncio
    async def test_include_disabled(self) -> None:
        def route(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200 if request.url.host == "shop.test" else 500)

        fetcher, _ = make_fetcher(route)
        registry = make_registry(off={"enabled": False})

        status = await check_all_sources(registry, fetcher, include_disabled=True)

        assert len(status.checks) == 2
        assert status.overall == HealthStatus.DEGRADED
        assert status.to_dict()["overall"] == "degraded"
