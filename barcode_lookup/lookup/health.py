"""
Source Health Module
====================

Reachability checks for the configured sources.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from barcode_lookup.lookup.fetcher import Fetcher
from barcode_lookup.lookup.registry import DEFAULT_USER_AGENTS, SourceConfig, SourceRegistry

logger = logging.getLogger(__name__)

HEALTH_CHECK_TIMEOUT = 5.0


class HealthStatus(str, Enum):
    """Health of a source or of the whole system."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    ERROR = "error"


@dataclass
class HealthCheckResult:
    """Result of probing one source."""

    name: str
    status: HealthStatus
    message: str
    timestamp: datetime
    url: str = ""
    response_time_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "url": self.url,
            "responseTime": self.response_time_ms,
        }


@dataclass
class SystemStatus:
    """Aggregate of all source checks."""

    overall: HealthStatus
    checks: list[HealthCheckResult] = field(default_factory=list)
    last_updated: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "overall": self.overall.value,
            "checks": [c.to_dict() for c in self.checks],
            "lastUpdated": self.last_updated.isoformat(),
        }


def overall_status(checks: list[HealthCheckResult]) -> HealthStatus:
    """Healthy if every check is, error if every check failed, else degraded."""
    if not checks:
        return HealthStatus.ERROR
    if all(c.status == HealthStatus.HEALTHY for c in checks):
        return HealthStatus.HEALTHY
    if all(c.status == HealthStatus.ERROR for c in checks):
        return HealthStatus.ERROR
    return HealthStatus.DEGRADED


async def check_source_health(
    source: SourceConfig,
    fetcher: Fetcher | None = None,
    timeout: float = HEALTH_CHECK_TIMEOUT,
) -> HealthCheckResult:
    """
    Check a source's health URL with a HEAD request.

    Any response below 400 is healthy, other responses are degraded and
    a transport failure is an error.
    """
    fetcher = fetcher or Fetcher(timeout=timeout)
    url = source.get_health_url()
    if not url:
        return HealthCheckResult(
            name=source.label,
            status=HealthStatus.ERROR,
            message="No health URL or domain configured",
            timestamp=datetime.now(UTC),
        )

    user_agent = (source.user_agents or DEFAULT_USER_AGENTS)[0]
    result = await fetcher.fetch(url, user_agent, method="HEAD", timeout=timeout)
    response_time = round(result.elapsed_ms) if result.elapsed_ms is not None else None

    if result.error is not None:
        logger.warning(f"Health check failed for {source.name}: {result.error}")
        status, message = HealthStatus.ERROR, result.error
    elif result.status_code < 400:
        status, message = HealthStatus.HEALTHY, "Endpoint is reachable"
    else:
        status, message = HealthStatus.DEGRADED, f"Endpoint responded with HTTP {result.status_code}"

    return HealthCheckResult(
        name=source.label,
        status=status,
        message=message,
        timestamp=result.fetched_at,
        url=url,
        response_time_ms=response_time,
    )


async def check_all_sources(
    registry: SourceRegistry,
    fetcher: Fetcher | None = None,
    timeout: float = HEALTH_CHECK_TIMEOUT,
    include_disabled: bool = False,
) -> SystemStatus:
    """Check every (enabled) source concurrently."""
    sources = registry.list_sources() if include_disabled else registry.list_enabled_sources()
    checks = await asyncio.gather(
        *(check_source_health(source, fetcher, timeout) for source in sources)
    )
    return SystemStatus(overall=overall_status(list(checks)), checks=list(checks))
