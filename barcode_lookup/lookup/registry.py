"""
Source Registry Module
======================

Manages source configurations loaded from YAML files. Sources define
which retailers/APIs are queried for a barcode, in which order, and
with which request settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from barcode_lookup.core.schema import PLACEHOLDER_IMAGE
from barcode_lookup.lookup.errors import UnknownSourceError
from barcode_lookup.lookup.rules import validate_rule_config

BUNDLED_CONFIG_PATH = Path(__file__).parent / "sources.yaml"

DEFAULT_USER_AGENTS: list[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 14_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/14.0.3 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/15.0 Safari/605.1.15",
]


@dataclass
class SourceConfig:
    """Configuration for a single product data source."""

    name: str
    adapter: str
    domain: str = ""
    label: str = ""
    enabled: bool = True
    url_variants: list[str] = field(default_factory=list)
    user_agents: list[str] = field(default_factory=list)
    # None exhausts every variant/agent combination before giving up
    miss_threshold: int | None = None
    health_url: str = ""
    custom_config: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.label:
            self.label = self.name
        if self.miss_threshold is not None and self.miss_threshold < 1:
            raise ValueError(
                f"miss_threshold for source '{self.name}' must be >= 1 or null, "
                f"got {self.miss_threshold}"
            )
        for template in self.url_variants:
            if "{barcode}" not in template:
                raise ValueError(
                    f"URL variant for source '{self.name}' lacks a {{barcode}} "
                    f"placeholder: {template}"
                )
        try:
            validate_rule_config(self.custom_config)
        except ValueError as e:
            raise ValueError(f"Invalid custom_config for source '{self.name}': {e}") from e

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], default_user_agents: list[str] | None = None
    ) -> SourceConfig:
        """Create from dictionary."""
        user_agents = data.get("user_agents") or list(default_user_agents or [])
        miss_threshold = data.get("miss_threshold")

        return cls(
            name=data["name"],
            adapter=data["adapter"],
            domain=data.get("domain", ""),
            label=data.get("label", ""),
            enabled=data.get("enabled", True),
            url_variants=list(data.get("url_variants", [])),
            user_agents=list(user_agents),
            miss_threshold=int(miss_threshold) if miss_threshold is not None else None,
            health_url=data.get("health_url", ""),
            custom_config=data.get("custom_config", {}) or {},
        )

    def build_urls(self, barcode: str) -> list[str]:
        """Expand every URL variant for a barcode, in configured order."""
        return [template.format(barcode=barcode) for template in self.url_variants]

    def get_health_url(self) -> str:
        """URL requested by the health check."""
        if self.health_url:
            return self.health_url
        if self.domain:
            return f"https://{self.domain}/"
        return ""


@dataclass
class GlobalConfig:
    """Global configuration settings."""

    request_timeout: float = 10.0
    cache_ttl_seconds: float = 24 * 60 * 60
    cache_max_entries: int | None = None
    batch_concurrency: int = 5
    max_batch_size: int = 100
    inter_chunk_delay: float = 1.0
    placeholder_image: str = PLACEHOLDER_IMAGE
    default_user_agents: list[str] = field(
        default_factory=lambda: list(DEFAULT_USER_AGENTS)
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GlobalConfig:
        """Create from dictionary."""
        if data is None:
            return cls()
        max_entries = data.get("cache_max_entries")
        return cls(
            request_timeout=float(data.get("request_timeout", 10.0)),
            cache_ttl_seconds=float(data.get("cache_ttl_seconds", 24 * 60 * 60)),
            cache_max_entries=int(max_entries) if max_entries is not None else None,
            batch_concurrency=int(data.get("batch_concurrency", 5)),
            max_batch_size=int(data.get("max_batch_size", 100)),
            inter_chunk_delay=float(data.get("inter_chunk_delay", 1.0)),
            placeholder_image=data.get("placeholder_image", PLACEHOLDER_IMAGE),
            default_user_agents=list(
                data.get("default_user_agents") or DEFAULT_USER_AGENTS
            ),
        )


class SourceRegistry:
    """
    Registry for managing product source configurations.

    Loads source definitions from a YAML file and provides methods
    to query and manage them. The order of sources in the file is
    their resolution priority.
    """

    def __init__(self) -> None:
        self._sources: dict[str, SourceConfig] = {}
        self._global_config: GlobalConfig = GlobalConfig()
        self._config_path: Path | None = None

    @property
    def global_config(self) -> GlobalConfig:
        """Get global configuration."""
        return self._global_config

    @property
    def config_path(self) -> Path | None:
        """Path of the last loaded configuration file."""
        return self._config_path

    def load_config(self, config_path: Path | str) -> None:
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the sources.yaml file
        """
        config_path = Path(config_path).expanduser().resolve()
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        self.load_dict(data)
        self._config_path = config_path

    def load_dict(self, data: dict[str, Any]) -> None:
        """
        Load configuration from an already parsed mapping.

        Args:
            data: Mapping with optional "global" and "sources" keys

        Raises:
            ValueError: If a source is invalid; the registry is left unchanged
        """
        global_config = GlobalConfig.from_dict(data.get("global"))
        sources = [
            SourceConfig.from_dict(source_data, global_config.default_user_agents)
            for source_data in data.get("sources", [])
        ]

        self._global_config = global_config
        self._sources = {source.name: source for source in sources}

    def register(self, source: SourceConfig) -> None:
        """Add or replace a source; new sources go last in priority."""
        self._sources[source.name] = source

    def get_source(self, name: str) -> SourceConfig | None:
        """
        Get a source configuration by name.

        Args:
            name: Source name

        Returns:
            SourceConfig if found, None otherwise
        """
        return self._sources.get(name)

    def list_sources(self) -> list[SourceConfig]:
        """Get all registered sources in priority order."""
        return list(self._sources.values())

    def list_enabled_sources(self) -> list[SourceConfig]:
        """Get all enabled sources in priority order."""
        return [s for s in self._sources.values() if s.enabled]

    def resolve_sources(self, names: list[str] | None) -> list[SourceConfig]:
        """
        Turn a list of source names into configs, keeping the caller's order.

        Args:
            names: Source names in priority order, or None for all enabled sources

        Returns:
            Ordered list of source configurations

        Raises:
            UnknownSourceError: If a name is not registered
        """
        if names is None:
            return self.list_enabled_sources()

        resolved = []
        for name in names:
            source = self._sources.get(name)
            if source is None:
                raise UnknownSourceError(name, list(self._sources))
            resolved.append(source)
        return resolved

    def enable_source(self, name: str) -> bool:
        """
        Enable a source.

        Returns:
            True if source was found and enabled, False otherwise
        """
        source = self._sources.get(name)
        if source is None:
            return False
        source.enabled = True
        return True

    def disable_source(self, name: str) -> bool:
        """
        Disable a source.

        Returns:
            True if source was found and disabled, False otherwise
        """
        source = self._sources.get(name)
        if source is None:
            return False
        source.enabled = False
        return True


# Global registry instance
_default_registry: SourceRegistry | None = None


def get_default_registry() -> SourceRegistry:
    """
    Get the default source registry instance.

    Loads configuration from the path specified in SOURCES_CONFIG_PATH
    environment variable, or falls back to the bundled sources.yaml.

    Returns:
        The global SourceRegistry instance
    """
    global _default_registry

    if _default_registry is None:
        _default_registry = SourceRegistry()

        config_path = os.environ.get("SOURCES_CONFIG_PATH")
        path = Path(config_path) if config_path else BUNDLED_CONFIG_PATH
        _default_registry.load_config(path)

    return _default_registry


def reset_default_registry() -> None:
    """Reset the default registry (useful for testing)."""
    global _default_registry
    _default_registry = None
