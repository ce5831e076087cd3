"""Shared fixtures for the lookup test suite."""

import pytest

from barcode_lookup.lookup.registry import reset_default_registry
from barcode_lookup.lookup.resolver import reset_default_resolver


@pytest.fixture(autouse=True)
def _reset_defaults():
    """Keep the process-wide registry and resolver out of other tests."""
    reset_default_registry()
    reset_default_resolver()
    yield
    reset_default_registry()
    reset_default_resolver()
