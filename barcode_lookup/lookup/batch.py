"""
Batch Coordinator Module
========================

Resolves many barcodes under a concurrency cap.

The input is split into fixed-size chunks; barcodes within a chunk
resolve concurrently, chunks run one after another with a short pause
between them. One barcode's failure never aborts the batch, and the
report keeps the input order.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Sequence

from barcode_lookup.core.schema import BatchItemResult, BatchReport
from barcode_lookup.lookup.errors import InvalidInput
from barcode_lookup.lookup.resolver import ProductResolver, SourceSpec, get_default_resolver

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Product not found in any selected source"

_SEPARATOR_RE = re.compile(r"[\n,]")


def parse_barcodes(text: str) -> list[str]:
    """
    Split free-form input into barcodes.

    Barcodes are separated by newlines or commas; surrounding whitespace
    and blank entries are dropped.
    """
    return [code.strip() for code in _SEPARATOR_RE.split(text or "") if code.strip()]


class BatchCoordinator:
    """
    Runs a ProductResolver over a list of barcodes.

    Args:
        resolver: Resolver shared by every barcode (and its cache)
        concurrency: Chunk size, i.e. maximum in-flight resolutions
        max_batch_size: Largest accepted input
        inter_chunk_delay: Seconds to wait between chunks
    """

    def __init__(
        self,
        resolver: ProductResolver | None = None,
        concurrency: int | None = None,
        max_batch_size: int | None = None,
        inter_chunk_delay: float | None = None,
    ) -> None:
        self.resolver = resolver or get_default_resolver()
        global_config = self.resolver.registry.global_config

        self.concurrency = concurrency if concurrency is not None else global_config.batch_concurrency
        self.max_batch_size = (
            max_batch_size if max_batch_size is not None else global_config.max_batch_size
        )
        self.inter_chunk_delay = (
            inter_chunk_delay if inter_chunk_delay is not None else global_config.inter_chunk_delay
        )

        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.max_batch_size < 1:
            raise ValueError(f"max_batch_size must be >= 1, got {self.max_batch_size}")

    def validate(self, barcodes: Sequence[str]) -> list[str]:
        """
        Check a batch before any processing starts.

        Returns:
            The barcodes with surrounding whitespace removed

        Raises:
            InvalidInput: If the batch is empty, too large or has blank entries
        """
        if isinstance(barcodes, str) or not isinstance(barcodes, Sequence):
            raise InvalidInput("Valid barcodes array is required")
        if len(barcodes) == 0:
            raise InvalidInput("Valid barcodes array is required")
        if len(barcodes) > self.max_batch_size:
            raise InvalidInput(
                f"Too many barcodes: {len(barcodes)} (maximum {self.max_batch_size})"
            )

        cleaned = []
        for position, barcode in enumerate(barcodes):
            if not isinstance(barcode, str) or not barcode.strip():
                raise InvalidInput(f"Blank barcode at position {position}")
            cleaned.append(barcode.strip())
        return cleaned

    def chunk(self, barcodes: list[str]) -> list[list[str]]:
        """Split barcodes into consecutive chunks of at most ``concurrency``."""
        size = self.concurrency
        return [barcodes[i:i + size] for i in range(0, len(barcodes), size)]

    async def resolve_batch(
        self,
        barcodes: Sequence[str],
        sources: Sequence[SourceSpec] | None = None,
        use_cache: bool = True,
    ) -> BatchReport:
        """
        Resolve a batch of barcodes.

        Args:
            barcodes: Barcodes in the order they should be reported
            sources: Source names/configs in priority order, or None for
                all enabled sources
            use_cache: False skips cache reads

        Returns:
            BatchReport with one BatchItemResult per input barcode

        Raises:
            InvalidInput: If the batch is rejected by validate()
            UnknownSourceError: If a named source is not registered
        """
        cleaned = self.validate(barcodes)
        # unknown source names fail here, before any request is made
        self.resolver.select_sources(sources)

        start = time.monotonic()
        chunks = self.chunk(cleaned)
        results: list[BatchItemResult] = []
        logger.info(
            f"Processing {len(cleaned)} barcodes in {len(chunks)} chunks of up to "
            f"{self.concurrency}"
        )

        for index, chunk in enumerate(chunks, start=1):
            logger.info(f"Processing chunk {index}/{len(chunks)} with {len(chunk)} barcodes")
            chunk_results = await asyncio.gather(
                *(self._resolve_one(barcode, sources, use_cache) for barcode in chunk)
            )
            results.extend(chunk_results)

            if index < len(chunks) and self.inter_chunk_delay > 0:
                await asyncio.sleep(self.inter_chunk_delay)

        report = BatchReport.from_results(results, duration_seconds=time.monotonic() - start)
        logger.info(
            f"Batch processing complete. Total: {report.total}, "
            f"Found: {report.found}, Not found: {report.not_found}"
        )
        return report

    async def _resolve_one(
        self,
        barcode: str,
        sources: Sequence[SourceSpec] | None,
        use_cache: bool,
    ) -> BatchItemResult:
        try:
            result = await self.resolver.resolve(barcode, sources, use_cache=use_cache)
        except Exception as e:
            logger.error(f"Error processing barcode {barcode}: {e}")
            return BatchItemResult(barcode=barcode, success=False, error=str(e) or type(e).__name__)

        if result.product is None:
            return BatchItemResult(barcode=barcode, success=False, error=NOT_FOUND_MESSAGE)
        return BatchItemResult(barcode=barcode, success=True, product=result.product)


async def resolve_batch(
    barcodes: Sequence[str],
    sources: Sequence[SourceSpec] | None = None,
    use_cache: bool = True,
) -> BatchReport:
    """Resolve a batch with the default resolver and configured limits."""
    return await BatchCoordinator(get_default_resolver()).resolve_batch(
        barcodes, sources, use_cache=use_cache
    )
