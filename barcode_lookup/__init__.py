"""Barcode Lookup - resolve scanned barcodes into product metadata."""

__version__ = "0.1.0"
