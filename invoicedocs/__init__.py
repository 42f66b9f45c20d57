"""Lookup, retrieval and preparation of incoming e-invoices, with an HTTP service."""

__version__ = "0.1.0"