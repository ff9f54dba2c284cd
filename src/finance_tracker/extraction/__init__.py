"""
AI-backed extraction of transactions from receipts, statements and paystubs.

Quick Start:
    >>> from finance_tracker.extraction import ExtractorFactory, GeminiClient
    >>>
    >>> ExtractorFactory.load_extractors_from_config()
    >>> extractor = ExtractorFactory.create_extractor("statement", client=client)
    >>> transactions = extractor.extract("statement.pdf")
"""
from finance_tracker.extraction.client import (
    ExtractionError,
    GeminiClient,
    MissingAPIKeyError,
)
from finance_tracker.extraction.records import normalize_record
from finance_tracker.extraction.base import DocumentExtractor
from finance_tracker.extraction.factory import ExtractorFactory

__all__ = [
    "ExtractionError",
    "GeminiClient",
    "MissingAPIKeyError",
    "normalize_record",
    "DocumentExtractor",
    "ExtractorFactory",
]
