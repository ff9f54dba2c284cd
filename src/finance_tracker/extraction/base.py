import mimetypes
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional

from finance_tracker.categorization import CategorizationEngine
from finance_tracker.domain.models import Transaction
from finance_tracker.extraction.client import ExtractionError, GeminiClient
from finance_tracker.logging_setup import get_logger

logger = get_logger(__name__)

SUPPORTED_MIME_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/heic",
    "image/heif",
}

class DocumentExtractor(ABC):
    """
    Abstract base class for all document extractors.

    This implements the Strategy pattern - each document kind gets its own
    concrete extractor. The shared `extract` flow validates and reads the
    file, asks the AI service for raw records, then normalizes them.
    A failed or unparsable AI response yields an empty list.
    """

    def __init__(
        self,
        client: GeminiClient,
        categorization_engine: Optional[CategorizationEngine] = None,
    ):
        self.client = client
        self._categorization_engine = categorization_engine

    @property
    def categorization_engine(self) -> CategorizationEngine:
        """Lazy-load categorization engine backed by the same client"""
        if self._categorization_engine is None:
            self._categorization_engine = CategorizationEngine(classifier=self.client)
        return self._categorization_engine

    def validate_file(self, filepath: str | Path) -> str:
        """
        Validate that the file exists and is a supported document.

        Args:
            filepath: Path to the document

        Returns:
            The MIME type of the document

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If the file type is not supported
        """
        path = Path(filepath)

        if not path.is_file():
            raise FileNotFoundError(f"File does not exist on path {path}")

        mime_type, _ = mimetypes.guess_type(path.name)
        if mime_type not in SUPPORTED_MIME_TYPES:
            supported = ", ".join(sorted(SUPPORTED_MIME_TYPES))
            raise ValueError(
                f"Unsupported document type {mime_type or path.suffix!r}. "
                f"Supported: {supported}"
            )

        return mime_type

    def extract(self, filepath: str | Path) -> List[Transaction]:
        """
        Extract transactions from a document.

        Args:
            filepath: Path to the receipt, statement or paystub

        Returns:
            List of normalized transactions, empty if extraction failed

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If the file type is not supported
        """
        mime_type = self.validate_file(filepath)
        data = Path(filepath).read_bytes()

        try:
            raw = self._request(data, mime_type)
        except ExtractionError as e:
            logger.error("Extraction failed for %s: %s", filepath, e)
            return []

        transactions = self._to_transactions(raw)
        logger.info("Extracted %d transactions from %s", len(transactions), filepath)
        return transactions

    @abstractmethod
    def _request(self, data: bytes, mime_type: str) -> Any:
        """
        Send the document to the AI service.

        Raises:
            ExtractionError: If the service fails or returns bad content
        """
        pass

    @abstractmethod
    def _to_transactions(self, raw: Any) -> List[Transaction]:
        """Normalize the raw response into transactions"""
        pass

    def __repr__(self):
        return f"{self.__class__.__name__}()"
