"""Extractor port - interface for PDF text extraction."""

from abc import ABC, abstractmethod
from pathlib import Path


class TextExtractorPort(ABC):
    """Interface for turning a PDF file into raw text."""

    @abstractmethod
    def extract_text(self, path: Path) -> str:
        """Extract text content from PDF.

        Raises ExtractionFailure if the file cannot be read.
        """
        pass
