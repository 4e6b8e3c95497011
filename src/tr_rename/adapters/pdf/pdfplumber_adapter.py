"""Text extraction adapter using pdfplumber."""

import logging
from pathlib import Path

import pdfplumber

from ...domain.errors import ExtractionFailure
from ...ports.extractor import TextExtractorPort

logger = logging.getLogger(__name__)


class PdfPlumberAdapter(TextExtractorPort):
    """Extractor implementation using pdfplumber."""

    def extract_text(self, path: Path) -> str:
        logger.debug(f"Extracting text: {path.name}")

        try:
            with pdfplumber.open(path) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            # pdfminer raises a wide range of errors on broken files
            raise ExtractionFailure(f"Could not extract text: {e}") from e

        text = "\n".join(pages)
        logger.debug(f"Extracted {len(text)} characters from {len(pages)} pages")
        return text
