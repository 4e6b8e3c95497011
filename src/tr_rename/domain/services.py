"""Domain services - orchestrate business logic."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from ..ports.extractor import TextExtractorPort
from ..ports.storage import StoragePort
from .classifier import classify
from .errors import (
    ExtractionFailure,
    FilesystemError,
    MissingRequiredField,
    OversizedInput,
    RenameError,
    UnrecognizedDocument,
)
from .extractors import MAX_YEAR, MIN_YEAR, extract_asset, extract_date, extract_isin
from .filename import MAX_ASSET_LENGTH, build_filename, is_already_renamed
from .models import (
    PORTFOLIO_TYPES,
    BatchReport,
    ClassifiedRecord,
    DocumentType,
    OutcomeStatus,
    ProcessingResult,
)
from .normalizer import normalize_text

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 100_000_000
MAX_TEXT_CHARS = 2_000_000


def analyze_text(
    text: str, min_year: int = MIN_YEAR, max_year: int = MAX_YEAR
) -> ClassifiedRecord:
    """Turn normalized document text into a classified record.

    Raises UnrecognizedDocument when no rule matches and
    MissingRequiredField when no usable date is found.
    """
    doc_type = classify(text)
    if doc_type == DocumentType.UNRECOGNIZED:
        raise UnrecognizedDocument("Document type not recognized")

    doc_date = extract_date(text, doc_type, min_year, max_year)
    if doc_date is None:
        raise MissingRequiredField(f"No transaction date found for {doc_type.tag}")

    isin = None if doc_type in PORTFOLIO_TYPES else extract_isin(text)
    asset = extract_asset(text, doc_type, isin)

    return ClassifiedRecord(doc_type=doc_type, date=doc_date, isin=isin, asset=asset)


class ProcessingService:
    """Orchestrates the extract, classify and rename pipeline."""

    def __init__(
        self,
        extractor: TextExtractorPort,
        storage: StoragePort,
        max_file_size: int = MAX_FILE_SIZE,
        max_text_chars: int = MAX_TEXT_CHARS,
        max_asset_length: int = MAX_ASSET_LENGTH,
        min_year: int = MIN_YEAR,
        max_year: int = MAX_YEAR,
    ) -> None:
        self.extractor = extractor
        self.storage = storage
        self.max_file_size = max_file_size
        self.max_text_chars = max_text_chars
        self.max_asset_length = max_asset_length
        self.min_year = min_year
        self.max_year = max_year

    def process(self, path: Path) -> ProcessingResult:
        """Process one document.

        Pipeline:
            1. Skip names already in the scheme
            2. Size pre-check (extractor is not called for oversized files)
            3. Extract and normalize text
            4. Classify and extract fields
            5. Build filename and rename

        Never raises: every failure ends up in the returned result.
        """
        result = ProcessingResult(source_path=path)
        logger.info(f"Processing: {path.name}")

        if is_already_renamed(path.name):
            logger.info(f"Skipped, already renamed: {path.name}")
            result.status = OutcomeStatus.SKIPPED
            result.output_path = path
            return result

        try:
            size = path.stat().st_size
            if size > self.max_file_size:
                raise OversizedInput(
                    f"File size {size} exceeds limit of {self.max_file_size} bytes"
                )

            text = self._extract(path)
            result.text_length = len(text)

            if len(text) > self.max_text_chars:
                raise OversizedInput(
                    f"Extracted text length {len(text)} exceeds limit of "
                    f"{self.max_text_chars} characters"
                )

            record = analyze_text(text, self.min_year, self.max_year)
            result.record = record

            filename = build_filename(record, self.max_asset_length)
            result.output_path = self.storage.rename(path, filename)
            result.status = OutcomeStatus.SUCCESS
            logger.info(f"Done: {path.name} -> {result.output_path.name}")

        except OversizedInput as e:
            logger.info(f"Skipped {path.name}: {e}")
            result.error = e
            result.status = (
                OutcomeStatus.SKIPPED if result.text_length == 0 else OutcomeStatus.ERROR
            )
        except RenameError as e:
            logger.warning(f"Failed {path.name}: [{e.kind}] {e}")
            result.error = e
            result.status = OutcomeStatus.ERROR
        except OSError as e:
            logger.warning(f"Failed {path.name}: {e}")
            result.error = FilesystemError(str(e))
            result.status = OutcomeStatus.ERROR
        except Exception as e:
            logger.exception(f"Processing failed: {e}")
            result.error = RenameError(f"Unexpected error: {e}")
            result.status = OutcomeStatus.ERROR

        return result

    def process_batch(self, paths: list[Path], jobs: int = 1) -> BatchReport:
        """Process all paths, in parallel when jobs > 1.

        Results keep the order of paths regardless of completion order.
        """
        if jobs <= 1 or len(paths) <= 1:
            return BatchReport(results=[self.process(p) for p in paths])

        with ThreadPoolExecutor(max_workers=jobs) as pool:
            results = list(pool.map(self.process, paths))
        return BatchReport(results=results)

    def _extract(self, path: Path) -> str:
        try:
            raw = self.extractor.extract_text(path)
        except ExtractionFailure:
            raise
        except Exception as e:
            raise ExtractionFailure(f"Could not extract text: {e}") from e

        text = normalize_text(raw)
        if not text.strip():
            # Image-only PDFs; classification reports them as unrecognized
            logger.debug(f"No text layer in {path.name}")
        return text
