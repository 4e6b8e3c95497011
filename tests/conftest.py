"""Shared test fixtures."""

from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tests.samples import CASH_STATEMENT_TEXT, SAVINGS_PLAN_TEXT
from tr_rename.domain.models import ClassifiedRecord, DocumentType
from tr_rename.ports.extractor import TextExtractorPort
from tr_rename.ports.storage import StoragePort


@pytest.fixture
def savings_plan_text() -> str:
    return SAVINGS_PLAN_TEXT


@pytest.fixture
def cash_statement_text() -> str:
    return CASH_STATEMENT_TEXT


@pytest.fixture
def sample_record() -> ClassifiedRecord:
    """Sample classified record for testing."""
    return ClassifiedRecord(
        doc_type=DocumentType.SAVINGS_PLAN,
        date=date(2024, 1, 1),
        isin="US0378331005",
        asset="Apple Inc.",
    )


@pytest.fixture
def mock_extractor() -> MagicMock:
    """Mock text extractor port."""
    mock = MagicMock(spec=TextExtractorPort)
    mock.extract_text.return_value = SAVINGS_PLAN_TEXT
    return mock


@pytest.fixture
def mock_storage() -> MagicMock:
    """Mock storage port that renames in place."""
    mock = MagicMock(spec=StoragePort)
    mock.rename.side_effect = lambda path, filename: path.parent / filename
    return mock


@pytest.fixture
def pdf_file(tmp_path: Path) -> Path:
    """Small placeholder PDF on disk."""
    path = tmp_path / "pb_20240101.pdf"
    path.write_bytes(b"%PDF-1.4 test content")
    return path
