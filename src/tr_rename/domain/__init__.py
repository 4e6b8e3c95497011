"""Domain layer - core business logic."""

from .models import (
    BatchReport,
    ClassifiedRecord,
    DocumentType,
    OutcomeStatus,
    ProcessingResult,
)

__all__ = [
    "BatchReport",
    "ClassifiedRecord",
    "DocumentType",
    "OutcomeStatus",
    "ProcessingResult",
]
