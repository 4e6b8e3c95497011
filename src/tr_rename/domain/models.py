"""Domain models."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path

from .errors import RenameError


class DocumentType(str, Enum):
    """Supported document categories. Values are the filename TYPE tags."""

    PURCHASE = "Kauf"
    SAVINGS_PLAN = "Kauf_Sparplan"
    SAVEBACK = "Kauf_Saveback"
    SALE = "Verkauf"
    DIVIDEND = "Dividende"
    INTEREST_PAYMENT = "Zinszahlung"
    INTEREST_PAYOUT = "Zinsen"
    INTEREST_AND_DIVIDEND = "Zinsen_und_Dividende"
    CORPORATE_ACTION = "Kapitalmaßnahme"
    DEPOT_TRANSFER = "Depottransfer"
    DEPOT_STATEMENT = "Depotauszug"
    TAX_OPTIMIZATION = "Steuerliche_Optimierung"
    COST_INFORMATION = "Kosteninformation"
    COST_INFORMATION_EX_POST = "Ex_Post_Kosteninformation"
    ANNUAL_TAX_CERTIFICATE = "Jahressteuerbescheinigung"
    TAX_REPORT = "Steuerreport"
    CASH_ACCOUNT_STATEMENT = "Kontoauszug"
    UNRECOGNIZED = "Unbekannt"

    @property
    def tag(self) -> str:
        return self.value


# Documents about the whole account rather than a single security
PORTFOLIO_TYPES = frozenset(
    {
        DocumentType.INTEREST_AND_DIVIDEND,
        DocumentType.DEPOT_STATEMENT,
        DocumentType.TAX_OPTIMIZATION,
        DocumentType.COST_INFORMATION_EX_POST,
        DocumentType.ANNUAL_TAX_CERTIFICATE,
        DocumentType.TAX_REPORT,
        DocumentType.CASH_ACCOUNT_STATEMENT,
    }
)


class OutcomeStatus(str, Enum):
    """Per-file outcome of a pipeline run."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class ClassifiedRecord:
    """Structured fields extracted from one document."""

    doc_type: DocumentType
    date: date | None
    isin: str | None
    asset: str


@dataclass
class ProcessingResult:
    """Result of processing a single file."""

    source_path: Path
    status: OutcomeStatus = OutcomeStatus.ERROR
    record: ClassifiedRecord | None = None
    output_path: Path | None = None
    text_length: int = 0
    error: RenameError | None = None

    @property
    def success(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS and self.error is None

    @property
    def renamed(self) -> bool:
        return (
            self.success
            and self.output_path is not None
            and self.output_path != self.source_path
        )


@dataclass
class BatchReport:
    """Outcomes of a batch run, in input order."""

    results: list[ProcessingResult] = field(default_factory=list)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(OutcomeStatus.SUCCESS)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.ERROR)

    def summary(self) -> str:
        return (
            f"{len(self.results)} files: {self.succeeded} success, "
            f"{self.skipped} skipped, {self.failed} errors"
        )
