"""Field extraction: transaction date, ISIN, IBAN and asset name."""

import logging
import re
from datetime import date

from .models import DocumentType

logger = logging.getLogger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 2030

# Day/month used when a document only states its reporting year
YEAR_ONLY_MONTH_DAY = (12, 31)

_DATE_VALUE = r"(\d{2}\.\d{2}\.\d{4}|\d{4}-\d{2}-\d{2})"

_GENERIC_DATE = re.compile(rf"\b(?:DATUM|DATE)\s*:?\s*{_DATE_VALUE}", re.IGNORECASE)

_TRADE_DATE = re.compile(
    rf"\b(?:Ausführungsdatum|Ausführung|Execution(?:\s+date)?)\b\s*:?\s*(?:am\s+)?{_DATE_VALUE}",
    re.IGNORECASE,
)
_STATEMENT_DATE = re.compile(
    rf"\b(?:per|zum|Stichtag)\b\s*:?\s*{_DATE_VALUE}", re.IGNORECASE
)
_PERIOD_END = re.compile(
    rf"{_DATE_VALUE}\s*(?:-|–|bis)\s*{_DATE_VALUE}", re.IGNORECASE
)

_LABELLED_YEAR = re.compile(
    r"\b(?:Steuerjahr|Berichtsjahr|Geschäftsjahr|Kalenderjahr|Jahr|Year)\b"
    r"\s*:?\s*(\d{4})\b",
    re.IGNORECASE,
)
_BARE_YEAR = re.compile(r"(?<![\w.,-])(\d{4})(?![\w,-]|\.\d)")

_TRADE_TYPES = frozenset(
    {
        DocumentType.PURCHASE,
        DocumentType.SAVINGS_PLAN,
        DocumentType.SAVEBACK,
        DocumentType.SALE,
    }
)

YEAR_FALLBACK_TYPES = frozenset(
    {
        DocumentType.ANNUAL_TAX_CERTIFICATE,
        DocumentType.TAX_REPORT,
        DocumentType.COST_INFORMATION_EX_POST,
        DocumentType.DEPOT_STATEMENT,
        DocumentType.CASH_ACCOUNT_STATEMENT,
    }
)

ISIN_PATTERN = re.compile(r"\b([A-Z]{2}[A-Z0-9]{9}[0-9])\b")
_ISIN_SHAPE = re.compile(r"[A-Z]{2}[A-Z0-9]{9}[0-9]")
_VAT_LINE = re.compile(r"Umsatzsteuer|\bVAT\b")

# Zero-width match: every IBAN-shaped start is a candidate, also inside another one
_IBAN_CANDIDATE = re.compile(r"\b(?=([A-Z]{2}\d{2}(?: ?[A-Z0-9]){11,30}))")
_IBAN_SHAPE = re.compile(r"[A-Z]{2}\d{2}[A-Z0-9]{11,30}")
IBAN_LENGTHS = {
    "AT": 20,
    "BE": 16,
    "CH": 21,
    "DE": 22,
    "ES": 24,
    "FR": 27,
    "GB": 22,
    "IE": 22,
    "IT": 27,
    "LT": 20,
    "LU": 20,
    "NL": 18,
}

_POSITION_NEXT_LINE = re.compile(r"POSITION[^\n]*\n[ ]*([^\n]+)")
_TRANSFER_ASSET = re.compile(r"Depottransfer eingegangen[ ]+(.+?)[ ]*(?:\n|$)", re.IGNORECASE)
_MONEY = re.compile(r"\d[\d.,]*\s*(?:EUR|USD|€)", re.IGNORECASE)
_CASH_INTEREST = re.compile(r"cash\s+zinsen", re.IGNORECASE)
_MONEY_MARKET = re.compile(r"geldmarkt\s+dividende", re.IGNORECASE)

CASH_INTEREST_LABEL = "Guthaben Zinsen"
MONEY_MARKET_LABEL = "Geldmarkt Dividende"
DEFAULT_ASSET = "Guthaben"

_SENTINEL_ASSETS = {
    DocumentType.DEPOT_STATEMENT: "Depot",
    DocumentType.COST_INFORMATION_EX_POST: "Depot",
    DocumentType.TAX_OPTIMIZATION: "Steuer",
    DocumentType.ANNUAL_TAX_CERTIFICATE: "Steuer",
    DocumentType.TAX_REPORT: "Steuer",
    DocumentType.INTEREST_AND_DIVIDEND: f"{CASH_INTEREST_LABEL} und {MONEY_MARKET_LABEL}",
}
CASH_ACCOUNT_FALLBACK = "Konto"


# --- Dates ---


def parse_date(value: str, min_year: int = MIN_YEAR, max_year: int = MAX_YEAR) -> date | None:
    """Parse dd.mm.yyyy or yyyy-mm-dd, None if invalid or out of range."""
    try:
        if "." in value:
            day, month, year = (int(p) for p in value.split("."))
        else:
            year, month, day = (int(p) for p in value.split("-"))
        parsed = date(year, month, day)
    except ValueError:
        return None

    if not min_year <= parsed.year <= max_year:
        logger.debug(f"Date out of range: {value}")
        return None
    return parsed


def _candidates(text: str, doc_type: DocumentType) -> list[str]:
    """Date strings in order of preference for the document type."""
    values: list[str] = []
    if doc_type in _TRADE_TYPES:
        values += _TRADE_DATE.findall(text)
    if doc_type == DocumentType.DEPOT_STATEMENT:
        values += _STATEMENT_DATE.findall(text)
    if doc_type in YEAR_FALLBACK_TYPES:
        values += [end for _, end in _PERIOD_END.findall(text)]
    values += _GENERIC_DATE.findall(text)
    return values


def _extract_year(text: str, min_year: int, max_year: int) -> int | None:
    for match in _LABELLED_YEAR.finditer(text):
        year = int(match.group(1))
        if min_year <= year <= max_year:
            return year

    years = [int(y) for y in _BARE_YEAR.findall(text)]
    plausible = [y for y in years if min_year <= y <= max_year]
    return max(plausible) if plausible else None


def extract_date(
    text: str,
    doc_type: DocumentType,
    min_year: int = MIN_YEAR,
    max_year: int = MAX_YEAR,
) -> date | None:
    """Find the transaction date of a document.

    Tries labels specific to the document type first (execution date for
    trades, reference date for statements, period end for cash statements),
    then the generic "DATUM"/"DATE" label. Reports and statements that only
    name a year get YEAR_ONLY_MONTH_DAY of that year. Out-of-range dates
    are skipped, not clamped.
    """
    for value in _candidates(text, doc_type):
        parsed = parse_date(value, min_year, max_year)
        if parsed:
            return parsed

    if doc_type in YEAR_FALLBACK_TYPES:
        year = _extract_year(text, min_year, max_year)
        if year:
            month, day = YEAR_ONLY_MONTH_DAY
            logger.debug(f"Using year-only date for {doc_type.tag}: {year}")
            return date(year, month, day)

    return None


# --- ISIN ---


def is_valid_isin(code: str) -> bool:
    """Check ISIN shape and Luhn check digit."""
    if not code or not _ISIN_SHAPE.fullmatch(code):
        return False

    # Letters expand to two digits: A=10 ... Z=35
    digits = "".join(str(int(c, 36)) for c in code)
    total = 0
    for i, char in enumerate(reversed(digits)):
        n = int(char)
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def _find_isin(lines: list[str]) -> tuple[int, str] | None:
    for i, line in enumerate(lines):
        if _VAT_LINE.search(line):
            continue
        for candidate in ISIN_PATTERN.findall(line):
            if is_valid_isin(candidate):
                return i, candidate
    return None


def extract_isin(text: str) -> str | None:
    """First checksum-valid ISIN in text, ignoring VAT-ID lines."""
    found = _find_isin(text.splitlines())
    return found[1] if found else None


# --- IBAN ---


def is_valid_iban(code: str) -> bool:
    """ISO 13616 mod-97 check."""
    if not code or not _IBAN_SHAPE.fullmatch(code):
        return False
    rearranged = code[4:] + code[:4]
    return int("".join(str(int(c, 36)) for c in rearranged)) % 97 == 1


def extract_iban(text: str) -> str | None:
    """First valid IBAN in text, without spaces."""
    for match in _IBAN_CANDIDATE.finditer(text):
        compact = match.group(1).replace(" ", "")
        # The candidate may have swallowed a following token
        known = IBAN_LENGTHS.get(compact[:2])
        lengths = [known] if known else range(len(compact), 14, -1)
        for end in lengths:
            if len(compact) >= end and is_valid_iban(compact[:end]):
                return compact[:end]
    return None


# --- Asset ---


def _is_asset_line(line: str) -> bool:
    lower = line.lower()
    return not (
        len(line) <= 3
        or "ISIN" in line
        or ISIN_PATTERN.search(line)
        or line.isdigit()
        or "gesamt" in lower
        or "anzahl" in lower
        or "Stk." in line
        or _MONEY.search(line)
        or lower.startswith(("datum", "date"))
        or line.startswith("POSITION")
    )


def _asset_near_isin(lines: list[str], index: int, isin: str) -> str:
    after = [line.strip() for line in lines[index + 1 : index + 3]]
    before = [line.strip() for line in reversed(lines[max(index - 3, 0) : index])]

    # "ISIN: XX..." style lines are usually followed by the name,
    # a bare ISIN line usually sits below it
    if lines[index].strip() != isin:
        order = after + before
    else:
        order = before + after

    for candidate in order:
        if _is_asset_line(candidate):
            return candidate
    return isin


def extract_asset(text: str, doc_type: DocumentType, isin: str | None = None) -> str:
    """Find the security or account name for the filename.

    Portfolio-level documents get a fixed label and cash statements the
    account IBAN. Otherwise the name is looked up around the ISIN line, or
    below a POSITION header when there is no ISIN.
    """
    if doc_type in _SENTINEL_ASSETS:
        return _SENTINEL_ASSETS[doc_type]

    if doc_type == DocumentType.CASH_ACCOUNT_STATEMENT:
        return extract_iban(text) or CASH_ACCOUNT_FALLBACK

    if doc_type == DocumentType.DEPOT_TRANSFER:
        match = _TRANSFER_ASSET.search(text)
        if match:
            return match.group(1)

    lines = text.splitlines()
    if isin:
        for i, line in enumerate(lines):
            if isin in line and not _VAT_LINE.search(line):
                return _asset_near_isin(lines, i, isin)

    if doc_type == DocumentType.INTEREST_PAYOUT and _CASH_INTEREST.search(text):
        return CASH_INTEREST_LABEL
    if doc_type == DocumentType.DIVIDEND and _MONEY_MARKET.search(text):
        return MONEY_MARKET_LABEL

    match = _POSITION_NEXT_LINE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    return DEFAULT_ASSET
