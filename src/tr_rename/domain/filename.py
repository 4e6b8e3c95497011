"""Canonical filename construction."""

import re
import unicodedata

from .errors import MissingRequiredField, UnrecognizedDocument
from .models import ClassifiedRecord, DocumentType

MAX_ASSET_LENGTH = 50
EXTENSION = ".pdf"
EMPTY_ASSET = "Guthaben"

# Reserved on common filesystems, plus separators we do not want in names
_UNSAFE = re.compile(r'[<>:"/\\|?*()\[\].,\s]+')
_UNDERSCORES = re.compile(r"_+")

RENAMED_PATTERN = re.compile(
    r"^\d{4}_\d{2}_\d{2}_[^\W\d_]\w*?(?:_[A-Z]{2}[A-Z0-9]{9}\d)?_.+\.pdf$",
    re.IGNORECASE,
)


def _strip_invisible(text: str) -> str:
    """Drop control and format (bidi, zero-width) characters."""
    return "".join(c for c in text if unicodedata.category(c) not in ("Cc", "Cf"))


def sanitize_segment(text: str) -> str:
    """Make a TYPE or ASSET segment safe for a filename.

    Invisible characters are removed outright; reserved characters,
    whitespace and punctuation become single underscores.
    """
    text = _strip_invisible(unicodedata.normalize("NFC", text))
    text = _UNSAFE.sub("_", text)
    text = _UNDERSCORES.sub("_", text)
    return text.strip("_")


def truncate_segment(text: str, max_length: int) -> str:
    """Cut to max_length characters, never leaving a trailing underscore."""
    if len(text) > max_length:
        text = text[:max_length]
    return text.rstrip("_")


def build_filename(record: ClassifiedRecord, max_asset_length: int = MAX_ASSET_LENGTH) -> str:
    """Build yyyy_mm_dd_TYPE[_ISIN]_ASSET.pdf from a classified record.

    Raises UnrecognizedDocument or MissingRequiredField instead of
    producing a name with blank fields.
    """
    if record.doc_type == DocumentType.UNRECOGNIZED:
        raise UnrecognizedDocument("Document type not recognized")
    if record.date is None:
        raise MissingRequiredField("No transaction date found")

    date_part = record.date.strftime("%Y_%m_%d")
    type_part = sanitize_segment(record.doc_type.tag)
    isin_part = f"_{record.isin}" if record.isin else ""
    asset_part = truncate_segment(sanitize_segment(record.asset), max_asset_length)
    asset_part = asset_part or EMPTY_ASSET

    return f"{date_part}_{type_part}{isin_part}_{asset_part}{EXTENSION}"


def is_already_renamed(filename: str) -> bool:
    """Check if filename already follows the naming scheme."""
    return bool(RENAMED_PATTERN.match(filename))
