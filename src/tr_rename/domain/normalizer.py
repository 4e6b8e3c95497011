"""Text cleanup applied to extracted PDF text before any matching."""

import re
import unicodedata

_LINE_BREAKS = re.compile(
    r"\r\n|[\r\f\v\x85\N{LINE SEPARATOR}\N{PARAGRAPH SEPARATOR}]"
)
_SPACES = re.compile(
    r"[\t\xa0\N{EN QUAD}-\N{HAIR SPACE}\N{NARROW NO-BREAK SPACE}"
    r"\N{MEDIUM MATHEMATICAL SPACE}\N{IDEOGRAPHIC SPACE}]"
)
_TRAILING_WS = re.compile(r"[ ]+$", re.MULTILINE)


def _keep(char: str) -> bool:
    if char == "\n":
        return True
    # Cc: control chars, Cf: bidi overrides, isolates, zero-width, BOM
    return unicodedata.category(char) not in ("Cc", "Cf")


def normalize_text(raw: str | None) -> str:
    """Normalize raw extracted text.

    Composes characters (NFC) so German keywords match regardless of how
    the PDF encoded umlauts, unifies line breaks and spaces, and drops
    control and directional-formatting characters. Never raises.
    """
    if not raw:
        return ""

    text = unicodedata.normalize("NFC", raw)
    text = _LINE_BREAKS.sub("\n", text)
    text = _SPACES.sub(" ", text)
    text = "".join(c for c in text if _keep(c))
    return _TRAILING_WS.sub("", text)
