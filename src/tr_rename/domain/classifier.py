"""Rule-based document type detection.

Broker documents share a lot of boilerplate, so a single keyword is not
enough to tell them apart. Each rule lists patterns that must all be present
and patterns that must not be present. Rules are checked in order and the
first match wins, so specific types sit above their general counterparts
(a savings plan execution is also a purchase) and combined summaries sit
above the single-topic documents they contain.
"""

import logging
import re
from dataclasses import dataclass

from .models import DocumentType

logger = logging.getLogger(__name__)

# Shared anchors
_PURCHASE = r"wertpapierabrechnung|securities\s+settlement|\bkauf\b|\bbuy\b"
_SETTLEMENT = r"wertpapierabrechnung|securities\s+settlement"
_SALE = r"\bverkauf\b|\bsell\b"
_SAVINGS_PLAN = r"sparplan|savings\s+plan"
_SAVINGS_PLAN_EXECUTION = r"sparplanausführung|savings\s+plan\s+execution"
_SAVEBACK = r"saveback"
_COST_INFO = r"kosteninformation|cost\s+information|kostenaufstellung"
_EX_POST = r"ex[\s-]?post"


@dataclass(frozen=True)
class ClassifierRule:
    """Required and forbidden patterns that identify one document type."""

    doc_type: DocumentType
    required: tuple[re.Pattern[str], ...]
    forbidden: tuple[re.Pattern[str], ...] = ()

    def matches(self, text: str) -> bool:
        return all(p.search(text) for p in self.required) and not any(
            p.search(text) for p in self.forbidden
        )


def _rule(
    doc_type: DocumentType,
    required: list[str],
    forbidden: list[str] | None = None,
) -> ClassifierRule:
    return ClassifierRule(
        doc_type=doc_type,
        required=tuple(re.compile(p, re.IGNORECASE) for p in required),
        forbidden=tuple(re.compile(p, re.IGNORECASE) for p in forbidden or []),
    )


RULES: tuple[ClassifierRule, ...] = (
    _rule(
        DocumentType.INTEREST_AND_DIVIDEND,
        [r"cash\s+zinsen", r"geldmarkt\s+dividende"],
    ),
    _rule(DocumentType.ANNUAL_TAX_CERTIFICATE, [r"jahressteuerbescheinigung"]),
    _rule(DocumentType.TAX_REPORT, [r"steuerreport|tax\s+report"]),
    _rule(DocumentType.COST_INFORMATION_EX_POST, [_COST_INFO, _EX_POST]),
    _rule(DocumentType.COST_INFORMATION, [_COST_INFO], [_EX_POST]),
    _rule(
        DocumentType.TAX_OPTIMIZATION,
        [r"steuerliche\s+optimierung|tax\s+optimi[sz]ation"],
    ),
    _rule(
        DocumentType.DEPOT_STATEMENT,
        [r"depotauszug|securities\s+account\s+statement"],
    ),
    _rule(
        DocumentType.CASH_ACCOUNT_STATEMENT,
        [r"kontoauszug|kontoübersicht|umsatzübersicht|account\s+statement"],
    ),
    _rule(DocumentType.DEPOT_TRANSFER, [r"depottransfer|depot\s+transfer"]),
    _rule(
        DocumentType.CORPORATE_ACTION,
        [r"kapitalmaßnahme|kapitalmassnahme|corporate\s+action"],
    ),
    _rule(DocumentType.SAVINGS_PLAN, [_SAVINGS_PLAN, _PURCHASE], [_SAVEBACK]),
    # Execution notices name no purchase anchor of their own
    _rule(DocumentType.SAVINGS_PLAN, [_SAVINGS_PLAN_EXECUTION], [_SAVEBACK]),
    _rule(DocumentType.SAVEBACK, [_SAVEBACK, _PURCHASE], [_SAVINGS_PLAN]),
    _rule(DocumentType.SALE, [_SALE, _SETTLEMENT]),
    _rule(DocumentType.PURCHASE, [_PURCHASE], [_SALE]),
    _rule(DocumentType.DIVIDEND, [r"dividende|\bdividend\b|ausschüttung"]),
    _rule(DocumentType.INTEREST_PAYMENT, [r"zinszahlung|\bkupon|\bcoupon"]),
    _rule(DocumentType.INTEREST_PAYOUT, [r"\bzinsen\b|interest\s+payout"]),
)


def classify(text: str, rules: tuple[ClassifierRule, ...] = RULES) -> DocumentType:
    """Return the type of the first rule matching text, else UNRECOGNIZED."""
    if not text.strip():
        return DocumentType.UNRECOGNIZED

    for rule in rules:
        if rule.matches(text):
            logger.debug(f"Classified as {rule.doc_type.tag}")
            return rule.doc_type

    return DocumentType.UNRECOGNIZED
