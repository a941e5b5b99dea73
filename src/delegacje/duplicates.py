"""Multi-strategy duplicate detection for receipts and invoices.

Candidates are checked against four strategies in order; the first one that
fires decides the match. Missing invoice number, amount or date only removes
the strategies that need them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from hashlib import sha256
from typing import Callable, Iterable, List, Optional

from delegacje.core import ONE_DAY, as_instant, calendar_date, money
from delegacje.models import (
    DocumentFingerprint,
    DuplicateCheckResult,
    DuplicateConfidence,
    DuplicateMatch,
    ExistingDocument,
    SuggestedAction,
)

logger = logging.getLogger(__name__)

FINGERPRINT_DELIMITER = "|"
AMOUNT_TOLERANCE = Decimal("0.01")


def _normalize_invoice(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def generate_document_fingerprint(doc: DocumentFingerprint) -> str:
    """SHA-256 over normalized invoice number, amount and ISO date."""
    normalized = FINGERPRINT_DELIMITER.join(
        [
            _normalize_invoice(doc.invoice_number),
            f"{money(doc.amount if doc.amount is not None else 0):f}",
            calendar_date(doc.date).isoformat() if doc.date else "",
        ]
    )
    return sha256(normalized.encode("utf-8")).hexdigest()


def fingerprint_or_none(doc: DocumentFingerprint) -> Optional[str]:
    if not _normalize_invoice(doc.invoice_number) or doc.amount is None or doc.date is None:
        return None
    return generate_document_fingerprint(doc)


def amounts_match(first: Decimal, second: Decimal) -> bool:
    return abs(first - second) < AMOUNT_TOLERANCE


def same_calendar_date(first: date, second: date) -> bool:
    return calendar_date(first) == calendar_date(second)


def dates_within_days(first: date, second: date, days: int) -> bool:
    return abs(as_instant(first) - as_instant(second)) <= days * ONE_DAY


def confidence_for(similarity: float) -> DuplicateConfidence:
    if similarity >= 0.99:
        return "exact"
    if similarity >= 0.85:
        return "high"
    if similarity >= 0.70:
        return "medium"
    return "low"


def action_for(confidence: Optional[DuplicateConfidence]) -> SuggestedAction:
    if confidence in ("exact", "high"):
        return "merge"
    if confidence == "medium":
        return "review"
    return "add_new"


@dataclass(frozen=True)
class _Candidate:
    doc: DocumentFingerprint
    fingerprint: Optional[str]


@dataclass(frozen=True)
class MatchStrategy:
    name: str
    similarity: float
    confidence: DuplicateConfidence
    reason: str
    applies: Callable[[_Candidate, ExistingDocument], bool]


def _exact_fingerprint(new: _Candidate, existing: ExistingDocument) -> bool:
    return bool(new.fingerprint and existing.fingerprint and new.fingerprint == existing.fingerprint)


def _has_amount_and_date(new: _Candidate, existing: ExistingDocument) -> bool:
    return (
        new.doc.amount is not None
        and new.doc.date is not None
        and existing.detected_amount is not None
        and existing.detected_date is not None
        and amounts_match(new.doc.amount, existing.detected_amount)
    )


def _amount_exact_date(new: _Candidate, existing: ExistingDocument) -> bool:
    return _has_amount_and_date(new, existing) and same_calendar_date(new.doc.date, existing.detected_date)


def _amount_fuzzy_date(new: _Candidate, existing: ExistingDocument) -> bool:
    return _has_amount_and_date(new, existing) and dates_within_days(new.doc.date, existing.detected_date, 1)


def _invoice_number(new: _Candidate, existing: ExistingDocument) -> bool:
    mine = _normalize_invoice(new.doc.invoice_number)
    return bool(mine) and mine == _normalize_invoice(existing.invoice_number)


STRATEGIES = (
    MatchStrategy("exact_fingerprint", 1.0, "exact", "Identical document (invoice + amount + date)", _exact_fingerprint),
    MatchStrategy("amount_exact_date", 0.92, "high", "Same amount and date", _amount_exact_date),
    MatchStrategy("amount_fuzzy_date", 0.78, "medium", "Same amount, date within 1 day", _amount_fuzzy_date),
    MatchStrategy("invoice_number", 0.6, "low", "Same invoice number", _invoice_number),
)


class DocumentDuplicateDetector:
    def __init__(self, strategies: Iterable[MatchStrategy] = STRATEGIES) -> None:
        self.strategies = tuple(strategies)

    def detect(self, doc: DocumentFingerprint, existing_docs: Iterable[ExistingDocument]) -> DuplicateCheckResult:
        candidate = _Candidate(doc=doc, fingerprint=fingerprint_or_none(doc))
        matches: List[DuplicateMatch] = []

        for existing in existing_docs:
            match = self._match(candidate, existing)
            if match is not None:
                matches.append(match)

        matches.sort(key=lambda m: m.similarity, reverse=True)

        if not matches:
            return DuplicateCheckResult(
                is_duplicate=False,
                confidence=None,
                matched_documents=(),
                suggested_action="add_new",
            )

        confidence = confidence_for(matches[0].similarity)
        logger.debug("duplicates: %s candidate(s), best=%s", len(matches), confidence)
        return DuplicateCheckResult(
            is_duplicate=True,
            confidence=confidence,
            matched_documents=tuple(matches),
            suggested_action=action_for(confidence),
        )

    def _match(self, candidate: _Candidate, existing: ExistingDocument) -> Optional[DuplicateMatch]:
        for strategy in self.strategies:
            if strategy.applies(candidate, existing):
                return DuplicateMatch(
                    id=existing.id,
                    original_filename=existing.original_filename,
                    similarity=strategy.similarity,
                    confidence=strategy.confidence,
                    match_reason=strategy.reason,
                    invoice_number=existing.invoice_number,
                    amount=existing.detected_amount,
                    date=existing.detected_date,
                    vendor_name=existing.vendor_name,
                )
        return None


def detect_duplicate_document(
    doc: DocumentFingerprint, existing_docs: Iterable[ExistingDocument]
) -> DuplicateCheckResult:
    return DocumentDuplicateDetector().detect(doc, existing_docs)


__all__ = [
    "STRATEGIES",
    "DocumentDuplicateDetector",
    "MatchStrategy",
    "detect_duplicate_document",
    "fingerprint_or_none",
    "generate_document_fingerprint",
]
