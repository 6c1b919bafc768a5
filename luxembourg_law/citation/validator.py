"""Citation validator: does a cited document/provision exist in the store?

Article numbers are matched loosely: "I.er", "1er", "1" and "art1" all
resolve to a provision stored as `art1`.
"""

from __future__ import annotations

import re
from typing import Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session

from luxembourg_law.citation.parser import parse_citation
from luxembourg_law.models.entities import LegalDocument, LegalProvision
from luxembourg_law.models.schemas import ParsedCitation, ValidationResult
from luxembourg_law.repository.db import like_escape


ROMAN_VALUES = {"I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000}
ROMAN_NUMERAL = re.compile(r"^[IVXLCDM]+$")


def roman_to_number(value: str) -> Optional[int]:
    """Subtractive Roman numeral parse; None when `value` is not one."""
    normalized = value.upper()
    if not ROMAN_NUMERAL.match(normalized):
        return None

    total = 0
    for i, letter in enumerate(normalized):
        current = ROMAN_VALUES[letter]
        following = ROMAN_VALUES[normalized[i + 1]] if i + 1 < len(normalized) else 0
        total += -current if current < following else current
    return total


def provision_candidates(section: Optional[str]) -> list[str]:
    """Keys a stored provision_ref/section may use for a cited article."""
    if not section:
        return []

    cleaned = re.sub(r"^art(?:icle)?\.?\s*", "", section.strip().lower())
    cleaned = re.sub(r"\s+", "", cleaned)
    if not cleaned:
        return []

    normalized = re.sub(r"[.,;:!?]+$", "", cleaned)
    candidates = [normalized, f"art{normalized}"]

    # "I.er", "II"
    roman_like = re.sub(r"er$", "", normalized.replace(".", ""), flags=re.IGNORECASE)
    number = roman_to_number(roman_like)
    if number is not None:
        candidates.extend([str(number), f"art{number}"])

    # "3(1)(a)"
    numeric = re.match(r"^(\d+)", normalized)
    if numeric:
        candidates.extend([numeric.group(1), f"art{numeric.group(1)}"])

    return list(dict.fromkeys(candidates))


def _year_filter(year: int):
    return or_(
        LegalDocument.issued_date.like(f"{year}%"),
        LegalDocument.title.like(f"%{year}%"),
    )


def _provision_match(candidate: str):
    candidate = candidate.lower()
    return or_(
        func.lower(LegalProvision.provision_ref) == candidate,
        func.lower(LegalProvision.section) == candidate,
    )


def find_document(db: Session, parsed: ParsedCitation) -> Optional[LegalDocument]:
    """Title match, then year match, then year + provision join."""
    doc: Optional[LegalDocument] = None

    if parsed.title:
        lowered_title = func.lower(LegalDocument.title)
        doc = db.scalars(
            select(LegalDocument)
            .where(lowered_title.like(func.lower(f"%{like_escape(parsed.title)}%"), escape="\\"))
            .order_by(
                case((lowered_title == func.lower(parsed.title), 0), else_=1),
                func.length(LegalDocument.title),
            )
            .limit(1)
        ).first()

    if doc is None and parsed.year:
        doc = db.scalars(
            select(LegalDocument)
            .where(_year_filter(parsed.year))
            .order_by(func.length(LegalDocument.title))
            .limit(1)
        ).first()

    if doc is None and parsed.section and parsed.year:
        for candidate in provision_candidates(parsed.section):
            doc = db.scalars(
                select(LegalDocument)
                .join(LegalProvision, LegalProvision.document_id == LegalDocument.id)
                .where(_year_filter(parsed.year), _provision_match(candidate))
                .limit(1)
            ).first()
            if doc is not None:
                break

    return doc


def provision_exists(db: Session, document_id: str, section: str) -> bool:
    for candidate in provision_candidates(section):
        found = db.scalar(
            select(LegalProvision.id)
            .where(LegalProvision.document_id == document_id, _provision_match(candidate))
            .limit(1)
        )
        if found is not None:
            return True
    return False


def validate_citation(db: Session, citation: str) -> ValidationResult:
    parsed = parse_citation(citation)

    if not parsed.valid:
        return ValidationResult(
            citation=parsed,
            document_exists=False,
            provision_exists=False,
            warnings=[parsed.error or "Invalid citation format"],
        )

    doc = find_document(db, parsed)
    if doc is None:
        label = f"{parsed.title or 'unknown'} {parsed.year or ''}".strip()
        return ValidationResult(
            citation=parsed,
            document_exists=False,
            provision_exists=False,
            warnings=[f'Document "{label}" not found in database'],
        )

    warnings: list[str] = []
    if doc.status == "repealed":
        warnings.append("This statute has been repealed")

    found = False
    if parsed.section:
        found = provision_exists(db, doc.id, parsed.section)
        if not found:
            warnings.append(f"Article/section {parsed.section} not found in {doc.title}")

    return ValidationResult(
        citation=parsed,
        document_exists=True,
        provision_exists=found,
        document_title=doc.title,
        status=doc.status,
        warnings=warnings,
    )
