"""Statute lookups shared by the tools."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from luxembourg_law.citation.validator import provision_candidates
from luxembourg_law.models.entities import LegalDocument, LegalProvision
from luxembourg_law.repository.db import like_escape


def require_text(value: object, name: str) -> str:
    """Non-empty, stripped string argument or ValueError."""
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValueError(f"{name} is required")
    return text


def resolve_document(db: Session, document_id: str) -> Optional[LegalDocument]:
    """Exact id first, then the shortest title containing `document_id`."""
    document_id = document_id.strip()
    if not document_id:
        return None

    doc = db.get(LegalDocument, document_id)
    if doc is not None:
        return doc

    pattern = f"%{like_escape(document_id.lower())}%"
    return db.scalars(
        select(LegalDocument)
        .where(func.lower(LegalDocument.title).like(pattern, escape="\\"))
        .order_by(func.length(LegalDocument.title), LegalDocument.id)
        .limit(1)
    ).first()


def find_provision(db: Session, document_id: str, ref: str) -> Optional[LegalProvision]:
    """Exact provision_ref/section match, then the loose article-number forms."""
    provision = db.scalars(
        select(LegalProvision)
        .where(
            LegalProvision.document_id == document_id,
            or_(LegalProvision.provision_ref == ref, LegalProvision.section == ref),
        )
        .order_by(LegalProvision.id)
        .limit(1)
    ).first()
    if provision is not None:
        return provision

    for candidate in provision_candidates(ref):
        provision = db.scalars(
            select(LegalProvision)
            .where(
                LegalProvision.document_id == document_id,
                or_(
                    func.lower(LegalProvision.provision_ref) == candidate,
                    func.lower(LegalProvision.section) == candidate,
                ),
            )
            .order_by(LegalProvision.id)
            .limit(1)
        ).first()
        if provision is not None:
            return provision
    return None
