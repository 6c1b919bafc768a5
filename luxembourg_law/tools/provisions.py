"""get_provision tool."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from luxembourg_law.config.settings import settings
from luxembourg_law.models.entities import LegalDocument, LegalProvision
from luxembourg_law.tools.metadata import tool_response
from luxembourg_law.tools.statutes import find_provision, require_text, resolve_document

TRUNCATION_HINT = "Result truncated. Use section or provision_ref to retrieve specific provisions."


def provision_to_dict(provision: LegalProvision, document: LegalDocument) -> dict[str, Any]:
    return {
        "document_id": document.id,
        "document_title": document.title,
        "document_status": document.status,
        "provision_ref": provision.provision_ref,
        "chapter": provision.chapter,
        "section": provision.section,
        "title": provision.title,
        "content": provision.content,
    }


def get_provision(
    db: Session,
    document_id: str,
    section: Optional[str] = None,
    provision_ref: Optional[str] = None,
) -> dict[str, Any]:
    """One provision by ref/section, or every provision of the document (capped)."""
    document_id = require_text(document_id, "document_id")

    doc = resolve_document(db, document_id)
    if doc is None:
        return tool_response(
            db,
            None,
            warnings=[f'Document "{document_id}" not found in database'],
        )

    ref = (provision_ref or section or "").strip()
    if ref:
        provision = find_provision(db, doc.id, ref)
        return tool_response(db, provision_to_dict(provision, doc) if provision else None)

    cap = settings.max_provisions_per_response
    total = db.scalar(
        select(func.count()).select_from(LegalProvision).where(LegalProvision.document_id == doc.id)
    ) or 0
    provisions = db.scalars(
        select(LegalProvision)
        .where(LegalProvision.document_id == doc.id)
        .order_by(LegalProvision.id)
        .limit(cap)
    ).all()
    results = [provision_to_dict(p, doc) for p in provisions]

    if total > cap:
        return tool_response(
            db,
            results,
            truncated=True,
            total_provisions=total,
            returned_provisions=len(results),
            hint=TRUNCATION_HINT,
        )
    return tool_response(db, results)
