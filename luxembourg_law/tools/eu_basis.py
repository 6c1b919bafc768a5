"""EU cross-reference tools.

- get_eu_basis: EU instruments a Luxembourg statute references
- get_luxembourg_implementations: statutes referencing one EU instrument
- get_provision_eu_basis: provision-level references with a document-level fallback
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from luxembourg_law.models.entities import EUDocument, EUReference, LegalDocument
from luxembourg_law.tools.metadata import tool_response
from luxembourg_law.tools.statutes import find_provision, require_text, resolve_document

DOCUMENT_LEVEL_CONTEXT = "Document-level EU linkage (no provision-specific mapping available)."


def _resolve_or_raise(db: Session, document_id: str) -> LegalDocument:
    doc = resolve_document(db, document_id)
    if doc is None:
        raise ValueError(f'Document "{document_id}" not found in database')
    return doc


def get_eu_basis(
    db: Session,
    document_id: str,
    include_articles: bool = False,
    reference_types: Optional[Sequence[str]] = None,
) -> dict[str, Any]:
    document_id = require_text(document_id, "document_id")
    doc = _resolve_or_raise(db, document_id)

    stmt = (
        select(EUDocument, EUReference)
        .join(EUReference, EUReference.eu_document_id == EUDocument.id)
        .where(EUReference.document_id == doc.id)
        .order_by(EUReference.is_primary_implementation.desc(), EUDocument.year.desc(), EUDocument.id)
    )
    if reference_types:
        stmt = stmt.where(EUReference.reference_type.in_(list(reference_types)))

    grouped: dict[str, dict[str, Any]] = {}
    for eu_doc, ref in db.execute(stmt).all():
        item = grouped.get(eu_doc.id)
        if item is None:
            item = {
                "id": eu_doc.id,
                "type": eu_doc.type,
                "year": eu_doc.year,
                "number": eu_doc.number,
                "community": eu_doc.community,
                "celex_number": eu_doc.celex_number,
                "title": eu_doc.title,
                "short_name": eu_doc.short_name,
                "reference_type": ref.reference_type,
                "is_primary_implementation": ref.is_primary_implementation,
                "reference_count": 0,
            }
            if include_articles:
                item["articles"] = []
            grouped[eu_doc.id] = item

        item["reference_count"] += 1
        item["is_primary_implementation"] = item["is_primary_implementation"] or ref.is_primary_implementation
        if include_articles and ref.eu_article and ref.eu_article not in item["articles"]:
            item["articles"].append(ref.eu_article)

    eu_documents = list(grouped.values())
    return tool_response(
        db,
        {
            "document_id": doc.id,
            "document_title": doc.title,
            "eu_documents": eu_documents,
            "statistics": {
                "total_eu_references": len(eu_documents),
                "directive_count": sum(1 for d in eu_documents if d["type"] == "directive"),
                "regulation_count": sum(1 for d in eu_documents if d["type"] == "regulation"),
            },
        },
    )


def get_luxembourg_implementations(
    db: Session,
    eu_document_id: str,
    primary_only: bool = False,
    in_force_only: bool = False,
) -> dict[str, Any]:
    eu_document_id = require_text(eu_document_id, "eu_document_id")

    eu_doc = db.get(EUDocument, eu_document_id)
    if eu_doc is None:
        return tool_response(
            db,
            {
                "eu_document": None,
                "implementations": [],
                "statistics": {"total_implementations": 0, "primary_implementations": 0, "in_force": 0},
            },
            warnings=[f'EU document "{eu_document_id}" not found in database'],
        )

    stmt = (
        select(LegalDocument, EUReference)
        .join(EUReference, EUReference.document_id == LegalDocument.id)
        .where(EUReference.eu_document_id == eu_doc.id)
        .order_by(EUReference.is_primary_implementation.desc(), LegalDocument.issued_date.desc())
    )
    if primary_only:
        stmt = stmt.where(EUReference.is_primary_implementation.is_(True))
    if in_force_only:
        stmt = stmt.where(LegalDocument.status == "in_force")

    grouped: dict[str, dict[str, Any]] = {}
    for doc, ref in db.execute(stmt).all():
        item = grouped.get(doc.id)
        if item is None:
            item = {
                "document_id": doc.id,
                "title": doc.title,
                "short_name": doc.short_name,
                "status": doc.status,
                "issued_date": doc.issued_date,
                "reference_type": ref.reference_type,
                "is_primary_implementation": ref.is_primary_implementation,
                "implementation_status": ref.implementation_status,
                "articles_referenced": [],
            }
            grouped[doc.id] = item

        item["is_primary_implementation"] = item["is_primary_implementation"] or ref.is_primary_implementation
        if ref.eu_article and ref.eu_article not in item["articles_referenced"]:
            item["articles_referenced"].append(ref.eu_article)

    implementations = list(grouped.values())
    return tool_response(
        db,
        {
            "eu_document": {
                "id": eu_doc.id,
                "type": eu_doc.type,
                "year": eu_doc.year,
                "number": eu_doc.number,
                "community": eu_doc.community,
                "celex_number": eu_doc.celex_number,
                "title": eu_doc.title,
                "short_name": eu_doc.short_name,
            },
            "implementations": implementations,
            "statistics": {
                "total_implementations": len(implementations),
                "primary_implementations": sum(
                    1 for i in implementations if i["is_primary_implementation"]
                ),
                "in_force": sum(1 for i in implementations if i["status"] == "in_force"),
            },
        },
    )


def _reference_to_dict(eu_doc: EUDocument, ref: EUReference, document_level: bool) -> dict[str, Any]:
    item: dict[str, Any] = {
        "id": eu_doc.id,
        "type": eu_doc.type,
        "reference_type": ref.reference_type,
        "full_citation": ref.full_citation or eu_doc.id,
    }
    if eu_doc.title:
        item["title"] = eu_doc.title
    if eu_doc.short_name:
        item["short_name"] = eu_doc.short_name
    if ref.eu_article:
        item["article"] = ref.eu_article
    if ref.reference_context:
        item["context"] = ref.reference_context
    elif document_level:
        item["context"] = DOCUMENT_LEVEL_CONTEXT
    return item


def get_provision_eu_basis(db: Session, document_id: str, provision_ref: str) -> dict[str, Any]:
    document_id = require_text(document_id, "document_id")
    provision_ref = require_text(provision_ref, "provision_ref")

    doc = _resolve_or_raise(db, document_id)
    provision = find_provision(db, doc.id, provision_ref)
    if provision is None:
        raise ValueError(f"Provision {provision_ref} not found in {document_id}")

    rows = db.execute(
        select(EUDocument, EUReference)
        .join(EUReference, EUReference.eu_document_id == EUDocument.id)
        .where(EUReference.provision_id == provision.id)
        .order_by(EUDocument.year.desc(), EUDocument.id)
    ).all()

    document_level = not rows
    if document_level:
        rows = db.execute(
            select(EUDocument, EUReference)
            .join(EUReference, EUReference.eu_document_id == EUDocument.id)
            .where(EUReference.document_id == doc.id)
            .order_by(
                EUReference.is_primary_implementation.desc(),
                EUDocument.year.desc(),
                EUDocument.id,
            )
        ).all()

    return tool_response(
        db,
        {
            "document_id": doc.id,
            "provision_ref": provision_ref,
            "provision_content": provision.content,
            "eu_references": [
                _reference_to_dict(eu_doc, ref, document_level) for eu_doc, ref in rows
            ],
        },
    )
