"""check_currency tool."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.orm import Session

from luxembourg_law.tools.metadata import tool_response
from luxembourg_law.tools.statutes import find_provision, require_text, resolve_document

STATUS_LIMITATION = (
    "In-force status is not extracted from upstream Legilux metadata; documents are marked "
    "in_force by default. Verify currency on legilux.public.lu for repealed or amended legislation."
)


def check_currency(
    db: Session,
    document_id: str,
    provision_ref: Optional[str] = None,
) -> dict[str, Any]:
    document_id = require_text(document_id, "document_id")

    doc = resolve_document(db, document_id)
    if doc is None:
        return tool_response(
            db,
            {
                "document_id": document_id,
                "status": "not_found",
                "is_current": False,
                "warnings": [f'Document "{document_id}" not found in database'],
            },
        )

    warnings: list[str] = []
    if not doc.status_verified:
        warnings.append(STATUS_LIMITATION)
    if doc.status == "repealed":
        warnings.append("This statute has been repealed")
    elif doc.status == "amended":
        warnings.append("This statute has been amended; check the consolidated version")
    elif doc.status == "not_yet_in_force":
        warnings.append("This statute is not yet in force")

    results: dict[str, Any] = {
        "document_id": doc.id,
        "title": doc.title,
        "status": doc.status,
        "status_verified": doc.status_verified,
        "type": doc.type,
        "issued_date": doc.issued_date,
        "in_force_date": doc.in_force_date,
        "is_current": doc.status == "in_force",
    }

    ref = (provision_ref or "").strip()
    if ref:
        provision = find_provision(db, doc.id, ref)
        results["provision_ref"] = ref
        results["provision_exists"] = provision is not None
        if provision is None:
            warnings.append(f"Provision {ref} not found in {doc.title}")

    results["warnings"] = warnings
    return tool_response(db, results)
