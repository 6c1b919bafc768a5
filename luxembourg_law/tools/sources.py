"""list_sources and about tools."""

from __future__ import annotations

import hashlib
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from luxembourg_law.config.settings import settings
from luxembourg_law.models.entities import EUDocument, EUReference, LegalDocument, LegalProvision
from luxembourg_law.tools.metadata import read_build_metadata, tool_response
from luxembourg_law.utils.logger import get_logger

logger = get_logger(__name__)

COUNTED_TABLES = {
    "legal_documents": LegalDocument,
    "legal_provisions": LegalProvision,
    "eu_documents": EUDocument,
    "eu_references": EUReference,
}


def table_counts(db: Session) -> dict[str, int]:
    counts = {}
    for name, model in COUNTED_TABLES.items():
        try:
            counts[name] = db.scalar(select(func.count()).select_from(model)) or 0
        except SQLAlchemyError as e:
            logger.warning(f"Could not count {name}: {e}")
            counts[name] = 0
    return counts


def dataset_fingerprint(build: dict[str, str], counts: dict[str, int]) -> str:
    """Short hash identifying one database build"""
    material = "|".join(
        [build.get("built_at", ""), build.get("schema_version", "")]
        + [f"{name}={counts[name]}" for name in sorted(counts)]
    )
    return hashlib.sha256(material.encode("utf-8")).hexdigest()[:12]


def list_sources(db: Session) -> dict[str, Any]:
    build = read_build_metadata(db)
    built_at = build.get("built_at", "unknown")

    return tool_response(
        db,
        {
            "jurisdiction": "LU",
            "schema_version": build.get("schema_version", "2"),
            "sources": [
                {
                    "name": "Legilux",
                    "authority": "Service central de législation",
                    "official_portal": "https://legilux.public.lu",
                    "retrieval_method": "SPARQL + Akoma Ntoso XML",
                    "update_frequency": "weekly",
                    "last_ingested": built_at,
                    "license": {
                        "type": "Open data",
                        "url": "https://data.public.lu/en/terms/",
                        "summary": "Luxembourg government open data, free to use",
                    },
                    "coverage": {
                        "scope": "Luxembourg laws (LOI) and grand-ducal regulations (RGD)",
                        "limitations": (
                            "In-force status is not extracted from upstream metadata; all documents "
                            "are marked in_force regardless of actual legislative status. "
                            "EU cross-references use internal identifiers (directive:YYYY/NNN), "
                            "not CELEX numbers. Not all Luxembourg statutes are included."
                        ),
                    },
                    "languages": ["fr"],
                }
            ],
            "data_freshness": {
                "automated_checks": settings.enable_update_checks,
                "check_frequency": "weekly",
                "last_verified": built_at,
            },
        },
    )


def about(db: Session) -> dict[str, Any]:
    build = read_build_metadata(db)
    counts = table_counts(db)

    return tool_response(
        db,
        {
            "server": {
                "name": "Luxembourg Law Service",
                "package": settings.service_name,
                "version": settings.service_version,
            },
            "dataset": {
                "fingerprint": dataset_fingerprint(build, counts),
                "built": build.get("built_at", "unknown"),
                "tier": build.get("tier", "unknown"),
                "jurisdiction": "Luxembourg (LU)",
                "content_basis": (
                    "Luxembourg statute text from Legilux open data (Akoma Ntoso XML), "
                    "with EU directive and regulation cross-references extracted from it."
                ),
                "counts": counts,
            },
            "provenance": {
                "sources": [
                    "Legilux (statutes, grand-ducal regulations)",
                    "EUR-Lex identifiers (EU directive and regulation references)",
                ],
                "license": "Apache-2.0 (server code). Legal source texts under Open data.",
                "authenticity_note": (
                    "Statute text is derived from Legilux open data. "
                    "Verify against official publications when legal certainty is required."
                ),
            },
            "security": {
                "access_model": "read-only",
                "network_access": False,
                "filesystem_access": False,
                "arbitrary_code": False,
            },
        },
    )
