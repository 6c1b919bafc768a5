"""Build the relational + full-text store from seed JSON files.

Two atomic batches: documents/provisions/definitions first, then EU
documents and cross-references extracted from document titles and
descriptions. A failure inside a batch rolls the whole batch back.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from luxembourg_law.config.settings import settings
from luxembourg_law.models.entities import (
    Base,
    BuildMetadata,
    Definition,
    EUDocument,
    EUReference,
    LegalDocument,
    LegalProvision,
)
from luxembourg_law.models.schemas import SeedDocument
from luxembourg_law.pipeline.dedup import dedupe_provisions
from luxembourg_law.pipeline.eu_references import (
    EU_DOC_SHORT_NAMES,
    eu_document_title,
    extract_eu_references,
    infer_reference_type,
)
from luxembourg_law.repository.db import insert_ignore
from luxembourg_law.repository.fts_queries import drop_fts, install_fts
from luxembourg_law.utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = "2"
BUILDER = "luxembourg_law.pipeline.build_db"
EXCLUDED_SEED_FILES = frozenset({"eu-references.json", "eurlex-documents.json"})


class BuildStats(BaseModel):
    documents: int = 0
    provisions: int = 0
    definitions: int = 0
    eu_documents: int = 0
    eu_references: int = 0
    duplicate_refs: int = 0
    conflicting_duplicates: int = 0


def list_seed_files(seed_dir: Path) -> list[Path]:
    if not seed_dir.is_dir():
        return []
    return sorted(
        path
        for path in seed_dir.iterdir()
        if path.is_file()
        and path.suffix == ".json"
        and not path.name.startswith((".", "_"))
        and path.name not in EXCLUDED_SEED_FILES
    )


def load_seed(path: Path) -> SeedDocument:
    return SeedDocument.model_validate(json.loads(path.read_text(encoding="utf-8")))


def reset_schema(engine: Engine) -> None:
    with engine.begin() as conn:
        drop_fts(conn)
        Base.metadata.drop_all(conn)
        Base.metadata.create_all(conn)
        install_fts(conn)


def load_documents(session: Session, seeds: list[SeedDocument], stats: BuildStats) -> None:
    """Batch 1: documents, deduplicated provisions, definitions."""
    for seed in seeds:
        session.add(
            LegalDocument(
                id=seed.id,
                type=seed.type,
                title=seed.title,
                title_en=seed.title_en,
                short_name=seed.short_name,
                status=seed.status,
                status_verified=seed.status_verified,
                issued_date=seed.issued_date,
                in_force_date=seed.in_force_date,
                url=seed.url,
                description=seed.description,
            )
        )
        stats.documents += 1

        deduped, dedup_stats = dedupe_provisions(seed.provisions)
        stats.duplicate_refs += dedup_stats.duplicate_refs
        stats.conflicting_duplicates += dedup_stats.conflicting_duplicates
        if dedup_stats.duplicate_refs:
            logger.warning(
                f"{dedup_stats.duplicate_refs} duplicate refs in {seed.id} "
                f"({dedup_stats.conflicting_duplicates} with different text)"
            )

        for provision in deduped:
            session.add(
                LegalProvision(
                    document_id=seed.id,
                    provision_ref=provision.provision_ref,
                    chapter=provision.chapter,
                    section=provision.section,
                    title=provision.title,
                    content=provision.content,
                    metadata_=provision.metadata,
                )
            )
            stats.provisions += 1

        for definition in seed.definitions:
            session.add(
                Definition(
                    document_id=seed.id,
                    term=definition.term,
                    term_en=definition.term_en,
                    definition=definition.definition,
                    source_provision=definition.source_provision,
                )
            )
            stats.definitions += 1

        # Surface constraint violations per document
        session.flush()


def populate_eu_data(session: Session, stats: BuildStats) -> None:
    """Batch 2: EU documents and document-level references."""
    docs = session.execute(
        select(LegalDocument.id, LegalDocument.title, LegalDocument.description).order_by(
            LegalDocument.id
        )
    ).all()

    for doc in docs:
        search_text = "\n".join([doc.title, doc.description or ""])
        refs = extract_eu_references(search_text)
        if not refs:
            continue

        reference_type, is_primary = infer_reference_type(search_text)
        seen: set[tuple[str, str]] = set()

        for ref in refs:
            stats.eu_documents += insert_ignore(
                session,
                EUDocument,
                [
                    {
                        "id": ref.eu_document_id,
                        "type": ref.type,
                        "year": ref.year,
                        "number": ref.number,
                        "community": ref.community,
                        "title": eu_document_title(ref),
                        "short_name": EU_DOC_SHORT_NAMES.get(ref.eu_document_id),
                        "description": (
                            f"Auto-extracted from Luxembourg legislation metadata ({doc.id})."
                        ),
                        "in_force": True,
                    }
                ],
            )

            key = (doc.id, ref.eu_document_id)
            if key in seen:
                continue
            seen.add(key)

            stats.eu_references += insert_ignore(
                session,
                EUReference,
                [
                    {
                        "source_type": "document",
                        "source_id": doc.id,
                        "document_id": doc.id,
                        "provision_id": None,
                        "eu_document_id": ref.eu_document_id,
                        "eu_article": None,
                        "reference_type": reference_type,
                        "reference_context": doc.title,
                        "full_citation": ref.full_citation,
                        "is_primary_implementation": is_primary,
                        "implementation_status": "unknown",
                        "last_verified": datetime.now(timezone.utc).isoformat(),
                    }
                ],
            )


def write_build_metadata(session: Session) -> None:
    values = {
        "tier": "free",
        "schema_version": SCHEMA_VERSION,
        "built_at": datetime.now(timezone.utc).isoformat(),
        "builder": BUILDER,
        "jurisdiction": "LU",
    }
    for key, value in values.items():
        session.merge(BuildMetadata(key=key, value=value))


def build_database(engine: Engine, seed_dir: Optional[str | Path] = None) -> BuildStats:
    """Recreate the schema and load every seed file.

    Returns:
        load counts plus provision dedup statistics
    """
    seed_dir = Path(seed_dir or settings.data_seed_dir)
    stats = BuildStats()

    reset_schema(engine)

    seed_files = list_seed_files(seed_dir)
    if not seed_files:
        logger.info(f"No seed files in {seed_dir}; database created with empty schema")
    seeds = [load_seed(path) for path in seed_files]

    with Session(engine) as session, session.begin():
        load_documents(session, seeds, stats)

    with Session(engine) as session, session.begin():
        populate_eu_data(session, stats)

    with Session(engine) as session, session.begin():
        write_build_metadata(session)

    logger.info(
        f"Build complete: {stats.documents} documents, {stats.provisions} provisions, "
        f"{stats.definitions} definitions, {stats.eu_documents} EU documents, "
        f"{stats.eu_references} EU references"
    )
    if stats.duplicate_refs:
        logger.info(
            f"Data quality: {stats.duplicate_refs} duplicate refs detected "
            f"({stats.conflicting_duplicates} with conflicting text)"
        )
    return stats
