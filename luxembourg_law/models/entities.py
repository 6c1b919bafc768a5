"""SQLAlchemy ORM entities.

Relational schema for Luxembourg legislation:
- legal documents and their provisions/definitions
- EU directives/regulations and the cross-references linking them
- build metadata

Full-text indexes are not declared here; `repository.fts_queries.install_fts`
adds them (plus the triggers that keep them in sync) per dialect.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


DOCUMENT_TYPES = ("statute", "bill", "case_law")
DOCUMENT_STATUSES = ("in_force", "amended", "repealed", "not_yet_in_force")
EU_DOCUMENT_TYPES = ("directive", "regulation")
EU_COMMUNITIES = ("EU", "EG", "EEG", "Euratom", "CE", "CEE")
EU_REFERENCE_TYPES = (
    "implements",
    "supplements",
    "applies",
    "references",
    "complies_with",
    "derogates_from",
    "amended_by",
    "repealed_by",
    "cites_article",
)
EU_SOURCE_TYPES = ("provision", "document", "case_law")
IMPLEMENTATION_STATUSES = ("complete", "partial", "pending", "unknown")


def _in(column: str, values: tuple[str, ...]) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Base(DeclarativeBase):
    pass


class LegalDocument(Base):
    __tablename__ = "legal_documents"
    __table_args__ = (
        CheckConstraint(_in("type", DOCUMENT_TYPES), name="ck_legal_documents_type"),
        CheckConstraint(_in("status", DOCUMENT_STATUSES), name="ck_legal_documents_status"),
    )

    id: Mapped[str] = mapped_column(String(128), primary_key=True)

    type: Mapped[str] = mapped_column(String(16), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    title_en: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    short_name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)

    status: Mapped[str] = mapped_column(String(32), nullable=False, default="in_force")
    status_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    issued_date: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    in_force_date: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    # Matching key for remote update checks
    url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    provisions: Mapped[list[LegalProvision]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="LegalProvision.id",
    )
    definitions: Mapped[list[Definition]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class LegalProvision(Base):
    __tablename__ = "legal_provisions"
    __table_args__ = (
        UniqueConstraint("document_id", "provision_ref", name="uq_legal_provisions_document_ref"),
        Index("idx_provisions_chapter", "document_id", "chapter"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    document_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("legal_documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    provision_ref: Mapped[str] = mapped_column(String(64), nullable=False)
    chapter: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    section: Mapped[str] = mapped_column(String(256), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)

    document: Mapped[LegalDocument] = relationship(back_populates="provisions")


class Definition(Base):
    __tablename__ = "definitions"
    __table_args__ = (
        UniqueConstraint("document_id", "term", name="uq_definitions_document_term"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    document_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("legal_documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    term: Mapped[str] = mapped_column(String(512), nullable=False)
    term_en: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    definition: Mapped[str] = mapped_column(Text, nullable=False)
    source_provision: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    document: Mapped[LegalDocument] = relationship(back_populates="definitions")


class EUDocument(Base):
    __tablename__ = "eu_documents"
    __table_args__ = (
        CheckConstraint(_in("type", EU_DOCUMENT_TYPES), name="ck_eu_documents_type"),
        CheckConstraint("year >= 1957 AND year <= 2100", name="ck_eu_documents_year"),
        CheckConstraint("number > 0", name="ck_eu_documents_number"),
        CheckConstraint(_in("community", EU_COMMUNITIES), name="ck_eu_documents_community"),
        Index("idx_eu_documents_type_year", "type", "year"),
    )

    # "{type}:{year}/{number}"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    type: Mapped[str] = mapped_column(String(16), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    community: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)

    celex_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    short_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    in_force: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class EUReference(Base):
    __tablename__ = "eu_references"
    __table_args__ = (
        # NULL eu_article rows never conflict here; document-level rows are
        # deduplicated by build_db.populate_eu_data on a freshly reset schema.
        UniqueConstraint(
            "source_id", "eu_document_id", "eu_article", name="uq_eu_references_source_eu_article"
        ),
        CheckConstraint(_in("source_type", EU_SOURCE_TYPES), name="ck_eu_references_source_type"),
        CheckConstraint(
            _in("reference_type", EU_REFERENCE_TYPES), name="ck_eu_references_reference_type"
        ),
        CheckConstraint(
            _in("implementation_status", IMPLEMENTATION_STATUSES),
            name="ck_eu_references_implementation_status",
        ),
        Index("idx_eu_references_document", "document_id", "eu_document_id"),
        Index("idx_eu_references_eu_document", "eu_document_id", "document_id"),
        Index("idx_eu_references_provision", "provision_id", "eu_document_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    source_type: Mapped[str] = mapped_column(String(16), nullable=False)
    source_id: Mapped[str] = mapped_column(String(128), nullable=False)
    document_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("legal_documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    provision_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("legal_provisions.id", ondelete="CASCADE"),
        nullable=True,
    )
    eu_document_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("eu_documents.id"),
        nullable=False,
    )
    eu_article: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    reference_type: Mapped[str] = mapped_column(String(32), nullable=False)
    reference_context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    full_citation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_primary_implementation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    implementation_status: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    last_verified: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class BuildMetadata(Base):
    __tablename__ = "db_metadata"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
