"""Pydantic value objects shared by the pipeline, citation engine and tools.

These are never persisted directly: seeds are written as JSON artifacts and
loaded by the database builder, citations live for a single call.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


DocumentType = Literal["statute", "bill", "case_law"]
DocumentStatus = Literal["in_force", "amended", "repealed", "not_yet_in_force"]
CitationStyle = Literal["full", "short", "pinpoint"]


# ─────────────────────────────────────────────────────────────
# Ingestion
# ─────────────────────────────────────────────────────────────


class LawIndexEntry(BaseModel):
    """One act discovered through SPARQL."""

    model_config = ConfigDict(populate_by_name=True)

    uri: str
    date: str
    title: str
    type_document: str = Field(alias="typeDocument")
    xml_url: Optional[str] = Field(default=None, alias="xmlUrl")


class SeedProvision(BaseModel):
    provision_ref: str
    section: str
    title: Optional[str] = None
    content: str
    chapter: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class SeedDefinition(BaseModel):
    term: str
    definition: str
    term_en: Optional[str] = None
    source_provision: Optional[str] = None


class SeedDocument(BaseModel):
    id: str
    type: DocumentType = "statute"
    title: str
    title_en: Optional[str] = None
    short_name: Optional[str] = None
    status: DocumentStatus = "in_force"
    # Upstream metadata carries no in-force information; see check_currency.
    status_verified: bool = False
    issued_date: Optional[str] = None
    in_force_date: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    provisions: list[SeedProvision] = Field(default_factory=list)
    definitions: list[SeedDefinition] = Field(default_factory=list)


class ParsedLaw(BaseModel):
    title: str
    date_document: Optional[str] = None
    type_document: Optional[str] = None
    provisions: list[SeedProvision] = Field(default_factory=list)


class DedupStats(BaseModel):
    duplicate_refs: int = 0
    conflicting_duplicates: int = 0


class ExtractedEUReference(BaseModel):
    eu_document_id: str
    type: Literal["directive", "regulation"]
    year: int
    number: int
    community: Literal["EU", "EG", "EEG", "Euratom", "CE", "CEE"]
    full_citation: str


# ─────────────────────────────────────────────────────────────
# Citations
# ─────────────────────────────────────────────────────────────


class ParsedCitation(BaseModel):
    valid: bool
    type: str
    title: Optional[str] = None
    year: Optional[int] = None
    section: Optional[str] = None
    subsection: Optional[str] = None
    paragraph: Optional[str] = None
    error: Optional[str] = None


class ValidationResult(BaseModel):
    citation: ParsedCitation
    document_exists: bool
    provision_exists: bool
    document_title: Optional[str] = None
    status: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)
