"""Data freshness check: local statutes against the acts currently on Legilux."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from luxembourg_law.models.entities import LegalDocument
from luxembourg_law.models.schemas import LawIndexEntry
from luxembourg_law.pipeline.collectors.legilux_collector import LegiluxClient
from luxembourg_law.pipeline.discovery import discover_laws
from luxembourg_law.utils.logger import get_logger

logger = get_logger(__name__)

ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


class LocalDocument(BaseModel):
    id: str
    title: str
    url: Optional[str] = None
    issued_date: Optional[str] = None
    last_updated: Optional[str] = None


class UpdateEntry(BaseModel):
    id: str
    title: str
    uri: str
    local_date: Optional[str] = None
    remote_date: str


class UpdateSummary(BaseModel):
    checked_at: str
    local_count: int = 0
    remote_count: int = 0
    updates_count: int = 0
    new_documents_count: int = 0
    missing_remote_count: int = 0
    updates: list[UpdateEntry] = Field(default_factory=list)
    new_documents: list[LawIndexEntry] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def has_changes(self) -> bool:
        return self.updates_count > 0 or self.new_documents_count > 0


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_iso_date(value: Any) -> Optional[str]:
    """First YYYY-MM-DD found in a date/datetime value, else None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.isoformat()

    match = ISO_DATE.search(str(value))
    return match.group(0) if match else None


def load_local_documents(db: Session) -> list[LocalDocument]:
    rows = db.execute(
        select(
            LegalDocument.id,
            LegalDocument.title,
            LegalDocument.url,
            LegalDocument.issued_date,
            LegalDocument.last_updated,
        )
        .where(LegalDocument.type == "statute")
        .order_by(LegalDocument.id)
    ).all()

    return [
        LocalDocument(
            id=row.id,
            title=row.title,
            url=row.url,
            issued_date=row.issued_date,
            last_updated=normalize_iso_date(row.last_updated),
        )
        for row in rows
    ]


def build_update_summary(
    local_docs: Sequence[LocalDocument],
    remote_docs: Sequence[LawIndexEntry],
) -> UpdateSummary:
    remote_by_uri = {entry.uri: entry for entry in remote_docs}
    local_uris = {doc.url for doc in local_docs if doc.url}

    updates: list[UpdateEntry] = []
    missing_remote = 0

    for doc in local_docs:
        if not doc.url:
            continue

        remote = remote_by_uri.get(doc.url)
        if remote is None:
            missing_remote += 1
            continue

        local_date = normalize_iso_date(doc.issued_date) or normalize_iso_date(doc.last_updated)
        if not local_date:
            continue

        if remote.date > local_date:
            updates.append(
                UpdateEntry(
                    id=doc.id,
                    title=doc.title,
                    uri=doc.url,
                    local_date=local_date,
                    remote_date=remote.date,
                )
            )

    new_documents = [entry for entry in remote_docs if entry.uri not in local_uris]

    return UpdateSummary(
        checked_at=_now(),
        local_count=len(local_docs),
        remote_count=len(remote_docs),
        updates_count=len(updates),
        new_documents_count=len(new_documents),
        missing_remote_count=missing_remote,
        updates=updates,
        new_documents=new_documents,
    )


def failure_summary(local_count: int, error: str) -> UpdateSummary:
    return UpdateSummary(checked_at=_now(), local_count=local_count, error=error)


def _format_error(error: BaseException) -> str:
    cause = error.__cause__
    if cause is not None and str(cause) and str(cause) != str(error):
        return f"{error} ({cause})"
    return str(error) or type(error).__name__


async def check_updates(db: Session, client: Optional[LegiluxClient] = None) -> UpdateSummary:
    """Compare local statutes with remote discovery.

    Remote failures are reported through `UpdateSummary.error` rather than raised.
    """
    local_docs = load_local_documents(db)
    owns_client = client is None
    client = client or LegiluxClient()

    try:
        remote_docs = await discover_laws(client, include_xml=False)
        summary = build_update_summary(local_docs, remote_docs)
    except Exception as e:
        logger.error(f"Update check failed: {e}")
        summary = failure_summary(len(local_docs), _format_error(e))
    finally:
        if owns_client:
            await client.aclose()

    logger.info(
        f"Update check: {summary.updates_count} updates, "
        f"{summary.new_documents_count} new, {summary.missing_remote_count} missing remotely"
    )
    return summary


def render_summary(summary: UpdateSummary, max_updates: int = 50, max_new: int = 30) -> str:
    """Human-readable report"""
    lines = [
        "Luxembourg Law - Data Freshness Check",
        "",
        f"Local statutes:             {summary.local_count}",
        f"Remote statutes (Legilux):  {summary.remote_count}",
        f"Updates available:          {summary.updates_count}",
        f"New documents available:    {summary.new_documents_count}",
        f"Missing remote matches:     {summary.missing_remote_count}",
    ]

    if summary.updates:
        lines.append("")
        for update in summary.updates[:max_updates]:
            lines.append(
                f"UPDATE AVAILABLE: {update.id} "
                f"({update.local_date or 'unknown'} -> {update.remote_date})"
            )
        if len(summary.updates) > max_updates:
            lines.append(f"...and {len(summary.updates) - max_updates} more")

    if summary.new_documents:
        lines.append("")
        for doc in summary.new_documents[:max_new]:
            lines.append(f"NEW DOCUMENT: {doc.type_document} {doc.date} {doc.title}")
        if len(summary.new_documents) > max_new:
            lines.append(f"...and {len(summary.new_documents) - max_new} more")

    if summary.error:
        lines.extend(["", f"ERROR: {summary.error}"])

    return "\n".join(lines)
