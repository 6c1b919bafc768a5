"""Two-phase ingestion: SPARQL discovery, then XML fetch/parse into seed JSON.

One seed file per act (`data/seed/<seed_id>.json`). Existing seed files are
skipped unless `force` is set, so interrupted runs resume where they stopped.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, Field

from luxembourg_law.config.settings import settings
from luxembourg_law.models.schemas import LawIndexEntry, ParsedLaw, SeedDocument
from luxembourg_law.pipeline.collectors.legilux_collector import LegiluxClient, build_xml_url
from luxembourg_law.pipeline.discovery import discover_laws, load_law_index, save_law_index
from luxembourg_law.pipeline.parsers.akn_parser import parse_akn_xml
from luxembourg_law.utils.logger import get_logger

logger = get_logger(__name__)

ELI_PATH = re.compile(r"/eli/etat/(?:leg/)?(\w+)/(\d{4})/(\d{2})/(\d{2})/(\w+)/")

PROGRESS_EVERY = 10
MAX_LOGGED_FAILURES = 5
MAX_LISTED_MISSING_IDS = 20


class IngestStats(BaseModel):
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    no_articles: int = 0
    failed_ids: list[str] = Field(default_factory=list)
    missing_ids: list[str] = Field(default_factory=list)


def generate_seed_id(uri: str) -> str:
    """
    Slug for an ELI URI.

    http://data.legilux.public.lu/eli/etat/leg/loi/2026/02/05/a33/jo -> loi-2026-02-05-a33
    Other shapes join the four path segments before the last one.
    """
    match = ELI_PATH.search(uri)
    if match:
        return "-".join(match.groups())

    parts = [part for part in uri.split("/") if part]
    return "-".join(parts[-5:-1])


def map_doc_type(type_document: str) -> str:
    # LOI and RGD are both statutes; nothing else is ingested yet
    return "statute"


async def fetch_law_xml(client: LegiluxClient, entry: LawIndexEntry) -> Optional[str]:
    """Discovered XML URL first, then the filestore URL built from the ELI."""
    xml = await client.fetch_xml(entry.xml_url) if entry.xml_url else None
    if xml is not None:
        return xml

    fallback_url = build_xml_url(entry.uri)
    if fallback_url != entry.xml_url:
        return await client.fetch_xml(fallback_url)
    return None


def build_seed_document(seed_id: str, entry: LawIndexEntry, parsed: ParsedLaw) -> SeedDocument:
    return SeedDocument(
        id=seed_id,
        type=map_doc_type(entry.type_document),
        title=parsed.title or entry.title,
        status="in_force",
        status_verified=False,
        issued_date=parsed.date_document or entry.date,
        url=entry.uri,
        provisions=parsed.provisions,
    )


def write_seed(seed: SeedDocument, seed_dir: Path) -> Path:
    path = seed_dir / f"{seed.id}.json"
    payload = seed.model_dump(exclude_none=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def select_entries(
    entries: Sequence[LawIndexEntry],
    requested_ids: Optional[Iterable[str]] = None,
    limit: int = 0,
) -> tuple[list[LawIndexEntry], list[str]]:
    """Apply the id filter and limit; also return requested ids not in the index."""
    missing: list[str] = []
    selected = list(entries)

    if requested_ids is not None:
        requested = list(dict.fromkeys(requested_ids))
        wanted = set(requested)
        selected = [entry for entry in selected if generate_seed_id(entry.uri) in wanted]

        found = {generate_seed_id(entry.uri) for entry in selected}
        missing = [seed_id for seed_id in requested if seed_id not in found]

    if limit > 0:
        selected = selected[:limit]

    return selected, missing


async def fetch_and_parse_laws(
    client: LegiluxClient,
    entries: Sequence[LawIndexEntry],
    seed_dir: Optional[str | Path] = None,
    *,
    limit: int = 0,
    requested_ids: Optional[Iterable[str]] = None,
    force: bool = False,
) -> IngestStats:
    """Phase 2: fetch, parse and write one seed file per act."""
    seed_dir = Path(seed_dir or settings.data_seed_dir)
    seed_dir.mkdir(parents=True, exist_ok=True)

    to_process, missing = select_entries(entries, requested_ids, limit)
    stats = IngestStats(missing_ids=missing)

    if missing:
        logger.warning(f"{len(missing)} requested ID(s) not found in discovery index")
        for seed_id in missing[:MAX_LISTED_MISSING_IDS]:
            logger.warning(f"  - {seed_id}")
        if len(missing) > MAX_LISTED_MISSING_IDS:
            logger.warning(f"  ...and {len(missing) - MAX_LISTED_MISSING_IDS} more")

    total = len(to_process)
    for i, entry in enumerate(to_process):
        seed_id = generate_seed_id(entry.uri)
        seed_path = seed_dir / f"{seed_id}.json"

        if seed_path.exists() and not force:
            stats.skipped += 1
            continue

        if i == 0 or (i + 1) % PROGRESS_EVERY == 0:
            logger.info(f"[{i + 1}/{total}] Processing {seed_id}...")

        xml = await fetch_law_xml(client, entry)
        if xml is None:
            _record_failure(stats, seed_id, f"Failed to fetch XML for {seed_id} ({entry.xml_url})")
            continue

        parsed = parse_akn_xml(xml)
        if parsed is None:
            _record_failure(stats, seed_id, f"Failed to parse XML for {seed_id}")
            continue

        if not parsed.provisions:
            # Kept: some acts (approvals, ratifications) have no articles
            stats.no_articles += 1

        write_seed(build_seed_document(seed_id, entry, parsed), seed_dir)
        stats.processed += 1

    logger.info(
        f"Fetch complete: processed={stats.processed} skipped={stats.skipped} "
        f"failed={stats.failed} no_articles={stats.no_articles}"
    )
    return stats


def _record_failure(stats: IngestStats, seed_id: str, message: str) -> None:
    stats.failed += 1
    if stats.failed <= MAX_LOGGED_FAILURES:
        stats.failed_ids.append(seed_id)
        logger.warning(message)


async def run_ingestion(
    *,
    limit: int = 0,
    requested_ids: Optional[Iterable[str]] = None,
    force: bool = False,
    skip_discovery: bool = False,
    client: Optional[LegiluxClient] = None,
    index_path: Optional[str | Path] = None,
    seed_dir: Optional[str | Path] = None,
) -> IngestStats:
    """Discovery (or the cached index) followed by fetch/parse."""
    index_path = Path(index_path or settings.law_index_path)
    owns_client = client is None
    client = client or LegiluxClient()

    try:
        if skip_discovery and index_path.exists():
            logger.info("Skipping discovery, using existing index")
            entries = load_law_index(index_path)
            logger.info(f"Loaded {len(entries)} entries from index")
        else:
            entries = await discover_laws(client)
            save_law_index(entries, index_path)

        return await fetch_and_parse_laws(
            client,
            entries,
            seed_dir,
            limit=limit,
            requested_ids=requested_ids,
            force=force,
        )
    finally:
        if owns_client:
            await client.aclose()
