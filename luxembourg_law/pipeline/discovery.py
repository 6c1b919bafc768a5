"""Discovery of Legilux acts through the SPARQL endpoint.

Acts are queried per document type in fixed-size pages; the index is cached
on disk (`data/source/law-index.json`) so later runs can skip discovery.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Sequence

from luxembourg_law.config.settings import settings
from luxembourg_law.models.schemas import LawIndexEntry
from luxembourg_law.pipeline.collectors.legilux_collector import LegiluxClient
from luxembourg_law.utils.logger import get_logger
from luxembourg_law.utils.tree import get_path

logger = get_logger(__name__)

JOLUX_ONTOLOGY = "http://data.legilux.public.lu/resource/ontology/jolux#"
RESOURCE_TYPE_BASE = "http://data.legilux.public.lu/resource/authority/resource-type/"
XML_USER_FORMAT = "http://data.legilux.public.lu/resource/authority/user-format/xml"


def build_discovery_query(
    doc_type: str,
    limit: int,
    offset: int,
    include_xml: bool = True,
) -> str:
    """SELECT acts of one document type, newest first.

    With `include_xml` the XML manifestation URL is bound as ?xmlUrl;
    without it only ?act ?date ?title are returned.
    """
    select = "?act ?date ?title ?xmlUrl" if include_xml else "?act ?date ?title"
    expression = (
        "?expr jolux:title ?title ;\n"
        "                jolux:isEmbodiedBy ?manifest .\n"
        "          ?manifest jolux:isExemplifiedBy ?xmlUrl ;\n"
        f"                    jolux:userFormat <{XML_USER_FORMAT}> ."
        if include_xml
        else "?expr jolux:title ?title ."
    )

    return f"""
        PREFIX jolux: <{JOLUX_ONTOLOGY}>
        SELECT {select} WHERE {{
          ?act a jolux:Act ;
               jolux:publicationDate ?date ;
               jolux:typeDocument <{RESOURCE_TYPE_BASE}{doc_type}> ;
               jolux:isRealizedBy ?expr .
          {expression}
        }}
        ORDER BY DESC(?date)
        LIMIT {limit}
        OFFSET {offset}
    """


def _binding_value(binding: dict, name: str) -> Optional[str]:
    value = get_path(binding, (name, "value"))
    return value if isinstance(value, str) else None


def _entry_from_binding(binding: dict, doc_type: str) -> Optional[LawIndexEntry]:
    uri = _binding_value(binding, "act")
    if not uri:
        return None

    return LawIndexEntry(
        uri=uri,
        date=_binding_value(binding, "date") or "",
        title=_binding_value(binding, "title") or "",
        type_document=doc_type,
        xml_url=_binding_value(binding, "xmlUrl"),
    )


def dedupe_by_uri(entries: Sequence[LawIndexEntry]) -> list[LawIndexEntry]:
    """One entry per URI, keeping the greatest date (first seen on ties)."""
    by_uri: dict[str, LawIndexEntry] = {}
    for entry in entries:
        existing = by_uri.get(entry.uri)
        if existing is None or entry.date > existing.date:
            by_uri[entry.uri] = entry
    return list(by_uri.values())


async def discover_laws(
    client: LegiluxClient,
    doc_types: Optional[Sequence[str]] = None,
    page_size: Optional[int] = None,
    include_xml: bool = True,
) -> list[LawIndexEntry]:
    """Page through every document type; a short page ends a type.

    Raises:
        SparqlQueryError: any page failed
    """
    doc_types = list(doc_types or settings.discovery_doc_types)
    page_size = page_size or settings.sparql_page_size

    discovered: list[LawIndexEntry] = []

    for doc_type in doc_types:
        logger.info(f"Querying {doc_type} documents...")
        offset = 0

        while True:
            query = build_discovery_query(doc_type, page_size, offset, include_xml=include_xml)
            bindings = await client.sparql_query(query)

            for binding in bindings:
                entry = _entry_from_binding(binding, doc_type)
                if entry is not None:
                    discovered.append(entry)

            logger.info(f"Fetched {len(bindings)} {doc_type} records (offset {offset})")

            if len(bindings) < page_size:
                break
            offset += page_size

    deduped = dedupe_by_uri(discovered)
    logger.info(
        f"Total: {len(deduped)} unique acts discovered "
        f"({len(discovered) - len(deduped)} duplicates removed)"
    )
    return deduped


def save_law_index(entries: Sequence[LawIndexEntry], path: Optional[str | Path] = None) -> Path:
    path = Path(path or settings.law_index_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = [entry.model_dump(by_alias=True) for entry in entries]
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")

    logger.info(f"Saved index to {path}")
    return path


def load_law_index(path: Optional[str | Path] = None) -> list[LawIndexEntry]:
    path = Path(path or settings.law_index_path)
    payload = json.loads(path.read_text(encoding="utf-8"))
    return [LawIndexEntry.model_validate(item) for item in payload]
