"""Akoma Ntoso parser for Legilux acts.

Turns one AKN XML document into a title, JOLUX metadata (document date and
type) and a flat list of article provisions.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from luxembourg_law.models.schemas import ParsedLaw, SeedProvision
from luxembourg_law.pipeline.parsers.text_extraction import clean_text, extract_text, parse_xml
from luxembourg_law.utils.logger import get_logger
from luxembourg_law.utils.tree import ensure_list, get_path

logger = get_logger(__name__)

ARTICLE_PREFIX = re.compile(r"^Art\.\s*", re.IGNORECASE)
RESOURCE_TYPE = re.compile(r"resource-type/(\w+)$")

LEGAL_RESOURCE_ENTRIES = (
    "identification",
    "scl:JOLUXWork",
    "scl:JOLUXLegalResource",
    "scl:jolux",
)
EXPRESSION_ENTRIES = ("identification", "scl:JOLUXExpression", "scl:jolux")

# First non-empty category wins
CONTENT_CATEGORIES = ("alinea", "paragraph", "content", "p")


# ─────────────────────────────────────────────────────────────
# Article numbers
# ─────────────────────────────────────────────────────────────


def extract_article_num(num_node: Any) -> str:
    """Pull the bare article number out of a <num> node.

    "Art. 1<sup>er</sup>." is parsed as "Art. 1." + "er", so the period that
    ends up between the digits and the glued suffix is dropped:
    "Art. 1.er" -> "1er", "Art. 10bis." -> "10bis".
    """
    cleaned = ARTICLE_PREFIX.sub("", extract_text(num_node)).strip()
    cleaned = re.sub(r"\.\s*$", "", cleaned)
    cleaned = re.sub(r"(\d+)\.(\w+)$", r"\1\2", cleaned)
    return re.sub(r"\s+", "", cleaned)


def normalize_article_ref(num: str) -> str:
    """Provision key for an article number: "1er" -> "art1", "10bis" -> "art10bis"."""
    cleaned = re.sub(r"\s+", "", num)
    cleaned = re.sub(r"^art\.?\s*", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\.$", "", cleaned).lower()
    cleaned = re.sub(r"^(\d+)er$", r"\1", cleaned)
    return f"art{cleaned}"


# ─────────────────────────────────────────────────────────────
# Provisions
# ─────────────────────────────────────────────────────────────


def _article_content(article: dict[str, Any]) -> str:
    for category in CONTENT_CATEGORIES:
        nodes = article.get(category)
        if not nodes:
            continue

        blocks = [clean_text(extract_text(node)) for node in ensure_list(nodes)]
        return "\n\n".join(block for block in blocks if block)

    return ""


def _process_article(
    article: dict[str, Any],
    section: Optional[str],
    provisions: list[SeedProvision],
) -> None:
    num_node = article.get("num")
    article_num = extract_article_num(num_node) if num_node else ""
    if not article_num:
        return

    content = _article_content(article)
    if not content:
        return

    provisions.append(
        SeedProvision(
            provision_ref=normalize_article_ref(article_num),
            section=section or "1",
            title=f"Article {article_num}",
            content=content,
        )
    )


def _container_label(container: dict[str, Any]) -> str:
    num_node = container.get("num")
    return clean_text(extract_text(num_node)) if num_node else ""


def _process_container(
    container: dict[str, Any],
    provisions: list[SeedProvision],
    chapter_ref: Optional[str] = None,
) -> None:
    for article in ensure_list(container.get("article")):
        if isinstance(article, dict):
            _process_article(article, chapter_ref, provisions)

    for i, chapter in enumerate(ensure_list(container.get("chapter"))):
        if not isinstance(chapter, dict):
            continue
        label = _container_label(chapter) or str(i + 1)
        _process_container(chapter, provisions, label)

    for i, section in enumerate(ensure_list(container.get("section"))):
        if not isinstance(section, dict):
            continue
        label = _container_label(section)
        if not label:
            label = f"{chapter_ref}.{i + 1}" if chapter_ref else str(i + 1)
        _process_container(section, provisions, label)

    for i, part in enumerate(ensure_list(container.get("part"))):
        if not isinstance(part, dict):
            continue
        label = _container_label(part) or str(i + 1)
        _process_container(part, provisions, label)


def extract_provisions(body: dict[str, Any]) -> list[SeedProvision]:
    provisions: list[SeedProvision] = []
    _process_container(body, provisions)
    return provisions


# ─────────────────────────────────────────────────────────────
# Metadata
# ─────────────────────────────────────────────────────────────


def _jolux_entries(meta: Any, path: tuple[str, ...]) -> list[dict[str, Any]]:
    return [entry for entry in ensure_list(get_path(meta, path)) if isinstance(entry, dict)]


def extract_metadata(meta: Any) -> tuple[Optional[str], Optional[str]]:
    """Best-effort (dateDocument, typeDocument) from the JOLUX work block."""
    date_document: Optional[str] = None
    type_document: Optional[str] = None

    for entry in _jolux_entries(meta, LEGAL_RESOURCE_ENTRIES):
        name = entry.get("@_scl:name")
        value = extract_text(entry.get("#text"))
        if not value:
            continue

        if name == "dateDocument":
            date_document = value
        elif name == "typeDocument":
            match = RESOURCE_TYPE.search(value)
            type_document = match.group(1) if match else value

    return date_document, type_document


def _meta_title(meta: Any) -> str:
    for entry in _jolux_entries(meta, EXPRESSION_ENTRIES):
        if entry.get("@_scl:name") == "title":
            return clean_text(extract_text(entry.get("#text")))
    return ""


# ─────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────


def parse_akn_xml(xml: str | bytes) -> Optional[ParsedLaw]:
    """Parse one Legilux AKN document.

    Returns None when the document is not an `akomaNtoso/act` or cannot be
    parsed at all; callers skip it.
    """
    try:
        doc = parse_xml(xml)

        act = get_path(doc, ("akomaNtoso", "act"))
        if not isinstance(act, dict):
            return None

        title = ""
        long_title = get_path(act, ("preface", "longTitle"))
        if long_title:
            title = clean_text(extract_text(long_title))

        meta = act.get("meta")
        if not title:
            title = _meta_title(meta)

        date_document, type_document = extract_metadata(meta)

        body = act.get("body")
        provisions = extract_provisions(body) if isinstance(body, dict) else []

        return ParsedLaw(
            title=title,
            date_document=date_document,
            type_document=type_document,
            provisions=provisions,
        )
    except Exception as e:
        logger.error(f"Failed to parse AKN XML: {e}")
        return None
