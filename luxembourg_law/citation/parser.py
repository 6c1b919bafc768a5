"""Legal citation parser.

Recognised forms, tried in order:

    "Loi du 11 avril 1799, art. I.er"        Luxembourg style
    "Loi du 2 août 2002, article 3"
    "Section 3(1)(a), Data Protection Act 2018"
    "s. 3 DPA 2018"
"""

from __future__ import annotations

import re
from typing import Optional

from luxembourg_law.models.schemas import ParsedCitation


LUXEMBOURG_ARTICLE = re.compile(
    r"^(?P<title>.+?)(?:,\s*|\s+)(?:article|art\.?)\s*(?P<article>[a-z0-9().\-]+)$",
    re.IGNORECASE,
)

FULL_CITATION = re.compile(
    r"^(?:Section|s\.?)\s+(\d+(?:\(\d+\))*(?:\([a-z]\))*)\s*,?\s+(.+?)\s+(\d{4})$",
    re.IGNORECASE,
)

# Acronym titles are upper-case only
SHORT_CITATION = re.compile(r"^s\.?\s+(\d+(?:\(\d+\))*(?:\([a-z]\))*)\s+([A-Z][A-Z0-9&\s]*?)\s+(\d{4})$")

SECTION_REF = re.compile(r"^(\d+)(?:\((\d+)\))?(?:\(([a-z])\))?$")

ARTICLE_PREFIX = re.compile(r"^art(?:icle)?\.?\s*", re.IGNORECASE)
YEAR = re.compile(r"\b(\d{4})\b")


def parse_citation(citation: str) -> ParsedCitation:
    trimmed = citation.strip()

    match = LUXEMBOURG_ARTICLE.match(trimmed)
    if match:
        title = match.group("title").strip()
        article = match.group("article").strip()
        year_match = YEAR.search(title)
        year = int(year_match.group(1)) if year_match else None

        if title and article:
            parsed = parse_article(article, title, year)
            if parsed is not None:
                return parsed

    for pattern in (FULL_CITATION, SHORT_CITATION):
        match = pattern.match(trimmed)
        if match:
            parsed = parse_article(match.group(1), match.group(2), int(match.group(3)))
            if parsed is not None:
                return parsed

    return ParsedCitation(
        valid=False,
        type="unknown",
        error=f'Could not parse legal citation: "{trimmed}"',
    )


def parse_article(
    section: str,
    title: str,
    year: Optional[int],
    citation_type: str = "statute",
) -> Optional[ParsedCitation]:
    """Split "3(1)(a)" into section/subsection/paragraph.

    Non-numeric references ("I.er", "10bis") are kept whole as the section.
    Returns None when nothing is left once the article prefix is removed.
    """
    normalized = ARTICLE_PREFIX.sub("", section).strip()
    if not normalized:
        return None

    section_match = SECTION_REF.match(normalized)
    if not section_match:
        return ParsedCitation(
            valid=True,
            type=citation_type,
            title=title.strip(),
            year=year,
            section=normalized,
        )

    return ParsedCitation(
        valid=True,
        type=citation_type,
        title=title.strip(),
        year=year,
        section=section_match.group(1),
        subsection=section_match.group(2) or None,
        paragraph=section_match.group(3) or None,
    )
