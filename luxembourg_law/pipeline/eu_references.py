"""EU directive/regulation citations found in Luxembourg legislation text.

Citations are normalised to synthetic ids `{type}:{year}/{number}`, e.g.
"directive 2016/1148/UE" -> `directive:2016/1148` and
"règlement (UE) n° 2016/679" -> `regulation:2016/679`.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

from luxembourg_law.models.schemas import ExtractedEUReference


DIRECTIVE_PATTERN = re.compile(
    r"\bdirective\b[^\d]{0,48}(\d{2,4})/(\d{1,4})/(UE|EU|CE|CEE|EG|EEG|EURATOM)\b",
    re.IGNORECASE,
)
REGULATION_PATTERN = re.compile(
    r"\br[èe]glement\b[^\d]{0,48}\((UE|EU|CE|CEE|EG|EEG|EURATOM)\)\s*(?:n[°o]\s*)?(\d{1,4})/(\d{2,4})\b",
    re.IGNORECASE,
)

MIN_EU_YEAR = 1957
MAX_EU_YEAR = 2100
TWO_DIGIT_YEAR_PIVOT = 57

EU_DOC_SHORT_NAMES = {
    "regulation:2016/679": "GDPR",
    "directive:1995/46": "Data Protection Directive",
    "directive:2002/58": "ePrivacy Directive",
    "directive:2016/680": "Law Enforcement Directive",
    "directive:2016/1148": "NIS Directive",
    "directive:2022/2555": "NIS2 Directive",
}

IMPLEMENTATION_MARKERS = (
    "transposition",
    "transpose",
    "mise en oeuvre",
    "mettant en oeuvre",
    "met en oeuvre",
    "implements",
)

_COMMUNITIES = {
    "UE": "EU",
    "EU": "EU",
    "EG": "EG",
    "EEG": "EEG",
    "EURATOM": "Euratom",
    "CEE": "CEE",
    "CE": "CE",
}

LEGACY_COMMUNITIES = frozenset({"CE", "CEE", "EG", "EEG", "Euratom"})


def normalize_community(raw: Optional[str]) -> str:
    return _COMMUNITIES.get((raw or "").upper(), "CE")


def parse_eu_year(raw: str) -> Optional[int]:
    """Expand a year token; two digits pivot at 57 ("95" -> 1995, "16" -> 2016)."""
    if not raw.isdigit():
        return None

    value = int(raw)
    if len(raw) == 2:
        return 1900 + value if value >= TWO_DIGIT_YEAR_PIVOT else 2000 + value

    if value < MIN_EU_YEAR or value > MAX_EU_YEAR:
        return None
    return value


# ─────────────────────────────────────────────────────────────
# Regulation numbering
# ─────────────────────────────────────────────────────────────
#
# Regulations are cited "(CE) n° 45/2001" (number/year) by the legacy
# communities and "(UE) 2016/679" (year/number) since 2015.
#
#   first is year | second is year | resolution
#   --------------+----------------+---------------------------
#   no            | yes            | number=first,  year=second
#   yes           | no             | year=first,    number=second
#   yes           | yes            | era default (see below)
#   no            | no             | dropped
#
# Era default: legacy -> number/year, modern (EU) -> year/number.

_NUMBER_YEAR = "number/year"
_YEAR_NUMBER = "year/number"


def _era_default(community: str) -> str:
    return _NUMBER_YEAR if community in LEGACY_COMMUNITIES else _YEAR_NUMBER


REGULATION_ORDER_TABLE: dict[tuple[bool, bool], Callable[[str], Optional[str]]] = {
    (False, True): lambda community: _NUMBER_YEAR,
    (True, False): lambda community: _YEAR_NUMBER,
    (True, True): _era_default,
    (False, False): lambda community: None,
}


def infer_regulation_year_and_number(
    community: str, first: str, second: str
) -> Optional[tuple[int, int]]:
    """Resolve the two numeric tokens of a regulation citation to (year, number)."""
    if not (first.isdigit() and second.isdigit()):
        return None
    if int(first) <= 0 or int(second) <= 0:
        return None

    year_from_first = parse_eu_year(first)
    year_from_second = parse_eu_year(second)

    order = REGULATION_ORDER_TABLE[(year_from_first is not None, year_from_second is not None)](
        community
    )
    if order == _NUMBER_YEAR:
        return year_from_second, int(first)
    if order == _YEAR_NUMBER:
        return year_from_first, int(second)
    return None


# ─────────────────────────────────────────────────────────────
# Extraction
# ─────────────────────────────────────────────────────────────


def _normalize_citation(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def extract_eu_references(text: str) -> list[ExtractedEUReference]:
    """All directive/regulation citations in `text`, first occurrence per id."""
    extracted: list[ExtractedEUReference] = []

    for match in DIRECTIVE_PATTERN.finditer(text):
        year = parse_eu_year(match.group(1))
        number = int(match.group(2))
        if year is None or number <= 0:
            continue

        extracted.append(
            ExtractedEUReference(
                eu_document_id=f"directive:{year}/{number}",
                type="directive",
                year=year,
                number=number,
                community=normalize_community(match.group(3)),
                full_citation=_normalize_citation(match.group(0)),
            )
        )

    for match in REGULATION_PATTERN.finditer(text):
        community = normalize_community(match.group(1))
        resolved = infer_regulation_year_and_number(community, match.group(2), match.group(3))
        if resolved is None:
            continue

        year, number = resolved
        extracted.append(
            ExtractedEUReference(
                eu_document_id=f"regulation:{year}/{number}",
                type="regulation",
                year=year,
                number=number,
                community=community,
                full_citation=_normalize_citation(match.group(0)),
            )
        )

    unique: dict[str, ExtractedEUReference] = {}
    for ref in extracted:
        unique.setdefault(ref.eu_document_id, ref)

    return list(unique.values())


def infer_reference_type(text: str) -> tuple[str, bool]:
    """(reference_type, is_primary_implementation) for a document's text."""
    normalized = text.lower()
    if any(marker in normalized for marker in IMPLEMENTATION_MARKERS):
        return "implements", True
    return "references", False


def eu_document_title(ref: ExtractedEUReference) -> str:
    kind = "Directive" if ref.type == "directive" else "Regulation"
    return f"{kind} {ref.year}/{ref.number}/{ref.community}"
