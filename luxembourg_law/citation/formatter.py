"""Citation formatter.

    full:     "Loi du 11 avril 1799, art. I.er"
    short:    "art. I.er Loi du 11 avril 1799 1799"
    pinpoint: "art. I.er"
"""

from __future__ import annotations

import re

from luxembourg_law.models.schemas import ParsedCitation


LUXEMBOURG_TITLE = re.compile(r"^(loi|règlement|reglement|arr[eê]t[eé])", re.IGNORECASE)


def build_pinpoint(parsed: ParsedCitation) -> str:
    ref = parsed.section or ""
    if parsed.subsection:
        ref += f"({parsed.subsection})"
    if parsed.paragraph:
        ref += f"({parsed.paragraph})"
    return ref


def is_luxembourg_style(title: str | None) -> bool:
    return bool(title) and LUXEMBOURG_TITLE.match(title) is not None


def format_citation(parsed: ParsedCitation, style: str = "full") -> str:
    """Render a parsed citation; "" for invalid citations or missing sections.

    Unknown styles render as "full".
    """
    if not parsed.valid or not parsed.section:
        return ""

    pinpoint = build_pinpoint(parsed)
    title = parsed.title.strip() if parsed.title else None
    year = str(parsed.year) if parsed.year else ""

    if style == "pinpoint":
        return f"art. {pinpoint}"

    if style == "short":
        return f"art. {pinpoint} {title or ''} {year}".strip()

    if is_luxembourg_style(title):
        return f"{title}, art. {pinpoint}".strip()
    return f"Section {pinpoint}, {title or ''} {year}".strip()
