"""validate_citation and format_citation tools."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from luxembourg_law.citation.formatter import format_citation
from luxembourg_law.citation.parser import parse_citation
from luxembourg_law.citation.validator import validate_citation
from luxembourg_law.tools.metadata import tool_response
from luxembourg_law.tools.statutes import require_text

CITATION_FORMATS = ("full", "short", "pinpoint")


def validate_citation_tool(db: Session, citation: str) -> dict[str, Any]:
    citation = require_text(citation, "citation")
    result = validate_citation(db, citation)
    return tool_response(db, result.model_dump())


def format_citation_tool(db: Session, citation: str, format: str = "full") -> dict[str, Any]:
    citation = require_text(citation, "citation")
    style = format or "full"
    if style not in CITATION_FORMATS:
        raise ValueError(f"format must be one of {', '.join(CITATION_FORMATS)}")

    parsed = parse_citation(citation)
    if not parsed.valid:
        raise ValueError(parsed.error or f"Could not parse legal citation: {citation}")

    return tool_response(
        db,
        {
            "input": citation,
            "format": style,
            "formatted": format_citation(parsed, style),
            "citation": parsed.model_dump(),
        },
    )
