"""Tool registry shared by the MCP server and the HTTP API.

`TOOLS` holds the tool definitions (name, description, JSON input schema);
`call_tool` dispatches a call by name against a database session.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from luxembourg_law.tools.citations import format_citation_tool, validate_citation_tool
from luxembourg_law.tools.currency import check_currency
from luxembourg_law.tools.eu_basis import (
    get_eu_basis,
    get_luxembourg_implementations,
    get_provision_eu_basis,
)
from luxembourg_law.tools.provisions import get_provision
from luxembourg_law.tools.search import search_legislation
from luxembourg_law.tools.sources import about, list_sources


TOOLS: list[dict[str, Any]] = [
    {
        "name": "search_legislation",
        "description": (
            "Full-text search across Luxembourg statutes and regulations, ranked by relevance. "
            "Returns matching provisions with law title, article number and a snippet. "
            "Use get_provision instead when the document and article are already known. "
            "Empty results mean no match, not an error."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": (
                        "Search query in French. Plain words become prefix queries; boolean "
                        'syntax is supported ("données AND personnelles", "NOT abrogé").'
                    ),
                },
                "document_id": {
                    "type": "string",
                    "description": 'Restrict search to one statute (e.g. "loi-2002-08-02-n2").',
                },
                "status": {
                    "type": "string",
                    "enum": ["in_force", "amended", "repealed", "not_yet_in_force"],
                    "description": "Filter by legislative status.",
                },
                "limit": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 50,
                    "default": 10,
                },
            },
            "required": ["query"],
        },
    },
    {
        "name": "get_provision",
        "description": (
            "Retrieve the text of one provision (article) of a Luxembourg statute. "
            "Without section/provision_ref, returns the statute's provisions (at most 50)."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {
                    "type": "string",
                    "description": "Statute identifier or part of its title.",
                },
                "section": {
                    "type": "string",
                    "description": 'Article number (e.g. "3", "1er", "I").',
                },
                "provision_ref": {
                    "type": "string",
                    "description": 'Provision reference (e.g. "art3").',
                },
            },
            "required": ["document_id"],
        },
    },
    {
        "name": "validate_citation",
        "description": (
            "Check that a cited Luxembourg statute and article exist in the database. "
            "Use after generating a citation to confirm it is real."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "citation": {
                    "type": "string",
                    "description": 'Citation, e.g. "Loi du 2 août 2002, art. 3".',
                },
            },
            "required": ["citation"],
        },
    },
    {
        "name": "format_citation",
        "description": (
            "Format a Luxembourg legal citation as full, short or pinpoint. "
            "Formatting only; does not check that the citation exists."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "citation": {"type": "string"},
                "format": {
                    "type": "string",
                    "enum": ["full", "short", "pinpoint"],
                    "default": "full",
                },
            },
            "required": ["citation"],
        },
    },
    {
        "name": "check_currency",
        "description": (
            "Report whether a statute (or one of its provisions) is in force, amended or repealed. "
            "Status is not verified against upstream metadata; check legilux.public.lu."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string"},
                "provision_ref": {"type": "string"},
            },
            "required": ["document_id"],
        },
    },
    {
        "name": "get_eu_basis",
        "description": "EU directives and regulations a Luxembourg statute implements or references.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string"},
                "include_articles": {"type": "boolean", "default": False},
                "reference_types": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": 'Filter by reference type (e.g. ["implements", "references"]).',
                },
            },
            "required": ["document_id"],
        },
    },
    {
        "name": "get_luxembourg_implementations",
        "description": (
            "Luxembourg statutes referencing an EU directive or regulation "
            '(ids like "directive:2016/1148" or "regulation:2016/679").'
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "eu_document_id": {"type": "string"},
                "primary_only": {"type": "boolean", "default": False},
                "in_force_only": {"type": "boolean", "default": False},
            },
            "required": ["eu_document_id"],
        },
    },
    {
        "name": "get_provision_eu_basis",
        "description": (
            "EU references of a single provision; falls back to the statute's "
            "document-level references when none are mapped to the provision."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string"},
                "provision_ref": {"type": "string"},
            },
            "required": ["document_id", "provision_ref"],
        },
    },
    {
        "name": "list_sources",
        "description": "Data sources with provenance, licensing, coverage limitations and build date.",
        "inputSchema": {"type": "object", "properties": {}},
    },
    {
        "name": "about",
        "description": "Server and dataset metadata: version, build fingerprint, record counts.",
        "inputSchema": {"type": "object", "properties": {}},
    },
]


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_list(value: Any) -> Optional[list[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ValueError("reference_types must be a list of strings")
    return [str(v) for v in value]


_HANDLERS: dict[str, Callable[[Session, dict[str, Any]], dict[str, Any]]] = {
    "search_legislation": lambda db, args: search_legislation(
        db,
        query=args.get("query"),
        document_id=_optional_str(args.get("document_id")),
        status=_optional_str(args.get("status")),
        limit=args.get("limit"),
    ),
    "get_provision": lambda db, args: get_provision(
        db,
        document_id=args.get("document_id"),
        section=_optional_str(args.get("section")),
        provision_ref=_optional_str(args.get("provision_ref")),
    ),
    "validate_citation": lambda db, args: validate_citation_tool(db, args.get("citation")),
    "format_citation": lambda db, args: format_citation_tool(
        db, args.get("citation"), _optional_str(args.get("format")) or "full"
    ),
    "check_currency": lambda db, args: check_currency(
        db,
        document_id=args.get("document_id"),
        provision_ref=_optional_str(args.get("provision_ref")),
    ),
    "get_eu_basis": lambda db, args: get_eu_basis(
        db,
        document_id=args.get("document_id"),
        include_articles=_bool(args.get("include_articles", False)),
        reference_types=_string_list(args.get("reference_types")),
    ),
    "get_luxembourg_implementations": lambda db, args: get_luxembourg_implementations(
        db,
        eu_document_id=args.get("eu_document_id"),
        primary_only=_bool(args.get("primary_only", False)),
        in_force_only=_bool(args.get("in_force_only", False)),
    ),
    "get_provision_eu_basis": lambda db, args: get_provision_eu_basis(
        db,
        document_id=args.get("document_id"),
        provision_ref=args.get("provision_ref"),
    ),
    "list_sources": lambda db, args: list_sources(db),
    "about": lambda db, args: about(db),
}


def tool_names() -> list[str]:
    return [tool["name"] for tool in TOOLS]


def call_tool(db: Session, name: str, arguments: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """Run one tool.

    Raises:
        ValueError: unknown tool name or malformed arguments
    """
    handler = _HANDLERS.get(name)
    if handler is None:
        raise ValueError(f"Unknown tool: {name}")
    return handler(db, arguments or {})
