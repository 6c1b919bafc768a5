"""search_legislation tool."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from luxembourg_law.models.entities import DOCUMENT_STATUSES
from luxembourg_law.repository.fts_queries import search_provisions
from luxembourg_law.tools.metadata import tool_response
from luxembourg_law.tools.statutes import require_text, resolve_document
from luxembourg_law.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 50


def clamp_limit(limit: Any, default: int = DEFAULT_LIMIT, maximum: int = MAX_LIMIT) -> int:
    if limit is None:
        return default
    try:
        value = int(limit)
    except (TypeError, ValueError):
        raise ValueError(f"limit must be an integer, got {limit!r}")
    return max(1, min(value, maximum))


def search_legislation(
    db: Session,
    query: str,
    document_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: Any = DEFAULT_LIMIT,
) -> dict[str, Any]:
    query = require_text(query, "query")
    if status and status not in DOCUMENT_STATUSES:
        raise ValueError(f"status must be one of {', '.join(DOCUMENT_STATUSES)}")

    if document_id:
        doc = resolve_document(db, document_id)
        document_id = doc.id if doc is not None else document_id

    try:
        results = search_provisions(
            db,
            query=query,
            document_id=document_id,
            status=status,
            limit=clamp_limit(limit),
        )
    except (OperationalError, ProgrammingError) as e:
        logger.error(f"Full-text query failed for {query!r}: {e}")
        raise ValueError(f"Invalid search query: {query}") from e

    return tool_response(db, results)
