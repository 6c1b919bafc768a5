"""Response envelope shared by every tool: `{"results": ..., "_metadata": {...}}`."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from luxembourg_law.config.settings import settings
from luxembourg_law.models.entities import BuildMetadata
from luxembourg_law.utils.logger import get_logger

logger = get_logger(__name__)

DATA_SOURCE = "Legilux (legilux.public.lu), Service central de législation"
JURISDICTION = "LU"
DISCLAIMER = (
    "Research tool, not legal advice. Statute text is derived from Legilux open data; "
    "verify against the official Journal officiel when legal certainty is required."
)


def read_build_metadata(db: Session) -> dict[str, str]:
    """All `db_metadata` rows; empty when the table is missing or unreadable."""
    try:
        rows = db.execute(select(BuildMetadata.key, BuildMetadata.value)).all()
    except SQLAlchemyError as e:
        logger.warning(f"Could not read build metadata: {e}")
        return {}
    return {row.key: row.value for row in rows}


def days_since(timestamp: Optional[str]) -> Optional[int]:
    if not timestamp:
        return None
    try:
        built = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None
    if built.tzinfo is None:
        built = built.replace(tzinfo=timezone.utc)
    return (datetime.now(timezone.utc) - built).days


def response_metadata(db: Session) -> dict[str, Any]:
    build = read_build_metadata(db)
    built_at = build.get("built_at")
    days_old = days_since(built_at)

    return {
        "data_source": DATA_SOURCE,
        "jurisdiction": JURISDICTION,
        "disclaimer": DISCLAIMER,
        "freshness": {
            "built_at": built_at,
            "schema_version": build.get("schema_version"),
            "days_old": days_old,
            "is_stale": days_old is not None and days_old > settings.staleness_threshold_days,
        },
    }


def tool_response(db: Session, results: Any, **extra_metadata: Any) -> dict[str, Any]:
    metadata = response_metadata(db)
    metadata.update(extra_metadata)
    return {"results": results, "_metadata": metadata}
