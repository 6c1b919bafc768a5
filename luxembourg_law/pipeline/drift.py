"""Drift detection against golden hashes of upstream resources.

`fixtures/golden-hashes.json` lists anchors (an upstream URL plus the SHA-256
of its normalized text). Entries whose hash is `COMPUTE_ON_FIRST_RUN` are
filled in seed mode.
"""

from __future__ import annotations

import hashlib
import json
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from luxembourg_law.config.settings import settings
from luxembourg_law.pipeline.collectors.legilux_collector import LegiluxClient, RequestScheduler
from luxembourg_law.utils.logger import get_logger

logger = get_logger(__name__)

COMPUTE_ON_FIRST_RUN = "COMPUTE_ON_FIRST_RUN"
DRIFT_SPACING_SECONDS = 1.0


class GoldenHashEntry(BaseModel):
    id: str
    description: str = ""
    upstream_url: str
    selector_hint: str = ""
    expected_sha256: str
    expected_snippet: str = ""


class GoldenHashes(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    schema_: str = Field(default="", alias="$schema")
    version: str = "1.0"
    mcp_name: str = ""
    jurisdiction: str = "LU"
    description: str = ""
    provisions: list[GoldenHashEntry] = Field(default_factory=list)


class DriftReport(BaseModel):
    ok: int = 0
    drift: int = 0
    errors: int = 0
    seeded: int = 0
    skipped: int = 0
    drifted_ids: list[str] = Field(default_factory=list)

    @property
    def exit_code(self) -> int:
        if self.drift:
            return 2
        if self.errors:
            return 1
        return 0


def normalize_text(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip().lower()


def content_hash(text: str) -> str:
    return hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()


def load_golden_hashes(path: Optional[str | Path] = None) -> GoldenHashes:
    path = Path(path or settings.golden_hashes_path)
    return GoldenHashes.model_validate(json.loads(path.read_text(encoding="utf-8")))


def save_golden_hashes(hashes: GoldenHashes, path: Optional[str | Path] = None) -> None:
    path = Path(path or settings.golden_hashes_path)
    payload = hashes.model_dump(by_alias=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")


async def detect_drift(
    hashes: GoldenHashes,
    *,
    seed_mode: bool = False,
    client: Optional[LegiluxClient] = None,
) -> DriftReport:
    """Fetch every anchor and compare (or seed) its hash; mutates `hashes` when seeding."""
    report = DriftReport()
    owns_client = client is None
    client = client or LegiluxClient(
        scheduler=RequestScheduler(min_delay=DRIFT_SPACING_SECONDS),
        timeout=settings.drift_timeout_seconds,
    )

    try:
        for entry in hashes.provisions:
            needs_seed = entry.expected_sha256 == COMPUTE_ON_FIRST_RUN

            if needs_seed and not seed_mode:
                logger.info(f"SKIP  {entry.id}: {entry.description} (run with --seed to compute)")
                report.skipped += 1
                continue

            text = await client.fetch_text(
                entry.upstream_url, timeout=settings.drift_timeout_seconds
            )
            if text is None:
                logger.error(f"ERROR {entry.id}: Failed to fetch {entry.upstream_url}")
                report.errors += 1
                continue

            digest = content_hash(text)

            if needs_seed:
                if normalize_text(entry.expected_snippet) not in normalize_text(text):
                    logger.warning(
                        f"WARN  {entry.id}: Snippet \"{entry.expected_snippet}\" not found "
                        "in response, seeding anyway"
                    )
                entry.expected_sha256 = digest
                logger.info(f"SEED  {entry.id}: {digest[:16]}... ({entry.description})")
                report.seeded += 1
            elif digest != entry.expected_sha256:
                logger.warning(f"DRIFT {entry.id}: {entry.description}")
                logger.warning(f"      Expected: {entry.expected_sha256}")
                logger.warning(f"      Got:      {digest}")
                report.drift += 1
                report.drifted_ids.append(entry.id)
            else:
                logger.info(f"OK    {entry.id}: {entry.description}")
                report.ok += 1
    finally:
        if owns_client:
            await client.aclose()

    logger.info(
        f"Results: {report.ok} OK, {report.drift} drift, "
        f"{report.errors} errors, {report.seeded} seeded"
    )
    return report
