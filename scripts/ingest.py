"""Discover Luxembourg acts on Legilux and write one seed JSON per act.

Usage examples
  # Full run: SPARQL discovery, then fetch/parse every act
  python3 scripts/ingest.py

  # First 20 acts, reusing data/source/law-index.json
  python3 scripts/ingest.py --limit 20 --skip-discovery

  # Specific seed ids, overwriting existing seeds
  python3 scripts/ingest.py --id loi-2002-08-02-n2 --force
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from luxembourg_law.config.settings import settings
from luxembourg_law.pipeline.ingest import run_ingestion


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Ingest Luxembourg legislation from Legilux")

    p.add_argument("--limit", type=int, default=0, help="Process at most N acts (0 = all)")
    p.add_argument(
        "--id",
        "--ids",
        action="append",
        dest="ids",
        help="Seed id to process (repeatable, comma-separated values accepted)",
    )
    p.add_argument("--force", action="store_true", help="Overwrite existing seed files")
    p.add_argument(
        "--skip-discovery",
        action="store_true",
        help="Reuse the cached law index instead of querying SPARQL",
    )
    p.add_argument("--seed-dir", default=settings.data_seed_dir, help="Seed output directory")

    return p.parse_args()


def _requested_ids(raw: list[str] | None) -> list[str]:
    ids: list[str] = []
    for value in raw or []:
        ids.extend(part.strip() for part in value.split(",") if part.strip())
    return ids


async def _run(args: argparse.Namespace) -> int:
    stats = await run_ingestion(
        limit=args.limit,
        requested_ids=_requested_ids(args.ids),
        force=args.force,
        skip_discovery=args.skip_discovery,
        seed_dir=args.seed_dir,
    )

    print("Ingestion complete")
    print(f"  Processed:   {stats.processed}")
    print(f"  Skipped:     {stats.skipped}")
    print(f"  Failed:      {stats.failed}")
    print(f"  No articles: {stats.no_articles}")
    if stats.missing_ids:
        print(f"  Unknown ids: {', '.join(stats.missing_ids)}", file=sys.stderr)

    return 0


def main() -> None:
    args = _parse_args()
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
