"""Rebuild the database from seed files.

Drops and recreates every table and full-text index, then loads
data/seed/*.json and derives EU documents/references from provision text.

Usage:
  python3 scripts/build_db.py
  python3 scripts/build_db.py --seed-dir data/seed
"""

from __future__ import annotations

import argparse

from luxembourg_law.config.settings import settings
from luxembourg_law.pipeline.build_db import build_database
from luxembourg_law.repository.db import create_db_engine, ensure_sqlite_directory


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Build the legislation database from seed files")
    p.add_argument("--seed-dir", default=settings.data_seed_dir, help="Seed input directory")
    p.add_argument("--database-url", default=settings.database_url, help="SQLAlchemy URL")
    return p.parse_args()


def main() -> None:
    args = _parse_args()

    engine = create_db_engine(args.database_url)
    ensure_sqlite_directory(engine)

    stats = build_database(engine, args.seed_dir)

    print("✅ Database build complete")
    print(f"  Documents:     {stats.documents}")
    print(f"  Provisions:    {stats.provisions}")
    print(f"  Definitions:   {stats.definitions}")
    print(f"  EU documents:  {stats.eu_documents}")
    print(f"  EU references: {stats.eu_references}")
    if stats.duplicate_refs:
        print(
            f"  Deduplicated:  {stats.duplicate_refs} duplicate refs "
            f"({stats.conflicting_duplicates} with differing text)"
        )


if __name__ == "__main__":
    main()
