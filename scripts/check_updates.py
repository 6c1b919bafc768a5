"""Check Legilux for updated or new legislation.

Exit codes
  0  no updates or new documents
  1  updates/new documents found, or the check failed

Usage:
  python3 scripts/check_updates.py
  python3 scripts/check_updates.py --json --output data/update-summary.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from luxembourg_law.pipeline.update_check import check_updates, render_summary
from luxembourg_law.repository.db import SessionLocal


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Check local statutes against Legilux")
    p.add_argument("--json", action="store_true", help="Print the summary as JSON")
    p.add_argument("--output", type=str, help="Also write the JSON summary to this file")
    return p.parse_args()


async def _run(args: argparse.Namespace) -> int:
    with SessionLocal() as db:
        summary = await check_updates(db)

    payload = summary.model_dump(by_alias=True)

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")

    if args.json:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(render_summary(summary))

    if summary.error:
        return 1
    return 1 if summary.has_changes else 0


def main() -> None:
    args = _parse_args()
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
