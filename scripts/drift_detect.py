"""Detect upstream drift against golden content hashes.

Exit codes
  0  all anchors match (or were seeded)
  1  fetch errors
  2  drift detected

Usage:
  python3 scripts/drift_detect.py
  python3 scripts/drift_detect.py --seed   # fill COMPUTE_ON_FIRST_RUN hashes
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from luxembourg_law.config.settings import settings
from luxembourg_law.pipeline.drift import detect_drift, load_golden_hashes, save_golden_hashes


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Compare upstream content with golden hashes")
    p.add_argument("--seed", action="store_true", help="Compute hashes marked COMPUTE_ON_FIRST_RUN")
    p.add_argument("--hashes", default=settings.golden_hashes_path, help="Golden hashes JSON file")
    return p.parse_args()


async def _run(args: argparse.Namespace) -> int:
    hashes = load_golden_hashes(args.hashes)
    print(f"Drift detection: {len(hashes.provisions)} anchors")

    report = await detect_drift(hashes, seed_mode=args.seed)

    if args.seed and report.seeded:
        save_golden_hashes(hashes, args.hashes)
        print(f"Updated {args.hashes} with {report.seeded} seeded hashes")

    print(
        f"Results: {report.ok} OK, {report.drift} drift, "
        f"{report.errors} errors, {report.seeded} seeded, {report.skipped} skipped"
    )
    if report.drifted_ids:
        print(f"Drifted: {', '.join(report.drifted_ids)}", file=sys.stderr)

    return report.exit_code


def main() -> None:
    args = _parse_args()
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
