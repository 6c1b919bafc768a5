"""Collapse provisions sharing a reference within one document."""

from __future__ import annotations

import re

from luxembourg_law.models.schemas import DedupStats, SeedProvision


def normalize_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def pick_preferred_provision(existing: SeedProvision, incoming: SeedProvision) -> SeedProvision:
    """Richer content wins; a missing title is borrowed from the loser."""
    if len(normalize_whitespace(incoming.content)) > len(normalize_whitespace(existing.content)):
        return incoming.model_copy(
            update={
                "provision_ref": existing.provision_ref,
                "title": incoming.title if incoming.title is not None else existing.title,
            }
        )

    return existing.model_copy(
        update={"title": existing.title if existing.title is not None else incoming.title}
    )


def dedupe_provisions(
    provisions: list[SeedProvision],
) -> tuple[list[SeedProvision], DedupStats]:
    """Deduplicate by trimmed `provision_ref`, keeping first-seen order."""
    by_ref: dict[str, SeedProvision] = {}
    stats = DedupStats()

    for provision in provisions:
        ref = provision.provision_ref.strip()
        existing = by_ref.get(ref)

        if existing is None:
            by_ref[ref] = provision.model_copy(update={"provision_ref": ref})
            continue

        stats.duplicate_refs += 1
        if normalize_whitespace(existing.content) != normalize_whitespace(provision.content):
            stats.conflicting_duplicates += 1

        by_ref[ref] = pick_preferred_provision(existing, provision)

    return list(by_ref.values()), stats
