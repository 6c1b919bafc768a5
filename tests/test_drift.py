"""Tests for drift detection against golden hashes."""

import json
from pathlib import Path

import httpx
import pytest

from luxembourg_law.pipeline.collectors.legilux_collector import LegiluxClient, RequestScheduler
from luxembourg_law.pipeline.drift import (
    COMPUTE_ON_FIRST_RUN,
    DriftReport,
    GoldenHashEntry,
    GoldenHashes,
    content_hash,
    detect_drift,
    load_golden_hashes,
    normalize_text,
    save_golden_hashes,
)

PAGE = "<html><body>Loi du 28 mai 2019\n  concernant les  Systèmes d'information</body></html>"
FIXTURE = Path(__file__).resolve().parent.parent / "fixtures" / "golden-hashes.json"


def make_client(handler):
    return LegiluxClient(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        scheduler=RequestScheduler(min_delay=0),
    )


def anchor(expected=COMPUTE_ON_FIRST_RUN, url="https://legilux.test/loi", snippet="systèmes d'information"):
    return GoldenHashEntry(
        id="lu-loi",
        description="Loi",
        upstream_url=url,
        expected_sha256=expected,
        expected_snippet=snippet,
    )


class TestHashing:

    def test_normalize_text(self):
        assert normalize_text("  Loi\n du\t2 AOÛT  ") == "loi du 2 août"

    def test_hash_ignores_whitespace_and_case(self):
        assert content_hash("Loi du 2 août") == content_hash("  LOI  du\n2 AOÛT ")
        assert content_hash("Loi du 2 août") != content_hash("Loi du 3 août")
        assert len(content_hash("x")) == 64


class TestDriftReport:

    @pytest.mark.parametrize(
        "report, code",
        [
            (DriftReport(ok=2), 0),
            (DriftReport(errors=1), 1),
            (DriftReport(drift=1, errors=1), 2),
            (DriftReport(skipped=3), 0),
        ],
    )
    def test_exit_code(self, report, code):
        assert report.exit_code == code


@pytest.mark.anyio
class TestDetectDrift:

    async def test_unseeded_anchor_is_skipped_without_seed_mode(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=PAGE)

        async with make_client(handler) as client:
            report = await detect_drift(GoldenHashes(provisions=[anchor()]), client=client)

        assert report.skipped == 1
        assert report.exit_code == 0
        assert requests == []

    async def test_seed_mode_fills_in_the_hash(self):
        hashes = GoldenHashes(provisions=[anchor()])

        async with make_client(lambda request: httpx.Response(200, text=PAGE)) as client:
            report = await detect_drift(hashes, seed_mode=True, client=client)

        assert report.seeded == 1
        assert hashes.provisions[0].expected_sha256 == content_hash(PAGE)

    async def test_seed_mode_seeds_even_without_snippet(self):
        hashes = GoldenHashes(provisions=[anchor(snippet="absent du texte")])

        async with make_client(lambda request: httpx.Response(200, text=PAGE)) as client:
            report = await detect_drift(hashes, seed_mode=True, client=client)

        assert report.seeded == 1

    async def test_matching_hash(self):
        hashes = GoldenHashes(provisions=[anchor(expected=content_hash(PAGE))])

        async with make_client(lambda request: httpx.Response(200, text=PAGE)) as client:
            report = await detect_drift(hashes, client=client)

        assert report.ok == 1
        assert report.exit_code == 0

    async def test_changed_page_is_drift(self):
        hashes = GoldenHashes(provisions=[anchor(expected=content_hash(PAGE))])

        async with make_client(lambda request: httpx.Response(200, text=PAGE + " modifié")) as client:
            report = await detect_drift(hashes, client=client)

        assert report.drift == 1
        assert report.drifted_ids == ["lu-loi"]
        assert report.exit_code == 2

    async def test_fetch_failure_is_an_error(self):
        hashes = GoldenHashes(provisions=[anchor(expected=content_hash(PAGE))])

        async with make_client(lambda request: httpx.Response(404)) as client:
            report = await detect_drift(hashes, client=client)

        assert report.errors == 1
        assert report.exit_code == 1


class TestGoldenHashesFile:

    def test_shipped_fixture_loads(self):
        hashes = load_golden_hashes(FIXTURE)
        assert hashes.jurisdiction == "LU"
        assert hashes.schema_.startswith("https://json-schema.org/")
        assert all(p.expected_sha256 == COMPUTE_ON_FIRST_RUN for p in hashes.provisions)

    def test_save_keeps_schema_key(self, tmp_path):
        path = tmp_path / "golden-hashes.json"
        hashes = load_golden_hashes(FIXTURE)
        hashes.provisions[0].expected_sha256 = "ab" * 32

        save_golden_hashes(hashes, path)

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert "$schema" in raw
        assert "schema_" not in raw
        assert load_golden_hashes(path).provisions[0].expected_sha256 == "ab" * 32
