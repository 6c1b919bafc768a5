"""Tests for the Legilux client, request pacing and SPARQL discovery."""

import json

import httpx
import pytest

from luxembourg_law.models.schemas import LawIndexEntry
from luxembourg_law.pipeline.collectors.legilux_collector import (
    LegiluxClient,
    RequestScheduler,
    SparqlQueryError,
    build_xml_url,
    is_html_error_page,
)
from luxembourg_law.pipeline.discovery import (
    build_discovery_query,
    dedupe_by_uri,
    discover_laws,
    load_law_index,
    save_law_index,
)

SPARQL_ENDPOINT = "https://sparql.test/sparql"


class FakeClock:
    """Manual clock; `sleep` advances it instead of waiting."""

    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def make_client(handler, scheduler=None):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LegiluxClient(
        http_client=http_client,
        scheduler=scheduler or RequestScheduler(min_delay=0),
        sparql_endpoint=SPARQL_ENDPOINT,
    )


def binding(uri, date, title="Loi", xml_url=None):
    row = {
        "act": {"type": "uri", "value": uri},
        "date": {"type": "literal", "value": date},
        "title": {"type": "literal", "value": title},
    }
    if xml_url:
        row["xmlUrl"] = {"type": "uri", "value": xml_url}
    return row


class TestHelpers:

    def test_build_xml_url(self):
        assert build_xml_url("http://data.legilux.public.lu/eli/etat/leg/loi/2026/02/05/a33/jo") == (
            "https://data.legilux.public.lu/filestore/eli/etat/leg/loi/2026/02/05/a33/jo/fr/xml/"
            "eli-etat-leg-loi-2026-02-05-a33-jo-fr-xml.xml"
        )

    def test_is_html_error_page(self):
        assert is_html_error_page("<!DOCTYPE html><html></html>")
        assert is_html_error_page("<html><body>Erreur</body></html>")
        assert not is_html_error_page("<?xml version='1.0'?><akomaNtoso/>")

    def test_discovery_query_with_and_without_xml(self):
        with_xml = build_discovery_query("LOI", 100, 200)
        assert "?xmlUrl" in with_xml
        assert "resource-type/LOI>" in with_xml
        assert "LIMIT 100" in with_xml and "OFFSET 200" in with_xml

        without_xml = build_discovery_query("RGD", 10, 0, include_xml=False)
        assert "?xmlUrl" not in without_xml

    def test_dedupe_by_uri_keeps_greatest_date(self):
        entries = [
            LawIndexEntry(uri="u1", date="2020-01-01", title="old", typeDocument="LOI"),
            LawIndexEntry(uri="u1", date="2021-06-01", title="new", typeDocument="LOI"),
            LawIndexEntry(uri="u1", date="2019-01-01", title="older", typeDocument="LOI"),
            LawIndexEntry(uri="u2", date="2020-01-01", title="other", typeDocument="RGD"),
        ]
        result = dedupe_by_uri(entries)
        assert [(e.uri, e.title) for e in result] == [("u1", "new"), ("u2", "other")]

    def test_law_index_round_trip_uses_wire_names(self, tmp_path):
        path = tmp_path / "source" / "law-index.json"
        entry = LawIndexEntry(uri="u1", date="2020-01-01", title="Loi", typeDocument="LOI", xmlUrl="x.xml")
        save_law_index([entry], path)

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw[0]["typeDocument"] == "LOI"
        assert raw[0]["xmlUrl"] == "x.xml"
        assert load_law_index(path) == [entry]


@pytest.mark.anyio
class TestRequestScheduler:

    async def test_requests_are_spaced_by_min_delay(self):
        clock = FakeClock()
        scheduler = RequestScheduler(min_delay=0.5, clock=clock, sleep=clock.sleep)

        async with scheduler.slot():
            pass
        clock.now += 0.2
        async with scheduler.slot():
            pass
        async with scheduler.slot():
            pass

        assert clock.sleeps == [pytest.approx(0.3), pytest.approx(0.5)]

    async def test_no_wait_after_long_gap(self):
        clock = FakeClock()
        scheduler = RequestScheduler(min_delay=0.5, clock=clock, sleep=clock.sleep)

        async with scheduler.slot():
            pass
        clock.now += 10
        async with scheduler.slot():
            pass

        assert clock.sleeps == []


@pytest.mark.anyio
class TestSparqlQuery:

    async def test_returns_bindings_and_sends_accept_header(self):
        seen = {}

        def handler(request):
            seen["accept"] = request.headers["accept"]
            seen["query"] = request.url.params["query"]
            return httpx.Response(200, json={"results": {"bindings": [binding("u1", "2020-01-01")]}})

        async with make_client(handler) as client:
            rows = await client.sparql_query("SELECT * WHERE {}")

        assert seen["accept"] == "application/sparql-results+json"
        assert seen["query"] == "SELECT * WHERE {}"
        assert rows[0]["act"]["value"] == "u1"

    async def test_non_2xx_raises(self):
        async with make_client(lambda request: httpx.Response(503, text="busy")) as client:
            with pytest.raises(SparqlQueryError) as exc_info:
                await client.sparql_query("SELECT")
        assert exc_info.value.status_code == 503

    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(SparqlQueryError):
                await client.sparql_query("SELECT")

    async def test_invalid_json_raises(self):
        async with make_client(lambda request: httpx.Response(200, text="not json")) as client:
            with pytest.raises(SparqlQueryError):
                await client.sparql_query("SELECT")


@pytest.mark.anyio
class TestFetch:

    async def test_fetch_xml_rejects_html_error_pages(self):
        def handler(request):
            if request.url.path.endswith("ok.xml"):
                return httpx.Response(200, text="<akomaNtoso/>")
            return httpx.Response(200, text="<!DOCTYPE html><html>Erreur</html>")

        async with make_client(handler) as client:
            assert await client.fetch_xml("https://files.test/ok.xml") == "<akomaNtoso/>"
            assert await client.fetch_xml("https://files.test/error.xml") is None

    async def test_fetch_text_returns_none_on_failure(self):
        async with make_client(lambda request: httpx.Response(404)) as client:
            assert await client.fetch_text("https://files.test/missing") is None


@pytest.mark.anyio
class TestDiscoverLaws:

    async def test_pagination_stops_on_short_page(self):
        rows = [binding(f"http://x/eli/{i}", f"2020-01-0{i + 1}") for i in range(5)]
        offsets = []

        def handler(request):
            query = request.url.params["query"]
            offset = int(query.split("OFFSET")[1].strip())
            offsets.append(offset)
            return httpx.Response(200, json={"results": {"bindings": rows[offset:offset + 2]}})

        async with make_client(handler) as client:
            entries = await discover_laws(client, doc_types=["LOI"], page_size=2)

        assert offsets == [0, 2, 4]
        assert len(entries) == 5
        assert all(e.type_document == "LOI" for e in entries)

    async def test_types_are_merged_and_deduplicated(self):
        def handler(request):
            query = request.url.params["query"]
            if "resource-type/LOI>" in query:
                return httpx.Response(200, json={"results": {"bindings": [binding("u1", "2020-01-01", xml_url="a.xml")]}})
            return httpx.Response(
                200,
                json={"results": {"bindings": [binding("u1", "2021-01-01"), binding("u2", "2019-01-01")]}},
            )

        async with make_client(handler) as client:
            entries = await discover_laws(client, doc_types=["LOI", "RGD"], page_size=10)

        by_uri = {e.uri: e for e in entries}
        assert set(by_uri) == {"u1", "u2"}
        assert by_uri["u1"].date == "2021-01-01"
        assert by_uri["u1"].type_document == "RGD"

    async def test_bindings_without_act_are_ignored(self):
        def handler(request):
            return httpx.Response(200, json={"results": {"bindings": [{"date": {"value": "2020"}}]}})

        async with make_client(handler) as client:
            assert await discover_laws(client, doc_types=["LOI"], page_size=10) == []

    async def test_failed_page_propagates(self):
        async with make_client(lambda request: httpx.Response(500, text="boom")) as client:
            with pytest.raises(SparqlQueryError):
                await discover_laws(client, doc_types=["LOI"], page_size=10)
