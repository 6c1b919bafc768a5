"""Tests for building the database from seed files."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from luxembourg_law.citation.validator import validate_citation
from luxembourg_law.models.entities import (
    BuildMetadata,
    EUDocument,
    EUReference,
    LegalDocument,
    LegalProvision,
)
from luxembourg_law.pipeline.build_db import list_seed_files
from luxembourg_law.repository.fts_queries import build_fts_query, search_provisions


class TestSeedFiles:

    def test_excluded_and_hidden_files_are_skipped(self, seed_dir):
        for name in ["b.json", "a.json", ".hidden.json", "_draft.json", "eu-references.json",
                     "eurlex-documents.json", "notes.txt"]:
            (seed_dir / name).write_text("{}", encoding="utf-8")

        assert [p.name for p in list_seed_files(seed_dir)] == ["a.json", "b.json"]

    def test_missing_directory(self, tmp_path):
        assert list_seed_files(tmp_path / "absent") == []


class TestBuildDatabase:

    def test_counts(self, sample_corpus):
        assert sample_corpus.documents == 3
        assert sample_corpus.provisions == 4
        assert sample_corpus.eu_documents == 2
        assert sample_corpus.eu_references == 2
        assert sample_corpus.duplicate_refs == 0

    def test_documents_are_unverified_in_force_by_default(self, sample_corpus, db):
        doc = db.get(LegalDocument, "loi-2002-08-02-n2")
        assert doc.status == "in_force"
        assert doc.status_verified is False
        assert [p.provision_ref for p in doc.provisions] == ["art1", "art3"]

    def test_eu_documents_and_references(self, sample_corpus, db):
        nis = db.get(EUDocument, "directive:2016/1148")
        assert nis.short_name == "NIS Directive"
        assert nis.community == "EU"

        customs = db.get(EUDocument, "regulation:1992/2913")
        assert customs.number == 2913
        assert customs.community == "CEE"

        refs = {r.eu_document_id: r for r in db.scalars(select(EUReference))}
        assert refs["directive:2016/1148"].reference_type == "implements"
        assert refs["directive:2016/1148"].is_primary_implementation is True
        assert refs["directive:2016/1148"].source_type == "document"
        assert refs["directive:2016/1148"].provision_id is None
        assert refs["regulation:1992/2913"].reference_type == "references"
        assert refs["regulation:1992/2913"].is_primary_implementation is False

    def test_build_metadata(self, sample_corpus, db):
        meta = {row.key: row.value for row in db.scalars(select(BuildMetadata))}
        assert meta["schema_version"] == "2"
        assert meta["jurisdiction"] == "LU"
        assert meta["tier"] == "free"
        assert meta["built_at"]

    def test_rebuild_replaces_previous_contents(self, sample_corpus, build, seed_dir, db):
        (seed_dir / "rgd-1995-03-01-a1.json").unlink()
        stats = build()

        assert stats.documents == 2
        assert db.get(LegalDocument, "rgd-1995-03-01-a1") is None
        assert db.get(EUDocument, "regulation:1992/2913") is None

    def test_one_document_level_reference_per_eu_document(self, write_seed, build, db):
        write_seed(
            id="loi-2019-05-28-a372",
            title="Loi du 28 mai 2019 portant transposition de la directive 2016/1148/UE",
            description="Transpose la Directive 2016/1148/EU (NIS).",
        )
        build()
        stats = build()

        rows = db.execute(select(EUReference.document_id, EUReference.eu_document_id)).all()
        assert stats.eu_references == 1
        assert rows == [("loi-2019-05-28-a372", "directive:2016/1148")]

    def test_empty_seed_directory_builds_empty_schema(self, build, db):
        stats = build()
        assert stats.documents == 0
        assert db.scalars(select(LegalDocument)).all() == []

    def test_duplicate_urls_abort_the_batch(self, write_seed, build, db):
        write_seed(id="a", title="Loi A", url="http://x/1")
        write_seed(id="b", title="Loi B", url="http://x/1")

        with pytest.raises(IntegrityError):
            build()


class TestDeduplicationEndToEnd:

    def test_duplicate_first_article_keeps_longer_text(self, write_seed, build, db):
        write_seed(
            id="loi-1799-04-11-a",
            title="Loi du 11 avril 1799",
            provisions=[
                {"provision_ref": "art1", "section": "1", "title": "Article 1er", "content": "contenu A"},
                {"provision_ref": "art1", "section": "1", "content": "contenu A plus long et détaillé"},
            ],
        )
        write_seed(
            id="loi-1799-04-11-b",
            title="Loi du 11 avril 1799 portant règlement des frais de justice en matière civile",
            provisions=[{"provision_ref": "art1", "section": "1", "content": "autre"}],
        )
        stats = build()

        assert stats.duplicate_refs == 1
        assert stats.conflicting_duplicates == 1

        result = validate_citation(db, "Loi du 11 avril 1799, art. I.er")
        assert result.document_exists
        assert result.provision_exists
        assert result.document_title == "Loi du 11 avril 1799"

        provisions = db.scalars(
            select(LegalProvision).where(LegalProvision.document_id == "loi-1799-04-11-a")
        ).all()
        assert len(provisions) == 1
        assert provisions[0].content == "contenu A plus long et détaillé"
        assert provisions[0].title == "Article 1er"


class TestFullTextSearch:

    def test_build_fts_query(self):
        assert build_fts_query("données personnelles") == "données* personnelles*"
        assert build_fts_query("l'article") == "article*"
        assert build_fts_query("données AND personnelles") == "données AND personnelles"
        assert build_fts_query('"protection des données"') == '"protection des données"'
        assert build_fts_query("   ") == ""

    def test_prefix_search_with_snippet(self, sample_corpus, db):
        results = search_provisions(db, query="traitem")
        assert [r["provision_ref"] for r in results] == ["art3"]
        assert results[0]["document_id"] == "loi-2002-08-02-n2"
        assert ">>>" in results[0]["snippet"]

    def test_filters(self, sample_corpus, db):
        assert search_provisions(db, query="présente", document_id="loi-2019-05-28-a372")[0][
            "document_id"
        ] == "loi-2019-05-28-a372"
        assert search_provisions(db, query="dispositions", status="in_force") == []
        assert len(search_provisions(db, query="dispositions", status="repealed")) == 1

    def test_limit(self, sample_corpus, db):
        assert len(search_provisions(db, query="présente", limit=1)) == 1
