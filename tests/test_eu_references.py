"""Tests for EU directive/regulation citation extraction."""

import pytest

from luxembourg_law.pipeline.eu_references import (
    eu_document_title,
    extract_eu_references,
    infer_reference_type,
    infer_regulation_year_and_number,
    parse_eu_year,
)


class TestParseEuYear:

    @pytest.mark.parametrize(
        "raw,expected",
        [("95", 1995), ("57", 1957), ("16", 2016), ("2016", 2016), ("1956", None), ("2913", None), ("ab", None)],
    )
    def test_years(self, raw, expected):
        assert parse_eu_year(raw) == expected


class TestRegulationNumbering:

    def test_modern_year_first(self):
        assert infer_regulation_year_and_number("EU", "2016", "679") == (2016, 679)

    def test_legacy_number_first(self):
        assert infer_regulation_year_and_number("CE", "45", "2001") == (2001, 45)

    def test_ambiguous_pair_uses_era_default(self):
        # both tokens read as years
        assert infer_regulation_year_and_number("CE", "95", "96") == (1996, 95)
        assert infer_regulation_year_and_number("EU", "95", "96") == (1995, 96)

    def test_neither_token_is_a_year(self):
        assert infer_regulation_year_and_number("EU", "5000", "3000") is None

    def test_zero_or_non_numeric_tokens(self):
        assert infer_regulation_year_and_number("EU", "0", "2016") is None
        assert infer_regulation_year_and_number("EU", "x", "2016") is None


class TestExtractEuReferences:

    def test_directive(self):
        refs = extract_eu_references("portant transposition de la directive 2016/1148/UE du Parlement européen")
        assert len(refs) == 1
        ref = refs[0]
        assert ref.eu_document_id == "directive:2016/1148"
        assert ref.type == "directive"
        assert ref.community == "EU"
        assert ref.full_citation == "directive 2016/1148/UE"

    def test_two_digit_directive_year(self):
        refs = extract_eu_references("la directive 95/46/CE relative à la protection des données")
        assert refs[0].eu_document_id == "directive:1995/46"
        assert refs[0].community == "CE"

    def test_modern_regulation(self):
        refs = extract_eu_references("mesures d'exécution du règlement (UE) 2016/679 du Parlement européen")
        assert [r.eu_document_id for r in refs] == ["regulation:2016/679"]

    def test_legacy_regulation_with_number_sign(self):
        refs = extract_eu_references("règlement (CEE) n° 2913/92 du Conseil")
        assert refs[0].eu_document_id == "regulation:1992/2913"
        assert refs[0].community == "CEE"

    def test_first_occurrence_per_id_is_kept(self):
        text = "la directive 2016/1148/UE et encore la Directive 2016/1148/EU"
        refs = extract_eu_references(text)
        assert len(refs) == 1
        assert refs[0].full_citation == "directive 2016/1148/UE"

    def test_no_citation(self):
        assert extract_eu_references("Loi du 2 août 2002 relative à la protection des personnes") == []

    @pytest.mark.parametrize(
        "text,doc_type,year,number",
        [
            ("la directive 2016/1148/UE", "directive", 2016, 1148),
            ("la directive 2022/2555/UE", "directive", 2022, 2555),
            ("la directive 95/46/CE", "directive", 1995, 46),
            ("la directive 02/58/CE", "directive", 2002, 58),
            ("le règlement (UE) 2016/679", "regulation", 2016, 679),
            ("le règlement (CE) n° 45/2001", "regulation", 2001, 45),
            ("le reglement (CE) no 1234/2007", "regulation", 2007, 1234),
            ("le règlement (CEE) n° 2913/92", "regulation", 1992, 2913),
            ("le règlement (Euratom) n° 3954/87", "regulation", 1987, 3954),
        ],
    )
    def test_synthetic_id_round_trips(self, text, doc_type, year, number):
        refs = extract_eu_references(text)
        assert [r.eu_document_id for r in refs] == [f"{doc_type}:{year}/{number}"]
        assert (refs[0].type, refs[0].year, refs[0].number) == (doc_type, year, number)


class TestReferenceType:

    def test_implementation_markers(self):
        assert infer_reference_type("portant transposition de la directive") == ("implements", True)
        assert infer_reference_type("Loi mettant en oeuvre le règlement") == ("implements", True)

    def test_plain_reference(self):
        assert infer_reference_type("portant exécution du règlement (CEE)") == ("references", False)


def test_eu_document_title():
    ref = extract_eu_references("directive 2016/1148/UE")[0]
    assert eu_document_title(ref) == "Directive 2016/1148/EU"
