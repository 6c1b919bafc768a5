"""Tests for the Akoma Ntoso law parser."""

import pytest

from luxembourg_law.pipeline.parsers.akn_parser import (
    extract_article_num,
    normalize_article_ref,
    parse_akn_xml,
)
from luxembourg_law.pipeline.parsers.text_extraction import parse_xml

AKN_NS = "http://docs.oasis-open.org/legaldocml/ns/akn/3.0"
SCL_NS = "http://data.legilux.public.lu/resource/ontology/jolux#"


def akn_document(body: str, preface: str = "", meta_title: str = "Loi du 2 août 2002") -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<akomaNtoso xmlns="{AKN_NS}" xmlns:scl="{SCL_NS}">
  <act>
    <meta>
      <identification>
        <scl:JOLUXWork>
          <scl:JOLUXLegalResource>
            <scl:jolux scl:name="dateDocument">2002-08-02</scl:jolux>
            <scl:jolux scl:name="typeDocument">http://data.legilux.public.lu/resource/authority/resource-type/LOI</scl:jolux>
          </scl:JOLUXLegalResource>
        </scl:JOLUXWork>
        <scl:JOLUXExpression>
          <scl:jolux scl:name="title">{meta_title}</scl:jolux>
        </scl:JOLUXExpression>
      </identification>
    </meta>
    {preface}
    <body>{body}</body>
  </act>
</akomaNtoso>"""


class TestArticleNumbers:

    @pytest.mark.parametrize(
        "xml,expected",
        [
            ("<num>Art. 1<sup>er</sup></num>", "1er"),
            ("<num>Art. 1<sup>er</sup>.</num>", "1er"),
            ("<num>Art. 10bis.</num>", "10bis"),
            ("<num>Art. 5.</num>", "5"),
        ],
    )
    def test_extract_article_num(self, xml, expected):
        assert extract_article_num(parse_xml(xml)["num"]) == expected

    @pytest.mark.parametrize(
        "num,expected",
        [("1er", "art1"), ("10bis", "art10bis"), ("Art. 5.", "art5"), ("2 ter", "art2ter")],
    )
    def test_normalize_article_ref(self, num, expected):
        assert normalize_article_ref(num) == expected


class TestParseAknXml:

    def test_metadata_and_meta_title(self):
        parsed = parse_akn_xml(
            akn_document("<article><num>Art. 1<sup>er</sup></num><content><p>Texte.</p></content></article>")
        )
        assert parsed is not None
        assert parsed.title == "Loi du 2 août 2002"
        assert parsed.date_document == "2002-08-02"
        assert parsed.type_document == "LOI"

    def test_long_title_takes_precedence(self):
        preface = "<preface><longTitle><p>Loi du 2 août 2002 relative à la protection des données</p></longTitle></preface>"
        parsed = parse_akn_xml(akn_document("", preface=preface))
        assert parsed.title == "Loi du 2 août 2002 relative à la protection des données"
        assert parsed.provisions == []

    def test_articles_inside_chapters(self):
        body = """
          <chapter>
            <num>Chapitre I</num>
            <article>
              <num>Art. 1<sup>er</sup></num>
              <alinea><content><p>Premier alinéa.</p></content></alinea>
              <alinea><content><p>Second alinéa.</p></content></alinea>
            </article>
          </chapter>
          <article>
            <num>Art. 2.</num>
            <paragraph><num>(1)</num><content><p>Paragraphe   un .</p></content></paragraph>
          </article>
        """
        parsed = parse_akn_xml(akn_document(body))
        by_ref = {p.provision_ref: p for p in parsed.provisions}

        assert set(by_ref) == {"art1", "art2"}
        assert by_ref["art1"].section == "Chapitre I"
        assert by_ref["art1"].title == "Article 1er"
        assert by_ref["art1"].content == "Premier alinéa.\n\nSecond alinéa."
        assert by_ref["art2"].section == "1"
        assert by_ref["art2"].content == "(1) Paragraphe un."

    def test_sections_without_num_get_dotted_labels(self):
        body = """
          <chapter>
            <num>2</num>
            <section><article><num>Art. 7.</num><content><p>Sept.</p></content></article></section>
          </chapter>
        """
        parsed = parse_akn_xml(akn_document(body))
        assert parsed.provisions[0].section == "2.1"

    def test_alinea_content_wins_over_other_categories(self):
        body = """
          <article>
            <num>Art. 3.</num>
            <alinea><content><p>Alinéa.</p></content></alinea>
            <p>Ignoré.</p>
          </article>
        """
        parsed = parse_akn_xml(akn_document(body))
        assert parsed.provisions[0].content == "Alinéa."

    def test_articles_without_num_or_content_are_skipped(self):
        body = """
          <article><content><p>Sans numéro.</p></content></article>
          <article><num>Art. 4.</num></article>
        """
        parsed = parse_akn_xml(akn_document(body))
        assert parsed.provisions == []

    def test_non_act_document_returns_none(self):
        xml = f'<akomaNtoso xmlns="{AKN_NS}"><bill><body/></bill></akomaNtoso>'
        assert parse_akn_xml(xml) is None

    def test_malformed_xml_returns_none(self):
        assert parse_akn_xml("<akomaNtoso><act>") is None
