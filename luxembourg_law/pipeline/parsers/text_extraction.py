"""Flatten parsed XML trees into plain text.

Documents are first converted into a generic node tree (see `xml_to_node`):

- strings / numbers for leaf text
- lists for repeated elements
- dicts for elements, with `#text` for their own text and `@_`-prefixed
  keys for attributes

Inline markup (superscripts, emphasis, ...) is glued onto the preceding text
segment so that "1<sup>er</sup>" reads "1er" rather than "1 er".

Mixed content is not kept in reading order: an element's own text pieces
(its text and every child tail, each trimmed) are concatenated into `#text`
and children follow. Inline markup in the middle of a sentence therefore
comes out at the end, e.g. "<p>1<sup>er</sup> de la <i>loi</i> est</p>"
reads "1de laesterloi". Legilux article numbers put inline markup last, where
this is harmless.
"""

from __future__ import annotations

import re
from typing import Any

from lxml import etree


TEXT_KEY = "#text"
ATTRIBUTE_PREFIX = "@_"

INLINE_ELEMENTS = frozenset({"sup", "sub", "b", "i", "em", "strong", "span"})

# Elements that may repeat, always materialised as lists
ARRAY_ELEMENTS = frozenset(
    {
        "article",
        "chapter",
        "section",
        "part",
        "alinea",
        "paragraph",
        "p",
        "li",
        "ol",
        "ul",
        "content",
        "num",
        "heading",
        "container",
        "scl:jolux",
    }
)

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")

_xml_parser = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    remove_comments=True,
    remove_pis=True,
    huge_tree=True,
)


# ─────────────────────────────────────────────────────────────
# XML -> node tree
# ─────────────────────────────────────────────────────────────


def _qualified_name(element: etree._Element) -> str:
    local = etree.QName(element).localname
    return f"{element.prefix}:{local}" if element.prefix else local


def _attribute_name(element: etree._Element, name: str) -> str:
    qname = etree.QName(name)
    if not qname.namespace:
        return qname.localname
    prefixes = {uri: prefix for prefix, uri in element.nsmap.items() if prefix}
    prefix = prefixes.get(qname.namespace)
    return f"{prefix}:{qname.localname}" if prefix else qname.localname


def xml_to_node(element: etree._Element) -> Any:
    """Convert one element (and its subtree) into the generic node tree."""
    node: dict[str, Any] = {}
    repeated: set[str] = set()

    for name, value in element.attrib.items():
        node[f"{ATTRIBUTE_PREFIX}{_attribute_name(element, name)}"] = value

    pieces = [(element.text or "").strip()]
    for child in element:
        pieces.append((child.tail or "").strip())
        if not isinstance(child.tag, str):
            continue

        key = _qualified_name(child)
        value = xml_to_node(child)
        if key in ARRAY_ELEMENTS:
            node.setdefault(key, []).append(value)
        elif key in repeated:
            node[key].append(value)
        elif key in node:
            node[key] = [node[key], value]
            repeated.add(key)
        else:
            node[key] = value

    text = "".join(pieces)
    if not node:
        return text
    if text:
        node[TEXT_KEY] = text
    return node


def parse_xml(xml: str | bytes) -> dict[str, Any]:
    """Parse a document into `{root_name: node}`.

    Raises `lxml.etree.XMLSyntaxError` on malformed input.
    """
    if isinstance(xml, str):
        # lxml refuses str input carrying an encoding declaration
        xml = _XML_DECLARATION.sub("", xml, count=1)

    root = etree.fromstring(xml, _xml_parser)
    return {_qualified_name(root): xml_to_node(root)}


# ─────────────────────────────────────────────────────────────
# Node tree -> text
# ─────────────────────────────────────────────────────────────


def extract_text(node: Any, no_space: bool = False) -> str:
    """Recursively extract all text from a node.

    Lists and non-inline children are joined with a single space (or nothing
    in `no_space` mode); inline children are appended to the previous segment.
    Never raises; unknown types yield "".
    """
    if node is None or isinstance(node, bool):
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, (int, float)):
        return str(node)

    separator = "" if no_space else " "

    if isinstance(node, list):
        return separator.join(part for part in (extract_text(n, no_space) for n in node) if part)

    if isinstance(node, dict):
        parts: list[str] = []

        # Own text first to keep reading order
        if TEXT_KEY in node:
            parts.append(extract_text(node[TEXT_KEY], no_space))

        for key, value in node.items():
            if key == TEXT_KEY or key.startswith(ATTRIBUTE_PREFIX):
                continue

            if key in INLINE_ELEMENTS:
                inline_text = extract_text(value, True)
                if inline_text and parts:
                    parts[-1] = parts[-1] + inline_text
                elif inline_text:
                    parts.append(inline_text)
            else:
                parts.append(extract_text(value, no_space))

        return separator.join(part for part in parts if part)

    return ""


def clean_text(text: str) -> str:
    """Normalize whitespace and punctuation spacing."""
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\s+([.,;:!?])", r"\1", text)
    text = re.sub(r"\(\s+", "(", text)
    text = re.sub(r"\s+\)", ")", text)
    return text.strip()
