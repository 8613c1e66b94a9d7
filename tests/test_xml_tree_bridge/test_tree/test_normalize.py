"""Tests for flattening parsed XML into trees."""

from decimal import Decimal

import pytest
from lxml import etree

from xml_tree_bridge.shared.errors import DecodeError
from xml_tree_bridge.tree.normalize import element_to_data, normalize, xml_to_tree


def _tree(xml: str):
    return xml_to_tree(etree.fromstring(xml))


class TestXmlToTree:
    """Test the SimpleXML-style shape."""

    def test_root_tag_dropped(self):
        """Test that children of the root form the top mapping."""
        assert _tree("<config><a>1</a><b>2</b></config>") == {"a": "1", "b": "2"}

    def test_repeated_tags_become_lists(self):
        """Test collecting repeated tags."""
        tree = _tree("<list><item>a</item><other>x</other><item>b</item><item>c</item></list>")

        assert tree == {"item": ["a", "b", "c"], "other": "x"}

    def test_attributes_collected(self):
        """Test attributes on elements with children."""
        tree = _tree('<root><user id="7"><name>Ann</name></user></root>')

        assert tree == {"user": {"@attributes": {"id": "7"}, "name": "Ann"}}

    def test_attributes_with_text(self):
        """Test attributes next to text content."""
        tree = _tree('<root><price currency="EUR">9.50</price></root>')

        assert tree == {"price": {"@attributes": {"currency": "EUR"}, "#text": "9.50"}}

    def test_attributes_without_text(self):
        """Test elements with attributes and no content."""
        assert _tree('<root><link href="/a"/></root>') == {
            "link": {"@attributes": {"href": "/a"}}
        }

    def test_root_attributes(self):
        """Test that attributes of the root are kept."""
        tree = _tree('<feed version="2"><entry>x</entry></feed>')

        assert tree == {"@attributes": {"version": "2"}, "entry": "x"}

    def test_empty_elements(self):
        """Test empty elements become empty strings."""
        assert _tree("<root><a/><b></b></root>") == {"a": "", "b": ""}

    def test_empty_root(self):
        """Test that an empty root yields an empty mapping."""
        assert _tree("<root/>") == {}

    def test_text_only_root(self):
        """Test a root holding only text."""
        assert _tree("<root>hello</root>") == {"#text": "hello"}

    def test_mixed_content_text_dropped(self):
        """Test that text next to child elements is dropped."""
        assert _tree("<root><p>intro <b>bold</b> tail</p></root>") == {"p": {"b": "bold"}}

    def test_comments_and_pis_ignored(self):
        """Test that comments and processing instructions are skipped."""
        tree = _tree("<root><!-- note --><a>x<!-- c -->y</a><?pi data?></root>")

        assert tree == {"a": "xy"}

    def test_cdata_becomes_text(self):
        """Test CDATA sections are plain text after parsing."""
        parser = etree.XMLParser(strip_cdata=True)
        root = etree.fromstring("<root><a><![CDATA[x < y]]></a></root>", parser)

        assert xml_to_tree(root) == {"a": "x < y"}

    def test_element_to_data_leaf(self):
        """Test converting a single leaf."""
        assert element_to_data(etree.fromstring("<a>v</a>")) == "v"


class TestNormalize:
    """Test the JSON round trip."""

    def test_containers_pass(self):
        """Test mappings and sequences survive unchanged."""
        assert normalize({"a": ["1", "2"]}) == {"a": ["1", "2"]}
        assert normalize([]) == []

    def test_scalar_rejected(self):
        """Test that scalars do not make a tree."""
        with pytest.raises(DecodeError, match="Could not convert XML to array."):
            normalize("text")

    def test_unserializable_rejected(self):
        """Test values JSON can not represent."""
        with pytest.raises(DecodeError, match="Could not convert XML to JSON"):
            normalize({"a": Decimal("1.5")})
