"""Tests for node shapes."""

from xml_tree_bridge.tree.nodes import (
    Attributed,
    Element,
    Repeated,
    Scalar,
    lower,
)


class TestLower:
    """Test lowering plain trees into nodes."""

    def test_scalar(self):
        """Test leaf values."""
        node = lower(5)

        assert node == Scalar(5)
        assert node.text == "5"

    def test_mapping(self):
        """Test mappings keep key order."""
        node = lower({"b": "1", "a": "2"})

        assert node == Element((("b", Scalar("1")), ("a", Scalar("2"))))

    def test_sequence(self):
        """Test sequences become repeated nodes."""
        node = lower(["x", "y"])

        assert node == Repeated((Scalar("x"), Scalar("y")))
        assert not node.is_empty
        assert lower([]).is_empty

    def test_attributes_only(self):
        """Test a mapping holding nothing but attributes."""
        node = lower({"@attributes": {"id": 5}})

        assert node == Attributed((("id", "5"),), None)

    def test_attributes_with_single_value(self):
        """Test a single sibling becomes the element content."""
        node = lower({"@attributes": {"id": "5"}, "name": "x"})

        assert node == Attributed((("id", "5"),), Scalar("x"))

    def test_attributes_with_several_values(self):
        """Test several siblings become child elements."""
        node = lower({"@attributes": {"id": "5"}, "name": "x", "size": "L"})

        assert isinstance(node, Attributed)
        assert node.content == Element((("name", Scalar("x")), ("size", Scalar("L"))))

    def test_non_mapping_attributes_ignored(self):
        """Test an @attributes value that is not a mapping."""
        node = lower({"@attributes": "id=5", "name": "x"})

        assert node == Attributed((), Scalar("x"))
