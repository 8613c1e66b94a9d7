"""Test module for xml_tree_bridge package initialization."""


def test_package_import() -> None:
    """Test that the package can be imported successfully."""
    # Arrange & Act
    import xml_tree_bridge

    # Assert
    assert xml_tree_bridge is not None


def test_package_has_version() -> None:
    """Test that the package has a version attribute."""
    # Arrange & Act
    import xml_tree_bridge

    # Assert
    assert isinstance(xml_tree_bridge.__version__, str)
    assert xml_tree_bridge.__version__ == "0.1.0"


def test_package_has_author() -> None:
    """Test that the package has an author attribute."""
    # Arrange & Act
    import xml_tree_bridge

    # Assert
    assert xml_tree_bridge.__author__ == "XML Tree Bridge Team"


def test_package_all_exports() -> None:
    """Test that __all__ contains expected exports."""
    # Arrange & Act
    import xml_tree_bridge

    # Assert
    expected_exports = [
        "build_xml",
        "render_xml",
        "write_xml",
        "parse_string",
        "parse_file",
        "read_xml",
        "xml_to_tree",
        "TreeToDomBuilder",
        "TreeToStreamWriter",
        "XmlParser",
        "ArrayReader",
        "BridgeConfig",
        "XmlBridgeError",
        "ParseError",
    ]
    for name in expected_exports:
        assert name in xml_tree_bridge.__all__
        assert hasattr(xml_tree_bridge, name)


def test_error_hierarchy() -> None:
    """Test that every error derives from the package base error."""
    import xml_tree_bridge

    for name in ("NotFoundError", "ParseError", "DecodeError", "EncodingError",
                 "XmlIOError", "DocumentError"):
        assert issubclass(getattr(xml_tree_bridge, name), xml_tree_bridge.XmlBridgeError)
    assert issubclass(xml_tree_bridge.XmlIOError, OSError)
