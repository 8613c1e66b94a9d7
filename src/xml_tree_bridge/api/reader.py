"""Reading XML files into plain trees."""

import os
import time
from pathlib import Path
from typing import Any, Optional, Union

from ..shared.config import ReaderConfig
from ..shared.errors import NotFoundError
from ..shared.files import FileLocator
from ..shared.logging import get_logger
from ..tree.normalize import Tree, xml_to_tree
from ..tree.values import prune_empty
from .parser import XmlParser

MS_PER_SECOND = 1000


class ArrayReader:
    """Reads the configured XML file and flattens it into a tree.

    Examples:
        >>> reader = ArrayReader(ReaderConfig(base_path="/data", file_name="feed.xml"))
        >>> tree = reader.read(retries=3)
    """

    def __init__(
        self,
        config: Optional[ReaderConfig] = None,
        parser: Optional[XmlParser] = None,
        locator: Optional[FileLocator] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ReaderConfig()
        self.base_path = self.config.base_path
        self.file_name = self.config.file_name
        self.parser = parser or XmlParser(correlation_id)
        self.locator = locator or FileLocator()
        self.logger = get_logger(__name__, correlation_id, "array_reader")

    def read(
        self,
        remove_empty_elements: Optional[bool] = None,
        retries: Optional[int] = None,
        retry_pause_ms: Optional[int] = None
    ) -> Tree:
        """Parse the configured file and return it as a tree.

        Arguments left as None fall back to the reader configuration.

        Args:
            remove_empty_elements: Drop empty strings, mappings and sequences
            retries: Additional parse attempts after a failure
            retry_pause_ms: Pause between parse attempts in milliseconds

        Returns:
            The normalized tree, a mapping for any well-formed document

        Raises:
            NotFoundError: If the resolved path is not a regular file
            ParseError: If the file stays malformed after all retries
            DecodeError: If the document can not be normalized
        """
        if not self.file_name:
            raise ValueError("No file name configured for the reader")
        if remove_empty_elements is None:
            remove_empty_elements = self.config.remove_empty_elements
        if retries is None:
            retries = self.config.retries
        if retry_pause_ms is None:
            retry_pause_ms = self.config.retry_pause_ms

        start_time = time.time()
        path = self.locator.resolve(self.file_name, self.base_path)

        if not os.path.isfile(path):
            self.logger.error("XML file not found", extra={"path": path})
            raise NotFoundError(f"Could not read file: {path} because: Not a file", path)

        root = self.parser.parse_file(path, retries, retry_pause_ms)
        tree: Any = xml_to_tree(root)
        if remove_empty_elements:
            tree = prune_empty(tree)

        self.logger.info(
            "Read XML file",
            extra={
                "path": path,
                "remove_empty_elements": remove_empty_elements,
                "processing_time_ms": (time.time() - start_time) * MS_PER_SECOND,
            }
        )
        return tree


def read_xml(
    path: Union[str, Path],
    remove_empty_elements: bool = True,
    retries: int = 0,
    retry_pause_ms: Optional[int] = None,
    correlation_id: Optional[str] = None
) -> Tree:
    """Read an XML file into a tree.

    Examples:
        >>> tree = read_xml("catalog.xml")
        >>> tree["item"]
        ['first', 'second']
    """
    config = ReaderConfig(file_name=str(path))
    reader = ArrayReader(config, correlation_id=correlation_id)
    return reader.read(remove_empty_elements, retries, retry_pause_ms)
