"""XML parsing with bounded retry and located diagnostics.

:class:`XmlParser` wraps lxml with secure defaults (no entity resolution,
no network access, CDATA merged into text). Parse failures are reported as
:class:`~xml_tree_bridge.shared.errors.ParseError` whose message shows the
offending source line with a caret under the failing column::

    <root><item></root>
    --------------------^
    Fatal Error 76: Opening and ending tag mismatch: item line 1 and root
      Line: 1
      Column: 20

``parse_file`` retries failed attempts a caller-chosen number of times with
a fixed pause, which tolerates files observed while another process is
still writing them without tolerating permanently malformed XML.
"""

import time
from pathlib import Path
from typing import Callable, List, Optional, Union

from lxml import etree

from ..character.encoding import decode_bytes
from ..shared.config import DEFAULT_RETRY_PAUSE_MS
from ..shared.errors import EncodingError, ParseError
from ..shared.logging import get_logger
from ..shared.result import XmlDiagnostic

MS_PER_SECOND = 1000
UNEXPLAINED_FAILURE = "Could not parse XML."


def _split_lines(text: str) -> List[str]:
    return text.split("\n")


class XmlParser:
    """Parses XML strings and files into lxml element trees.

    Attributes:
        sleep: Function used to pause between retries (seconds)

    Examples:
        >>> parser = XmlParser()
        >>> parser.parse_string("<root><item>value</item></root>").tag
        'root'
    """

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        self.sleep = sleep
        self.logger = get_logger(__name__, correlation_id, "xml_parser")

    def _make_parser(self, encoding: Optional[str] = None) -> etree.XMLParser:
        return etree.XMLParser(
            encoding=encoding,
            resolve_entities=False,
            no_network=True,
            strip_cdata=True,
        )

    def _load(self, data: bytes, encoding: Optional[str] = None) -> etree._Element:
        """Parse raw bytes once.

        Raises:
            ParseError: Carrying the first error of this parse as its
                diagnostic, without a formatted message
        """
        parser = self._make_parser(encoding)
        try:
            return etree.fromstring(data, parser)
        except etree.XMLSyntaxError as e:
            diagnostic = XmlDiagnostic.first_of(e, parser.error_log)
            raise ParseError(UNEXPLAINED_FAILURE, diagnostic) from e

    def parse_string(self, content: Union[str, bytes]) -> etree._Element:
        """Parse XML held in memory.

        Text is parsed as UTF-8 regardless of its XML declaration; bytes are
        parsed according to their declaration.

        Raises:
            ParseError: With a formatted diagnostic when the XML is malformed
        """
        if isinstance(content, str):
            data, encoding = content.encode("utf-8"), "utf-8"
        else:
            data, encoding = content, None

        try:
            return self._load(data, encoding)
        except ParseError as e:
            diagnostic = e.diagnostic
            if diagnostic is None:
                raise ParseError("Could not load string.") from e

            if isinstance(content, bytes):
                try:
                    text = decode_bytes(content)[0]
                except EncodingError:
                    text = ""
            else:
                text = content
            message = diagnostic.format(_split_lines(text))
            self.logger.error(
                "Could not parse XML string", extra={"diagnostic": diagnostic.to_dict()}
            )
            raise ParseError(message, diagnostic) from e

    def parse_file(
        self,
        path: Union[str, Path],
        retries: int = 0,
        retry_pause_ms: int = DEFAULT_RETRY_PAUSE_MS
    ) -> etree._Element:
        """Parse an XML file, retrying failed attempts.

        Args:
            path: File to parse
            retries: Additional attempts after the first one fails
            retry_pause_ms: Pause between attempts in milliseconds

        Returns:
            The document element

        Raises:
            ParseError: When the file is still unreadable or malformed after
                ``retries + 1`` attempts
        """
        if retries < 0:
            raise ValueError("retries must be >= 0")
        if retry_pause_ms < 0:
            raise ValueError("retry_pause_ms must be >= 0")

        file_path = Path(path)
        attempts = 0

        while True:
            attempts += 1
            try:
                root = self._attempt(file_path)
            except ParseError as e:
                failure: Exception = e
                if e.diagnostic is None:
                    raise ParseError(UNEXPLAINED_FAILURE, attempts=attempts) from e
            except OSError as e:
                failure = e
            else:
                self.logger.debug(
                    "Parsed XML file", extra={"path": str(file_path), "attempts": attempts}
                )
                return root

            if attempts > retries:
                raise self._failure(file_path, failure, attempts) from failure

            self.logger.warning(
                "Could not parse XML file, retrying",
                extra={
                    "path": str(file_path),
                    "attempt": attempts,
                    "retries": retries,
                    "retry_pause_ms": retry_pause_ms,
                    "error": str(failure),
                }
            )
            self.sleep(retry_pause_ms / MS_PER_SECOND)

    def _attempt(self, path: Path) -> etree._Element:
        """Read and parse ``path`` once."""
        return self._load(path.read_bytes())

    def _failure(self, path: Path, failure: Exception, attempts: int) -> ParseError:
        diagnostic = None
        reason = UNEXPLAINED_FAILURE

        if isinstance(failure, ParseError):
            diagnostic = failure.diagnostic
            try:
                lines = _split_lines(decode_bytes(path.read_bytes())[0])
            except (OSError, EncodingError):
                lines = None
            if diagnostic is not None and lines is not None:
                reason = diagnostic.format(lines)
        elif isinstance(failure, OSError):
            reason = failure.strerror or str(failure)

        self.logger.error(
            "Could not read XML file",
            extra={
                "path": str(path),
                "attempts": attempts,
                "diagnostic": diagnostic.to_dict() if diagnostic else None,
            }
        )
        return ParseError(
            f"Could not read file: {path} because: {reason}", diagnostic, attempts
        )


def parse_string(content: Union[str, bytes], correlation_id: Optional[str] = None) -> etree._Element:
    """Parse XML from a string.

    Examples:
        >>> parse_string('<root><item id="1">Hello</item></root>').find("item").get("id")
        '1'
    """
    return XmlParser(correlation_id).parse_string(content)


def parse_file(
    path: Union[str, Path],
    retries: int = 0,
    retry_pause_ms: int = DEFAULT_RETRY_PAUSE_MS,
    correlation_id: Optional[str] = None
) -> etree._Element:
    """Parse XML from a file with optional retries."""
    return XmlParser(correlation_id).parse_file(path, retries, retry_pause_ms)
