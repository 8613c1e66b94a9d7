"""Main CLI entry point for the xml-tree-bridge command-line tool.

Converts XML files into JSON trees and JSON trees into XML documents, and
checks XML files for well-formedness.
"""

import argparse
import json
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, List, Optional

from xml_tree_bridge import __version__
from xml_tree_bridge.api import ArrayReader, XmlParser
from xml_tree_bridge.shared.config import BridgeConfig, ConfigError
from xml_tree_bridge.shared.errors import ParseError, XmlBridgeError
from xml_tree_bridge.shared.logging import configure_logging, get_logger
from xml_tree_bridge.stream import TreeToStreamWriter
from xml_tree_bridge.tree import TreeToDomBuilder

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the argument parser for all commands."""
    parser = argparse.ArgumentParser(
        prog="xml-tree-bridge",
        description="Convert between XML documents and JSON trees",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON configuration file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log errors"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # to-json command
    json_parser = subparsers.add_parser("to-json", help="Convert an XML file to JSON")
    json_parser.add_argument("file", type=Path, help="XML file to read")
    json_parser.add_argument(
        "--keep-empty",
        action="store_true",
        help="Keep empty strings, objects and arrays"
    )
    json_parser.add_argument(
        "--retries",
        type=int,
        help="Additional parse attempts after a failure"
    )
    json_parser.add_argument(
        "--retry-pause",
        type=int,
        metavar="MS",
        help="Pause between parse attempts in milliseconds"
    )
    json_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2)"
    )

    # to-xml command
    xml_parser = subparsers.add_parser("to-xml", help="Convert a JSON tree to XML")
    xml_parser.add_argument("file", type=Path, help="JSON file holding an object")
    xml_parser.add_argument("--root", required=True, help="Tag of the document element")
    xml_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    xml_parser.add_argument(
        "--append",
        action="store_true",
        help="Append to the output file instead of replacing it"
    )
    xml_parser.add_argument("--encoding", help="Output encoding")
    xml_parser.add_argument(
        "--cdata",
        nargs="+",
        default=[],
        metavar="TAG",
        help="Tags whose text is always written as CDATA"
    )
    xml_parser.add_argument(
        "--dom",
        action="store_true",
        help="Build the document in memory instead of streaming it"
    )
    xml_parser.add_argument(
        "--create-empty-tags",
        action="store_true",
        help="Emit an element for empty arrays (with --dom)"
    )
    xml_parser.add_argument(
        "--expand-empty-tags",
        action="store_true",
        help="Write empty elements as <tag></tag> (with --dom)"
    )

    # check command
    check_parser = subparsers.add_parser("check", help="Check XML files for well-formedness")
    check_parser.add_argument("files", nargs="+", type=Path, help="XML files to check")

    return parser


def _load_tree(path: Path) -> Any:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def cmd_to_json(args: argparse.Namespace, config: BridgeConfig) -> int:
    """Print an XML file as a JSON tree."""
    reader_config = replace(config.reader, file_name=os.path.abspath(args.file))
    reader = ArrayReader(reader_config, correlation_id=config.correlation_id)

    try:
        tree = reader.read(
            remove_empty_elements=False if args.keep_empty else None,
            retries=args.retries,
            retry_pause_ms=args.retry_pause,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except XmlBridgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print(json.dumps(tree, indent=args.indent, ensure_ascii=False))
    return EXIT_OK


def cmd_to_xml(args: argparse.Namespace, config: BridgeConfig) -> int:
    """Convert a JSON tree into an XML document."""
    if args.append and not args.output:
        print("Error: --append requires --output", file=sys.stderr)
        return EXIT_USAGE
    if args.append and args.dom:
        print("Error: --append is not supported with --dom", file=sys.stderr)
        return EXIT_USAGE

    try:
        tree = _load_tree(args.file)
    except OSError as e:
        print(f"Error: Could not read {args.file}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in {args.file}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if not isinstance(tree, dict):
        print("Error: The JSON tree must be an object", file=sys.stderr)
        return EXIT_FAILURE

    try:
        if args.dom:
            return _to_xml_dom(args, config, tree)
        return _to_xml_stream(args, config, tree)
    except ValueError as e:
        # Invalid option values rejected by the configuration classes
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except XmlBridgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


def _to_xml_dom(args: argparse.Namespace, config: BridgeConfig, tree: Any) -> int:
    builder_config = config.builder
    if args.encoding:
        builder_config = replace(builder_config, encoding=args.encoding)
    builder = TreeToDomBuilder(builder_config, correlation_id=config.correlation_id)

    text = builder.build(
        tree,
        args.root,
        create_empty_tags=args.create_empty_tags or None,
        collapse_empty_tags=False if args.expand_empty_tags else None,
    )
    if not args.output:
        sys.stdout.write(text)
        return EXIT_OK

    try:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding=builder_config.encoding)
    except OSError as e:
        print(f"Error: Could not write {args.output}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    return EXIT_OK


def _to_xml_stream(args: argparse.Namespace, config: BridgeConfig, tree: Any) -> int:
    writer_config = replace(
        config.writer,
        force_character_data=config.writer.force_character_data | frozenset(args.cdata),
    )
    if args.output:
        writer_config = replace(writer_config, file_name=os.path.abspath(args.output))
    writer = TreeToStreamWriter(writer_config, correlation_id=config.correlation_id)

    if args.output:
        writer.write(args.root, {}, tree, append=args.append, encoding=args.encoding)
    else:
        sys.stdout.write(writer.render(args.root, {}, tree, encoding=args.encoding))
    return EXIT_OK


def cmd_check(args: argparse.Namespace, config: BridgeConfig) -> int:
    """Parse files and report the first diagnostic of each malformed one."""
    parser = XmlParser(config.correlation_id)
    failed = 0

    for path in args.files:
        try:
            parser.parse_file(path, config.reader.retries, config.reader.retry_pause_ms)
        except ParseError as e:
            failed += 1
            print(f"FAIL {path}")
            print(f"   {e}".replace("\n", "\n   "))
        else:
            print(f"OK   {path}")

    print(f"Checked {len(args.files)} files, {len(args.files) - failed} well-formed")
    return EXIT_OK if failed == 0 else EXIT_FAILURE


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_USAGE

    try:
        config = BridgeConfig.from_file(args.config) if args.config else BridgeConfig()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging("DEBUG" if args.verbose else config.logging_level, args.quiet)
    logger = get_logger(__name__, config.correlation_id, "cli")
    logger.debug("Running command", extra={"command": args.command})

    # Route to appropriate command handler
    try:
        if args.command == "to-json":
            return cmd_to_json(args, config)
        elif args.command == "to-xml":
            return cmd_to_xml(args, config)
        elif args.command == "check":
            return cmd_check(args, config)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return EXIT_USAGE

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
