"""Command-line interface for avro-resumable."""

from __future__ import annotations

import argparse
import base64
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

from .codec import iter_blocks
from .exceptions import DataParserError
from .parser import DEFAULT_MAX_RECORD_BYTES, AvroDataFileParser


def cmd_info(args: argparse.Namespace) -> int:
    """Handle the 'info' subcommand."""
    try:
        with AvroDataFileParser(args.file, max_record_bytes=None) as parser:
            schema = parser.schema
            first_offset = parser.get_offset()
        blocks = list(iter_blocks(args.file))
    except (OSError, DataParserError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    info = {
        "file": str(Path(args.file).resolve()),
        "size_bytes": Path(args.file).stat().st_size,
        "schema": _schema_name(schema),
        "blocks": len(blocks),
        "records": sum(b.num_records for b in blocks),
        "first_offset": first_offset,
    }
    if args.json:
        print(json.dumps(info, indent=2))
    else:
        print(f"File: {info['file']}")
        print(f"Size: {_format_size(info['size_bytes'])}")
        print(f"Schema: {info['schema']}")
        print(f"Blocks: {info['blocks']:,}")
        print(f"Records: {info['records']:,}")
        print(f"First offset: {first_offset}")

    return 0


def cmd_blocks(args: argparse.Namespace) -> int:
    """Handle the 'blocks' subcommand."""
    try:
        blocks = list(iter_blocks(args.file))
    except (OSError, ValueError, EOFError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for block in blocks:
        if args.json:
            print(
                json.dumps(
                    {"offset": block.offset, "size": block.size, "records": block.num_records}
                )
            )
        else:
            print(f"{block.offset}\t{block.size}\t{block.num_records}")

    return 0


def cmd_read(args: argparse.Namespace) -> int:
    """Handle the 'read' subcommand."""
    schema = None
    if args.schema:
        try:
            schema = Path(args.schema).read_text(encoding="utf-8")
        except OSError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    try:
        parser = AvroDataFileParser(
            args.file,
            args.offset,
            max_record_bytes=args.max_record_bytes or None,
            schema=schema,
        )
    except (OSError, ValueError, DataParserError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    status = 0
    with parser:
        count = 0
        try:
            while args.limit is None or count < args.limit:
                record = parser.parse()
                if record is None:
                    break
                value = record.value.to_python() if record.value is not None else None
                out = {"id": record.record_id, "value": value}
                if args.pretty:
                    print(json.dumps(out, indent=2, default=_json_default))
                else:
                    print(json.dumps(out, default=_json_default))
                count += 1
        except (OSError, DataParserError) as e:
            print(f"Error: {e}", file=sys.stderr)
            status = 1
        print(f"Offset: {parser.get_offset()}", file=sys.stderr)

    return status


def _json_default(value: Any) -> Any:
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return str(value)


def _schema_name(schema: Any) -> str:
    if isinstance(schema, dict):
        return schema.get("name", schema.get("type", "?"))
    if isinstance(schema, list):
        return "union"
    return str(schema)


def _format_size(size_bytes: int) -> str:
    """Format byte size in human-readable form."""
    size: float = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if size < 1024:
            if unit == "B":
                return f"{int(size)} {unit}"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="avro-resume",
        description="Resumable, offset-addressed reading of Avro container files",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # info subcommand
    info_parser = subparsers.add_parser(
        "info",
        help="Show file information",
        description="Display schema, block and record counts",
    )
    info_parser.add_argument("file", help="Path to Avro container file")
    info_parser.add_argument(
        "--json", action="store_true", help="Output as JSON for scripting"
    )
    info_parser.set_defaults(func=cmd_info)

    # blocks subcommand
    blocks_parser = subparsers.add_parser(
        "blocks",
        help="List container blocks",
        description="Print offset, size and record count of every block",
    )
    blocks_parser.add_argument("file", help="Path to Avro container file")
    blocks_parser.add_argument(
        "--json", action="store_true", help="Output JSON lines"
    )
    blocks_parser.set_defaults(func=cmd_blocks)

    # read subcommand
    read_parser = subparsers.add_parser(
        "read",
        help="Read records from an offset",
        description="Print records as JSON lines; the resume offset goes to stderr",
    )
    read_parser.add_argument("file", help="Path to Avro container file")
    read_parser.add_argument(
        "--offset", help="Offset to resume from (block::index or file::block::index)"
    )
    read_parser.add_argument("--limit", type=int, help="Stop after N records")
    read_parser.add_argument(
        "--max-record-bytes",
        type=int,
        default=DEFAULT_MAX_RECORD_BYTES,
        help=(
            "Byte budget for the block holding each record, "
            "0 for unlimited (default: %(default)s)"
        ),
    )
    read_parser.add_argument("--schema", help="Path to a reader schema (.avsc)")
    read_parser.add_argument(
        "--pretty", action="store_true", help="Pretty-print JSON output"
    )
    read_parser.set_defaults(func=cmd_read)

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s"
        )
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
