"""Adapter over fastavro's block reader with block-boundary tracking."""

from __future__ import annotations

import json
import logging
import zlib
from pathlib import Path
from typing import IO, Any, Iterator, Union

import fastavro
from fastavro.read import SchemaResolutionError
from fastavro.schema import SchemaParseException, UnknownType

from .exceptions import InvalidSchemaError, ObjectTooLargeError, RecordDecodeError
from .models import BlockInfo

logger = logging.getLogger(__name__)

Schema = Union[str, list, dict]

# Errors fastavro raises for bytes that do not decode. IndexError comes
# from an out-of-range union branch or enum symbol.
_DECODE_ERRORS = (EOFError, ValueError, IndexError, zlib.error, SchemaResolutionError)


def parse_schema(text: str) -> Schema:
    """Parse and validate a schema from its canonical JSON text.

    Args:
        text: Avro schema definition as JSON

    Returns:
        The parsed schema, with names fully qualified

    Raises:
        InvalidSchemaError: If the text is not JSON or not a valid schema
    """
    try:
        return fastavro.parse_schema(json.loads(text))
    except (SchemaParseException, UnknownType, ValueError, TypeError, KeyError) as e:
        raise InvalidSchemaError(f"Invalid Avro schema: {e}") from e


class ContainerReader:
    """Record-at-a-time reader over an Avro object container stream.

    Wraps :func:`fastavro.block_reader` and remembers the start of the
    block each decoded record came from, so callers can checkpoint at
    block granularity and later :meth:`seek` back to it.
    """

    def __init__(self, stream: IO[bytes], reader_schema: Schema | None = None) -> None:
        """Open the container, reading its header.

        Args:
            stream: Seekable binary stream positioned at the header
            reader_schema: Optional schema to resolve records into
        """
        self._stream = stream
        self._reader_schema = reader_schema
        self._header_start = stream.tell()

        header = self._open_blocks()
        self.writer_schema: Schema = header.writer_schema
        self.codec: str = header.codec
        self.metadata: dict[str, str] = header.metadata

        self._block_start = stream.tell()
        self._loaded_start = self._block_start
        self._records: Iterator[Any] | None = None
        self._remaining = 0
        self._failure: BaseException | None = None
        logger.debug(
            "Opened container codec=%s first_block=%d", self.codec, self._block_start
        )

    @property
    def schema(self) -> Schema:
        """Schema records are decoded into: the reader schema if given."""
        if self._reader_schema is not None:
            return self._reader_schema
        return self.writer_schema

    def has_next(self) -> bool:
        """Return True if another record is available, loading a block if needed.

        A failed block load ends fastavro's block iterator, so every later
        call raises :class:`RecordDecodeError` until the next :meth:`seek`.
        """
        if self._failure is not None:
            raise RecordDecodeError(
                f"Block reader stopped after an earlier failure: {self._failure}"
            ) from self._failure
        while self._records is None:
            try:
                block = next(self._blocks, None)
            except _DECODE_ERRORS as e:
                self._failure = e
                raise RecordDecodeError(f"Corrupt block: {e}") from e
            except (ObjectTooLargeError, OSError) as e:
                self._failure = e
                raise
            if block is None:
                return False
            if block.num_records == 0:
                continue
            self._loaded_start = block.offset
            self._remaining = block.num_records
            self._records = iter(block)
        return True

    def next(self) -> Any:
        """Decode the next record.

        Raises:
            StopIteration: If the stream is exhausted
            RecordDecodeError: If the record bytes do not decode
        """
        if not self.has_next():
            raise StopIteration
        try:
            datum = next(self._records)
        except StopIteration:
            raise RecordDecodeError(
                f"Block at {self._loaded_start} ended before its record count"
            ) from None
        except _DECODE_ERRORS as e:
            raise RecordDecodeError(
                f"Cannot decode record in block at {self._loaded_start}: {e}"
            ) from e

        self._block_start = self._loaded_start
        self._remaining -= 1
        if self._remaining == 0:
            self._records = None
        return datum

    def previous_block_boundary(self) -> int:
        """Start of the block holding the last decoded record.

        Before any record is decoded, this is the first block (or the
        position of the last :meth:`seek`).
        """
        return self._block_start

    def seek(self, position: int) -> None:
        """Reposition on a block boundary previously reported by this reader."""
        logger.debug("Seeking to block boundary %d", position)
        self._open_blocks()
        self._stream.seek(position)
        self._block_start = position
        self._loaded_start = position
        self._records = None
        self._remaining = 0
        self._failure = None

    def close(self) -> None:
        self._records = None
        self._stream.close()

    def _open_blocks(self) -> "fastavro.block_reader":
        # block_reader pulls blocks lazily, so the stream can be moved
        # before the first block is requested.
        self._stream.seek(self._header_start)
        try:
            header = fastavro.block_reader(self._stream, self._reader_schema)
        except _DECODE_ERRORS as e:
            raise RecordDecodeError(f"Invalid container header: {e}") from e
        self._blocks = iter(header)
        return header


def iter_blocks(file_path: Union[str, Path]) -> Iterator[BlockInfo]:
    """Iterate block layout of a container file without decoding records.

    Args:
        file_path: Path to an Avro object container file

    Yields:
        BlockInfo for each block in file order
    """
    with open(file_path, "rb") as f:
        for block in fastavro.block_reader(f):
            yield BlockInfo(
                offset=block.offset, size=block.size, num_records=block.num_records
            )
