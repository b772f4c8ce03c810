"""Resumable, offset-addressable parsing of Avro container files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator, Union

from .codec import ContainerReader, Schema, parse_schema
from .context import DefaultContext, ParserContext
from .models import EOF_OFFSET, INITIAL_OFFSET, Offset
from .stream import BoundedSeekableReader

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECORD_BYTES = 1024 * 1024


class AvroDataFileParser:
    """Record-at-a-time parser that can resume from a saved offset.

    Each record is tagged ``{file}::{block_start}::{record_index}``, where
    ``block_start`` is the byte position of its container block and
    ``record_index`` counts records returned from that block (1-based).
    :meth:`get_offset` returns the same position as a resumption token;
    a new parser built with that token continues with the next record.

    Example:
        >>> with AvroDataFileParser("events.avro", offset=saved) as parser:
        ...     while (record := parser.parse()) is not None:
        ...         process(record)
        ...         saved = parser.get_offset()
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        offset: str | None = None,
        *,
        max_record_bytes: int | None = DEFAULT_MAX_RECORD_BYTES,
        schema: str | None = None,
        context: ParserContext | None = None,
    ) -> None:
        """Open a container file and position it at ``offset``.

        Args:
            file_path: Path to the Avro object container file
            offset: Token from :meth:`get_offset` or a record identity;
                None, "" or "0" start at the first record
            max_record_bytes: Most bytes read from the file for one record,
                or None for no limit. The codec loads a whole block at
                once, so this bounds the block holding the record.
            schema: Reader schema JSON replacing the file's schema at decode time
            context: Pipeline hooks for building records (default: :class:`DefaultContext`)

        Raises:
            InvalidSchemaError: If ``schema`` is not a valid Avro schema
            InvalidOffsetError: If ``offset`` is malformed
            ObjectTooLargeError: If a record replayed to reach ``offset``
                exceeds ``max_record_bytes``
            RecordDecodeError: If the header or a replayed record is corrupt
            OSError: If the file cannot be opened or read
        """
        self._file_path = Path(file_path)
        self._reader_schema: Schema | None = parse_schema(schema) if schema else None
        self._context: ParserContext = context or DefaultContext()
        self._eof = False
        self._closed = False

        self._stream = BoundedSeekableReader(open(self._file_path, "rb"), max_record_bytes)
        try:
            self._reader = ContainerReader(self._stream, self._reader_schema)
            self._stream.reset_count()
            if offset is None or offset in ("", INITIAL_OFFSET):
                self._block_start = self._reader.previous_block_boundary()
                self._record_index = 0
            else:
                saved = Offset.parse(offset)
                self._block_start = saved.block_start
                self._record_index = saved.record_index
                self._seek_to_offset()
        except Exception:
            self._stream.close()
            raise

    @property
    def file_path(self) -> Path:
        return self._file_path

    @property
    def schema(self) -> Schema:
        """Schema records are decoded with."""
        return self._reader.schema

    @property
    def eof(self) -> bool:
        """True once :meth:`parse` has reported end-of-stream."""
        return self._eof

    def _seek_to_offset(self) -> None:
        """Jump to the saved block and discard records already delivered.

        Stops quietly if the stream runs out first.
        """
        self._reader.seek(self._block_start)
        count = 0
        while count < self._record_index:
            self._stream.reset_count()
            if not self._reader.has_next():
                logger.debug(
                    "Stream exhausted replaying %s after %d of %d records",
                    self._file_path.name,
                    count,
                    self._record_index,
                )
                break
            self._reader.next()
            count += 1
        logger.debug(
            "Resumed %s at block %d, record %d",
            self._file_path.name,
            self._block_start,
            count,
        )

    def parse(self) -> Any:
        """Read the next record.

        After an error the parser stays positioned after the last record
        returned, and later calls raise again rather than report end of
        stream. Open a new parser at a later offset to skip the failure.

        Returns:
            The populated record, or None at end of stream

        Raises:
            ObjectTooLargeError: If the record exceeds the byte budget
            RecordDecodeError: If the record bytes are corrupt
            OSError: If reading the file fails
        """
        self._check_open()
        self._stream.reset_count()
        if not self._reader.has_next():
            self._eof = True
            return None

        datum = self._reader.next()
        boundary = self._reader.previous_block_boundary()
        if boundary > self._block_start:
            logger.debug("Crossed into block %d of %s", boundary, self._file_path.name)
            self._block_start = boundary
            self._record_index = 1
        else:
            self._record_index += 1

        record_id = Offset(self._block_start, self._record_index, self._file_path.name)
        record = self._context.create_record(str(record_id))
        self._context.populate(record, self._reader.schema, datum)
        return record

    def get_offset(self) -> str:
        """Resumption token for the position after the last parsed record.

        Returns ``"-1"`` once end of stream has been reached.
        """
        self._check_open()
        if self._eof:
            return EOF_OFFSET
        return str(Offset(self._block_start, self._record_index))

    def close(self) -> None:
        """Release the codec reader and the file handle."""
        if not self._closed:
            self._closed = True
            self._reader.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError(f"I/O operation on closed parser for {self._file_path}")

    def __iter__(self) -> Iterator[Any]:
        """Yield records until end of stream."""
        while (record := self.parse()) is not None:
            yield record

    def __enter__(self) -> "AvroDataFileParser":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"AvroDataFileParser({self._file_path!r}, eof={self._eof})"
