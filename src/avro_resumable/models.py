"""Data models for avro-resumable."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from .exceptions import InvalidOffsetError

if TYPE_CHECKING:
    from .fields import Field

OFFSET_SEPARATOR = "::"

# Offset reported once the stream is fully consumed
EOF_OFFSET = "-1"

# Offset meaning "no prior state"
INITIAL_OFFSET = "0"


@dataclass(frozen=True, slots=True)
class Offset:
    """Resumption token: block boundary plus records read from that block.

    Attributes:
        block_start: Byte position of the block boundary
        record_index: Records already returned from that block
        source: Name of the file the offset belongs to (informational)
    """

    block_start: int
    record_index: int
    source: str | None = None

    @classmethod
    def parse(cls, text: str) -> "Offset":
        """Parse ``source::block::index`` or legacy ``block::index``.

        Raises:
            InvalidOffsetError: On a field count other than 2 or 3, or on
                fields that are not non-negative integers
        """
        fields = text.split(OFFSET_SEPARATOR)
        if len(fields) == 3:
            source, block, index = fields
        elif len(fields) == 2:
            source = None
            block, index = fields
        else:
            raise InvalidOffsetError(text)

        try:
            block_start = int(block)
            record_index = int(index)
        except ValueError:
            raise InvalidOffsetError(text) from None

        if block_start < 0 or record_index < 0:
            raise InvalidOffsetError(text)

        return cls(block_start, record_index, source)

    @classmethod
    def from_record_id(cls, record_id: str) -> "Offset":
        """Parse a record identity, splitting from the right.

        The source is a file name and may itself contain the separator.
        Only the last two fields are positions.

        Raises:
            InvalidOffsetError: If the identity has no source field or its
                positions are not non-negative integers
        """
        fields = record_id.rsplit(OFFSET_SEPARATOR, 2)
        if len(fields) != 3:
            raise InvalidOffsetError(record_id)
        try:
            position = cls.parse(OFFSET_SEPARATOR.join(fields[1:]))
        except InvalidOffsetError:
            raise InvalidOffsetError(record_id) from None
        return cls(position.block_start, position.record_index, fields[0])

    def __str__(self) -> str:
        parts = [str(self.block_start), str(self.record_index)]
        if self.source is not None:
            parts.insert(0, self.source)
        return OFFSET_SEPARATOR.join(parts)


@dataclass(frozen=True, slots=True)
class BlockInfo:
    """Information about a single block in a container file.

    Attributes:
        offset: Byte offset of the block from start of file
        size: Length in bytes, including the trailing sync marker
        num_records: Number of records the block holds
    """

    offset: int
    size: int
    num_records: int


@dataclass
class Record:
    """A parsed record tagged with its offset-bearing identity.

    Attributes:
        record_id: ``source::block_start::record_index`` of this record
        value: Root of the converted value tree, None until populated
    """

    record_id: str
    value: Field | None = None

    @property
    def offset(self) -> Offset:
        """The record's position as an :class:`Offset`."""
        return Offset.from_record_id(self.record_id)


@dataclass
class JobProgress:
    """Progress state for a batch processing job.

    Attributes:
        job_id: Unique identifier for this job
        offset: Resumption token from the last checkpoint
        records_read: Records delivered up to the last checkpoint
        file_size: File size in bytes at last checkpoint
        file_mtime: File modification time at last checkpoint
        status: Current job status
        created_at: ISO timestamp when job was created
        last_checkpoint_at: ISO timestamp of last checkpoint
        completed_at: ISO timestamp when job completed (None if in progress)
    """

    job_id: str
    offset: str
    records_read: int
    file_size: int
    file_mtime: float
    status: Literal["in_progress", "completed"]
    created_at: str
    last_checkpoint_at: str
    completed_at: str | None = None
