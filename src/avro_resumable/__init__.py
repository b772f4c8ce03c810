"""avro-resumable: resume reading Avro container files at the exact record.

Example:
    >>> from avro_resumable import AvroDataFileParser
    >>> parser = AvroDataFileParser("events.avro", offset=saved_offset)
    >>> while (record := parser.parse()) is not None:
    ...     process(record.value.to_python())
    ...     saved_offset = parser.get_offset()
    >>> parser.close()
    >>>
    >>> # Batch processing with persisted checkpoints
    >>> with BatchProcessor("events.avro", "my_job") as batch:
    ...     for record_id, record in batch:
    ...         process(record)
    ...         batch.checkpoint()
"""

from .batch import BatchProcessor
from .codec import ContainerReader, iter_blocks, parse_schema
from .context import DefaultContext, ParserContext
from .exceptions import (
    DataParserError,
    InvalidOffsetError,
    InvalidSchemaError,
    ObjectTooLargeError,
    RecordDecodeError,
    StaleCheckpointError,
)
from .fields import Field, FieldType, avro_to_field
from .models import EOF_OFFSET, INITIAL_OFFSET, OFFSET_SEPARATOR, BlockInfo, Offset, Record
from .parser import DEFAULT_MAX_RECORD_BYTES, AvroDataFileParser
from .stream import BoundedSeekableReader

__version__ = "0.1.0"
__all__ = [
    # Core
    "AvroDataFileParser",
    "BoundedSeekableReader",
    "ContainerReader",
    "Offset",
    "Record",
    "BlockInfo",
    "EOF_OFFSET",
    "INITIAL_OFFSET",
    "OFFSET_SEPARATOR",
    "DEFAULT_MAX_RECORD_BYTES",
    "iter_blocks",
    "parse_schema",
    # Pipeline hooks
    "ParserContext",
    "DefaultContext",
    "Field",
    "FieldType",
    "avro_to_field",
    # Batch Processing
    "BatchProcessor",
    # Exceptions
    "DataParserError",
    "InvalidOffsetError",
    "InvalidSchemaError",
    "ObjectTooLargeError",
    "RecordDecodeError",
    "StaleCheckpointError",
]
