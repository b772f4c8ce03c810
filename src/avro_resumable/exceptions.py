"""Custom exceptions for avro-resumable."""


class InvalidOffsetError(ValueError):
    """Raised when a saved offset string cannot be parsed.

    Valid offsets have two (``block::index``) or three
    (``source::block::index``) fields of non-negative integers. This is a
    configuration error: the parser cannot be constructed from it.

    Attributes:
        offset: The offending offset string
    """

    def __init__(self, offset: str) -> None:
        self.offset = offset
        super().__init__(f"Invalid offset {offset!r}")


class InvalidSchemaError(ValueError):
    """Raised when a schema definition is not valid Avro schema JSON."""


class StaleCheckpointError(Exception):
    """Raised when the file has been modified since the last checkpoint.

    Offsets address byte positions of container blocks, so they are no
    longer trustworthy once the file changed (different size or
    modification time). The job should be reset and restarted.
    """


# ─────────────────────────────────────────────────────────────────────
# Per-record data errors
# ─────────────────────────────────────────────────────────────────────


class DataParserError(Exception):
    """Base class for errors scoped to a single record.

    The caller decides whether to skip the record or abort the file.
    """


class ObjectTooLargeError(DataParserError):
    """More bytes were consumed for one record than the budget allows.

    Attributes:
        max_bytes: The configured per-record byte budget
        count: Bytes consumed when the budget was exceeded
    """

    def __init__(self, max_bytes: int, count: int) -> None:
        self.max_bytes = max_bytes
        self.count = count
        super().__init__(
            f"Object exceeds maximum size of {max_bytes} bytes "
            f"(read at least {count} bytes)"
        )


class RecordDecodeError(DataParserError):
    """Record bytes do not conform to the container framing or schema."""
