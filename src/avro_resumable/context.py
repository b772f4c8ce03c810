"""Host pipeline hooks: record creation and value population."""

from __future__ import annotations

from typing import Any, Protocol

from .fields import avro_to_field
from .models import Record


class ParserContext(Protocol):
    """What the parser needs from the pipeline that owns the records."""

    def create_record(self, record_id: str) -> Any:
        """Build an empty record tagged with an offset-bearing identity."""
        ...

    def populate(self, record: Any, schema: Any, datum: Any) -> None:
        """Attach a decoded value tree to a record."""
        ...


class DefaultContext:
    """Builds :class:`Record` objects holding :class:`Field` trees."""

    def create_record(self, record_id: str) -> Record:
        return Record(record_id)

    def populate(self, record: Record, schema: Any, datum: Any) -> None:
        record.value = avro_to_field(schema, datum)
