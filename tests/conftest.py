"""Shared fixtures: Avro container files written with fastavro."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import fastavro
import pytest

EVENT_SCHEMA = {
    "type": "record",
    "name": "Event",
    "namespace": "test",
    "fields": [
        {"name": "id", "type": "long"},
        {"name": "name", "type": "string"},
    ],
}


def make_events(n: int) -> list[dict[str, Any]]:
    return [{"id": i, "name": f"item_{i}"} for i in range(n)]


@pytest.fixture
def write_avro(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing records to an Avro container file under tmp_path.

    A small sync_interval forces many blocks; 1 puts every record in its own.
    """

    def _write(
        name: str,
        records: list[dict[str, Any]],
        *,
        schema: Any = EVENT_SCHEMA,
        sync_interval: int = 16000,
        codec: str = "null",
    ) -> Path:
        file_path = tmp_path / name
        with open(file_path, "wb") as f:
            fastavro.writer(f, schema, records, codec=codec, sync_interval=sync_interval)
        return file_path

    return _write


@pytest.fixture
def block_layout() -> Callable[[Path], list[tuple[int, int]]]:
    """Return (block offset, record count) pairs as fastavro sees them."""

    def _layout(file_path: Path) -> list[tuple[int, int]]:
        with open(file_path, "rb") as f:
            return [(block.offset, block.num_records) for block in fastavro.block_reader(f)]

    return _layout


@pytest.fixture
def multi_block_avro(write_avro: Callable[..., Path]) -> Path:
    """50 events spread across several blocks."""
    return write_avro("multi.avro", make_events(50), sync_interval=64)


@pytest.fixture
def single_block_avro(write_avro: Callable[..., Path]) -> Path:
    """5 events in a single block."""
    return write_avro("single.avro", make_events(5))


@pytest.fixture
def empty_avro(write_avro: Callable[..., Path]) -> Path:
    """A container with a header and no records."""
    return write_avro("empty.avro", [])
