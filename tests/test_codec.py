"""Tests for the fastavro container adapter."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import make_events
from fastavro.read import SchemaResolutionError

from avro_resumable import (
    BlockInfo,
    BoundedSeekableReader,
    ContainerReader,
    InvalidSchemaError,
    ObjectTooLargeError,
    RecordDecodeError,
    iter_blocks,
    parse_schema,
)


def open_reader(path: Path, reader_schema=None) -> ContainerReader:
    return ContainerReader(BoundedSeekableReader(open(path, "rb"), None), reader_schema)


def read_all(reader: ContainerReader) -> list[tuple[int, dict]]:
    """Decode everything, pairing each record with its block boundary."""
    out = []
    while reader.has_next():
        datum = reader.next()
        out.append((reader.previous_block_boundary(), datum))
    return out


class TestParseSchema:
    """Tests for parse_schema."""

    def test_parses_record_schema(self):
        schema = parse_schema(
            json.dumps(
                {
                    "type": "record",
                    "name": "User",
                    "namespace": "example",
                    "fields": [{"name": "id", "type": "int"}],
                }
            )
        )

        assert schema["type"] == "record"
        assert schema["name"] == "example.User"

    def test_parses_primitive_schema(self):
        assert parse_schema('"long"') == "long"

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            '{"type": "nope"}',
            '{"type": "record", "name": "X", "fields": [{"name": "a", "type": "wat"}]}',
        ],
    )
    def test_invalid_schema_raises(self, text: str):
        with pytest.raises(InvalidSchemaError):
            parse_schema(text)


class TestContainerReader:
    """Tests for record iteration and block tracking."""

    def test_initial_boundary_is_first_block(self, multi_block_avro: Path, block_layout):
        reader = open_reader(multi_block_avro)

        assert reader.previous_block_boundary() == block_layout(multi_block_avro)[0][0]
        reader.close()

    def test_decodes_all_records(self, multi_block_avro: Path):
        reader = open_reader(multi_block_avro)

        records = [datum for _, datum in read_all(reader)]

        assert [r["id"] for r in records] == list(range(50))
        reader.close()

    def test_boundaries_follow_blocks(self, multi_block_avro: Path, block_layout):
        layout = block_layout(multi_block_avro)
        assert len(layout) > 1

        reader = open_reader(multi_block_avro)
        boundaries = [boundary for boundary, _ in read_all(reader)]
        reader.close()

        expected = [offset for offset, count in layout for _ in range(count)]
        assert boundaries == expected

    def test_exhausted_reader(self, single_block_avro: Path):
        reader = open_reader(single_block_avro)
        read_all(reader)

        assert reader.has_next() is False
        assert reader.has_next() is False
        with pytest.raises(StopIteration):
            reader.next()
        reader.close()

    def test_seek_to_block(self, multi_block_avro: Path, block_layout):
        layout = block_layout(multi_block_avro)
        first_id = sum(count for _, count in layout[:2])

        reader = open_reader(multi_block_avro)
        reader.seek(layout[2][0])

        assert reader.previous_block_boundary() == layout[2][0]
        assert reader.next()["id"] == first_id
        assert reader.previous_block_boundary() == layout[2][0]
        reader.close()

    def test_seek_after_exhaustion(self, multi_block_avro: Path, block_layout):
        """Seeking back works even once every block has been read."""
        layout = block_layout(multi_block_avro)
        reader = open_reader(multi_block_avro)
        read_all(reader)

        reader.seek(layout[0][0])

        assert [d["id"] for _, d in read_all(reader)] == list(range(50))
        reader.close()

    def test_exposes_header(self, multi_block_avro: Path):
        reader = open_reader(multi_block_avro)

        assert reader.codec == "null"
        assert reader.writer_schema["name"] == "test.Event"
        assert reader.schema is reader.writer_schema
        reader.close()

    def test_reader_schema(self, single_block_avro: Path):
        schema = parse_schema(
            json.dumps(
                {
                    "type": "record",
                    "name": "Event",
                    "namespace": "test",
                    "fields": [
                        {"name": "id", "type": "long"},
                        {"name": "tag", "type": "string", "default": "none"},
                    ],
                }
            )
        )
        reader = open_reader(single_block_avro, schema)

        assert reader.schema is schema
        assert reader.next() == {"id": 0, "tag": "none"}
        reader.close()

    def test_deflate_codec(self, write_avro):
        path = write_avro(
            "deflate.avro",
            [{"id": i, "name": "x" * 50} for i in range(40)],
            sync_interval=200,
            codec="deflate",
        )
        reader = open_reader(path)

        assert reader.codec == "deflate"
        assert len(read_all(reader)) == 40
        reader.close()

    def test_close_closes_stream(self, single_block_avro: Path):
        stream = BoundedSeekableReader(open(single_block_avro, "rb"), None)
        reader = ContainerReader(stream)

        reader.close()

        assert stream.closed


class TestCorruption:
    """Tests for malformed container bytes."""

    def test_empty_bytes(self, tmp_path: Path):
        path = tmp_path / "bogus.avro"
        path.write_bytes(b"")

        with pytest.raises(RecordDecodeError):
            open_reader(path)

    def test_truncated_file(self, multi_block_avro: Path):
        data = multi_block_avro.read_bytes()
        multi_block_avro.write_bytes(data[:-5])

        reader = open_reader(multi_block_avro)
        with pytest.raises(RecordDecodeError):
            read_all(reader)
        reader.close()

    def test_unresolvable_reader_schema(self, single_block_avro: Path):
        """A reader schema the data cannot resolve into is a decode error."""
        schema = parse_schema(
            json.dumps(
                {
                    "type": "record",
                    "name": "Event",
                    "namespace": "test",
                    "fields": [{"name": "id", "type": "string"}],
                }
            )
        )
        reader = open_reader(single_block_avro, schema)

        with pytest.raises(RecordDecodeError) as exc_info:
            reader.next()
        reader.close()

        assert isinstance(exc_info.value.__cause__, SchemaResolutionError)

    def test_failure_is_remembered(self, multi_block_avro: Path):
        """A dead block iterator raises again instead of reporting exhaustion."""
        data = multi_block_avro.read_bytes()
        multi_block_avro.write_bytes(data[:-5])

        reader = open_reader(multi_block_avro)
        with pytest.raises(RecordDecodeError) as first:
            read_all(reader)
        with pytest.raises(RecordDecodeError) as second:
            reader.has_next()
        with pytest.raises(RecordDecodeError):
            reader.next()
        reader.close()

        assert second.value.__cause__ is first.value.__cause__

    def test_seek_clears_failure(self, multi_block_avro: Path, block_layout):
        first_block = block_layout(multi_block_avro)[0][0]
        data = multi_block_avro.read_bytes()
        multi_block_avro.write_bytes(data[:-5])

        reader = open_reader(multi_block_avro)
        with pytest.raises(RecordDecodeError):
            read_all(reader)
        reader.seek(first_block)

        assert reader.has_next()
        assert reader.next()["id"] == 0
        reader.close()

    def test_budget_failure_is_remembered(self, write_avro):
        path = write_avro("packed.avro", make_events(200))

        reader = ContainerReader(BoundedSeekableReader(open(path, "rb"), 500))
        with pytest.raises(ObjectTooLargeError):
            reader.has_next()
        with pytest.raises(RecordDecodeError) as exc_info:
            reader.has_next()
        reader.close()

        assert isinstance(exc_info.value.__cause__, ObjectTooLargeError)


class TestIterBlocks:
    """Tests for iter_blocks."""

    def test_matches_layout(self, multi_block_avro: Path, block_layout):
        blocks = list(iter_blocks(multi_block_avro))

        assert [(b.offset, b.num_records) for b in blocks] == block_layout(multi_block_avro)
        assert all(isinstance(b, BlockInfo) for b in blocks)
        assert sum(b.num_records for b in blocks) == 50

    def test_blocks_are_contiguous(self, multi_block_avro: Path):
        blocks = list(iter_blocks(multi_block_avro))

        for current, following in zip(blocks, blocks[1:]):
            assert current.offset + current.size == following.offset
        assert blocks[-1].offset + blocks[-1].size == multi_block_avro.stat().st_size

    def test_empty_file(self, empty_avro: Path):
        assert list(iter_blocks(empty_avro)) == []
