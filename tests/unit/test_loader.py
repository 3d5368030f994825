"""Tests for loading one source into one table."""

import pytest

from seeder.lib.backend import WriteTarget, WriteVariant
from seeder.lib.errors import BatchWriteError, SourceNotFoundError
from seeder.lib.loader import DispatchResult, load_source
from seeder.lib.writer import RESOURCE_NOT_FOUND
from tests.helpers import FakeBackend, make_records, write_json

TARGET = WriteTarget("Users", WriteVariant.DOCUMENT)


class TestLoadSource:
    """Tests for load_source()."""

    def test_thirty_records_make_two_chunks(self, tmp_path, writer_for):
        path = write_json(tmp_path / "seed.json", make_records(30))
        backend = FakeBackend()

        result = load_source(path, TARGET, 5, writer_for(backend))

        assert result.succeeded
        assert result.record_count == 30
        assert result.chunk_count == 2
        assert result.chunks_written == 2
        assert sorted(call[3] for call in backend.calls) == [5, 25]
        assert {call[1] for call in backend.calls} == {"Users"}

    def test_missing_source_fails_before_writing(self, tmp_path, writer_for):
        backend = FakeBackend()

        with pytest.raises(SourceNotFoundError) as exc_info:
            load_source(tmp_path / "missing.json", TARGET, 5, writer_for(backend))

        assert exc_info.value.table == "Users"
        assert backend.calls == []

    def test_empty_source(self, tmp_path, writer_for):
        path = write_json(tmp_path / "empty.json", [])
        backend = FakeBackend()

        result = load_source(path, TARGET, 5, writer_for(backend))

        assert result.succeeded
        assert result.chunk_count == 0
        assert backend.calls == []

    def test_transient_failure_on_middle_chunk(self, tmp_path, writer_for, sleeps):
        """Chunk 2 of 3 hits not-found three times, then succeeds."""
        path = write_json(tmp_path / "seed.json", make_records(75))
        backend = FakeBackend(script={"r25": [RESOURCE_NOT_FOUND] * 3})

        result = load_source(path, TARGET, 5, writer_for(backend))

        assert result.succeeded
        assert result.chunks_written == 3
        # three retries on top of the first attempt
        assert backend.calls_for("r25") == 4
        assert backend.calls_for("r0") == 1
        assert backend.calls_for("r50") == 1
        assert sleeps == [1.0, 2.0, 3.0]

    def test_write_failure_is_captured(self, tmp_path, writer_for):
        path = write_json(tmp_path / "seed.json", make_records(60))
        backend = FakeBackend(script={"r25": ["ValidationException"]})

        result = load_source(path, TARGET, 1, writer_for(backend))

        assert not result.succeeded
        assert isinstance(result.error, BatchWriteError)
        assert result.failed_chunk == 1
        assert result.error.source == str(path)
        # fail-fast admission with one write at a time
        assert backend.calls_for("r50") == 0

    def test_raw_variant_passes_through(self, tmp_path, writer_for):
        path = write_json(tmp_path / "raw.json", [{"id": {"S": "x"}}])
        backend = FakeBackend()
        target = WriteTarget("Raw", WriteVariant.RAW)

        load_source(path, target, 5, writer_for(backend))

        assert backend.calls[0][0] is WriteVariant.RAW


class TestDispatchResult:
    """Tests for DispatchResult."""

    def test_to_dict(self):
        result = DispatchResult(
            source="seed.json", target=TARGET, record_count=30, chunk_count=2, chunks_written=2
        )
        data = result.to_dict()

        assert data["table"] == "Users"
        assert data["variant"] == "document"
        assert data["succeeded"] is True
        assert data["failed_chunk"] is None
        assert data["error"] is None

    def test_repr_shows_status(self):
        result = DispatchResult(source="seed.json", target=TARGET, error=RuntimeError("x"))
        assert "FAILED" in repr(result)
