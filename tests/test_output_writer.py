# =============================================================================
# tests/test_output_writer.py - Output Writer Tests
# =============================================================================
# Tests for Parquet serialization, content-addressed blob writes, statistics
# and derived curve registration.
# =============================================================================

import hashlib
import io
from uuid import uuid4

import numpy as np
import pandas as pd
import pytest

from compute.errors import StorageIOError
from compute.output_writer import OutputWriter, blob_path
from compute.types import CurveDataType, ExecutionRecord, ExecutionStatus, OutputCurveData


@pytest.fixture
def output():
    return OutputCurveData(
        mnemonic="VSH_LIN",
        curve_type=CurveDataType.COMPUTED,
        unit="v/v",
        depths=[1000.0, 1000.5, 1001.0, 1001.5],
        values=[0.1, None, 0.7, 0.4],
        description="VShale (Linear) from GR",
    )


@pytest.fixture
def completed_record():
    record = ExecutionRecord(
        id=uuid4(),
        udf_id="petro:vshale_linear",
        udf_version="1.0.0",
        engine_version="0.1.0",
    )
    record.finish(ExecutionStatus.COMPLETED)
    return record


# =============================================================================
# Blob Tests
# =============================================================================

class TestBlobs:
    """Tests for serialization and blob storage."""

    def test_serialize_round_trips_nulls(self, blobs_dir, output):
        data = OutputWriter(blobs_dir).serialize(output)
        df = pd.read_parquet(io.BytesIO(data))
        assert list(df.columns) == ["depth", "value"]
        assert df["depth"].tolist() == [1000.0, 1000.5, 1001.0, 1001.5]
        assert np.isnan(df["value"].iloc[1])

    def test_blob_path_is_sharded(self, blobs_dir):
        digest = "abcdef" + "0" * 58
        path = blob_path(blobs_dir, digest)
        assert path == blobs_dir / "ab" / "cd" / f"{digest}.parquet"

    def test_write_blob_hash_matches_bytes(self, blobs_dir, output):
        writer = OutputWriter(blobs_dir)
        content_hash, path = writer.write_blob(output)

        assert path.exists()
        assert hashlib.sha256(path.read_bytes()).hexdigest() == content_hash
        assert len(content_hash) == 64

    def test_write_blob_is_idempotent(self, blobs_dir, output):
        writer = OutputWriter(blobs_dir)
        first_hash, first_path = writer.write_blob(output)
        mtime = first_path.stat().st_mtime_ns

        second_hash, second_path = writer.write_blob(output)
        assert second_hash == first_hash
        assert second_path == first_path
        assert first_path.stat().st_mtime_ns == mtime

    def test_no_temp_files_left(self, blobs_dir, output):
        _, path = OutputWriter(blobs_dir).write_blob(output)
        leftovers = [p for p in path.parent.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_unwritable_directory(self, tmp_path, output):
        blocker = tmp_path / "blobs"
        blocker.write_text("not a directory")
        with pytest.raises(StorageIOError):
            OutputWriter(blocker).write_blob(output)


# =============================================================================
# Statistics Tests
# =============================================================================

class TestStatistics:
    """Tests for compute_statistics."""

    def test_ignores_nulls(self, blobs_dir, output):
        stats = OutputWriter(blobs_dir).compute_statistics(output)
        assert stats.row_count == 4
        assert stats.null_count == 1
        assert stats.min_depth == 1000.0
        assert stats.max_depth == 1001.5
        assert stats.min_value == pytest.approx(0.1)
        assert stats.max_value == pytest.approx(0.7)
        assert stats.mean_value == pytest.approx(0.4)

    def test_all_null(self, blobs_dir):
        output = OutputCurveData("X", CurveDataType.COMPUTED, "", [1.0, 2.0], [None, None])
        stats = OutputWriter(blobs_dir).compute_statistics(output)
        assert stats.min_value is None
        assert stats.mean_value is None
        assert stats.null_count == 2


# =============================================================================
# Registration Tests
# =============================================================================

class TestCommitExecution:
    """Tests for registering derived curves."""

    def test_commit_registers_and_stamps(self, db_conn, blobs_dir, output, completed_record, well_id):
        registered = OutputWriter(blobs_dir).commit_execution(db_conn, well_id, output, completed_record)

        row = db_conn.execute("SELECT * FROM curves WHERE id = ?", (str(registered.curve_id),)).fetchone()
        assert row["well_id"] == str(well_id)
        assert row["mnemonic"] == "VSH_LIN"
        assert row["curve_type"] == "computed"
        assert row["is_derived"] == 1
        assert row["source_execution_id"] == str(completed_record.id)
        assert row["parquet_hash"] == registered.content_hash
        assert row["row_count"] == 4

        assert completed_record.output_curve_id == registered.curve_id
        assert completed_record.output_content_hash == registered.content_hash

    def test_each_commit_gets_new_curve_id(self, db_conn, blobs_dir, output, completed_record, well_id):
        writer = OutputWriter(blobs_dir)
        first = writer.commit_execution(db_conn, well_id, output, completed_record)

        other = ExecutionRecord(id=uuid4(), udf_id="x:y", udf_version="1", engine_version="1")
        other.finish(ExecutionStatus.COMPLETED)
        second = writer.commit_execution(db_conn, well_id, output, other)

        assert first.curve_id != second.curve_id
        assert first.content_hash == second.content_hash

    def test_failed_record_cannot_be_stamped(self, db_conn, blobs_dir, output, well_id):
        record = ExecutionRecord(id=uuid4(), udf_id="x:y", udf_version="1", engine_version="1")
        record.finish(ExecutionStatus.FAILED, "boom")
        with pytest.raises(RuntimeError):
            OutputWriter(blobs_dir).commit_execution(db_conn, well_id, output, record)
