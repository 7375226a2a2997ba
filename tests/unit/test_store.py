"""
Unit tests for SnapshotStore ordering and global means
"""

import pytest

from conftest import make_snapshot
from consdiff_stats.errors import NoDataError
from consdiff_stats.pipeline.store import SnapshotStore


class TestFinalize:

    def test_sorts_by_time(self, three_snapshots):
        store = SnapshotStore()
        store.extend(reversed(three_snapshots))
        store.finalize()
        assert [s.source for s in store] == ["hour-0", "hour-1", "hour-2"]

    def test_ties_keep_insertion_order(self):
        first = make_snapshot(5, ["A"])
        second = make_snapshot(5, ["B"])
        earlier = make_snapshot(1, ["C"])
        store = SnapshotStore()
        store.extend([first, second, earlier])
        store.finalize()
        assert [s.ids for s in store] == [("C",), ("A",), ("B",)]

    def test_idempotent(self, three_snapshots):
        store = SnapshotStore()
        store.extend(three_snapshots[::-1])
        first = store.finalize()
        order = store.snapshots
        second = store.finalize()
        assert store.snapshots == order
        assert first == second

    def test_means(self, three_snapshots):
        store = SnapshotStore()
        store.extend(three_snapshots)
        store.aux.add(300)
        store.aux.add(500)
        summary = store.finalize()

        assert summary.snapshot_count == 3
        assert summary.total_entries == 5
        assert summary.total_bytes == 500
        assert summary.mean_entry_size == 100.0
        assert summary.aux_count == 2
        assert summary.mean_aux_size == 400.0

    def test_missing_aux_reports_zero(self, three_snapshots, caplog):
        store = SnapshotStore()
        store.extend(three_snapshots)
        with caplog.at_level("WARNING", logger="consdiff_stats"):
            summary = store.finalize()
        assert summary.mean_aux_size == 0.0
        assert "No auxiliary descriptors" in caplog.text


class TestNoData:

    def test_empty_store(self):
        with pytest.raises(NoDataError):
            SnapshotStore().finalize()

    def test_snapshots_without_entries(self):
        store = SnapshotStore()
        store.add(make_snapshot(0, []))
        store.add(make_snapshot(1, []))
        with pytest.raises(NoDataError):
            store.finalize()

    def test_summary_requires_finalize(self, three_snapshots):
        store = SnapshotStore()
        store.extend(three_snapshots)
        assert not store.is_finalized
        with pytest.raises(RuntimeError):
            store.summary

    def test_adding_invalidates_summary(self, three_snapshots):
        store = SnapshotStore()
        store.extend(three_snapshots)
        store.finalize()
        store.add(make_snapshot(3, ["D"]))
        assert not store.is_finalized
