"""
Unit tests for consensus parsing and tar streaming
"""

import io
from datetime import datetime, timezone

import pytest

from conftest import build_tar, consensus_name, consensus_text
from consdiff_stats.config import StatsConfig
from consdiff_stats.dto import AuxDescriptorBatch
from consdiff_stats.errors import FormatError
from consdiff_stats.intake.snapshot_reader import iter_archive, parse_entry_time, parse_snapshot

NAME = consensus_name(0)


def _parse(text, cfg=None, name=NAME):
    cfg = cfg or StatsConfig()
    return parse_snapshot(name, text.splitlines(keepends=True), byte_size=len(text), cfg=cfg)


class TestEntryTime:

    def test_parses_prefix_of_base_name(self):
        t = parse_entry_time("a/b/2014-03-05-17-00-00-consensus", "%Y-%m-%d-%H-%M-%S")
        assert t == datetime(2014, 3, 5, 17, 0, 0, tzinfo=timezone.utc)

    def test_bad_timestamp_is_fatal(self):
        with pytest.raises(FormatError) as err:
            parse_entry_time("dir/2014-13-05-17-00-00-consensus", "%Y-%m-%d-%H-%M-%S")
        assert "dir/2014-13-05" in str(err.value)

    def test_short_name_is_fatal(self):
        with pytest.raises(FormatError):
            parse_entry_time("dir/consensus", "%Y-%m-%d-%H-%M-%S")


class TestParseSnapshot:

    def test_entries_keep_document_order(self):
        snap = _parse(consensus_text([("B", "hb"), ("A", "ha"), ("C", "hc")]))
        assert snap.ids == ("B", "A", "C")
        assert snap.hashes == ("hb", "ha", "hc")
        assert snap.entries[1] == ("A", "ha")

    def test_byte_size_and_time(self):
        text = consensus_text([("A", "ha")])
        snap = _parse(text)
        assert snap.byte_size == len(text)
        assert snap.time == datetime(2014, 1, 1, tzinfo=timezone.utc)
        assert snap.source == NAME

    def test_other_lines_ignored(self):
        text = "s Running\nw Bandwidth=20\nr n A x\nm ha\np accept 1-65535\n"
        assert _parse(text).entries == (("A", "ha"),)

    def test_document_without_hashes(self):
        snap = _parse(consensus_text([("A", None), ("B", None)]))
        assert snap.ids == ("A", "B")
        assert snap.hashes == ()

    def test_hash_before_identity_is_fatal(self):
        with pytest.raises(FormatError, match="identities and hashes differ"):
            _parse("m orphan\nr n A x\nm ha\n")

    def test_two_identities_then_hash_is_fatal(self):
        with pytest.raises(FormatError, match="identities and hashes differ"):
            _parse("r n A x\nr n B x\nm hb\n")

    def test_trailing_identity_without_hash_is_fatal(self):
        with pytest.raises(FormatError, match="no hash"):
            _parse("r n A x\nm ha\nr n B x\n")

    def test_duplicate_identity_is_fatal(self):
        with pytest.raises(FormatError, match="duplicate identity A"):
            _parse(consensus_text([("A", "ha"), ("A", "hb")]))

    def test_short_identity_line_is_fatal(self):
        with pytest.raises(FormatError, match="missing identity"):
            _parse("r nick\nm ha\n")

    def test_empty_hash_is_fatal(self):
        with pytest.raises(FormatError, match="missing hash"):
            _parse("r n A x\nm \n")

    def test_lenient_skips_short_identity_with_its_hash(self):
        cfg = StatsConfig(strict_records=False)
        snap = _parse("r nick\nm lost\nr n B x\nm hb\n", cfg)
        assert snap.entries == (("B", "hb"),)

    def test_lenient_skips_identity_of_short_hash(self):
        cfg = StatsConfig(strict_records=False)
        snap = _parse("r n A x\nm \nr n B x\nm hb\n", cfg)
        assert snap.entries == (("B", "hb"),)

    def test_lenient_still_rejects_duplicates(self):
        cfg = StatsConfig(strict_records=False)
        with pytest.raises(FormatError):
            _parse("r n A x\nm ha\nr n A y\nm hb\n", cfg)


class TestIterArchive:

    def test_splits_consensuses_and_micro(self, archive_bytes, cfg):
        aux = AuxDescriptorBatch()
        snaps = list(iter_archive(io.BytesIO(archive_bytes), cfg=cfg, aux=aux, source="t.tar"))

        assert [s.ids for s in snaps] == [("A", "C"), ("A", "B"), ("A",)]
        assert aux.count == 2
        assert aux.total_bytes == 800
        assert aux.mean_size == 400

    def test_directories_are_ignored(self, cfg):
        data = build_tar({}, directories=["consensuses-2014-01", "consensuses-2014-01/01"])
        aux = AuxDescriptorBatch()
        assert list(iter_archive(io.BytesIO(data), cfg=cfg, aux=aux)) == []
        assert aux.count == 0

    def test_marker_is_configurable(self):
        cfg = StatsConfig(aux_path_marker="/server-descriptors/")
        data = build_tar({"x/server-descriptors/a": b"abc", "x/micro/b": b"zz"})
        aux = AuxDescriptorBatch()
        # "x/micro/b" is now treated as a consensus and has no timestamp
        with pytest.raises(FormatError):
            list(iter_archive(io.BytesIO(data), cfg=cfg, aux=aux))
        assert aux.count == 1

    def test_malformed_member_aborts(self, cfg):
        data = build_tar({consensus_name(0): b"m orphan\n"})
        with pytest.raises(FormatError) as err:
            list(iter_archive(io.BytesIO(data), cfg=cfg, aux=AuxDescriptorBatch()))
        assert err.value.entry == consensus_name(0)

    def test_garbage_stream_is_format_error(self, cfg):
        with pytest.raises(FormatError):
            list(iter_archive(io.BytesIO(b"not a tarball" * 100), cfg=cfg, aux=AuxDescriptorBatch()))
