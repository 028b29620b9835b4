"""
Tests for snapshot persistence

These tests verify:
- persist(): file format, ordering and truncation
- load(): missing files, round-trips, malformed and undecodable lines
- the strict/lenient and trim options

Run with: python -m pytest tests/test_persistence.py -v
"""

import pytest

from seqcache.cache.eviction import FIFOEvictionPolicy, LFUEvictionPolicy, LRUEvictionPolicy
from seqcache.cache.persistence import encode_record, read_snapshot, split_record
from seqcache.cache.store import Cache
from seqcache.exceptions import (
    CacheError,
    PersistenceNotConfiguredError,
    SnapshotEncodeError,
    SnapshotParseError,
)


def read_text(path: str) -> str:
    with open(path, encoding="utf-8", newline="") as fh:
        return fh.read()


class TestRecordFormat:
    """Test the single-line codec."""

    def test_encode_record(self):
        assert encode_record("key", "value", 7) == "key=value\t7\n"

    def test_encode_non_string(self):
        assert encode_record(3, 4.5, 1) == "3=4.5\t1\n"

    def test_value_may_contain_equals(self):
        line = encode_record("k", "a=b", 1)
        assert split_record(line.rstrip("\n")) == ("k", "a=b", "1")

    @pytest.mark.parametrize("key,value", [
        ("a=b", "v"),
        ("a\tb", "v"),
        ("a\nb", "v"),
        ("k", "a\tb"),
        ("k", "a\nb"),
        ("k", "a\rb"),
    ])
    def test_unencodable_text(self, key, value):
        with pytest.raises(SnapshotEncodeError):
            encode_record(key, value, 1)

    @pytest.mark.parametrize("line", ["no-separators", "key=value", "keyvalue\t3"])
    def test_split_missing_separator(self, line):
        assert split_record(line) is None


class TestPersist:
    """Test persist() method."""

    def test_requires_path(self, cache: Cache):
        cache.put("a", "1")
        with pytest.raises(PersistenceNotConfiguredError) as exc_info:
            cache.persist()

        assert isinstance(exc_info.value, CacheError)
        assert exc_info.value.error_code == "NO_PERSIST_PATH"

    def test_writes_oldest_first(self, snapshot_path):
        cache = Cache(capacity=3, persist_path=snapshot_path)
        cache.put("A", "valeur_A")
        cache.put("B", "valeur_B")
        cache.put("C", "valeur_C")
        cache.get("B")
        cache.put("D", "valeur_D")

        cache.persist()

        assert read_text(snapshot_path) == "C=valeur_C\t3\nB=valeur_B\t4\nD=valeur_D\t5\n"

    def test_empty_cache_writes_empty_file(self, snapshot_path):
        Cache(capacity=3, persist_path=snapshot_path).persist()
        assert read_text(snapshot_path) == ""

    def test_persist_overwrites_file(self, snapshot_path):
        """A second cache persisting to the same path replaces the first snapshot."""
        cache1 = Cache(capacity=10, persist_path=snapshot_path)
        cache1.put("k1", "v1")
        cache1.persist()

        cache2 = Cache(capacity=10, persist_path=snapshot_path)
        cache2.put("k2", "v2")
        cache2.persist()

        loaded = Cache.load(10, snapshot_path)
        assert loaded.get("k1") is None
        assert loaded.get("k2") == "v2"
        assert loaded.size() == 1

    def test_unencodable_entry_leaves_file_untouched(self, snapshot_path):
        cache = Cache(capacity=10, persist_path=snapshot_path)
        cache.put("good", "1")
        cache.persist()

        cache.put("bad", "tab\there")
        with pytest.raises(SnapshotEncodeError):
            cache.persist()

        assert read_text(snapshot_path) == "good=1\t1\n"

    def test_persist_to_missing_directory(self, tmp_path):
        cache = Cache(capacity=1, persist_path=str(tmp_path / "missing" / "snap.txt"))
        cache.put("a", "1")
        with pytest.raises(OSError):
            cache.persist()


class TestLoad:
    """Test Cache.load()."""

    def test_missing_file_gives_empty_cache(self, snapshot_path):
        cache = Cache.load(4, snapshot_path)

        assert cache.size() == 0
        assert cache.capacity == 4
        assert cache.persist_path == snapshot_path
        assert cache.sequence == 0

    def test_round_trip(self, snapshot_path):
        cache = Cache(capacity=10, persist_path=snapshot_path)
        cache.put("persistent_key", "persistent_value")
        cache.persist()

        loaded = Cache.load(10, snapshot_path)
        assert loaded.get("persistent_key") == "persistent_value"

    def test_round_trip_preserves_recency(self, snapshot_path):
        cache = Cache(capacity=3, persist_path=snapshot_path)
        for key in ("a", "b", "c"):
            cache.put(key, key.upper())
        cache.get("a")
        cache.persist()

        loaded = Cache.load(3, snapshot_path)

        assert loaded.keys() == cache.keys() == ["b", "c", "a"]
        assert loaded.sequence == cache.sequence
        assert loaded.remove_least_recently_used() == "b"

    def test_clock_resumes_after_highest_sequence(self, write_snapshot_text):
        path = write_snapshot_text("a=1\t5\nb=2\t9\n")
        cache = Cache.load(5, path)

        cache.put("c", "3")

        assert cache.items()[-1][1].sequence == 10

    def test_unsorted_file_is_ordered_by_sequence(self, write_snapshot_text):
        path = write_snapshot_text("late=1\t30\nearly=2\t10\nmiddle=3\t20\n")
        cache = Cache.load(3, path)

        assert cache.keys() == ["early", "middle", "late"]
        cache.put("new", "4")
        assert cache.get("early") is None

    def test_typed_keys_and_values(self, write_snapshot_text):
        path = write_snapshot_text("1=10\t1\n2=20\t2\n")
        cache = Cache.load(2, path, key_type=int, value_type=int)

        assert cache.get(1) == 10
        assert cache.get(2) == 20

    def test_value_containing_equals(self, snapshot_path):
        cache = Cache(capacity=2, persist_path=snapshot_path)
        cache.put("url", "a=b=c")
        cache.persist()

        assert Cache.load(2, snapshot_path).get("url") == "a=b=c"

    def test_malformed_lines_are_skipped(self, write_snapshot_text):
        path = write_snapshot_text("a=1\t1\n\nnonsense\nb2\t2\nc=3\n" "d=4\t4\n")
        cache = Cache.load(10, path)

        assert cache.keys() == ["a", "d"]
        assert cache.sequence == 4

    def test_crlf_line_endings(self, write_snapshot_text):
        path = write_snapshot_text("a=1\t1\r\nb=2\t2\r\n")
        cache = Cache.load(10, path)

        assert cache.get("a") == "1"
        assert cache.get("b") == "2"

    def test_duplicate_key_last_line_wins(self, write_snapshot_text):
        path = write_snapshot_text("a=old\t5\nb=2\t2\na=new\t1\n")
        cache = Cache.load(10, path)

        assert cache.peek("a") == "new"
        assert cache.keys() == ["a", "b"]
        assert cache.sequence == 5

    def test_duplicate_sequences_keep_file_order(self, write_snapshot_text):
        path = write_snapshot_text("x=1\t3\ny=2\t3\n")
        cache = Cache.load(10, path)

        assert cache.remove_least_recently_used() == "x"

    def test_load_does_not_trim_by_default(self, write_snapshot_text):
        path = write_snapshot_text("a=1\t1\nb=2\t2\nc=3\t3\n")
        cache = Cache.load(2, path, trim=False)

        assert cache.size() == 3

    def test_load_with_trim(self, write_snapshot_text):
        path = write_snapshot_text("a=1\t1\nb=2\t2\nc=3\t3\n")
        cache = Cache.load(2, path, trim=True)

        assert cache.keys() == ["b", "c"]

    def test_load_with_policy(self, write_snapshot_text):
        path = write_snapshot_text("a=1\t1\nb=2\t2\n")
        cache = Cache.load(2, path, policy=LFUEvictionPolicy())

        assert cache.get_stats()["policy"] == "lfu"
        assert len(cache.policy) == 2

    def test_path_is_a_directory(self, tmp_path):
        with pytest.raises(OSError):
            Cache.load(2, str(tmp_path))


class TestUndecodableRecords:
    """Test strict and lenient handling of bad fields."""

    @pytest.mark.parametrize("text", [
        "a=1\tnot-a-number\n",
        "a=1\t-3\n",
        "a=1\t\n",
        "a=1\t 2\n",
    ])
    def test_bad_sequence_aborts_load(self, write_snapshot_text, text):
        path = write_snapshot_text(text)
        with pytest.raises(SnapshotParseError):
            Cache.load(2, path, strict=True)

    def test_bad_key_reports_line(self, write_snapshot_text):
        path = write_snapshot_text("1=a\t1\ntwo=b\t2\n")
        with pytest.raises(SnapshotParseError) as exc_info:
            Cache.load(2, path, key_type=int, strict=True)

        assert exc_info.value.line_number == 2
        assert exc_info.value.path == path
        assert isinstance(exc_info.value, ValueError)
        assert f"{path}:2" in str(exc_info.value)

    def test_bad_value_aborts_load(self, write_snapshot_text):
        path = write_snapshot_text("a=1\t1\nb=x\t2\n")
        with pytest.raises(SnapshotParseError):
            Cache.load(2, path, value_type=int, strict=True)

    def test_lenient_skips_bad_records(self, write_snapshot_text, caplog):
        path = write_snapshot_text("1=a\t1\ntwo=b\t2\n3=c\tx\n4=d\t4\n")

        with caplog.at_level("WARNING", logger="seqcache.cache.persistence"):
            cache = Cache.load(10, path, key_type=int, strict=False)

        assert cache.keys() == [1, 4]
        assert cache.sequence == 4
        assert "Skipping undecodable snapshot record" in caplog.text

    def test_read_snapshot_counts_skipped(self, write_snapshot_text):
        path = write_snapshot_text("a=1\t1\nbroken\nb=2\tx\n")
        snapshot = read_snapshot(path, strict=False)

        assert [record.key for record in snapshot.records] == ["a"]
        assert snapshot.skipped == 2
        assert snapshot.last_sequence == 1


class TestPolicyRoundTrip:
    """Test what each policy keeps across persist() and load()."""

    def test_lru_round_trip_is_exact(self, snapshot_path, caplog):
        cache = Cache(capacity=2, persist_path=snapshot_path, policy=LRUEvictionPolicy())
        cache.put("a", "1")
        cache.put("b", "2")
        cache.get("a")

        with caplog.at_level("WARNING", logger="seqcache.cache.store"):
            cache.persist()
            loaded = Cache.load(2, snapshot_path, policy=LRUEvictionPolicy())

        assert loaded.policy.select_victim() == cache.policy.select_victim() == "b"
        assert "keeps recency only" not in caplog.text

    def test_fifo_reloads_in_recency_order(self, snapshot_path, caplog):
        """FIFO insertion order is not stored, so a hit before persist reorders keys."""
        cache = Cache(capacity=2, persist_path=snapshot_path, policy=FIFOEvictionPolicy())
        cache.put("a", "1")
        cache.put("b", "2")
        cache.get("a")
        assert cache.policy.select_victim() == "a"

        with caplog.at_level("WARNING", logger="seqcache.cache.store"):
            cache.persist()
            loaded = Cache.load(2, snapshot_path, policy=FIFOEvictionPolicy())

        assert loaded.policy.select_victim() == "b"
        assert caplog.text.count("fifo state is rebuilt") == 2

    def test_lfu_reloads_with_reset_counts(self, snapshot_path, caplog):
        """LFU counts are not stored, so every key restarts at one touch."""
        cache = Cache(capacity=2, persist_path=snapshot_path, policy=LFUEvictionPolicy())
        cache.put("a", "1")
        for _ in range(5):
            cache.get("a")
        cache.put("b", "2")
        assert cache.policy.select_victim() == "b"

        with caplog.at_level("WARNING", logger="seqcache.cache.store"):
            cache.persist()
            loaded = Cache.load(2, snapshot_path, policy=LFUEvictionPolicy())

        assert loaded.policy.frequency("a") == 1
        assert loaded.policy.select_victim() == "a"
        assert caplog.text.count("lfu state is rebuilt") == 2

    def test_missing_snapshot_does_not_warn(self, snapshot_path, caplog):
        with caplog.at_level("WARNING", logger="seqcache.cache.store"):
            Cache.load(2, snapshot_path, policy=LFUEvictionPolicy())

        assert caplog.text == ""

    @pytest.mark.parametrize("policy,restorable", [
        (LRUEvictionPolicy(), True),
        (FIFOEvictionPolicy(), False),
        (LFUEvictionPolicy(), False),
    ])
    def test_restorable_flag(self, policy, restorable):
        assert policy.restorable is restorable
