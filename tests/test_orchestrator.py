"""End-to-end scans through the scheduler."""

import os
import threading
import zipfile
from collections import Counter

import pytest

from core.errors import PathAccessError
from core.models import SearchMode
from matchers.patterns import build_search_spec
from services.containers import ArchiveContainer
from services.orchestrator import Orchestrator, _batched
from tests.archive_builders import CLASS_BYTES, write_file, write_zip, zip_bytes


def scan(root, mode, pattern, **kwargs):
    kwargs.setdefault("job_count", 2)
    batch_size = kwargs.pop("batch_size", 256)
    spec = build_search_spec(mode, pattern, **kwargs)
    return Orchestrator(spec, batch_size=batch_size).run_scan(root)


class TestScenarios:

    def test_properties_master_search(self, tmp_path):
        props = write_file(tmp_path / "a.properties", "db.password=secret123\nuser=admin\n")
        report = scan(tmp_path, "master", "password")
        assert [(h.display_path, h.line_number, h.excerpt, h.kind_tag) for h in report.hits] == [
            (str(props), 1, "db.password=secret123", "config"),
        ]
        assert report.stats.config_files == 1
        assert report.stats.total_hits == 1
        assert report.stats.unique_files == 1

    def test_exact_class_without_reading_bytes(self, tmp_path, monkeypatch):
        jar = write_zip(tmp_path / "lib.jar", {"com/example/Util.class": CLASS_BYTES})

        def no_reads(self, name):
            raise AssertionError(f"entry bytes read for {name}")

        monkeypatch.setattr(ArchiveContainer, "read", no_reads)
        report = scan(tmp_path, "exact", "Util")
        assert [(h.display_path, h.excerpt, h.kind_tag, h.line_number) for h in report.hits] == [
            (f"{jar}!com/example/Util.class", "com.example.Util", "class", None),
        ]
        assert report.stats.class_files == 1
        assert report.stats.jar_files == 1
        assert report.diagnostics == []

    def test_empty_directory(self, tmp_path):
        report = scan(tmp_path, "master", "anything")
        assert report.hits == []
        assert set(report.stats.counters().values()) == {0}
        assert report.diagnostics == []

    def test_header(self, tmp_path):
        report = scan(tmp_path, "content", "jdbc:.*")
        h = report.header
        assert h.schema_version == "1.0-hits"
        assert h.mode is SearchMode.CONTENT
        assert h.root == tmp_path
        assert h.started_at_utc <= h.finished_at_utc
        assert h.config_snapshot["pattern"] == "jdbc:.*"


class TestModes:

    def test_substring_finds_nested_exception(self, sample_tree):
        report = scan(sample_tree, "substring", "Exception")
        assert [h.excerpt for h in report.hits] == ["org.acme.IOException"]
        assert report.hits[0].display_path.endswith("app.jar!lib/inner.jar!org/acme/IOException.class")

    def test_exact_does_not_match_hashmap(self, sample_tree):
        assert scan(sample_tree, "exact", "Map").hits == []

    def test_package(self, sample_tree):
        report = scan(sample_tree, "package", "com/example")
        assert [h.excerpt for h in report.hits] == ["com.example.HashMap", "com.example.Util"]

    def test_content_searches_bytecode_strings(self, sample_tree):
        report = scan(sample_tree, "content", r"jdbc:mysql")
        assert {h.kind_tag for h in report.hits} == {"class_bytecode"}
        # Util, HashMap and the nested IOException share the same payload
        assert len(report.hits) == 3

    def test_master_covers_every_kind(self, sample_tree):
        report = scan(sample_tree, "master", "password")
        by_kind = {}
        for h in report.hits:
            by_kind.setdefault(h.kind_tag, []).append(h)
        assert set(by_kind) == {"config", "text", "other_binary"}
        assert [h.excerpt for h in by_kind["other_binary"]] == ["password"]
        assert [h.line_number for h in by_kind["text"]] == [2]
        assert report.stats.unique_files == 4

    def test_extensionless_text_is_searched_by_line(self, tmp_path):
        makefile = write_file(tmp_path / "Makefile", "all:\n\techo build\n")
        report = scan(tmp_path, "master", "echo")
        assert [(h.display_path, h.line_number, h.kind_tag) for h in report.hits] == [
            (str(makefile), 2, "other"),
        ]
        assert report.stats.other_files == 1

    def test_hits_sorted_by_path_keep_line_order(self, tmp_path):
        write_file(tmp_path / "b.txt", "hit1\nno\nhit3\n")
        write_file(tmp_path / "a.txt", "hit\n")
        report = scan(tmp_path, "master", "hit")
        assert [(h.display_path.rsplit("/", 1)[-1], h.line_number) for h in report.hits] == [
            ("a.txt", 1), ("b.txt", 1), ("b.txt", 3),
        ]


class TestDeterminism:

    def test_job_count_does_not_change_results(self, sample_tree):
        one = scan(sample_tree, "master", "password|Util", job_count=1)
        eight = scan(sample_tree, "master", "password|Util", job_count=8, batch_size=1)
        assert one.hits == eight.hits
        assert one.stats.counters() == eight.stats.counters()

    def test_mini_lists_the_same_paths(self, sample_tree):
        full = scan(sample_tree, "master", "password")
        mini = scan(sample_tree, "master", "password", mini=True)
        assert [h.display_path for h in mini.hits] == sorted({h.display_path for h in full.hits})
        assert all(h.excerpt == "Found matches" and h.line_number is None for h in mini.hits)
        assert mini.stats.total_hits == full.stats.total_hits
        assert mini.stats.unique_files == len(mini.hits)


class TestFailures:

    def test_missing_root(self, tmp_path):
        with pytest.raises(PathAccessError):
            scan(tmp_path / "nope", "master", "x")

    def test_root_is_a_file(self, tmp_path):
        f = write_file(tmp_path / "f.txt", "x")
        with pytest.raises(PathAccessError):
            scan(f, "master", "x")

    def test_corrupt_nested_archive_does_not_abort(self, tmp_path):
        write_zip(tmp_path / "app.jar", {"bad.jar": b"garbage", "ok.properties": "key=password\n"})
        report = scan(tmp_path, "master", "password")
        assert len(report.hits) == 1
        assert [d.error for d in report.diagnostics] == ["CorruptArchive"]
        assert report.stats.skipped == 1

    def test_unreadable_entry_is_skipped(self, tmp_path):
        data = zip_bytes({"good.txt": "password\n", "bad.txt": "password!!\n"}, compression=zipfile.ZIP_STORED)
        write_file(tmp_path / "crc.zip", data.replace(b"password!!", b"passwordXX"))
        report = scan(tmp_path, "master", "password")
        assert [h.display_path.rsplit("!", 1)[-1] for h in report.hits] == ["good.txt"]
        assert [(d.error, d.location.rsplit("!", 1)[-1]) for d in report.diagnostics] == [
            ("EntryReadError", "bad.txt"),
        ]
        assert report.stats.skipped == 1
        assert report.stats.total_files == 1

    def test_unreadable_subdirectory_keeps_siblings(self, tmp_path, monkeypatch):
        write_file(tmp_path / "locked" / "hidden.txt", "password\n")
        visible = write_file(tmp_path / "open" / "visible.txt", "password\n")
        locked = str(tmp_path / "locked")
        real_scandir = os.scandir

        def scandir(path="."):
            if os.fspath(path) == locked:
                raise PermissionError(13, "Permission denied", locked)
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)
        report = scan(tmp_path, "master", "password")
        assert [h.display_path for h in report.hits] == [str(visible)]
        assert [(d.error, d.location) for d in report.diagnostics] == [("PathAccessError", locked)]
        assert report.stats.skipped == 1

    def test_unopenable_archive_is_a_path_error(self, tmp_path, monkeypatch):
        jar = write_zip(tmp_path / "locked.jar", {"a.properties": "password=x\n"})
        write_file(tmp_path / "b.properties", "password=y\n")

        def deny(*args, **kwargs):
            raise PermissionError(13, "Permission denied", str(jar))

        monkeypatch.setattr(zipfile, "ZipFile", deny)
        report = scan(tmp_path, "master", "password")
        assert [h.display_path.rsplit("/", 1)[-1] for h in report.hits] == ["b.properties"]
        assert [(d.error, d.location) for d in report.diagnostics] == [("PathAccessError", str(jar))]


class TestControl:

    def test_progress_callback(self, sample_tree):
        seen = []
        spec = build_search_spec("master", "password", job_count=2)
        Orchestrator(spec, on_progress=lambda done, path: seen.append(done)).run_scan(sample_tree)
        assert seen == list(range(1, len(seen) + 1))
        assert len(seen) > 5

    def test_cancel_before_run_dispatches_nothing(self, sample_tree):
        spec = build_search_spec("master", "password", job_count=2)
        orch = Orchestrator(spec)
        orch.cancel()
        report = orch.run_scan(sample_tree)
        assert report.hits == []
        assert report.stats.total_files == 0

    def test_batches_never_mix_containers(self, sample_tree):
        from services.traversal import Traversal
        spec = build_search_spec("master", "x", job_count=1)
        items = list(Traversal(sample_tree, spec).iter_items())
        batches = list(_batched(iter(items), 2))
        assert sum(len(b) for b in batches) == len(items)
        for batch in batches:
            assert len(batch) <= 2
            assert len({i.container_key for i in batch}) == 1

    def test_cancel_mid_run_merges_dispatched_batches(self, tmp_path):
        for n in range(40):
            write_file(tmp_path / f"f{n:02d}.txt", "password\n")
        full = scan(tmp_path, "master", "password", job_count=1)
        assert full.stats.total_files == 40

        merged = []
        spec = build_search_spec("master", "password", job_count=1)

        def on_progress(done, path):
            merged.append(path)
            orch.cancel()

        orch = CountingOrchestrator(spec, on_progress=on_progress, batch_size=1)
        report = orch.run_scan(tmp_path)
        assert 0 < report.stats.total_files < 40
        # every item a worker finished made it into the report
        assert report.stats.total_files == orch.processed == len(merged)
        assert len(report.hits) == report.stats.total_files


class CountingOrchestrator(Orchestrator):
    """Counts the items workers actually ran."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.processed = 0
        self._count_lock = threading.Lock()

    def _run_batch(self, batch):
        result = super()._run_batch(batch)
        with self._count_lock:
            self.processed += len(result.outcomes)
        return result


def nested_jar(depth):
    """A jar whose member chain is `depth` jars deep, with a text file at the bottom."""
    data = zip_bytes({"bottom.txt": "found me\n"})
    for level in range(depth, 0, -1):
        data = zip_bytes({f"level{level}.jar": data})
    return data


class TestNesting:

    def test_nested_archive_is_decompressed_once_off_the_scheduler(self, tmp_path, monkeypatch):
        inner = zip_bytes({f"f{n}.txt": "password\n" for n in range(5)})
        write_zip(tmp_path / "app.war", {"WEB-INF/lib/inner.jar": inner})
        reads = Counter()
        real_read = ArchiveContainer.read

        def spy(self, name):
            reads[(name, threading.current_thread() is threading.main_thread())] += 1
            return real_read(self, name)

        monkeypatch.setattr(ArchiveContainer, "read", spy)
        report = scan(tmp_path, "master", "password", job_count=2, batch_size=2)
        assert reads[("WEB-INF/lib/inner.jar", False)] == 1
        assert reads[("WEB-INF/lib/inner.jar", True)] == 0
        assert len(report.hits) == 5
        assert report.stats.jar_files == 1
        assert report.stats.zip_files == 1

    def test_recursion_bound(self, tmp_path):
        write_file(tmp_path / "deep.jar", nested_jar(3))
        report = scan(tmp_path, "master", "found", max_depth=2)
        assert report.hits == []
        assert [d.error for d in report.diagnostics] == ["RecursionLimitExceeded"]
        assert report.diagnostics[0].location.endswith("level1.jar!level2.jar!level3.jar")

        report = scan(tmp_path, "master", "found", max_depth=3)
        assert [h.display_path.split("!")[1:] for h in report.hits] == [
            ["level1.jar", "level2.jar", "level3.jar", "bottom.txt"],
        ]
        assert report.diagnostics == []

    def test_chain_never_exceeds_max_depth(self, tmp_path):
        write_file(tmp_path / "deep.jar", nested_jar(5))
        for depth in range(0, 6):
            report = scan(tmp_path, "master", "found|level", max_depth=depth)
            # origin, at most `depth` nested jars, then the member itself
            assert all(len(h.display_path.split("!")) <= depth + 2 for h in report.hits)
            assert report.stats.jar_files == depth + 1

    def test_nested_archive_items_are_not_counted_as_files(self, sample_tree):
        report = scan(sample_tree, "master", "password")
        # 4 plain files, 4 app.jar members, 2 inner.jar members
        assert report.stats.total_files == 10
        assert report.stats.counters()["jar_files"] == 2
