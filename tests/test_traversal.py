"""Traversal: directory walk, archive enumeration and nested listings."""

from pathlib import Path

from core.models import Category
from matchers.patterns import build_search_spec
from services.traversal import Traversal, expand_nested
from tests.archive_builders import CLASS_BYTES, write_file, write_zip, zip_bytes


def walk(root, **kwargs):
    spec = build_search_spec("master", "x", job_count=1, **kwargs)
    traversal = Traversal(Path(root), spec)
    return list(traversal.iter_items()), traversal


class TestTraversal:

    def test_items_and_display_paths(self, sample_tree):
        items, traversal = walk(sample_tree)
        shown = {i.display_path for i in items}
        jar = str(sample_tree / "app.jar")
        assert f"{jar}!com/example/Util.class" in shown
        assert str(sample_tree / "conf" / "a.properties") in shown
        # nested archives are handed over unopened
        [nested] = [i for i in items if i.category is Category.ARCHIVE]
        assert nested.display_path == f"{jar}!lib/inner.jar"
        assert nested.container_chain == ()
        assert not any("IOException" in p for p in shown)
        assert traversal.archives == ["app.jar"]
        assert traversal.diagnostics == []

    def test_empty_directory(self, tmp_path):
        items, traversal = walk(tmp_path)
        assert items == []
        assert traversal.diagnostics == []

    def test_exclusions_and_min_size(self, sample_tree):
        items, _ = walk(sample_tree, exclusions=["/conf/"], min_size=20)
        paths = {i.display_path for i in items}
        assert str(sample_tree / "conf" / "a.properties") not in paths
        # run.sh is 21 bytes, readme.md only 9
        assert str(sample_tree / "scripts" / "run.sh") in paths
        assert str(sample_tree / "docs" / "readme.md") not in paths

    def test_min_size_does_not_apply_to_members(self, tmp_path):
        write_zip(tmp_path / "a.jar", {"tiny.txt": "x" * 1, "B.class": CLASS_BYTES})
        items, _ = walk(tmp_path, min_size=1)
        assert {i.entry_name for i in items} == {"tiny.txt", "B.class"}

    def test_corrupt_archive_is_a_diagnostic(self, tmp_path):
        write_file(tmp_path / "broken.jar", b"not a zip")
        write_file(tmp_path / "ok.txt", "fine\n")
        items, traversal = walk(tmp_path)
        assert [i.base_name for i in items] == ["ok.txt"]
        assert [d.error for d in traversal.diagnostics] == ["CorruptArchive"]

    def test_zero_depth_skips_nested_archives(self, tmp_path):
        write_zip(tmp_path / "app.jar", {"lib/inner.jar": zip_bytes({"a.txt": "a"}), "b.txt": "b"})
        items, traversal = walk(tmp_path, max_depth=0)
        assert [i.entry_name for i in items] == ["b.txt"]
        assert [d.error for d in traversal.diagnostics] == ["RecursionLimitExceeded"]
        assert traversal.diagnostics[0].location.endswith("app.jar!lib/inner.jar")


class TestExpandNested:

    def nested_item(self, tmp_path, inner):
        write_zip(tmp_path / "app.war", {"WEB-INF/lib/inner.jar": inner})
        items, _ = walk(tmp_path)
        return items[0]

    def test_lists_members_below_the_chain(self, tmp_path):
        inner = zip_bytes({"org/acme/IOException.class": CLASS_BYTES, "notes.txt": "n\n"})
        item = self.nested_item(tmp_path, inner)
        listing = expand_nested(item, inner, max_depth=8)
        assert listing.data == inner
        assert listing.diagnostics == []
        assert [i.entry_name for i in listing.items] == ["org/acme/IOException.class", "notes.txt"]
        notes = listing.items[1]
        assert notes.container_chain == ("WEB-INF/lib/inner.jar",)
        assert notes.origin_path == tmp_path / "app.war"
        assert notes.display_path.endswith("app.war!WEB-INF/lib/inner.jar!notes.txt")

    def test_corrupt_nested_archive(self, tmp_path):
        item = self.nested_item(tmp_path, b"garbage")
        listing = expand_nested(item, b"garbage", max_depth=8)
        assert listing.data is None
        assert listing.items == []
        assert [(d.error, d.location) for d in listing.diagnostics] == [("CorruptArchive", item.display_path)]

    def test_depth_bound_inside_nested_archive(self, tmp_path):
        inner = zip_bytes({"deeper.jar": zip_bytes({"a.txt": "a"}), "b.txt": "b"})
        item = self.nested_item(tmp_path, inner)
        listing = expand_nested(item, inner, max_depth=1)
        assert [i.entry_name for i in listing.items] == ["b.txt"]
        assert [d.error for d in listing.diagnostics] == ["RecursionLimitExceeded"]

        listing = expand_nested(item, inner, max_depth=2)
        assert [(i.entry_name, i.category) for i in listing.items] == [
            ("deeper.jar", Category.ARCHIVE), ("b.txt", Category.TEXT),
        ]
