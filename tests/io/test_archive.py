import os

from stibuilder.io import iter_regular_files


class TestIterRegularFiles:

    def test_sorted_relative_posix_paths(self, make_tree):
        root = make_tree({"b.txt": "b", "a/z.txt": "z", "a/y.txt": "y", "c/d/e.txt": "e"})
        assert [name for name, _ in iter_regular_files(root)] == ["b.txt", "a/y.txt", "a/z.txt", "c/d/e.txt"]

    def test_skips_fifo_and_links(self, make_tree):
        root = make_tree({"keep.txt": "k"})
        os.mkfifo(root / "pipe")
        os.symlink("nowhere", root / "broken")
        os.symlink("keep.txt", root / "alias")
        assert [name for name, _ in iter_regular_files(root)] == ["keep.txt"]
