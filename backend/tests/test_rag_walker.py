"""Tests for the directory walker."""
import os
from pathlib import Path

import pytest

from codebase_rag.rag.walker import (
    DEFAULT_EXCLUDE_PATTERNS,
    SUPPORTED_EXTENSIONS,
    normalize_extensions,
    walk,
)

from conftest import write_tree


def _rel(root: Path, paths):
    return [os.path.relpath(p, root).replace(os.sep, "/") for p in paths]


class TestWalk:
    def test_collects_supported_files(self, tmp_path: Path):
        write_tree(tmp_path, {
            "a.py": "x",
            "b.js": "x",
            "image.png": "x",
            "notes.md": "x",
        })
        assert _rel(tmp_path, walk(tmp_path)) == ["a.py", "b.js", "notes.md"]

    def test_extension_match_is_case_insensitive(self, tmp_path: Path):
        write_tree(tmp_path, {"README.MD": "x", "Main.PY": "x"})
        assert sorted(_rel(tmp_path, walk(tmp_path))) == ["Main.PY", "README.MD"]

    def test_custom_extensions(self, tmp_path: Path):
        write_tree(tmp_path, {"a.py": "x", "b.js": "x"})
        assert _rel(tmp_path, walk(tmp_path, extensions=["js"])) == ["b.js"]

    def test_recurses_depth_first_in_name_order(self, tmp_path: Path):
        write_tree(tmp_path, {
            "b/z.py": "x",
            "a/y.py": "x",
            "a/sub/x.py": "x",
            "c.py": "x",
        })
        assert _rel(tmp_path, walk(tmp_path)) == ["a/sub/x.py", "a/y.py", "b/z.py", "c.py"]

    def test_deterministic(self, tmp_path: Path):
        write_tree(tmp_path, {f"d{i}/f{j}.py": "x" for i in range(3) for j in range(3)})
        assert walk(tmp_path) == walk(tmp_path)

    def test_excludes_by_substring(self, tmp_path: Path):
        write_tree(tmp_path, {
            "node_modules/pkg/index.js": "x",
            "my_build_tools/tool.py": "x",
            "src/app.py": "x",
            ".git/config.txt": "x",
        })
        assert _rel(tmp_path, walk(tmp_path)) == ["src/app.py"]

    def test_exclude_applies_to_files(self, tmp_path: Path):
        write_tree(tmp_path, {"keep.py": "x", "skip_me.py": "x"})
        assert _rel(tmp_path, walk(tmp_path, exclude_patterns=["skip"])) == ["keep.py"]

    def test_max_files(self, tmp_path: Path):
        write_tree(tmp_path, {f"f{i:02d}.py": "x" for i in range(30)})
        files = walk(tmp_path, max_files=7)
        assert len(files) == 7
        assert _rel(tmp_path, files) == [f"f{i:02d}.py" for i in range(7)]

    def test_max_files_zero(self, tmp_path: Path):
        write_tree(tmp_path, {"a.py": "x"})
        assert walk(tmp_path, max_files=0) == []

    def test_max_depth(self, tmp_path: Path):
        write_tree(tmp_path, {
            "top.py": "x",
            "d1/one.py": "x",
            "d1/d2/two.py": "x",
            "d1/d2/d3/three.py": "x",
        })
        assert _rel(tmp_path, walk(tmp_path, max_depth=2)) == ["d1/d2/two.py", "d1/one.py", "top.py"]
        assert _rel(tmp_path, walk(tmp_path, max_depth=0)) == ["top.py"]

    def test_default_depth_limit_is_ten(self, tmp_path: Path):
        deep = "/".join(f"d{i}" for i in range(1, 12))
        write_tree(tmp_path, {
            "/".join(f"d{i}" for i in range(1, 11)) + "/ok.py": "x",
            deep + "/too_deep.py": "x",
        })
        assert [Path(p).name for p in walk(tmp_path)] == ["ok.py"]

    def test_skip_paths_do_not_use_a_slot(self, tmp_path: Path):
        write_tree(tmp_path, {"a.json": "{}", "b.py": "x", "c.py": "x"})
        files = walk(tmp_path, max_files=2, skip_paths=[str(tmp_path / "a.json")])
        assert _rel(tmp_path, files) == ["b.py", "c.py"]

    def test_returns_absolute_paths(self, tmp_path: Path):
        write_tree(tmp_path, {"a.py": "x"})
        assert all(os.path.isabs(p) for p in walk(tmp_path))

    def test_missing_root_yields_nothing(self, tmp_path: Path):
        assert walk(tmp_path / "missing") == []

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
    def test_unreadable_directory_is_skipped(self, tmp_path: Path):
        write_tree(tmp_path, {"locked/secret.py": "x", "open/ok.py": "x"})
        locked = tmp_path / "locked"
        locked.chmod(0)
        try:
            assert _rel(tmp_path, walk(tmp_path)) == ["open/ok.py"]
        finally:
            locked.chmod(0o755)


class TestExtensions:
    def test_normalize(self):
        assert normalize_extensions(["PY", ".Js", " .md ", ""]) == frozenset({".py", ".js", ".md"})

    def test_supported_set_spans_code_markup_config_and_scripts(self):
        assert len(SUPPORTED_EXTENSIONS) >= 40
        for ext in (".py", ".ts", ".md", ".json", ".yaml", ".html", ".css", ".sh", ".sql"):
            assert ext in SUPPORTED_EXTENSIONS

    def test_default_excludes(self):
        assert set(DEFAULT_EXCLUDE_PATTERNS) == {"node_modules", ".git", "dist", "build", "__pycache__"}
