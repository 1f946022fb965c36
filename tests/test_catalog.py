import os
import sys

from logyard.catalog import RawSource, build_catalog, iter_leaves, parse_sources


def touch(path, data=b"x\n"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def raw(*paths):
    return [RawSource(str(p), str(p), True) for p in paths]


def leaf_paths(catalog):
    return [leaf.path for leaf in iter_leaves(catalog)]


def test_parse_sources_resolves_each_token(tmp_path):
    sources = parse_sources("app://a.log,,%s" % (tmp_path / "b"), str(tmp_path))
    assert [s.valid for s in sources] == [True, False, True]
    assert sources[0].abs_path == str(tmp_path / "a.log")
    assert sources[1].abs_path == ""
    assert sources[2].abs_path == str(tmp_path / "b")


def test_single_log_file_is_a_leaf(tmp_path):
    log = touch(tmp_path / "app.log")
    catalog = build_catalog(raw(log))
    assert len(catalog) == 1
    assert not catalog[0].is_directory
    assert catalog[0].children is None
    assert leaf_paths(catalog) == [str(log)]


def test_unsupported_and_missing_sources_are_skipped(tmp_path):
    txt = touch(tmp_path / "notes.txt")
    missing = tmp_path / "gone.log"
    good = touch(tmp_path / "ok.log")
    diagnostics = []
    catalog = build_catalog(raw(txt, missing, good) + [RawSource("", "", False)], diagnostics)
    assert leaf_paths(catalog) == [str(good)]
    assert len(diagnostics) == 2
    assert "not a log file or directory" in diagnostics[0]
    assert str(missing) in diagnostics[1]


def test_directory_collects_nested_log_files_only(tmp_path):
    root = tmp_path / "logs"
    expected = {
        str(touch(root / "a.log")),
        str(touch(root / "sub" / "b.log")),
        str(touch(root / "sub" / "deeper" / "c.log")),
    }
    touch(root / "readme.md")
    touch(root / "sub" / "d.log.gz")
    (root / "empty").mkdir()
    catalog = build_catalog(raw(root))
    assert len(catalog) == 1
    assert catalog[0].is_directory
    assert set(leaf_paths(catalog)) == expected
    assert all(not child.is_directory for child in catalog[0].children)


def test_root_order_is_preserved_and_overlaps_are_kept(tmp_path):
    root = tmp_path / "logs"
    inner = touch(root / "z.log")
    first = touch(tmp_path / "first.log")
    catalog = build_catalog(raw(first, root, inner))
    assert [src.path for src in catalog] == [str(first), str(root), str(inner)]
    assert leaf_paths(catalog) == [str(first), str(inner), str(inner)]


def test_scan_is_stable_across_runs(tmp_path):
    root = tmp_path / "logs"
    for i in range(5):
        touch(root / ("d%d" % i) / ("f%d.log" % i))
    first = build_catalog(raw(root))
    second = build_catalog(raw(root))
    assert set(leaf_paths(first)) == set(leaf_paths(second))
    assert len(leaf_paths(first)) == 5


def test_unreadable_subdirectory_only_loses_its_own_files(tmp_path, monkeypatch):
    root = tmp_path / "logs"
    keep = {str(touch(root / "top.log")), str(touch(root / "good" / "g.log"))}
    touch(root / "bad" / "hidden.log")
    bad = str(root / "bad")
    real_scandir = os.scandir

    def scandir(path):
        if os.fspath(path) == bad:
            raise PermissionError(13, "Permission denied", bad)
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", scandir)
    diagnostics = []
    catalog = build_catalog(raw(root), diagnostics)
    assert len(catalog) == 1
    assert set(leaf_paths(catalog)) == keep
    assert any(bad in d for d in diagnostics)


def test_unreadable_root_directory_is_kept_empty(tmp_path, monkeypatch):
    root = tmp_path / "logs"
    touch(root / "a.log")

    def scandir(path):
        raise PermissionError(13, "Permission denied", os.fspath(path))

    monkeypatch.setattr(os, "scandir", scandir)
    catalog = build_catalog(raw(root))
    assert len(catalog) == 1
    assert catalog[0].children == ()


def test_walk_depth_is_not_bound_by_the_recursion_limit(tmp_path):
    root = tmp_path / "logs"
    deepest = root
    for _ in range(80):
        deepest = deepest / "d"
    deepest.mkdir(parents=True)
    bottom = touch(deepest / "bottom.log")
    top = touch(root / "top.log")

    frame, depth = sys._getframe(), 0
    while frame is not None:
        depth += 1
        frame = frame.f_back
    limit = sys.getrecursionlimit()
    sys.setrecursionlimit(depth + 50)
    try:
        catalog = build_catalog(raw(root))
    finally:
        sys.setrecursionlimit(limit)
    assert set(leaf_paths(catalog)) == {str(top), str(bottom)}
