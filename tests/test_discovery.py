from pathlib import Path

from bundle_cdn.discovery import discover_roots


def _mk(base: Path, *parts: str) -> Path:
    p = base.joinpath(*parts)
    p.mkdir(parents=True)
    return p


def test_named_directories(tmp_path: Path):
    _mk(tmp_path, "assetbundles")
    _mk(tmp_path, "manifest")
    _mk(tmp_path, "orchis")

    found = discover_roots(tmp_path)
    assert found.assetbundles == [str(tmp_path / "assetbundles")]
    assert found.manifests == [str(tmp_path / "manifest"), str(tmp_path / "orchis")]


def test_markers_one_level_down(tmp_path: Path):
    _mk(tmp_path, "DownloadOutput", "Android")
    _mk(tmp_path, "mirror", "2A")
    _mk(tmp_path, "lists", "b1HyoeTFegeTexC0")

    found = discover_roots(tmp_path)
    assert found.assetbundles == [
        str(tmp_path / "DownloadOutput" / "Android"),
        str(tmp_path / "mirror"),
    ]
    assert found.manifests == [str(tmp_path / "lists")]


def test_first_marker_wins(tmp_path: Path):
    # "Android" sorts before "y2XM...", so the directory is classified once.
    _mk(tmp_path, "mixed", "Android")
    _mk(tmp_path, "mixed", "y2XM6giU6zz56wCm")

    found = discover_roots(tmp_path)
    assert found.assetbundles == [str(tmp_path / "mixed" / "Android")]
    assert found.manifests == []


def test_unmarked_and_plain_files_ignored(tmp_path: Path):
    _mk(tmp_path, "docs", "readme")
    (tmp_path / "config.json").write_text("{}")
    (tmp_path / "assetbundles.txt").write_text("")

    found = discover_roots(tmp_path)
    assert found.assetbundles == []
    assert found.manifests == []


def test_empty_directory(tmp_path: Path):
    found = discover_roots(tmp_path)
    assert (found.assetbundles, found.manifests) == ([], [])
