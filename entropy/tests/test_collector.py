import hashlib
import os
from pathlib import Path

import pytest

import entropy.beacon.collector as collector_mod
from entropy.beacon.collector import canonical_order, collect_source_files
from entropy.errors import ArtifactIOError, ConfigurationError
from entropy.tests.conftest import write_sources
from entropy.types.core import SourceFile


def test_digests_raw_bytes_and_sorts_case_insensitively(tmp_path: Path) -> None:
    write_sources(tmp_path, {"b.json": b'{"b":1}', "A.json": b'{"a":1}', "c.JSON.json": b"[]"})

    files = collect_source_files(tmp_path)

    assert [f.name for f in files] == ["A.json", "b.json", "c.JSON.json"]
    assert files[0].digest == hashlib.sha256(b'{"a":1}').hexdigest()
    assert all(f.digest_algorithm == "sha256" for f in files)


def test_ignores_non_json_and_directories(tmp_path: Path) -> None:
    write_sources(tmp_path, {"a.json": b"{}", "notes.txt": b"x", "b.json.bak": b"{}"})
    (tmp_path / "nested.json").mkdir()

    assert [f.name for f in collect_source_files(tmp_path)] == ["a.json"]


def test_contents_are_not_parsed(tmp_path: Path) -> None:
    write_sources(tmp_path, {"broken.json": b"{not json"})
    (f,) = collect_source_files(tmp_path)
    assert f.digest == hashlib.sha256(b"{not json").hexdigest()


def test_empty_directory_yields_empty_list(tmp_path: Path) -> None:
    assert collect_source_files(tmp_path) == []


def test_missing_directory_raises_io_error(tmp_path: Path) -> None:
    with pytest.raises(ArtifactIOError) as ei:
        collect_source_files(tmp_path / "nope")
    assert "nope" in ei.value.path


@pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="permission bits not enforced")
def test_unreadable_file_aborts_collection(tmp_path: Path) -> None:
    write_sources(tmp_path, {"a.json": b"{}", "b.json": b"{}"})
    locked = tmp_path / "b.json"
    locked.chmod(0)
    try:
        with pytest.raises(ArtifactIOError):
            collect_source_files(tmp_path)
    finally:
        locked.chmod(0o644)


def test_unknown_algorithm_is_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        collect_source_files(tmp_path, algorithm="sha-does-not-exist")


def test_canonical_order_uses_upper_cased_names() -> None:
    files = [SourceFile(n, "00", "sha256") for n in ("beta.json", "Alpha.json", "_x.json", "ALPHA2.json")]
    # '_' (0x5F) sorts after upper-case letters once names are upper-cased
    assert [f.name for f in canonical_order(files)] == ["Alpha.json", "ALPHA2.json", "beta.json", "_x.json"]


def test_directory_listing_is_closed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_sources(tmp_path, {"a.json": b"{}"})
    real_scandir = os.scandir
    opened = []

    class TrackingScandir:
        def __init__(self, path) -> None:
            self._it = real_scandir(path)
            self.closed = False
            opened.append(self)

        def __iter__(self):
            return iter(self._it)

        def __enter__(self):
            return self

        def __exit__(self, *exc) -> None:
            self.close()

        def close(self) -> None:
            self._it.close()
            self.closed = True

    monkeypatch.setattr(collector_mod.os, "scandir", TrackingScandir)
    assert [f.name for f in collect_source_files(tmp_path)] == ["a.json"]
    assert len(opened) == 1 and opened[0].closed
