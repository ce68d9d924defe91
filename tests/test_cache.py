"""Tests for the incremental build cache."""

import json
import logging

from airengine.cache import (
    MANIFEST_VERSION,
    CacheManifest,
    build_manifest,
    compute_diff,
    hash_content,
    load_manifest,
    manifest_path,
    save_manifest,
)
from airengine.codegen import OutputFile


def outputs(**contents):
    return [OutputFile(path=name.replace("_", "/"), content=text) for name, text in contents.items()]


def test_hash_is_sixteen_hex_characters():
    digest = hash_content("hello")
    assert len(digest) == 16
    assert digest == hash_content("hello")
    assert digest != hash_content("hello!")
    int(digest, 16)


def test_first_build_writes_everything():
    files = outputs(src_a="a", src_b="b")
    diff = compute_diff(files, None, "s1")
    assert diff.changed_files == files
    assert diff.removed_paths == []
    assert diff.skipped_count == 0
    assert diff.manifest.files == {"src/a": hash_content("a"), "src/b": hash_content("b")}


def test_unchanged_source_short_circuits():
    files = outputs(src_a="a", src_b="b")
    prior = build_manifest(files, "s1", timestamp="then")
    diff = compute_diff(files, prior, "s1")
    assert not diff.has_changes
    assert diff.skipped_count == 2
    assert diff.manifest.files == prior.files
    assert diff.manifest.timestamp != "then"


def test_only_changed_files_are_written():
    prior = build_manifest(outputs(src_a="a", src_b="b"), "s1")
    diff = compute_diff(outputs(src_a="a", src_b="B"), prior, "s2")
    assert [item.path for item in diff.changed_files] == ["src/b"]
    assert diff.skipped_count == 1


def test_removed_paths_are_reported():
    prior = build_manifest(outputs(src_a="a", src_b="b", src_c="c"), "s1")
    diff = compute_diff(outputs(src_a="a"), prior, "s2")
    assert diff.removed_paths == ["src/b", "src/c"]
    assert diff.has_changes


def test_same_source_with_different_paths_is_diffed():
    prior = build_manifest(outputs(src_a="a"), "s1")
    diff = compute_diff(outputs(src_a="a", src_b="b"), prior, "s1")
    assert [item.path for item in diff.changed_files] == ["src/b"]


def test_force_rewrites_and_still_reports_removals():
    prior = build_manifest(outputs(src_a="a", src_b="b"), "s1")
    diff = compute_diff(outputs(src_a="a"), prior, "s1", force=True)
    assert [item.path for item in diff.changed_files] == ["src/a"]
    assert diff.removed_paths == ["src/b"]
    assert diff.skipped_count == 0


def test_force_bypasses_the_unchanged_short_circuit():
    files = outputs(src_a="a", src_b="b")
    diff = compute_diff(files, build_manifest(files, "s1"), "s1", force=True)
    assert diff.changed_files == files
    assert diff.removed_paths == []


def test_save_and_load(tmp_path):
    manifest = build_manifest(outputs(src_a="a"), "abc", timestamp="2024-01-01T00:00:00+00:00")
    path = save_manifest(manifest, manifest_path(tmp_path))
    assert path == tmp_path / ".air-cache" / "manifest.json"
    data = json.loads(path.read_text())
    assert data["sourceHash"] == "abc"
    assert data["version"] == MANIFEST_VERSION
    assert load_manifest(path) == manifest


def test_missing_manifest(tmp_path):
    assert load_manifest(tmp_path / "nope.json") is None


def test_corrupt_manifest_is_ignored(tmp_path, caplog):
    path = tmp_path / "manifest.json"
    path.write_text("{not json")
    with caplog.at_level(logging.WARNING, logger="airengine.cache"):
        assert load_manifest(path) is None
    assert "Ignoring unreadable cache manifest" in caplog.text


def test_manifest_missing_fields_is_ignored(tmp_path):
    path = tmp_path / "manifest.json"
    path.write_text(json.dumps({"version": MANIFEST_VERSION, "files": {}}))
    assert load_manifest(path) is None


def test_version_mismatch_is_ignored(tmp_path, caplog):
    path = tmp_path / "manifest.json"
    path.write_text(CacheManifest(version=MANIFEST_VERSION + 1, source_hash="x").to_json())
    with caplog.at_level(logging.WARNING, logger="airengine.cache"):
        assert load_manifest(path) is None
    assert "version" in caplog.text
