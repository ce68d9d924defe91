"""Tests for the ``airengine`` command line."""

import json
import logging

import pytest

from airengine.cli import build_parser, main


@pytest.fixture(autouse=True)
def restore_package_logger():
    package_logger = logging.getLogger("airengine")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)


@pytest.fixture
def source_file(tmp_path, minimal_crud_source):
    path = tmp_path / "shop.air"
    path.write_text(minimal_crud_source)
    return path


def run(*argv):
    return main(["--log-level", "error", *argv])


class TestBuild:
    def test_writes_outputs_and_manifest(self, tmp_path, source_file, capsys):
        out = tmp_path / "out"
        assert run("build", str(source_file), "--out", str(out)) == 0
        assert (out / "server" / "main.py").is_file()
        assert (out / "client" / "src" / "App.jsx").is_file()
        assert (out / "README.md").is_file()
        manifest = json.loads((out / ".air-cache" / "manifest.json").read_text())
        assert "server/main.py" in manifest["files"]
        assert "written, 0 removed, 0 unchanged" in capsys.readouterr().out

    def test_provenance_names_the_source_file(self, tmp_path, source_file):
        out = tmp_path / "out"
        run("build", str(source_file), "--out", str(out))
        assert (out / "server" / "main.py").read_text().startswith("# Generated by airengine server from shop.air.")

    def test_second_run_writes_nothing(self, tmp_path, source_file, capsys):
        out = tmp_path / "out"
        run("build", str(source_file), "--out", str(out))
        capsys.readouterr()
        assert run("build", str(source_file), "--out", str(out)) == 0
        assert ": 0 written, 0 removed" in capsys.readouterr().out

    def test_force_rewrites_everything(self, tmp_path, source_file, capsys):
        out = tmp_path / "out"
        run("build", str(source_file), "--out", str(out))
        capsys.readouterr()
        run("build", str(source_file), "--out", str(out), "--force")
        assert "removed, 0 unchanged" in capsys.readouterr().out

    def test_changed_target_removes_stale_files(self, tmp_path, source_file, capsys):
        out = tmp_path / "out"
        run("build", str(source_file), "--out", str(out))
        run("build", str(source_file), "--out", str(out), "--target", "server")
        assert not (out / "client" / "src" / "App.jsx").exists()
        assert (out / "server" / "main.py").is_file()

    def test_force_with_narrower_target_removes_stale_files(self, tmp_path, source_file, capsys):
        out = tmp_path / "out"
        run("build", str(source_file), "--out", str(out))
        capsys.readouterr()
        assert run("build", str(source_file), "--out", str(out), "--target", "client", "--force") == 0
        assert not (out / "server" / "main.py").exists()
        assert (out / "client" / "src" / "App.jsx").is_file()
        summary = capsys.readouterr().out
        assert ", 0 removed" not in summary
        assert "removed, 0 unchanged" in summary
        manifest = json.loads((out / ".air-cache" / "manifest.json").read_text())
        assert not any(path.startswith("server/") for path in manifest["files"])

    def test_out_dir_from_air_toml(self, tmp_path, source_file):
        (tmp_path / "air.toml").write_text('[build]\nout_dir = "dist"\ntarget = "docs"\n')
        assert run("build", str(source_file)) == 0
        assert (tmp_path / "dist" / "README.md").is_file()
        assert not (tmp_path / "dist" / "server").exists()

    def test_parse_error_exits_with_one(self, tmp_path, capsys):
        broken = tmp_path / "broken.air"
        broken.write_text("@app:t\n@bogus")
        assert run("build", str(broken), "--out", str(tmp_path / "out")) == 1
        err = capsys.readouterr().err
        assert "[AIR Parse Error] Line 2:1: Unknown block type: @bogus" in err
        assert "  @bogus\n  ^" in err


class TestParse:
    def test_prints_ast_json(self, source_file, capsys):
        assert run("parse", str(source_file)) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["app"]["name"] == "t"
        assert data["app"]["blocks"][0]["kind"] == "db"

    def test_missing_file(self, tmp_path, capsys):
        assert run("parse", str(tmp_path / "missing.air")) == 1
        assert "Source file not found" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage: airengine" in capsys.readouterr().out


def test_target_choices():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["build", "x.air", "--target", "mobile"])
