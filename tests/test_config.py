"""Tests for generation options and project configuration."""

import json

import pytest

from airengine.config import TranspileOptions, load_project_config, locate_config_file, make_options
from airengine.errors import AirConfigError


class TestOptions:
    def test_defaults(self):
        options = TranspileOptions()
        assert options.target == "all"
        assert options.out_dir == "."
        assert options.includes_client() and options.includes_server() and options.includes_docs()

    def test_target_selection(self):
        options = make_options(target="server")
        assert options.includes_server()
        assert not options.includes_client()
        assert not options.includes_docs()

    def test_bad_target(self):
        with pytest.raises(AirConfigError) as info:
            make_options(target="desktop")
        assert info.value.hint.startswith("target must be one of: all, client")

    def test_unknown_option(self):
        with pytest.raises(AirConfigError):
            make_options(colour="blue")

    def test_negative_source_lines(self):
        with pytest.raises(AirConfigError):
            make_options(source_lines=-1)

    def test_options_are_frozen(self):
        options = TranspileOptions()
        with pytest.raises(Exception):
            options.target = "client"


class TestProjectConfig:
    def test_defaults_without_a_file(self, tmp_path):
        config = load_project_config(tmp_path)
        assert config.path is None
        assert config.out_dir == tmp_path.resolve() / "build"
        assert config.manifest_path == tmp_path.resolve() / "build" / ".air-cache" / "manifest.json"

    def test_air_toml(self, tmp_path):
        (tmp_path / "air.toml").write_text('[build]\nout_dir = "dist"\ntarget = "Client"\ncache_dir = ".cache"\n')
        config = load_project_config(tmp_path)
        assert config.path == tmp_path.resolve() / "air.toml"
        assert config.out_dir == tmp_path.resolve() / "dist"
        assert config.target == "client"
        assert config.manifest_path.parent.name == ".cache"

    def test_unknown_target(self, tmp_path):
        (tmp_path / "air.toml").write_text('[build]\ntarget = "mobile"\n')
        with pytest.raises(AirConfigError) as info:
            load_project_config(tmp_path)
        assert "mobile" in info.value.message
        assert info.value.path.endswith("air.toml")

    def test_build_must_be_a_table(self, tmp_path):
        (tmp_path / "air.toml").write_text('build = "dist"\n')
        with pytest.raises(AirConfigError):
            load_project_config(tmp_path)

    def test_invalid_toml(self, tmp_path):
        (tmp_path / "air.toml").write_text("[build\n")
        with pytest.raises(AirConfigError) as info:
            load_project_config(tmp_path)
        assert info.value.message.startswith("Could not read config")

    def test_airrc_json(self, tmp_path):
        (tmp_path / ".airrc").write_text(json.dumps({"build": {"target": "server"}}))
        config = load_project_config(tmp_path)
        assert config.target == "server"
        assert config.path.name == ".airrc"

    def test_air_toml_wins_over_airrc(self, tmp_path):
        (tmp_path / "air.toml").write_text("[build]\n")
        (tmp_path / ".airrc").write_text("{}")
        assert locate_config_file(tmp_path).name == "air.toml"

    def test_explicit_path(self, tmp_path):
        explicit = tmp_path / "custom.toml"
        explicit.write_text('[build]\ntarget = "docs"\n')
        assert load_project_config(tmp_path, explicit).target == "docs"
        assert locate_config_file(tmp_path, tmp_path / "missing.toml") is None
