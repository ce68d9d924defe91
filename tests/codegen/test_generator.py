"""Tests for the generation pipeline as a whole."""

import re

import pytest

from airengine.codegen import generate, transpile
from airengine.config import TranspileOptions
from airengine.errors import AirConfigError, AirParseError
from airengine.ir import extract_context
from airengine.lang import parse


def test_output_is_deterministic(fullstack_source):
    first = transpile(fullstack_source)
    second = transpile(fullstack_source)
    assert first.files == second.files


def test_generate_is_pure_for_a_context(auth_source):
    context = extract_context(parse(auth_source), TranspileOptions())
    assert generate(context).files == generate(context).files


def test_no_timestamps_in_outputs(services_source):
    stamp = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")
    for item in transpile(services_source).files:
        assert not stamp.search(item.content), item.path


@pytest.mark.parametrize(
    "target, expected",
    [
        ("client", {"client/"}),
        ("server", {"server/", ".dockerignore", "docker-compose.yml"}),
        ("docs", {"README.md"}),
    ],
)
def test_target_filtering(minimal_crud_source, target, expected):
    paths = transpile(minimal_crud_source, target=target).paths
    assert paths
    for path in paths:
        assert any(path.startswith(prefix) for prefix in expected), path


def test_target_all_includes_readme(minimal_crud_source):
    result = transpile(minimal_crud_source)
    assert result.paths[-1] == "README.md"
    readme = result.get("README.md").content
    assert "# t" in readme
    assert "| GET | `/api/items` | `~db.Item.findMany` |" in readme
    assert "uvicorn server.main:app --reload --port 8000" in readme


def test_frontend_only_readme_has_no_server_section(todo_source):
    readme = transpile(todo_source, target="docs").get("README.md").content
    assert "## Server" not in readme
    assert "cd ." in readme


def test_target_is_case_insensitive(minimal_crud_source):
    assert transpile(minimal_crud_source, target="SERVER").paths == transpile(minimal_crud_source, target="server").paths


def test_unknown_target_is_a_config_error(minimal_crud_source):
    with pytest.raises(AirConfigError) as info:
        transpile(minimal_crud_source, target="mobile")
    assert "target" in str(info.value)


def test_parse_errors_propagate():
    with pytest.raises(AirParseError):
        transpile("@state{x:int}")


class TestStats:
    def test_counts(self, fullstack_source):
        result = transpile(fullstack_source)
        stats = result.stats
        assert stats.file_count == len(result.files)
        assert stats.input_lines == fullstack_source.count("\n")
        assert stats.output_lines > stats.input_lines
        assert stats.compression_ratio == round(stats.output_lines / stats.input_lines, 1)

    def test_timings_are_recorded(self, fullstack_source):
        stats = transpile(fullstack_source).stats
        assert stats.total_ms + 0.001 >= stats.extract_ms + stats.analyze_ms
        assert stats.server_gen_ms >= 0

    def test_stats_from_a_parsed_ast(self, todo_source):
        stats = transpile(parse(todo_source)).stats
        assert stats.input_lines == 0
        assert stats.compression_ratio == 0.0
        assert stats.extract_ms == 0.0

    def test_to_dict_keys(self, todo_source):
        data = transpile(todo_source).stats.to_dict()
        assert set(data) == {
            "input_lines",
            "output_lines",
            "compression_ratio",
            "file_count",
            "extract_ms",
            "analyze_ms",
            "client_gen_ms",
            "server_gen_ms",
            "total_ms",
        }
