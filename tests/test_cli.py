"""Tests for the Recograph command-line interface."""

import os

import pytest
from click.testing import CliRunner

from recograph.cli.main import DATABASE_ENVVAR, cli


@pytest.fixture()
def runner():
    return CliRunner()


class TestQueries:
    def test_recommend(self, runner, shop_file):
        result = runner.invoke(cli, ["--database", str(shop_file), "recommend", "S1 201"])
        assert result.exit_code == 0, result.output
        assert result.output == "rtx2070:202 rx6800:203\n"

    def test_database_from_environment(self, runner, shop_file):
        result = runner.invoke(cli, ["recommend", "S3 201"], env={DATABASE_ENVVAR: str(shop_file)})
        assert result.exit_code == 0, result.output
        assert result.output == "gtx1070:204 rtx2070:202\n"

    def test_recommend_parse_error(self, runner, shop_file):
        result = runner.invoke(cli, ["--database", str(shop_file), "recommend", "S1"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_nodes_without_database(self, runner):
        result = runner.invoke(cli, ["nodes"], env={DATABASE_ENVVAR: ""})
        assert result.exit_code == 0, result.output
        assert result.output == "\n"

    def test_edges(self, runner, shop_file):
        result = runner.invoke(cli, ["--database", str(shop_file), "edges"])
        assert result.exit_code == 0, result.output
        assert len(result.output.splitlines()) == 16

    def test_missing_database(self, runner, tmp_path):
        result = runner.invoke(cli, ["--database", str(tmp_path / "nope.txt"), "nodes"])
        assert result.exit_code == 1
        assert "Cannot load database" in result.output

    def test_oversized_id_is_reported(self, runner, shop_file, tmp_path, oversized_id):
        args = ["--database", str(shop_file), "recommend", f"S1 {oversized_id}"]
        result = runner.invoke(cli, args)
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "expected product id" in result.output

        bad = tmp_path / "bad.txt"
        bad.write_text(f"Shoes contains Boot(id={oversized_id})\n", encoding="utf-8")
        result = runner.invoke(cli, ["--database", str(bad), "nodes"])
        assert result.exit_code == 1
        assert "Cannot load database" in result.output


class TestExport:
    def test_export_to_stdout(self, runner, shop_file):
        result = runner.invoke(cli, ["--database", str(shop_file), "export"])
        assert result.exit_code == 0, result.output
        assert result.output.startswith("digraph {\n")
        assert result.output.endswith("}\n")

    def test_export_to_file(self, runner, shop_file, tmp_path):
        target = tmp_path / "graph.dot"
        result = runner.invoke(cli, ["--database", str(shop_file), "export", str(target)])
        assert result.exit_code == 0, result.output
        assert "Exported DOT" in result.output
        assert target.read_text(encoding="utf-8").startswith("digraph {")


class TestStatsAndValidate:
    def test_stats(self, runner, shop_file):
        result = runner.invoke(cli, ["--database", str(shop_file), "stats"])
        assert result.exit_code == 0, result.output
        assert "Nodes: 8  Edges: 16" in result.output
        assert "Products: 6  Categories: 2" in result.output
        assert "  contains: 5" in result.output
        assert "part-of: 0" not in result.output

    def test_validate(self, runner, shop_file):
        result = runner.invoke(cli, ["--database", str(shop_file), "validate"])
        assert result.exit_code == 0, result.output
        assert "Graph is valid." in result.output


class TestShell:
    def test_reads_commands_from_stdin(self, runner):
        commands = "add Shoes contains Boot(id=1)\nnodes\nquit\nnodes\n"
        result = runner.invoke(cli, ["shell"], input=commands, env={DATABASE_ENVVAR: ""})
        assert result.exit_code == 0, result.output
        assert result.output == "boot:1 shoes\n"

    def test_starts_with_database(self, runner, shop_file):
        result = runner.invoke(
            cli, ["--database", str(shop_file), "shell"], input="recommend S2 204\n"
        )
        assert result.exit_code == 0, result.output
        assert result.output == "rtx2070:202 rtx3070:201\n"


class TestMcpCommand:
    def test_passes_database_to_server(self, runner, shop_file, monkeypatch):
        from recograph.mcp import server

        monkeypatch.setenv(DATABASE_ENVVAR, "unused.txt")
        seen = []
        monkeypatch.setattr(server, "run_server", lambda: seen.append(os.environ[DATABASE_ENVVAR]))
        result = runner.invoke(cli, ["--database", str(shop_file), "mcp"])
        assert result.exit_code == 0, result.output
        assert seen == [str(shop_file)]
