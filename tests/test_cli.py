"""Tests for the command line."""

import pytest
from rich.console import Console
from typer.testing import CliRunner

from pulumi_graph import cli
from pulumi_graph.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    # Keep table cells on one line regardless of the terminal
    monkeypatch.setattr(cli, "console", Console(width=200))


@pytest.mark.parametrize(
    "args",
    [[], ["order"], ["edges"], ["services"], ["compose"]],
    ids=["root", "order", "edges", "services", "compose"],
)
def test_short_help_flag(args):
    result = runner.invoke(app, [*args, "-h"])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_order(template_path):
    result = runner.invoke(app, ["order", template_path])
    assert result.exit_code == 0
    assert "azure-native:operationalinsights:Workspace" in result.output
    rows = [line for line in result.output.splitlines() if "azure" in line and "Evaluation order" not in line]
    assert " resourceGroup " in rows[0]
    assert " containerappter " in rows[-1]


def test_order_with_config(template_path, write_file):
    config = write_file("config.yaml", "project: apps\nstack: dev\n")
    result = runner.invoke(app, ["order", template_path, "--config", config])
    assert result.exit_code == 0
    assert "workspaceSharedKeys" in result.output


def test_edges(template_path):
    result = runner.invoke(app, ["edges", template_path])
    assert result.exit_code == 0
    assert "properties.registryAuth[0].password" in result.output
    assert "references)" in result.output


def test_unknown_reference_fails(write_file):
    path = write_file("bad.yml", "resources:\n  app:\n    type: t\n    properties:\n      x: ${missing.id}\n")
    result = runner.invoke(app, ["order", path])
    assert result.exit_code == 1


def test_cycle_fails(write_file):
    path = write_file(
        "cycle.yml",
        "resources:\n  a:\n    type: t\n    properties:\n      x: ${b.id}\n"
        "  b:\n    type: t\n    properties:\n      y: ${a.id}\n",
    )
    result = runner.invoke(app, ["edges", path])
    assert result.exit_code == 1


def test_missing_template(tmp_path):
    result = runner.invoke(app, ["order", str(tmp_path / "nope.yml")])
    assert result.exit_code == 1


def test_bad_config(template_path, write_file):
    config = write_file("config.yaml", "project: apps\n")
    result = runner.invoke(app, ["order", template_path, "-c", config])
    assert result.exit_code == 1


def test_services(compose_path):
    result = runner.invoke(app, ["services", compose_path])
    assert result.exit_code == 0
    assert "service2_dapr" in result.output
    assert "placement" in result.output


def test_services_failure(write_file):
    path = write_file("compose.yml", "services:\n  app:\n    image: a\n    depends_on: [db]\n")
    result = runner.invoke(app, ["services", path])
    assert result.exit_code == 1


def test_compose(template_path):
    result = runner.invoke(app, ["compose", template_path])
    assert result.exit_code == 0
    assert "myappbis:" in result.output
    assert "node:12" in result.output
    assert "context: ./node-app" in result.output
    assert "80:8000" in result.output


def test_compose_failure(write_file):
    path = write_file("cycle.yml", "resources:\n  a:\n    type: t\n    properties:\n      x: ${a.id}\n")
    result = runner.invoke(app, ["compose", path])
    assert result.exit_code == 1
