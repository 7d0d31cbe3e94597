# cli.py
from typing import Annotated, Any, Optional, Sequence, Tuple

import pulumi
import typer
from rich.console import Console
from rich.table import Table

from .config import EvaluatorConfig, load_config
from .container_apps import build_services
from .document import dump, from_python
from .errors import TemplateError
from .evaluator import Plan, plan_file
from .topology import load_topology_file

app = typer.Typer(
    name="pulumi-yaml-graph",
    help="Order the resources and variables of a Pulumi YAML program by their references.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()

ConfigOption = Annotated[Optional[str], typer.Option("--config", "-c", help="Evaluator settings (YAML).")]


def _render_table(headers: Sequence[str], rows: Sequence[Tuple[Any, ...]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)


def _config(config_path: Optional[str]) -> EvaluatorConfig:
    return load_config(config_path) if config_path else EvaluatorConfig()


def _plan(template: str, config_path: Optional[str]) -> Plan:
    try:
        return plan_file(template, _config(config_path))
    except (TemplateError, ValueError, OSError) as e:
        pulumi.log.error(f"Failed to evaluate '{template}': {e}")
        raise typer.Exit(code=1) from e


@app.command("order")
def order(
    template: Annotated[str, typer.Argument(help="Pulumi YAML program.")],
    config: ConfigOption = None,
) -> None:
    """Print the evaluation order of a template."""
    plan = _plan(template, config)
    rows = []
    for position, name in enumerate(plan.order, start=1):
        entity = plan.template.entity(name)
        rows.append((position, name, entity.kind, entity.type or ""))
    _render_table(["#", "name", "kind", "type"], rows)


@app.command("edges")
def edges(
    template: Annotated[str, typer.Argument(help="Pulumi YAML program.")],
    config: ConfigOption = None,
) -> None:
    """List every reference between entities."""
    plan = _plan(template, config)
    rows = [(edge.source, edge.field, edge.target) for edge in plan.graph.edges]
    _render_table(["source", "field", "target"], rows)
    console.print(f"({len(rows)} references)")


@app.command("services")
def services(
    compose_file: Annotated[str, typer.Argument(help="Compose-style service topology.")],
) -> None:
    """Print the start-up order of the services in a topology file."""
    try:
        topology = load_topology_file(compose_file)
        startup = topology.startup_order()
    except TemplateError as e:
        pulumi.log.error(f"Failed to order services in '{compose_file}': {e}")
        raise typer.Exit(code=1) from e

    rows = []
    for position, name in enumerate(startup, start=1):
        service = topology.service(name)
        rows.append((position, name, ", ".join(service.depends_on) or "-"))
    _render_table(["#", "service", "depends on"], rows)


@app.command("compose")
def compose(
    template: Annotated[str, typer.Argument(help="Pulumi YAML program.")],
    config: ConfigOption = None,
) -> None:
    """Print compose services for the container apps of a template."""
    plan = _plan(template, config)
    try:
        topology = build_services(plan, _config(config))
    except TemplateError as e:
        pulumi.log.error(f"Failed to derive services from '{template}': {e}")
        raise typer.Exit(code=1) from e
    typer.echo(dump(from_python(topology.to_python())), nl=False)


def main() -> None:
    app()
